"""
ArtkContext — the installation record at ``.artk/context.json``.

Written once per successful install or upgrade; read-only input to drift
detection and diagnostics otherwise.  Keys are camelCase on disk so the
file stays compatible with the Node bootstrap tooling.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from artk.core.models.variant import ModuleSystem, VariantId

MIN_CONTEXT_NODE_VERSION = 14

_PLAYWRIGHT_PIN = re.compile(r"^\d+\.\d+\.x$")


class InstallMethod(StrEnum):
    """How ARTK was installed."""

    CLI = "cli"
    BOOTSTRAP = "bootstrap"
    MANUAL = "manual"


class CamelModel(BaseModel):
    """Base for records persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Serialize with on-disk key names, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UpgradeRecord(CamelModel):
    """One variant migration."""

    # "from" is a keyword, so the alias is spelled out.
    from_variant: VariantId = Field(alias="from")
    to: VariantId
    at: datetime


class ArtkContext(CamelModel):
    """Persisted installation context."""

    variant: VariantId
    variant_installed_at: datetime
    node_version: int = Field(ge=MIN_CONTEXT_NODE_VERSION)
    module_system: ModuleSystem
    playwright_version: str
    artk_version: str
    install_method: InstallMethod

    override_used: bool | None = None
    previous_variant: VariantId | None = None
    upgrade_history: list[UpgradeRecord] | None = None

    @field_validator("playwright_version")
    @classmethod
    def _check_playwright_pin(cls, value: str) -> str:
        if not _PLAYWRIGHT_PIN.match(value):
            raise ValueError(f"playwrightVersion must look like '1.57.x', got {value!r}")
        return value


class InstalledEnvironment(CamelModel):
    """The two context fields drift detection needs.

    Older or hand-written context files may carry only these, so every
    other key is ignored here.
    """

    variant: VariantId
    node_version: int
