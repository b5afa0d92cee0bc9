"""
Variant models — the four precompiled distributions of ARTK core.

A variant is picked by Node.js major version and module system.  The
static table lives in ``artk.core.services.variants.catalog``; this module
only defines the shapes.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class VariantId(StrEnum):
    """Installable variant identifiers."""

    MODERN_ESM = "modern-esm"
    MODERN_CJS = "modern-cjs"
    LEGACY_16 = "legacy-16"
    LEGACY_14 = "legacy-14"


class ModuleSystem(StrEnum):
    """Module system of the host project."""

    ESM = "esm"
    CJS = "cjs"


class VariantDefinition(BaseModel):
    """Static description of one variant."""

    model_config = ConfigDict(frozen=True)

    id: VariantId
    display_name: str
    node_range: frozenset[int]
    playwright_version: str          # e.g. "1.57.x"
    module_system: ModuleSystem
    ts_target: str
    dist_directory: str              # directory inside the core distribution

    def supports(self, node_major: int) -> bool:
        """Whether this variant runs on the given Node.js major version."""
        return node_major in self.node_range

    def node_range_label(self) -> str:
        """Human-readable range, e.g. ``"18, 19, 20, 21, 22"``."""
        return ", ".join(str(v) for v in sorted(self.node_range))
