"""
Installer settings loader.

Settings come from an optional ``.artk/installer.yml`` in the project,
then environment variables override individual keys:

    ARTK_CORE_PATH           core distribution to install variants from
    ARTK_LOCK_STALE_SECONDS  age after which a lock is reclaimable

A missing settings file is normal and yields defaults.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from artk.core.errors import ArtkError
from artk.core.project import ProjectHandle

logger = logging.getLogger(__name__)

DEFAULT_STALE_TIMEOUT_SECONDS = 10 * 60
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024

ENV_CORE_PATH = "ARTK_CORE_PATH"
ENV_STALE_SECONDS = "ARTK_LOCK_STALE_SECONDS"


class ConfigError(ArtkError):
    """Raised when installer settings are invalid."""


class InstallerSettings(BaseModel):
    """Tunables for the installer."""

    core_path: Path | None = None
    lock_stale_timeout_seconds: float = Field(default=DEFAULT_STALE_TIMEOUT_SECONDS, gt=0)
    log_max_bytes: int = Field(default=DEFAULT_LOG_MAX_BYTES, gt=0)


def load_settings(handle: ProjectHandle, path: Path | None = None) -> InstallerSettings:
    """Load settings for a project.

    Args:
        handle: Project whose ``.artk/installer.yml`` is read.
        path: Explicit settings file (overrides the project default).

    Returns:
        Validated settings with environment overrides applied.

    Raises:
        ConfigError: If the file is unreadable, not YAML, not a mapping,
            or fails validation.
    """
    path = path or handle.settings_path
    data: dict = {}

    if path.is_file():
        logger.debug("Loading installer settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Expected a YAML mapping in {path}, got {type(loaded).__name__}")
        data.update(loaded)

    env_core = os.environ.get(ENV_CORE_PATH)
    if env_core:
        data["core_path"] = env_core

    env_stale = os.environ.get(ENV_STALE_SECONDS)
    if env_stale:
        data["lock_stale_timeout_seconds"] = env_stale

    try:
        settings = InstallerSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid installer settings: {e}") from e

    if settings.core_path is not None and not settings.core_path.is_absolute():
        settings.core_path = (handle.root / settings.core_path).resolve()

    return settings
