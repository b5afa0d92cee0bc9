"""
Install log entry — one NDJSON line in ``.artk/install.log``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class LogLevel(StrEnum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class OperationType(StrEnum):
    INSTALL = "install"
    UPGRADE = "upgrade"
    ROLLBACK = "rollback"
    DETECT = "detect"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class InstallLogEntry(BaseModel):
    """A single structured install log entry."""

    timestamp: str = Field(default_factory=_now_iso)
    level: LogLevel
    operation: OperationType
    message: str
    details: dict[str, Any] | None = None
