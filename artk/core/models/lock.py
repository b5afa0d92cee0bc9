"""
Lock models — the ``.artk/install.lock`` record and acquisition outcomes.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from artk.core.models.context import CamelModel


class LockOperation(StrEnum):
    """Operations that take the install lock."""

    INSTALL = "install"
    UPGRADE = "upgrade"


class LockFile(CamelModel):
    """Contents of ``install.lock``."""

    pid: int = Field(gt=0)
    started_at: datetime
    operation: LockOperation


class AcquireResult(BaseModel):
    """Outcome of ``LockManager.acquire``."""

    acquired: bool
    error: str | None = None
    reclaimed: bool = False          # a stale lock was removed first
    holder: LockFile | None = None   # the blocking record when not acquired


class LockInfo(BaseModel):
    """Diagnostic view of the lock for status commands."""

    locked: bool
    lock: LockFile | None = None
    stale: bool | None = None
    malformed: bool = False
