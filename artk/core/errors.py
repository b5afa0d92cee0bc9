"""
Installer exceptions.

Only the operations that must stop before touching the filesystem raise.
Best-effort work (rollback, backup, restore, install log) reports failures
in its result objects instead.
"""

from __future__ import annotations


class ArtkError(Exception):
    """Base class for installer errors."""


class UnsupportedNodeVersion(ArtkError):
    """Raised when a Node.js major version falls outside every variant range."""

    def __init__(self, major: int, supported: str = "14-22"):
        self.major = major
        self.supported = supported
        super().__init__(
            f"Node.js {major} is not supported. Supported versions: {supported}."
        )


class LockError(ArtkError):
    """Raised when the install lock cannot be created or written."""


class LockContention(LockError):
    """Raised when a live, non-stale process already holds the install lock."""

    def __init__(self, message: str, pid: int | None = None, operation: str | None = None):
        self.pid = pid
        self.operation = operation
        super().__init__(message)
