"""
Node.js runtime probe.

The installer runs under Python, so the host Node.js version is read from
the ``node`` executable on PATH.  The probe is a capability with one
method so the resolver can be tested with a fixed version.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)")


class NodeRuntime(ABC):
    """Reports the host Node.js version."""

    @abstractmethod
    def version(self) -> str | None:
        """Full version string such as ``"v20.11.0"``, or None when Node is absent.

        Must never raise.
        """

    def major(self) -> int | None:
        """Major version number, or None when unknown."""
        return parse_major(self.version())

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class SubprocessNodeRuntime(NodeRuntime):
    """Asks ``node --version``.  The result is cached for the handle's lifetime."""

    def __init__(self, executable: str = "node", timeout: float = 5.0):
        self._executable = executable
        self._timeout = timeout
        self._cached: str | None = None
        self._probed = False

    def version(self) -> str | None:
        if self._probed:
            return self._cached
        self._probed = True

        if shutil.which(self._executable) is None:
            logger.info("Node.js executable %r not found on PATH", self._executable)
            return None

        try:
            result = subprocess.run(
                [self._executable, "--version"],
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.warning("Node.js version probe failed: %s", e)
            return None

        if result.returncode != 0:
            logger.warning("node --version exited %d: %s", result.returncode, result.stderr.strip())
            return None

        raw = result.stdout.strip()
        if not _VERSION_RE.match(raw):
            logger.warning("Unrecognised Node.js version output: %r", raw)
            return None

        self._cached = raw if raw.startswith("v") else f"v{raw}"
        logger.debug("Detected Node.js %s", self._cached)
        return self._cached


def parse_major(version: str | None) -> int | None:
    """``"v20.11.0"`` → ``20``."""
    if not version:
        return None
    m = _VERSION_RE.match(version.strip())
    return int(m.group(1)) if m else None
