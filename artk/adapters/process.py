"""
Process liveness probe.

The lock manager asks "is the process that wrote this lock still
running?"  The answer must come from a check that cannot disturb the
target process:

    POSIX:   os.kill(pid, 0) delivers no signal, it only checks existence.
    Windows: os.kill would terminate the target, so ``tasklist`` is queried.

Any probe error counts as "not found", which lets a dead holder's lock be
reclaimed instead of leaking forever.
"""

from __future__ import annotations

import errno
import logging
import os
import subprocess
import sys
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class ProcessLiveness(ABC):
    """Answers whether a PID belongs to a running process."""

    @abstractmethod
    def is_alive(self, pid: int) -> bool:
        """True if ``pid`` is running.  Must never raise."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class OsProcessLiveness(ProcessLiveness):
    """Platform-appropriate non-destructive liveness check."""

    def is_alive(self, pid: int) -> bool:
        if pid <= 0:
            return False
        if sys.platform == "win32":
            return self._is_alive_windows(pid)
        return self._is_alive_posix(pid)

    @staticmethod
    def _is_alive_posix(pid: int) -> bool:
        try:
            os.kill(pid, 0)
        except OSError as e:
            # EPERM: the process exists but belongs to someone else.
            return e.errno == errno.EPERM
        return True

    @staticmethod
    def _is_alive_windows(pid: int) -> bool:
        try:
            result = subprocess.run(
                ["tasklist", "/FI", f"PID eq {pid}", "/NH", "/FO", "CSV"],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug("tasklist probe for pid %d failed: %s", pid, e)
            return False
        return f'"{pid}"' in result.stdout
