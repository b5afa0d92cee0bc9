"""
Test doubles for the host probes.

Used by the test suite (and available to embedders) to pin the Node.js
version and the set of live PIDs without touching the real machine.
"""

from __future__ import annotations

from artk.adapters.node import NodeRuntime
from artk.adapters.process import ProcessLiveness


class FakeNodeRuntime(NodeRuntime):
    """Reports a fixed Node.js version (or none at all)."""

    def __init__(self, version: str | None = "v20.11.0"):
        self._version = version
        self._calls = 0

    @property
    def call_count(self) -> int:
        """Number of times the version was probed."""
        return self._calls

    def set_version(self, version: str | None) -> None:
        self._version = version

    def version(self) -> str | None:
        self._calls += 1
        return self._version


class FakeProcessLiveness(ProcessLiveness):
    """Treats exactly the configured PIDs as alive."""

    def __init__(self, alive: set[int] | None = None):
        self._alive = set(alive or ())
        self._probed: list[int] = []

    @property
    def probed(self) -> list[int]:
        """Every PID that was asked about, in order."""
        return self._probed

    def add(self, pid: int) -> None:
        self._alive.add(pid)

    def kill(self, pid: int) -> None:
        self._alive.discard(pid)

    def is_alive(self, pid: int) -> bool:
        self._probed.append(pid)
        return pid in self._alive
