"""
Host probes — the installer's only view of the machine outside the project.
"""

from artk.adapters.node import NodeRuntime, SubprocessNodeRuntime, parse_major
from artk.adapters.process import OsProcessLiveness, ProcessLiveness

__all__ = [
    "NodeRuntime",
    "OsProcessLiveness",
    "ProcessLiveness",
    "SubprocessNodeRuntime",
    "parse_major",
]
