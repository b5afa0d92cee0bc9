"""
Project handle — the value that says "which project are we working on."

Every service takes a ``ProjectHandle`` explicitly instead of reading a
process-wide "current project".  Two handles for two directories never
share state, so lock and rollback tests can run side by side.

Layout (relative to ``root``)::

    .artk/context.json
    .artk/install.lock
    .artk/install.log
    .artk/backups/<timestamp>/
    artk-e2e/artk.config.yml
    artk-e2e/vendor/artk-core/
    artk-e2e/vendor/artk-core-autogen/
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

ARTK_DIR = ".artk"
CONTEXT_FILE = "context.json"
LOCK_FILE = "install.lock"
LOG_FILE = "install.log"
BACKUPS_DIR = "backups"
SETTINGS_FILE = "installer.yml"

HARNESS_DIR = "artk-e2e"
CONFIG_FILE = "artk.config.yml"
VENDOR_DIR = "vendor"
VENDOR_CORE = "artk-core"
VENDOR_AUTOGEN = "artk-core-autogen"


@dataclass(frozen=True)
class ProjectHandle:
    """Immutable reference to a project directory and its ARTK paths."""

    root: Path

    @classmethod
    def at(cls, path: str | Path) -> ProjectHandle:
        """Build a handle for ``path`` (resolved to an absolute path)."""
        return cls(root=Path(path).resolve())

    # ── .artk/ ───────────────────────────────────────────────────

    @property
    def artk_dir(self) -> Path:
        return self.root / ARTK_DIR

    @property
    def context_path(self) -> Path:
        return self.artk_dir / CONTEXT_FILE

    @property
    def lock_path(self) -> Path:
        return self.artk_dir / LOCK_FILE

    @property
    def log_path(self) -> Path:
        return self.artk_dir / LOG_FILE

    @property
    def backups_dir(self) -> Path:
        return self.artk_dir / BACKUPS_DIR

    @property
    def settings_path(self) -> Path:
        return self.artk_dir / SETTINGS_FILE

    # ── artk-e2e/ ────────────────────────────────────────────────

    @property
    def harness_dir(self) -> Path:
        return self.root / HARNESS_DIR

    @property
    def config_path(self) -> Path:
        return self.harness_dir / CONFIG_FILE

    @property
    def vendor_dir(self) -> Path:
        return self.harness_dir / VENDOR_DIR

    @property
    def vendor_core(self) -> Path:
        return self.vendor_dir / VENDOR_CORE

    @property
    def vendor_autogen(self) -> Path:
        return self.vendor_dir / VENDOR_AUTOGEN

    def __str__(self) -> str:
        return str(self.root)
