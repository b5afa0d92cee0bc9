"""
Config backups — snapshot and restore of the two mutable artifacts.

    .artk/backups/<timestamp>/context.json
    .artk/backups/<timestamp>/artk.config.yml

A snapshot may hold zero, one or both files; a missing source is skipped.
Nothing here raises: failures come back in ``BackupResult`` /
``RestoreResult``.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from artk.core.models.results import BackupResult, RestoreResult
from artk.core.project import CONFIG_FILE, CONTEXT_FILE, ProjectHandle

logger = logging.getLogger(__name__)


def _artifacts(handle: ProjectHandle) -> list[tuple[str, Path]]:
    """(name inside the snapshot, live path) for each backed-up file."""
    return [
        (CONTEXT_FILE, handle.context_path),
        (CONFIG_FILE, handle.config_path),
    ]


def backup_dir_name(when: datetime) -> str:
    """``2025-01-19T10:00:00.123456+00:00`` → ``2025-01-19T10-00-00-123456Z``."""
    stamp = when.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return stamp.replace(":", "-").replace(".", "-")


def create_backup(
    handle: ProjectHandle,
    clock: Callable[[], datetime] | None = None,
) -> BackupResult:
    """Snapshot ``context.json`` and ``artk.config.yml`` into a new directory."""
    now = (clock or (lambda: datetime.now(UTC)))()
    backup_path = handle.backups_dir / backup_dir_name(now)
    copied: list[str] = []

    try:
        backup_path.mkdir(parents=True, exist_ok=True)
        for name, src in _artifacts(handle):
            if src.is_file():
                shutil.copy2(src, backup_path / name)
                copied.append(name)
    except OSError as e:
        logger.error("Backup to %s failed: %s", backup_path, e)
        return BackupResult(success=False, error=f"Failed to create backup: {e}")

    logger.info("Backup created at %s (%s)", backup_path, ", ".join(copied) or "empty")
    return BackupResult(success=True, backup_path=str(backup_path), copied_files=copied)


def restore_from_backup(handle: ProjectHandle, backup_path: str | Path) -> RestoreResult:
    """Copy each artifact present in ``backup_path`` back into the project."""
    source = Path(backup_path)
    restored: list[str] = []

    try:
        for name, dest in _artifacts(handle):
            src = source / name
            if not src.is_file():
                continue
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
            restored.append(name)
    except OSError as e:
        logger.error("Restore from %s failed: %s", source, e)
        return RestoreResult(
            success=False,
            restored_files=restored,
            error=f"Failed to restore from backup: {e}",
        )

    logger.info("Restored %s from %s", ", ".join(restored) or "nothing", source)
    return RestoreResult(success=True, restored_files=restored)


def list_backups(handle: ProjectHandle) -> list[Path]:
    """Snapshot directories, newest first."""
    if not handle.backups_dir.is_dir():
        return []
    try:
        dirs = [p for p in handle.backups_dir.iterdir() if p.is_dir()]
    except OSError as e:
        logger.warning("Cannot list backups in %s: %s", handle.backups_dir, e)
        return []
    # Names are zero-padded UTC timestamps, so lexical order is chronological.
    return sorted(dirs, key=lambda p: p.name, reverse=True)
