"""
Rollback — detect partial installs and tear them down, best effort.

A complete install has all of:

    .artk/context.json
    artk-e2e/vendor/artk-core/package.json
    artk-e2e/vendor/artk-core/dist/index.js
    artk-e2e/vendor/artk-core-autogen/

Teardown is a fixed list of independent steps.  Every step runs even if
an earlier one failed, and every failure is reported in
``RollbackResult.errors``.  ``rollback`` never raises.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from artk.core.models.results import RollbackCheck, RollbackResult
from artk.core.persistence.install_log import InstallLogger
from artk.core.project import ProjectHandle

logger = logging.getLogger(__name__)


def _required_markers(handle: ProjectHandle) -> list[tuple[str, Path, bool]]:
    """(label, path, is_dir) for each artifact of a complete install."""
    return [
        ("artk-core/package.json", handle.vendor_core / "package.json", False),
        ("artk-core/dist/index.js", handle.vendor_core / "dist" / "index.js", False),
        ("artk-core-autogen/", handle.vendor_autogen, True),
        (".artk/context.json", handle.context_path, False),
    ]


def needs_rollback(handle: ProjectHandle) -> RollbackCheck:
    """Decide whether a previous run left a partial installation."""
    has_context = handle.context_path.is_file()
    has_vendor = handle.vendor_core.is_dir() or handle.vendor_autogen.is_dir()

    if not has_context and not has_vendor:
        return RollbackCheck(needed=False)

    if has_context and not handle.vendor_core.is_dir():
        return RollbackCheck(
            needed=True,
            reason="Partial installation: context.json exists but vendor/artk-core is missing",
        )

    missing = [
        label
        for label, path, is_dir in _required_markers(handle)
        if not (path.is_dir() if is_dir else path.is_file())
    ]
    if missing:
        return RollbackCheck(
            needed=True,
            reason=f"Incomplete installation: missing {', '.join(missing)}",
        )

    return RollbackCheck(needed=False)


def rollback(
    handle: ProjectHandle,
    reason: str,
    install_log: InstallLogger | None = None,
) -> RollbackResult:
    """Remove the vendor directories and the context file.

    Missing targets are not errors.  Failures are collected, never raised.
    """
    log = install_log or InstallLogger(handle)
    log.log_rollback_start(reason)
    logger.warning("Rolling back %s: %s", handle.root, reason)

    removed_dirs: list[str] = []
    removed_files: list[str] = []
    errors: list[str] = []

    steps: list[tuple[Path, Callable[[Path], None], list[str]]] = [
        (handle.vendor_core, _remove_tree, removed_dirs),
        (handle.vendor_autogen, _remove_tree, removed_dirs),
        (handle.context_path, Path.unlink, removed_files),
    ]

    for target, remove, removed in steps:
        if not target.exists() and not target.is_symlink():
            continue
        try:
            remove(target)
        except OSError as e:
            logger.error("Rollback could not remove %s: %s", target, e)
            errors.append(f"Failed to remove {target}: {e}")
            continue
        removed.append(str(target))

    result = RollbackResult(
        removed_directories=removed_dirs,
        removed_files=removed_files,
        errors=errors,
    )

    log.log_rollback_complete(result.success, removed_dirs + removed_files)
    if errors:
        log.error("rollback", "Rollback left files behind", {"errors": errors})
    return result


def _remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
