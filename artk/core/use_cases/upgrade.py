"""
Upgrade use case — ``artk upgrade``.

Switches an existing install to the variant the current environment
calls for (usually after a Node.js upgrade).  Config files are backed up
before the vendor directories are replaced, and restored if the copy
fails.  The lock is always released.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from artk import __version__
from artk.adapters.node import NodeRuntime
from artk.adapters.process import ProcessLiveness
from artk.core.config.loader import ConfigError, InstallerSettings, load_settings
from artk.core.errors import LockError
from artk.core.models.context import ArtkContext, UpgradeRecord
from artk.core.models.lock import LockOperation
from artk.core.models.variant import VariantId
from artk.core.persistence.context_file import has_existing_installation, load_context, save_context
from artk.core.persistence.install_log import InstallLogger
from artk.core.project import ProjectHandle
from artk.core.services.lifecycle.backup import create_backup, restore_from_backup
from artk.core.services.lifecycle.lock_manager import LockManager
from artk.core.services.variants.catalog import get_variant_definition
from artk.core.services.variants.files import (
    copy_variant_files,
    find_core_path,
    validate_variant_build_files,
    write_all_ai_protection_markers,
)
from artk.core.services.variants.resolver import EnvironmentResolver

logger = logging.getLogger(__name__)

NO_CHANGE_WARNING = "No variant change detected. Use --force to reinstall."


@dataclass
class UpgradeResult:
    """Outcome of ``upgrade``."""

    success: bool = False
    previous_variant: VariantId | None = None
    new_variant: VariantId | None = None
    changed: bool = False
    backup_path: str | None = None
    restored: bool = False
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {"success": self.success, "changed": self.changed}
        if self.previous_variant:
            result["previous_variant"] = self.previous_variant.value
        if self.new_variant:
            result["new_variant"] = self.new_variant.value
        if self.backup_path:
            result["backup_path"] = self.backup_path
        if self.restored:
            result["restored"] = True
        if self.warnings:
            result["warnings"] = self.warnings
        if self.error:
            result["error"] = self.error
        return result


def upgrade(
    handle: ProjectHandle,
    force: bool = False,
    *,
    node: NodeRuntime | None = None,
    liveness: ProcessLiveness | None = None,
    settings: InstallerSettings | None = None,
    clock: Callable[[], datetime] | None = None,
) -> UpgradeResult:
    """Re-detect the environment and move the install to the matching variant."""
    clock = clock or (lambda: datetime.now(UTC))

    if not has_existing_installation(handle):
        return UpgradeResult(error="ARTK is not installed. Run `artk init` first.")

    try:
        settings = settings or load_settings(handle)
    except ConfigError as e:
        return UpgradeResult(error=str(e))

    manager = LockManager(
        handle,
        liveness=liveness,
        clock=clock,
        stale_timeout=settings.lock_stale_timeout_seconds,
    )
    try:
        acquired = manager.acquire(LockOperation.UPGRADE)
    except LockError as e:
        return UpgradeResult(error=str(e))
    if not acquired.acquired:
        return UpgradeResult(error=acquired.error)

    try:
        return _upgrade_locked(handle, force, EnvironmentResolver(node), settings, clock)
    finally:
        manager.release()


def _upgrade_locked(
    handle: ProjectHandle,
    force: bool,
    resolver: EnvironmentResolver,
    settings: InstallerSettings,
    clock: Callable[[], datetime],
) -> UpgradeResult:
    current = load_context(handle)
    if current is None:
        return UpgradeResult(error="Invalid context.json. Run `artk init --force` to reinitialize.")

    result = UpgradeResult(previous_variant=current.variant)

    detection = resolver.detect_environment(handle)
    if not detection.success or detection.selected_variant is None:
        result.error = detection.error
        return result

    target = detection.selected_variant
    result.new_variant = target
    result.changed = target != current.variant

    if not result.changed and not force:
        result.success = True
        result.warnings.append(NO_CHANGE_WARNING)
        return result

    core_path = find_core_path(settings.core_path)
    validation = validate_variant_build_files(target, core_path)
    if not validation.valid:
        result.error = validation.error
        return result

    log = InstallLogger(handle, max_bytes=settings.log_max_bytes)
    log.log_upgrade_start(current.variant.value, target.value)

    backup = create_backup(handle, clock=clock)
    if not backup.success:
        result.error = backup.error
        log.error("upgrade", "Upgrade aborted: backup failed", {"error": backup.error})
        return result
    result.backup_path = backup.backup_path

    try:
        preserved_config: bytes | None = None
        if handle.config_path.is_file():
            preserved_config = handle.config_path.read_bytes()

        for vendor in (handle.vendor_core, handle.vendor_autogen):
            if vendor.exists():
                shutil.rmtree(vendor)

        copy = copy_variant_files(handle, target, core_path)
        if not copy.success:
            raise OSError(copy.error or "Failed to copy variant files")
        result.warnings.extend(copy.warnings)

        if preserved_config is not None and not handle.config_path.is_file():
            handle.config_path.parent.mkdir(parents=True, exist_ok=True)
            handle.config_path.write_bytes(preserved_config)

        now = clock()
        history = list(current.upgrade_history or [])
        history.append(UpgradeRecord(from_variant=current.variant, to=target, at=now))
        definition = get_variant_definition(target)
        context = ArtkContext(
            variant=target,
            variant_installed_at=now,
            node_version=detection.node_version,
            module_system=definition.module_system,
            playwright_version=definition.playwright_version,
            artk_version=__version__,
            install_method=current.install_method,
            override_used=current.override_used,
            previous_variant=current.variant,
            upgrade_history=history,
        )
        save_context(handle, context)
        write_all_ai_protection_markers(handle.vendor_core, target, context)
        write_all_ai_protection_markers(handle.vendor_autogen, target, context)
    except (OSError, ValueError) as e:
        logger.error("Upgrade to %s failed: %s", target, e)
        restore = restore_from_backup(handle, backup.backup_path or "")
        result.restored = restore.success
        result.error = f"Upgrade failed: {e}"
        if not restore.success:
            result.error += f" (restore also failed: {restore.error})"
        log.error("upgrade", "Variant upgrade failed", {"error": str(e), "restored": restore.success})
        return result

    log.log_upgrade_complete(target.value)
    logger.info("Upgraded %s from %s to %s", handle.root, current.variant, target)
    result.success = True
    return result
