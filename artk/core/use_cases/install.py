"""
Install use case — ``artk init``.

    resolve environment ─▶ lock ─▶ guard existing ─▶ validate build
        ─▶ clean partial ─▶ copy variant ─▶ context.json ─▶ markers

Environment problems (no Node, unsupported Node, incompatible override)
fail before anything is written.  Once files start moving, any failure
rolls the project back.  The lock is always released.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from artk import __version__
from artk.adapters.node import NodeRuntime
from artk.adapters.process import ProcessLiveness
from artk.core.config.loader import ConfigError, InstallerSettings, load_settings
from artk.core.errors import ArtkError, LockError
from artk.core.models.context import ArtkContext, InstallMethod
from artk.core.models.lock import LockOperation
from artk.core.models.results import RollbackResult
from artk.core.models.variant import VariantId
from artk.core.persistence.context_file import has_existing_installation, load_context, save_context
from artk.core.persistence.install_log import InstallLogger
from artk.core.project import ProjectHandle
from artk.core.services.lifecycle.lock_manager import LockManager
from artk.core.services.lifecycle.rollback import needs_rollback, rollback
from artk.core.services.variants.catalog import get_variant_definition
from artk.core.services.variants.files import (
    copy_variant_files,
    find_core_path,
    validate_variant_build_files,
    write_all_ai_protection_markers,
)
from artk.core.services.variants.resolver import EnvironmentResolver

logger = logging.getLogger(__name__)


@dataclass
class InstallOptions:
    variant: str | None = None
    force: bool = False
    install_method: InstallMethod = InstallMethod.CLI


@dataclass
class InstallResult:
    """Outcome of ``install``."""

    success: bool = False
    variant: VariantId | None = None
    node_version: int | None = None
    module_system: str | None = None
    override_used: bool = False
    copied_files: int = 0
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    rollback: RollbackResult | None = None

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {"success": self.success}
        if self.variant:
            result["variant"] = self.variant.value
        if self.node_version is not None:
            result["node_version"] = self.node_version
        if self.module_system:
            result["module_system"] = self.module_system
        result["override_used"] = self.override_used
        result["copied_files"] = self.copied_files
        if self.warnings:
            result["warnings"] = self.warnings
        if self.error:
            result["error"] = self.error
        if self.rollback is not None:
            result["rollback"] = self.rollback.model_dump()
        return result


def install(
    handle: ProjectHandle,
    options: InstallOptions | None = None,
    *,
    node: NodeRuntime | None = None,
    liveness: ProcessLiveness | None = None,
    settings: InstallerSettings | None = None,
    clock: Callable[[], datetime] | None = None,
) -> InstallResult:
    """Install the right ARTK variant into ``handle``'s project."""
    options = options or InstallOptions()
    clock = clock or (lambda: datetime.now(UTC))

    if not handle.root.is_dir():
        return InstallResult(error=f"Target directory does not exist: {handle.root}")

    try:
        settings = settings or load_settings(handle)
    except ConfigError as e:
        return InstallResult(error=str(e))

    resolver = EnvironmentResolver(node)
    detection = resolver.select_variant(handle, options.variant)
    result = InstallResult(
        node_version=detection.node_version or None,
        module_system=detection.module_system.value,
        override_used=detection.override_used,
    )
    if not detection.success or detection.selected_variant is None:
        result.error = detection.error
        return result
    variant = detection.selected_variant
    result.variant = variant

    manager = LockManager(
        handle,
        liveness=liveness,
        clock=clock,
        stale_timeout=settings.lock_stale_timeout_seconds,
    )
    try:
        acquired = manager.acquire(LockOperation.INSTALL)
    except LockError as e:
        result.error = str(e)
        return result
    if not acquired.acquired:
        result.error = acquired.error
        return result

    log = InstallLogger(handle, max_bytes=settings.log_max_bytes)
    try:
        return _install_locked(handle, options, detection.node_version, variant, settings, log, clock, result)
    finally:
        manager.release()


def _install_locked(
    handle: ProjectHandle,
    options: InstallOptions,
    node_version: int,
    variant: VariantId,
    settings: InstallerSettings,
    log: InstallLogger,
    clock: Callable[[], datetime],
    result: InstallResult,
) -> InstallResult:
    existing = has_existing_installation(handle)
    if existing and not options.force:
        ctx = load_context(handle)
        installed = f" (variant {ctx.variant})" if ctx else ""
        result.error = f"ARTK is already installed{installed}. Use --force to reinstall."
        return result

    core_path = find_core_path(settings.core_path)
    validation = validate_variant_build_files(variant, core_path)
    if not validation.valid:
        result.error = validation.error
        return result

    log.log_detection(node_version, result.module_system or "cjs", variant.value)
    log.log_install_start(variant.value, node_version)

    cleanup = None
    if existing:
        cleanup = rollback(handle, "Reinstall requested with --force", install_log=log)
        what = "the existing installation"
    else:
        check = needs_rollback(handle)
        if check.needed:
            cleanup = rollback(handle, check.reason or "Partial installation", install_log=log)
            what = "a previous partial installation"
    if cleanup is not None and not cleanup.success:
        result.error = f"Could not clean up {what}: " + "; ".join(cleanup.errors)
        result.rollback = cleanup
        return result

    try:
        copy = copy_variant_files(handle, variant, core_path)
        if not copy.success:
            raise ArtkError(copy.error or "Failed to copy variant files")
        result.copied_files = copy.copied_files
        result.warnings.extend(copy.warnings)

        definition = get_variant_definition(variant)
        context = ArtkContext(
            variant=variant,
            variant_installed_at=clock(),
            node_version=node_version,
            module_system=definition.module_system,
            playwright_version=definition.playwright_version,
            artk_version=__version__,
            install_method=options.install_method,
            override_used=result.override_used or None,
        )
        save_context(handle, context)
        write_all_ai_protection_markers(handle.vendor_core, variant, context)
        write_all_ai_protection_markers(handle.vendor_autogen, variant, context)
    except (ArtkError, OSError, ValueError) as e:
        logger.error("Install of %s failed: %s", variant, e)
        log.log_install_failed(str(e), variant.value)
        result.rollback = rollback(handle, f"Install failed: {e}", install_log=log)
        result.error = str(e)
        return result

    log.log_install_complete(variant.value)
    logger.info("Installed ARTK variant %s in %s", variant, handle.root)
    result.success = True
    return result
