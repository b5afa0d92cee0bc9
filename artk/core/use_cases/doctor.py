"""
Doctor use case — ``artk doctor``.

Runs ordered health checks against a project and collects fix-it
recommendations.  Read-only: never takes the lock, never writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from artk.adapters.node import NodeRuntime
from artk.adapters.process import ProcessLiveness
from artk.core.config.loader import ConfigError, InstallerSettings, load_settings
from artk.core.persistence.context_file import has_existing_installation, read_context_parsed
from artk.core.persistence.json_file import Malformed, Ok
from artk.core.project import ProjectHandle
from artk.core.services.lifecycle.lock_manager import LockManager
from artk.core.services.lifecycle.rollback import needs_rollback
from artk.core.services.variants.catalog import (
    MAX_NODE_VERSION,
    MIN_NODE_VERSION,
    get_variants_for_node_version,
)
from artk.core.services.variants.files import missing_ai_protection_markers
from artk.core.services.variants.resolver import EnvironmentResolver

logger = logging.getLogger(__name__)

CheckStatus = Literal["pass", "warn", "fail"]


@dataclass
class DoctorCheck:
    name: str
    status: CheckStatus
    message: str


@dataclass
class DoctorResult:
    """All checks plus recommendations."""

    checks: list[DoctorCheck] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return all(c.status != "fail" for c in self.checks)

    def add(self, name: str, status: CheckStatus, message: str, recommendation: str | None = None) -> None:
        self.checks.append(DoctorCheck(name, status, message))
        if recommendation and recommendation not in self.recommendations:
            self.recommendations.append(recommendation)

    def to_dict(self) -> dict:
        return {
            "healthy": self.healthy,
            "checks": [{"name": c.name, "status": c.status, "message": c.message} for c in self.checks],
            "recommendations": self.recommendations,
        }


def doctor(
    handle: ProjectHandle,
    *,
    node: NodeRuntime | None = None,
    liveness: ProcessLiveness | None = None,
    settings: InstallerSettings | None = None,
) -> DoctorResult:
    """Diagnose the ARTK installation in ``handle``'s project."""
    result = DoctorResult()
    resolver = EnvironmentResolver(node)

    # 1. Target directory
    if not handle.root.is_dir():
        result.add("Target Directory", "fail", f"Target directory does not exist: {handle.root}")
        return result
    result.add("Target Directory", "pass", "Directory exists")

    # 2. Node.js
    node_major = resolver.get_node_major_version()
    if node_major is None:
        result.add(
            "Node.js Version", "fail", "Node.js not found on PATH",
            "Install Node.js 18 or newer",
        )
    elif not get_variants_for_node_version(node_major):
        result.add(
            "Node.js Version", "fail",
            f"Node.js {node_major} is not supported (supported: {MIN_NODE_VERSION}-{MAX_NODE_VERSION})",
            f"Switch to Node.js {MIN_NODE_VERSION}-{MAX_NODE_VERSION}",
        )
    else:
        result.add("Node.js Version", "pass", f"Node.js {node_major} ({resolver.get_node_version_full()})")

    # 3. Installation
    if not has_existing_installation(handle):
        result.add("ARTK Installation", "fail", "ARTK is not installed", "Run `artk init` to install ARTK")
        _check_partial(handle, result)
        return result
    result.add("ARTK Installation", "pass", "context.json found")

    # 4. Context
    parsed = read_context_parsed(handle)
    context = parsed.value if isinstance(parsed, Ok) else None
    if isinstance(parsed, Malformed):
        result.add(
            "Context File", "fail", f"Invalid context.json format ({parsed.reason})",
            "Run `artk init --force` to reinitialize",
        )
    elif context is not None:
        result.add("Context File", "pass", f"Valid context.json (variant {context.variant})")

    # 5-6. Variant vs. environment
    if context is not None and node_major is not None:
        check = resolver.validate_variant_compatibility(context.variant, node_major)
        if check.valid:
            result.add(
                "Variant Compatibility", "pass",
                f"Variant '{context.variant}' is compatible with Node.js {node_major}",
            )
        else:
            result.add(
                "Variant Compatibility", "fail",
                f"Installed variant '{context.variant}' is not compatible with Node.js {node_major}",
                "Run `artk upgrade` to switch to a compatible variant",
            )

        drift = resolver.detect_environment_change(handle)
        if drift.changed:
            result.add(
                "Environment Match", "warn",
                f"Environment has changed since installation: {drift.reason}",
                "Run `artk upgrade` to re-detect and install the matching variant",
            )
        else:
            result.add("Environment Match", "pass", "Environment matches installed variant")

    # 7. Vendor
    missing_vendor = [p.name for p in (handle.vendor_core, handle.vendor_autogen) if not p.is_dir()]
    if missing_vendor:
        result.add(
            "Vendor Directories", "fail",
            f"Vendor directories are missing: {', '.join(missing_vendor)}",
            "Run `artk init --force` to reinstall vendor files",
        )
    else:
        result.add("Vendor Directories", "pass", "Vendor directories exist")

        # 8. Markers
        missing_markers = missing_ai_protection_markers(handle.vendor_core)
        if missing_markers:
            result.add(
                "AI Protection Markers", "warn",
                f"Some AI protection markers are missing: {', '.join(missing_markers)}",
                "Run `artk upgrade --force` to regenerate AI protection markers",
            )
        else:
            result.add("AI Protection Markers", "pass", "AI protection markers present")

    # 9. Lock
    _check_lock(handle, result, liveness, settings)

    # 10. Partial install
    _check_partial(handle, result)
    return result


def _check_lock(
    handle: ProjectHandle,
    result: DoctorResult,
    liveness: ProcessLiveness | None,
    settings: InstallerSettings | None,
) -> None:
    try:
        settings = settings or load_settings(handle)
    except ConfigError as e:
        result.add("Installer Settings", "fail", str(e), f"Fix {handle.settings_path}")
        settings = InstallerSettings()

    info = LockManager(
        handle, liveness=liveness, stale_timeout=settings.lock_stale_timeout_seconds
    ).get_lock_info()

    if info.locked and info.lock is not None:
        result.add(
            "Install Lock", "warn",
            f"A {info.lock.operation} operation is in progress (pid={info.lock.pid})",
        )
    elif info.locked:
        result.add("Install Lock", "warn", "Lock file is being written by another process")
    elif info.stale:
        result.add(
            "Install Lock", "warn", "A stale lock file was left behind",
            "Run `artk lock release` to remove the stale lock",
        )
    else:
        result.add("Install Lock", "pass", "Not locked")


def _check_partial(handle: ProjectHandle, result: DoctorResult) -> None:
    check = needs_rollback(handle)
    if check.needed:
        result.add(
            "Partial Installation", "fail", check.reason or "Partial installation",
            "Run `artk rollback run` and then `artk init`",
        )
