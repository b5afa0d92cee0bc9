"""
Environment resolver — host facts → variant decision, and drift since install.

Detection never raises for missing or corrupt files.  It degrades to the
conservative defaults (``cjs``, "no context") and leaves the decision to
proceed, warn or re-detect to the caller.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from artk.adapters.node import NodeRuntime, SubprocessNodeRuntime, parse_major
from artk.core.errors import UnsupportedNodeVersion
from artk.core.models.context import InstalledEnvironment
from artk.core.models.results import CompatibilityResult, DetectionResult, EnvironmentChange
from artk.core.models.variant import ModuleSystem, VariantId
from artk.core.persistence import context_file
from artk.core.project import ProjectHandle
from artk.core.services.variants.catalog import (
    get_recommended_variant,
    get_variant_definition,
    is_variant_id,
)

logger = logging.getLogger(__name__)


def detect_module_system(root: Path) -> ModuleSystem:
    """Read ``<root>/package.json`` and report its module system.

    ``"type": "module"`` means ESM.  Anything else, including a missing or
    unparseable file, means CommonJS.
    """
    pkg_path = Path(root) / "package.json"
    try:
        data = json.loads(pkg_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return ModuleSystem.CJS
    except (OSError, ValueError) as e:
        logger.info("Treating %s as CommonJS (%s)", pkg_path, e)
        return ModuleSystem.CJS

    if isinstance(data, dict) and data.get("type") == "module":
        return ModuleSystem.ESM
    return ModuleSystem.CJS


class EnvironmentResolver:
    """Turns the host Node.js version and project layout into a variant."""

    def __init__(self, node: NodeRuntime | None = None):
        self._node = node or SubprocessNodeRuntime()

    # ── Node.js ──────────────────────────────────────────────────

    def get_node_version_full(self) -> str | None:
        return self._node.version()

    def get_node_major_version(self) -> int | None:
        return parse_major(self._node.version())

    # ── Detection ────────────────────────────────────────────────

    def detect_environment(self, handle: ProjectHandle) -> DetectionResult:
        """Detect Node.js and module system, and pick the recommended variant."""
        full = self._node.version()
        module_system = detect_module_system(handle.root)
        major = parse_major(full)

        if major is None:
            return DetectionResult(
                module_system=module_system,
                error="Node.js not found. Install Node.js 14 or newer and make sure `node` is on PATH.",
            )

        try:
            variant = get_recommended_variant(major, module_system)
        except UnsupportedNodeVersion as e:
            return DetectionResult(
                node_version=major,
                node_version_full=full or "",
                module_system=module_system,
                error=str(e),
            )

        logger.debug("Detected Node %s (%s) → %s", full, module_system, variant)
        return DetectionResult(
            node_version=major,
            node_version_full=full or "",
            module_system=module_system,
            selected_variant=variant,
            success=True,
        )

    def select_variant(
        self,
        handle: ProjectHandle,
        override_variant: str | None = None,
    ) -> DetectionResult:
        """Auto-detect a variant, or validate an explicit override against Node."""
        detected = self.detect_environment(handle)
        if override_variant is None:
            return detected

        if not is_variant_id(override_variant):
            return detected.model_copy(update={
                "success": False,
                "selected_variant": None,
                "error": f"Unknown variant '{override_variant}'. "
                         f"Valid variants: {', '.join(v.value for v in VariantId)}.",
            })

        if not detected.node_version:
            # Node missing: the override cannot be checked either.
            return detected

        check = self.validate_variant_compatibility(override_variant, detected.node_version)
        if not check.valid:
            return detected.model_copy(update={
                "success": False,
                "selected_variant": None,
                "error": check.error,
            })

        return detected.model_copy(update={
            "success": True,
            "selected_variant": VariantId(override_variant),
            "error": None,
            "override_used": True,
        })

    def validate_variant_compatibility(
        self,
        variant_id: VariantId | str,
        node_major: int | None = None,
    ) -> CompatibilityResult:
        """Check that a variant runs on ``node_major`` (default: the host's)."""
        if not is_variant_id(variant_id):
            return CompatibilityResult(valid=False, error=f"Unknown variant '{variant_id}'.")

        if node_major is None:
            node_major = self.get_node_major_version()
        if node_major is None:
            return CompatibilityResult(valid=False, error="Node.js version could not be determined.")

        definition = get_variant_definition(variant_id)
        if definition.supports(node_major):
            return CompatibilityResult(valid=True)

        return CompatibilityResult(
            valid=False,
            error=(
                f"Variant '{definition.id}' requires Node.js {definition.node_range_label()}, "
                f"but Node.js {node_major} was detected."
            ),
        )

    # ── Existing installation ────────────────────────────────────

    def has_existing_installation(self, handle: ProjectHandle) -> bool:
        return context_file.has_existing_installation(handle)

    def read_existing_context(self, handle: ProjectHandle) -> InstalledEnvironment | None:
        """The recorded variant and Node major, or None if either is unusable."""
        return context_file.load_installed_environment(handle)

    def detect_environment_change(self, handle: ProjectHandle) -> EnvironmentChange:
        """Compare the recorded install against the current host.

        Only the Node.js major version is compared.  A project that switches
        between CommonJS and ESM on the same Node major is not reported.
        """
        ctx = self.read_existing_context(handle)
        if ctx is None:
            return EnvironmentChange(changed=False)

        current_major = self.get_node_major_version()
        current_variant: VariantId | None = None
        if current_major is not None:
            try:
                current_variant = get_recommended_variant(
                    current_major, detect_module_system(handle.root)
                )
            except UnsupportedNodeVersion:
                current_variant = None

        result = EnvironmentChange(
            changed=False,
            previous_node_version=ctx.node_version,
            current_node_version=current_major,
            previous_variant=ctx.variant,
            current_variant=current_variant,
        )

        if current_major is not None and current_major != ctx.node_version:
            result.changed = True
            result.reason = f"Node.js version changed from {ctx.node_version} to {current_major}"
            logger.info("Environment drift: %s", result.reason)

        return result
