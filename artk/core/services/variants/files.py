"""
Variant file operations — vendoring a variant and marking it read-only.

The core distribution is a directory holding one build per variant
(``dist/``, ``dist-cjs/``, ``dist-legacy-16/``, ``dist-legacy-14/``) and
an ``autogen/`` package built the same way.  Installing a variant copies
the matching builds into ``artk-e2e/vendor/`` and drops three markers
next to them so editors and AI agents leave the code alone:

    READONLY.md             human-readable "do not edit" notice
    .ai-ignore              ignore-everything pattern file
    variant-features.json   which Playwright APIs this variant has
"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from artk import __version__
from artk.core.models.context import ArtkContext
from artk.core.models.results import CopyResult
from artk.core.models.variant import VariantDefinition, VariantId
from artk.core.project import ProjectHandle
from artk.core.services.variants.catalog import get_variant_definition

logger = logging.getLogger(__name__)

READONLY_MARKER = "READONLY.md"
AI_IGNORE_MARKER = ".ai-ignore"
FEATURES_MARKER = "variant-features.json"

AI_PROTECTION_MARKERS = (READONLY_MARKER, AI_IGNORE_MARKER, FEATURES_MARKER)

_CORE_EXTRAS = ("package.json", "version.json", "README.md")


class BuildValidation(BaseModel):
    """Whether a variant's prebuilt files are present in the core distribution."""

    valid: bool
    core_path: Path | None = None
    dist_path: Path | None = None
    error: str | None = None


# ── Core distribution ───────────────────────────────────────────


def find_core_path(configured: Path | None = None, cwd: Path | None = None) -> Path | None:
    """Locate the core distribution.

    Candidates, first match wins: the configured path (settings or
    ``ARTK_CORE_PATH``), then ``core/typescript`` under the working
    directory.  A candidate must contain ``package.json``.
    """
    candidates = []
    if configured is not None:
        candidates.append(Path(configured))
    candidates.append((cwd or Path.cwd()) / "core" / "typescript")

    for path in candidates:
        if (path / "package.json").is_file():
            return path
        logger.debug("No core distribution at %s", path)
    return None


def validate_variant_build_files(variant: VariantId, core_path: Path | None) -> BuildValidation:
    """Check that ``<core>/<dist>/index.js`` exists for ``variant``."""
    if core_path is None:
        return BuildValidation(
            valid=False,
            error="ARTK core not found. Set ARTK_CORE_PATH or core_path in .artk/installer.yml.",
        )

    definition = get_variant_definition(variant)
    dist_path = core_path / definition.dist_directory

    if not dist_path.is_dir():
        return BuildValidation(
            valid=False,
            core_path=core_path,
            error=(
                f"Variant build files not found for '{variant}'. "
                f"The {definition.dist_directory}/ directory is missing from {core_path}. "
                "Build all variants with `npm run build:variants` in the core package."
            ),
        )

    if not (dist_path / "index.js").is_file():
        return BuildValidation(
            valid=False,
            core_path=core_path,
            dist_path=dist_path,
            error=(
                f"Variant '{variant}' dist directory exists but is incomplete (missing index.js). "
                "Rebuild with `npm run build:variants`."
            ),
        )

    return BuildValidation(valid=True, core_path=core_path, dist_path=dist_path)


def copy_variant_files(handle: ProjectHandle, variant: VariantId, core_path: Path | None) -> CopyResult:
    """Copy a variant's core and autogen builds into the vendor directories.

    A missing autogen build is a warning, not a failure.
    """
    validation = validate_variant_build_files(variant, core_path)
    if not validation.valid or validation.core_path is None or validation.dist_path is None:
        return CopyResult(success=False, error=validation.error)

    core = validation.core_path
    copied = 0
    warnings: list[str] = []

    try:
        handle.vendor_autogen.mkdir(parents=True, exist_ok=True)

        shutil.copytree(validation.dist_path, handle.vendor_core / "dist", dirs_exist_ok=True)
        copied += _count_files(validation.dist_path)

        for name in _CORE_EXTRAS:
            src = core / name
            if src.is_file():
                shutil.copy2(src, handle.vendor_core / name)
                copied += 1

        autogen_root = core / "autogen"
        autogen_dist = autogen_root / get_variant_definition(variant).dist_directory
        if not autogen_dist.is_dir():
            autogen_dist = autogen_root / "dist"

        if autogen_dist.is_dir():
            shutil.copytree(autogen_dist, handle.vendor_autogen / "dist", dirs_exist_ok=True)
            copied += _count_files(autogen_dist)
            autogen_pkg = autogen_root / "package.json"
            if autogen_pkg.is_file():
                shutil.copy2(autogen_pkg, handle.vendor_autogen / "package.json")
                copied += 1
        else:
            warnings.append(
                f"Autogen package not found for variant '{variant}'. Expected at: {autogen_dist}. "
                "Some code generation features may not be available."
            )
    except OSError as e:
        logger.error("Copying %s files failed: %s", variant, e)
        return CopyResult(
            success=False,
            copied_files=copied,
            error=f"Failed to copy variant files: {e}",
        )

    for w in warnings:
        logger.warning(w)
    logger.info("Copied %d files for variant %s", copied, variant)
    return CopyResult(success=True, copied_files=copied, warnings=warnings)


def _count_files(directory: Path) -> int:
    return sum(1 for p in directory.rglob("*") if p.is_file())


# ── Feature table ───────────────────────────────────────────────

_COMMON_FEATURES = (
    "route_from_har",
    "locator_filter",
    "web_first_assertions",
    "trace_viewer",
    "api_testing",
    "storage_state",
    "video_recording",
    "screenshot_assertions",
    "request_interception",
    "browser_contexts",
    "test_fixtures",
    "parallel_execution",
    "retry_logic",
)

# Playwright 1.33 lacks these; name → (alternative, notes)
_LEGACY_14_GAPS: dict[str, tuple[str, str]] = {
    "aria_snapshots": (
        "Use page.evaluate() to query ARIA attributes manually",
        "Introduced in Playwright 1.35",
    ),
    "clock_api": (
        "Use page.evaluate(() => { Date.now = () => fixedTime }) for manual mocking",
        "Introduced in Playwright 1.45",
    ),
    "locator_or": (
        'Use CSS :is() selector: page.locator(":is(.a, .b)")',
        "Introduced in Playwright 1.34",
    ),
    "locator_and": (
        "Use chained filter: locator.filter({ has: other })",
        "Introduced in Playwright 1.34",
    ),
    "component_testing": (
        "Use E2E testing approach with full page loads",
        "Experimental in 1.33, stable in later versions",
    ),
    "expect_poll": (
        "Use expect.poll() polyfill with setTimeout loop",
        "Introduced in Playwright 1.30 but improved later",
    ),
    "expect_soft": (
        "Collect assertions manually and report at end",
        "Introduced in Playwright 1.37",
    ),
}

_ESM_ALTERNATIVES = {
    "esm_imports": "Use require() for synchronous imports or dynamic import() for async",
    "top_level_await": "Wrap in async IIFE: (async () => { await ... })()",
    "import_meta": "Use __dirname and __filename (CommonJS globals)",
}


def generate_variant_features(variant: VariantId) -> dict[str, Any]:
    """Build the ``variant-features.json`` document."""
    definition = get_variant_definition(variant)
    features: dict[str, dict[str, Any]] = {name: {"available": True} for name in _COMMON_FEATURES}

    for name, (alternative, notes) in _LEGACY_14_GAPS.items():
        if definition.id == VariantId.LEGACY_14:
            features[name] = {"available": False, "alternative": alternative, "notes": notes}
        else:
            features[name] = {"available": True}
    features["request_continue"] = {"available": True}

    for name, alternative in _ESM_ALTERNATIVES.items():
        if definition.id == VariantId.MODERN_ESM:
            features[name] = {"available": True}
        else:
            features[name] = {"available": False, "alternative": alternative}

    return {
        "variant": definition.id.value,
        "playwrightVersion": definition.playwright_version,
        "nodeRange": [str(v) for v in sorted(definition.node_range)],
        "moduleSystem": definition.module_system.value,
        "tsTarget": definition.ts_target,
        "features": features,
        "generatedAt": datetime.now(UTC).isoformat(),
        "generatedBy": f"ARTK CLI v{__version__}",
    }


# ── Markers ─────────────────────────────────────────────────────


def generate_readonly_marker(definition: VariantDefinition, context: ArtkContext) -> str:
    rows = [
        ("Variant", definition.id.value),
        ("Display Name", definition.display_name),
        ("Node.js Range", definition.node_range_label()),
        ("Playwright Version", definition.playwright_version),
        ("Module System", definition.module_system.value),
        ("TypeScript Target", definition.ts_target),
        ("Installed At", context.variant_installed_at.isoformat()),
        ("ARTK Version", context.artk_version),
    ]
    if context.previous_variant:
        rows.append(("Previous Variant", context.previous_variant.value))
    table = "\n".join(f"| **{k}** | {v} |" for k, v in rows)

    return f"""# DO NOT MODIFY THIS DIRECTORY

**This directory contains vendor code that should NOT be edited.**

This is a vendored copy of ARTK core installed by the ARTK CLI.
Treat it as read-only.

## Variant Information

| Property | Value |
|----------|-------|
{table}

## If You Encounter Issues

Import or module errors (`ERR_REQUIRE_ESM`, `Cannot use import statement`)
usually mean the wrong variant is installed:

```bash
artk doctor
artk init --force                       # re-detect and reinstall
artk init --variant <variant-id> --force
artk upgrade                            # switch after a Node.js upgrade
```

If a Playwright feature is missing, check `variant-features.json` in this
directory for availability and alternatives.

## For AI Agents

**DO NOT modify files in this directory.**  Check `variant-features.json`
and suggest `artk init --force` instead of patching vendor code.

---

*Generated by ARTK CLI v{context.artk_version}*
"""


def generate_ai_ignore(variant: VariantId) -> str:
    return f"""# ARTK Vendor Directory - DO NOT MODIFY
#
# This directory contains vendored @artk/core code.
# AI agents and code generation tools should NOT modify these files.
#
# Variant: {variant}
# Generated: {datetime.now(UTC).isoformat()}
#
# To change behavior, wrap it in project code or use artk.config.yml.
# To switch variants, run `artk init --variant <correct-variant> --force`.
#
*
"""


def write_all_ai_protection_markers(vendor_path: Path, variant: VariantId, context: ArtkContext) -> None:
    """Write READONLY.md, .ai-ignore and variant-features.json into ``vendor_path``.

    Raises:
        OSError: If a marker cannot be written.
    """
    definition = get_variant_definition(variant)
    vendor_path.mkdir(parents=True, exist_ok=True)
    (vendor_path / READONLY_MARKER).write_text(
        generate_readonly_marker(definition, context), encoding="utf-8"
    )
    (vendor_path / AI_IGNORE_MARKER).write_text(generate_ai_ignore(variant), encoding="utf-8")
    (vendor_path / FEATURES_MARKER).write_text(
        json.dumps(generate_variant_features(variant), indent=2) + "\n", encoding="utf-8"
    )
    logger.debug("AI protection markers written to %s", vendor_path)


def missing_ai_protection_markers(vendor_path: Path) -> list[str]:
    """Names of markers absent from ``vendor_path``."""
    return [name for name in AI_PROTECTION_MARKERS if not (vendor_path / name).is_file()]
