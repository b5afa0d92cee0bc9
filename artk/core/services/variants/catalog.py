"""
Variant catalog — the static table of installable variants.

Node ranges overlap on purpose (Node 18 can run three variants), but the
*recommended* variant for a (major, module system) pair is unique:

    major >= 18    modern-esm / modern-cjs  (by module system)
    major 16, 17   legacy-16
    major 14, 15   legacy-14

Odd non-LTS majors use the lower variant of their pair.
"""

from __future__ import annotations

from artk.core.errors import UnsupportedNodeVersion
from artk.core.models.variant import ModuleSystem, VariantDefinition, VariantId

MIN_NODE_VERSION = 14
MAX_NODE_VERSION = 22

VARIANT_DEFINITIONS: dict[VariantId, VariantDefinition] = {
    VariantId.MODERN_ESM: VariantDefinition(
        id=VariantId.MODERN_ESM,
        display_name="Modern ESM",
        node_range=frozenset(range(18, 23)),
        playwright_version="1.57.x",
        module_system=ModuleSystem.ESM,
        ts_target="ES2022",
        dist_directory="dist",
    ),
    VariantId.MODERN_CJS: VariantDefinition(
        id=VariantId.MODERN_CJS,
        display_name="Modern CommonJS",
        node_range=frozenset(range(18, 23)),
        playwright_version="1.57.x",
        module_system=ModuleSystem.CJS,
        ts_target="ES2022",
        dist_directory="dist-cjs",
    ),
    VariantId.LEGACY_16: VariantDefinition(
        id=VariantId.LEGACY_16,
        display_name="Legacy Node 16",
        node_range=frozenset(range(16, 21)),
        playwright_version="1.49.x",
        module_system=ModuleSystem.CJS,
        ts_target="ES2021",
        dist_directory="dist-legacy-16",
    ),
    VariantId.LEGACY_14: VariantDefinition(
        id=VariantId.LEGACY_14,
        display_name="Legacy Node 14",
        node_range=frozenset(range(14, 19)),
        playwright_version="1.33.x",
        module_system=ModuleSystem.CJS,
        ts_target="ES2020",
        dist_directory="dist-legacy-14",
    ),
}


def get_variant_definition(variant_id: VariantId | str) -> VariantDefinition:
    """Look up a variant.

    Raises:
        ValueError: If ``variant_id`` is not a known variant.
    """
    return VARIANT_DEFINITIONS[VariantId(variant_id)]


def is_variant_id(value: object) -> bool:
    """Whether ``value`` names a known variant."""
    return isinstance(value, str) and value in {v.value for v in VariantId}


def get_variants_for_node_version(major: int) -> set[VariantId]:
    """All variants whose Node range contains ``major`` (empty if unsupported)."""
    return {vid for vid, d in VARIANT_DEFINITIONS.items() if d.supports(major)}


def is_variant_compatible(variant_id: VariantId | str, major: int) -> bool:
    return get_variant_definition(variant_id).supports(major)


def get_recommended_variant(major: int, module_system: ModuleSystem | str) -> VariantId:
    """The one variant to install for a Node major and module system.

    Raises:
        UnsupportedNodeVersion: If ``major`` is outside 14-22.
    """
    if major < MIN_NODE_VERSION or major > MAX_NODE_VERSION:
        raise UnsupportedNodeVersion(major, f"{MIN_NODE_VERSION}-{MAX_NODE_VERSION}")
    if major >= 18:
        if ModuleSystem(module_system) == ModuleSystem.ESM:
            return VariantId.MODERN_ESM
        return VariantId.MODERN_CJS
    if major >= 16:
        return VariantId.LEGACY_16
    return VariantId.LEGACY_14


def get_variant_help_text() -> str:
    """Multi-line description of every variant, for CLI errors and help."""
    lines = ["Available variants:"]
    for d in VARIANT_DEFINITIONS.values():
        lines.append(
            f"  {d.id.value:<11} {d.display_name} "
            f"(Node.js {d.node_range_label()}, Playwright {d.playwright_version}, "
            f"{d.module_system.value.upper()})"
        )
    return "\n".join(lines)
