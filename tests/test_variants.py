"""
Tests for the variant catalog and the environment resolver.
"""

import json

import pytest

from artk.adapters.mock import FakeNodeRuntime
from artk.core.errors import UnsupportedNodeVersion
from artk.core.models.variant import ModuleSystem, VariantId
from artk.core.services.variants.catalog import (
    MAX_NODE_VERSION,
    MIN_NODE_VERSION,
    get_recommended_variant,
    get_variant_definition,
    get_variant_help_text,
    get_variants_for_node_version,
    is_variant_compatible,
    is_variant_id,
)
from artk.core.services.variants.resolver import EnvironmentResolver, detect_module_system


class TestCatalog:
    def test_every_supported_major_is_covered(self):
        for major in range(MIN_NODE_VERSION, MAX_NODE_VERSION + 1):
            assert get_variants_for_node_version(major), major

    @pytest.mark.parametrize("major", [12, 13, 23, 24])
    def test_unsupported_majors_have_no_variants(self, major):
        assert get_variants_for_node_version(major) == set()

    def test_node_18_overlaps(self):
        assert get_variants_for_node_version(18) == {
            VariantId.MODERN_ESM,
            VariantId.MODERN_CJS,
            VariantId.LEGACY_16,
            VariantId.LEGACY_14,
        }

    @pytest.mark.parametrize(
        ("major", "module_system", "expected"),
        [
            (22, "esm", VariantId.MODERN_ESM),
            (18, "cjs", VariantId.MODERN_CJS),
            (17, "cjs", VariantId.LEGACY_16),
            (16, "esm", VariantId.LEGACY_16),
            (15, "cjs", VariantId.LEGACY_14),
            (14, "esm", VariantId.LEGACY_14),
        ],
    )
    def test_recommended_variant(self, major, module_system, expected):
        assert get_recommended_variant(major, module_system) == expected

    def test_recommended_variant_is_in_range(self):
        for major in range(MIN_NODE_VERSION, MAX_NODE_VERSION + 1):
            for ms in ModuleSystem:
                assert is_variant_compatible(get_recommended_variant(major, ms), major)

    def test_unsupported_version_names_major(self):
        with pytest.raises(UnsupportedNodeVersion, match="12") as excinfo:
            get_recommended_variant(12, "cjs")
        assert excinfo.value.major == 12

    def test_definitions(self):
        legacy14 = get_variant_definition("legacy-14")
        assert legacy14.playwright_version == "1.33.x"
        assert legacy14.dist_directory == "dist-legacy-14"
        assert get_variant_definition(VariantId.MODERN_CJS).dist_directory == "dist-cjs"
        assert get_variant_definition("legacy-16").playwright_version == "1.49.x"

    def test_unknown_definition(self):
        with pytest.raises(ValueError):
            get_variant_definition("modern-rust")

    def test_is_variant_id(self):
        assert is_variant_id("modern-esm")
        assert not is_variant_id("modern")
        assert not is_variant_id(None)

    def test_help_text_lists_all(self):
        text = get_variant_help_text()
        for vid in VariantId:
            assert vid.value in text


class TestDetectModuleSystem:
    def test_module_type(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"type": "module"}))
        assert detect_module_system(tmp_path) == ModuleSystem.ESM

    def test_commonjs_type(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"type": "commonjs"}))
        assert detect_module_system(tmp_path) == ModuleSystem.CJS

    def test_no_type_field(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"name": "x"}))
        assert detect_module_system(tmp_path) == ModuleSystem.CJS

    def test_missing_file(self, tmp_path):
        assert detect_module_system(tmp_path) == ModuleSystem.CJS

    def test_malformed_json(self, tmp_path):
        (tmp_path / "package.json").write_text("{oops")
        assert detect_module_system(tmp_path) == ModuleSystem.CJS

    def test_non_object_json(self, tmp_path):
        (tmp_path / "package.json").write_text("[1, 2]")
        assert detect_module_system(tmp_path) == ModuleSystem.CJS


class TestEnvironmentResolver:
    def test_detect_environment(self, project):
        (project.root / "package.json").write_text(json.dumps({"type": "module"}))
        result = EnvironmentResolver(FakeNodeRuntime("v20.11.0")).detect_environment(project)
        assert result.success is True
        assert result.node_version == 20
        assert result.node_version_full == "v20.11.0"
        assert result.module_system == ModuleSystem.ESM
        assert result.selected_variant == VariantId.MODERN_ESM

    def test_detect_without_node(self, project):
        result = EnvironmentResolver(FakeNodeRuntime(None)).detect_environment(project)
        assert result.success is False
        assert "Node.js not found" in result.error

    def test_detect_unsupported_node(self, project):
        result = EnvironmentResolver(FakeNodeRuntime("v12.22.0")).detect_environment(project)
        assert result.success is False
        assert result.node_version == 12
        assert "12" in result.error

    def test_select_auto(self, project):
        result = EnvironmentResolver(FakeNodeRuntime("v16.20.0")).select_variant(project)
        assert result.selected_variant == VariantId.LEGACY_16
        assert result.override_used is False

    def test_select_compatible_override(self, project):
        result = EnvironmentResolver(FakeNodeRuntime("v18.19.0")).select_variant(project, "legacy-14")
        assert result.success is True
        assert result.selected_variant == VariantId.LEGACY_14
        assert result.override_used is True

    def test_select_incompatible_override(self, project):
        result = EnvironmentResolver(FakeNodeRuntime("v22.1.0")).select_variant(project, "legacy-14")
        assert result.success is False
        assert result.selected_variant is None
        assert "14, 15, 16, 17, 18" in result.error

    def test_select_unknown_override(self, project):
        result = EnvironmentResolver(FakeNodeRuntime("v20.0.0")).select_variant(project, "turbo")
        assert result.success is False
        assert "Unknown variant 'turbo'" in result.error

    def test_validate_compatibility_defaults_to_host(self):
        resolver = EnvironmentResolver(FakeNodeRuntime("v14.21.3"))
        assert resolver.validate_variant_compatibility("legacy-14").valid is True
        check = resolver.validate_variant_compatibility("modern-esm")
        assert check.valid is False
        assert "18, 19, 20, 21, 22" in check.error
        assert "14" in check.error

    def test_validate_compatibility_explicit_major(self):
        resolver = EnvironmentResolver(FakeNodeRuntime(None))
        assert resolver.validate_variant_compatibility("legacy-16", 20).valid is True
        assert resolver.validate_variant_compatibility("legacy-16", 21).valid is False

    def test_node_version_accessors(self):
        resolver = EnvironmentResolver(FakeNodeRuntime("v21.6.2"))
        assert resolver.get_node_major_version() == 21
        assert resolver.get_node_version_full() == "v21.6.2"


class TestEnvironmentChange:
    def test_no_context_no_drift(self, project):
        change = EnvironmentResolver(FakeNodeRuntime("v20.0.0")).detect_environment_change(project)
        assert change.changed is False
        assert change.previous_node_version is None

    def test_node_upgrade_is_drift(self, project, make_installed):
        make_installed(project, VariantId.LEGACY_16, node_version=16)
        change = EnvironmentResolver(FakeNodeRuntime("v18.0.0")).detect_environment_change(project)
        assert change.changed is True
        assert change.previous_node_version == 16
        assert change.current_node_version == 18
        assert change.reason == "Node.js version changed from 16 to 18"
        assert change.previous_variant == VariantId.LEGACY_16
        assert change.current_variant == VariantId.MODERN_CJS

    def test_same_node_no_drift(self, installed):
        change = EnvironmentResolver(FakeNodeRuntime("v20.5.0")).detect_environment_change(installed)
        assert change.changed is False
        assert change.current_node_version == 20

    def test_module_system_flip_is_not_drift(self, installed):
        (installed.root / "package.json").write_text(json.dumps({"type": "module"}))
        change = EnvironmentResolver(FakeNodeRuntime("v20.5.0")).detect_environment_change(installed)
        assert change.changed is False

    def test_corrupt_context_is_no_drift(self, installed):
        installed.context_path.write_text("{broken")
        change = EnvironmentResolver(FakeNodeRuntime("v22.0.0")).detect_environment_change(installed)
        assert change.changed is False

    def test_existing_installation(self, installed):
        resolver = EnvironmentResolver(FakeNodeRuntime())
        assert resolver.has_existing_installation(installed) is True
        assert resolver.read_existing_context(installed).variant == VariantId.MODERN_CJS

    def test_minimal_context_still_reports_drift(self, project):
        project.artk_dir.mkdir()
        project.context_path.write_text(json.dumps({"variant": "legacy-16", "nodeVersion": 16}))
        change = EnvironmentResolver(FakeNodeRuntime("v18.0.0")).detect_environment_change(project)
        assert change.changed is True
        assert change.previous_variant == VariantId.LEGACY_16
        assert change.previous_node_version == 16

    def test_read_existing_context_needs_variant_and_node(self, project):
        resolver = EnvironmentResolver(FakeNodeRuntime())
        project.artk_dir.mkdir()
        project.context_path.write_text(json.dumps({"variant": "modern-esm", "nodeVersion": 20}))
        existing = resolver.read_existing_context(project)
        assert existing.variant == VariantId.MODERN_ESM
        assert existing.node_version == 20

        project.context_path.write_text(json.dumps({"variant": "modern-esm"}))
        assert resolver.read_existing_context(project) is None
