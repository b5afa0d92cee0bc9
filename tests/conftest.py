"""
Shared test fixtures.
"""

import json
import logging
from pathlib import Path

import pytest

from artk.adapters.mock import FakeNodeRuntime, FakeProcessLiveness
from artk.core.models.variant import VariantId
from artk.core.project import ProjectHandle
from artk.core.services.variants.catalog import VARIANT_DEFINITIONS


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's ARTK_* variables out of the tests."""
    for var in (
        "ARTK_CORE_PATH",
        "ARTK_LOCK_STALE_SECONDS",
        "ARTK_LOG_LEVEL",
        "ARTK_LOG_FILE",
        "ARTK_LOG_FILE_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """``setup_logging`` replaces the root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def project(tmp_path: Path) -> ProjectHandle:
    """An empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return ProjectHandle.at(root)


@pytest.fixture
def node20() -> FakeNodeRuntime:
    return FakeNodeRuntime("v20.11.0")


@pytest.fixture
def liveness() -> FakeProcessLiveness:
    return FakeProcessLiveness()


@pytest.fixture
def core_dist(tmp_path: Path) -> Path:
    """A fake core distribution with every variant and autogen built."""
    core = tmp_path / "core"
    core.mkdir()
    (core / "package.json").write_text(json.dumps({"name": "@artk/core", "version": "1.0.0"}))
    (core / "version.json").write_text(json.dumps({"version": "1.0.0"}))

    autogen = core / "autogen"
    autogen.mkdir()
    (autogen / "package.json").write_text(json.dumps({"name": "@artk/core-autogen"}))

    for definition in VARIANT_DEFINITIONS.values():
        dist = core / definition.dist_directory
        (dist / "auth").mkdir(parents=True, exist_ok=True)
        (dist / "index.js").write_text(f"// {definition.id}\n")
        (dist / "auth" / "index.js").write_text("module.exports = {};\n")

        autogen_dist = autogen / definition.dist_directory
        autogen_dist.mkdir(parents=True, exist_ok=True)
        (autogen_dist / "index.js").write_text(f"// autogen {definition.id}\n")
    return core


def _lay_down_install(handle: ProjectHandle, variant: VariantId = VariantId.MODERN_CJS, node_version: int = 20) -> None:
    """Lay down a complete installation by hand."""
    definition = VARIANT_DEFINITIONS[variant]
    handle.artk_dir.mkdir(parents=True, exist_ok=True)
    handle.context_path.write_text(json.dumps({
        "variant": variant.value,
        "variantInstalledAt": "2025-01-19T10:00:00+00:00",
        "nodeVersion": node_version,
        "moduleSystem": definition.module_system.value,
        "playwrightVersion": definition.playwright_version,
        "artkVersion": "1.0.0",
        "installMethod": "cli",
    }))
    (handle.vendor_core / "dist").mkdir(parents=True)
    (handle.vendor_core / "package.json").write_text("{}")
    (handle.vendor_core / "dist" / "index.js").write_text("// core\n")
    handle.vendor_autogen.mkdir(parents=True)
    handle.harness_dir.mkdir(parents=True, exist_ok=True)
    handle.config_path.write_text("app:\n  name: demo\n")


@pytest.fixture
def make_installed():
    """Factory: ``make_installed(handle, variant, node_version)``."""
    return _lay_down_install


@pytest.fixture
def installed(project: ProjectHandle) -> ProjectHandle:
    """A project with a complete modern-cjs installation on Node 20."""
    _lay_down_install(project)
    return project
