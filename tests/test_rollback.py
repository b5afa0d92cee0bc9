"""
Tests for partial-install detection and best-effort rollback.
"""

import json
import shutil

from artk.core.persistence.install_log import InstallLogger
from artk.core.services.lifecycle import rollback as rollback_module
from artk.core.services.lifecycle.rollback import needs_rollback, rollback


class TestNeedsRollback:
    def test_nothing_installed(self, project):
        check = needs_rollback(project)
        assert check.needed is False
        assert check.reason is None

    def test_context_without_vendor(self, installed):
        shutil.rmtree(installed.vendor_dir)
        check = needs_rollback(installed)
        assert check.needed is True
        assert "Partial installation" in check.reason

    def test_vendor_missing_entrypoint(self, installed):
        (installed.vendor_core / "dist" / "index.js").unlink()
        check = needs_rollback(installed)
        assert check.needed is True
        assert "Incomplete" in check.reason
        assert "index.js" in check.reason

    def test_vendor_missing_package_json(self, installed):
        (installed.vendor_core / "package.json").unlink()
        check = needs_rollback(installed)
        assert check.needed is True
        assert "package.json" in check.reason

    def test_autogen_missing(self, installed):
        shutil.rmtree(installed.vendor_autogen)
        check = needs_rollback(installed)
        assert check.needed is True
        assert "artk-core-autogen" in check.reason

    def test_vendor_without_context(self, installed):
        installed.context_path.unlink()
        check = needs_rollback(installed)
        assert check.needed is True
        assert "Incomplete" in check.reason

    def test_complete_install(self, installed):
        assert needs_rollback(installed).needed is False


class TestRollback:
    def test_removes_vendor_and_context(self, installed):
        result = rollback(installed, "test")
        assert result.success is True
        assert not installed.vendor_core.exists()
        assert not installed.vendor_autogen.exists()
        assert not installed.context_path.exists()
        assert str(installed.vendor_core) in result.removed_directories
        assert str(installed.vendor_autogen) in result.removed_directories
        assert result.removed_files == [str(installed.context_path)]

    def test_keeps_user_config(self, installed):
        rollback(installed, "test")
        assert installed.config_path.is_file()

    def test_nothing_to_remove(self, project):
        result = rollback(project, "test")
        assert result.success is True
        assert result.removed_directories == []
        assert result.removed_files == []
        assert result.errors == []

    def test_idempotent(self, installed):
        rollback(installed, "first")
        again = rollback(installed, "second")
        assert again.success is True
        assert again.removed_directories == []

    def test_failure_does_not_stop_remaining_steps(self, installed, monkeypatch):
        real = rollback_module._remove_tree

        def flaky(path):
            if path == installed.vendor_core:
                raise PermissionError(13, "Permission denied", str(path))
            real(path)

        monkeypatch.setattr(rollback_module, "_remove_tree", flaky)
        result = rollback(installed, "test")

        assert result.success is False
        assert len(result.errors) == 1
        assert "Permission denied" in result.errors[0]
        assert installed.vendor_core.exists()
        assert not installed.vendor_autogen.exists()
        assert not installed.context_path.exists()
        assert result.removed_files == [str(installed.context_path)]

    def test_logs_start_and_completion(self, installed):
        log = InstallLogger(installed)
        rollback(installed, "Install failed: disk full", install_log=log)

        entries = log.read_recent(10)
        assert entries[0].level == "WARN"
        assert entries[0].operation == "rollback"
        assert entries[0].message == "Starting rollback"
        assert entries[0].details == {"reason": "Install failed: disk full"}
        assert entries[-1].message == "Rollback completed"

    def test_log_written_even_after_context_removed(self, installed):
        rollback(installed, "test")
        lines = installed.log_path.read_text().splitlines()
        assert [json.loads(l)["operation"] for l in lines] == ["rollback", "rollback"]
