"""
Tests for the click CLI.
"""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from artk.adapters.mock import FakeNodeRuntime, FakeProcessLiveness
from artk.main import cli

OTHER = 4242


@pytest.fixture
def run(project):
    """``run(*args, node=..., liveness=...)`` against the test project, quietly."""
    runner = CliRunner()

    def _run(*args, node=None, liveness=None, input=None):
        obj = {
            "node": node or FakeNodeRuntime("v20.11.0"),
            "liveness": liveness or FakeProcessLiveness(),
        }
        return runner.invoke(cli, ["-q", "--project", str(project.root), *args], obj=obj, input=input)

    return _run


@pytest.fixture
def with_core(monkeypatch, core_dist):
    monkeypatch.setenv("ARTK_CORE_PATH", str(core_dist))
    return core_dist


def _write_lock(handle, pid=OTHER, operation="install"):
    handle.artk_dir.mkdir(parents=True, exist_ok=True)
    handle.lock_path.write_text(json.dumps({
        "pid": pid,
        "startedAt": datetime.now(UTC).isoformat(),
        "operation": operation,
    }))


class TestGroup:
    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("detect", "init", "upgrade", "doctor", "lock", "rollback", "backup", "logs"):
            assert name in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output


class TestDetect:
    def test_json(self, run):
        result = run("detect", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["selected_variant"] == "modern-cjs"
        assert data["node_version"] == 20
        assert data["environment_change"]["changed"] is False

    def test_human(self, run):
        result = run("detect", node=FakeNodeRuntime("v16.20.0"))
        assert result.exit_code == 0
        assert "legacy-16" in result.output

    def test_no_node(self, run):
        result = run("detect", node=FakeNodeRuntime(None))
        assert result.exit_code == 1
        assert "Node.js not found" in result.output


class TestInit:
    def test_installs(self, run, project, with_core):
        result = run("init", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["variant"] == "modern-cjs"
        assert project.context_path.is_file()

    def test_human_output(self, run, with_core):
        result = run("init", "--variant", "legacy-16")
        assert result.exit_code == 0, result.output
        assert "Installed ARTK (legacy-16)" in result.output
        assert "--variant" in result.output

    def test_unknown_variant_shows_help(self, run, project, with_core):
        result = run("init", "--variant", "bogus")
        assert result.exit_code == 1
        assert "Unknown variant" in result.output
        assert "modern-esm" in result.output
        assert not project.artk_dir.exists()

    def test_already_installed(self, run, installed, with_core):
        result = run("init")
        assert result.exit_code == 1
        assert "already installed" in result.output

    def test_locked(self, run, project, with_core):
        _write_lock(project)
        result = run("init", liveness=FakeProcessLiveness({OTHER}))
        assert result.exit_code == 1
        assert "in progress" in result.output


class TestUpgrade:
    def test_no_change(self, run, installed, with_core):
        result = run("upgrade")
        assert result.exit_code == 0
        assert "No variant change detected" in result.output

    def test_switches_variant(self, run, project, make_installed, with_core):
        from artk.core.models.variant import VariantId

        make_installed(project, VariantId.LEGACY_16, node_version=16)
        result = run("upgrade", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["changed"] is True
        assert data["previous_variant"] == "legacy-16"
        assert data["new_variant"] == "modern-cjs"

    def test_not_installed(self, run):
        result = run("upgrade")
        assert result.exit_code == 1
        assert "not installed" in result.output


class TestDoctor:
    def test_healthy_after_init(self, run, with_core):
        assert run("init").exit_code == 0
        result = run("doctor", "--json")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["healthy"] is True

    def test_unhealthy(self, run):
        result = run("doctor")
        assert result.exit_code == 1
        assert "ARTK Installation" in result.output
        assert "artk init" in result.output


class TestLockCommands:
    def test_status_unlocked(self, run):
        result = run("lock", "status")
        assert result.exit_code == 0
        assert "Not locked" in result.output

    def test_status_stale_json(self, run, project):
        _write_lock(project)
        result = run("lock", "status", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["locked"] is False
        assert data["stale"] is True
        assert data["path"] == str(project.lock_path)

    def test_status_held(self, run, project):
        _write_lock(project)
        result = run("lock", "status", liveness=FakeProcessLiveness({OTHER}))
        assert "Locked by pid 4242" in result.output

    def test_release_stale(self, run, project):
        _write_lock(project)
        result = run("lock", "release")
        assert result.exit_code == 0
        assert "released" in result.output
        assert not project.lock_path.exists()

    def test_release_live_holder_needs_confirmation(self, run, project):
        _write_lock(project)
        result = run("lock", "release", liveness=FakeProcessLiveness({OTHER}), input="n\n")
        assert result.exit_code == 1
        assert project.lock_path.exists()

    def test_release_live_holder_json_without_yes(self, run, project):
        _write_lock(project)
        result = run("lock", "release", "--json", liveness=FakeProcessLiveness({OTHER}))
        assert result.exit_code == 1
        assert json.loads(result.output)["released"] is False
        assert project.lock_path.exists()

    def test_release_live_holder_with_yes(self, run, project):
        _write_lock(project)
        result = run("lock", "release", "--yes", "--json", liveness=FakeProcessLiveness({OTHER}))
        assert result.exit_code == 0
        assert json.loads(result.output) == {"released": True}
        assert not project.lock_path.exists()

    def test_release_nothing(self, run):
        result = run("lock", "release")
        assert result.exit_code == 0
        assert "No lock file" in result.output


class TestRollbackCommands:
    def test_check_clean(self, run, installed):
        result = run("rollback", "check", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"needed": False}

    def test_check_partial(self, run, installed):
        installed.vendor_autogen.rmdir()
        result = run("rollback", "check")
        assert "Incomplete installation" in result.output

    def test_run(self, run, installed):
        result = run("rollback", "run", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["success"] is True
        assert len(data["removed_directories"]) == 2
        assert not installed.vendor_core.exists()
        assert not installed.context_path.exists()
        assert not installed.lock_path.exists()
        assert installed.config_path.is_file()

    def test_run_refuses_while_locked(self, run, installed):
        _write_lock(installed)
        result = run("rollback", "run", liveness=FakeProcessLiveness({OTHER}))
        assert result.exit_code == 1
        assert "in progress" in result.output
        assert installed.vendor_core.exists()


class TestBackupCommands:
    def test_create_list_restore(self, run, installed):
        result = run("backup", "create", "--json")
        assert result.exit_code == 0, result.output
        created = json.loads(result.output)
        assert sorted(created["copied_files"]) == ["artk.config.yml", "context.json"]

        listed = json.loads(run("backup", "list", "--json").output)["backups"]
        assert len(listed) == 1
        assert listed[0]["files"] == ["artk.config.yml", "context.json"]

        installed.config_path.write_text("changed: true\n")
        result = run("backup", "restore")
        assert result.exit_code == 0, result.output
        assert installed.config_path.read_text() == "app:\n  name: demo\n"

    def test_restore_by_name(self, run, installed):
        name = Path(json.loads(run("backup", "create", "--json").output)["backup_path"]).name
        installed.context_path.unlink()
        result = run("backup", "restore", name, "--json")
        assert result.exit_code == 0, result.output
        assert installed.context_path.is_file()

    def test_restore_without_backups(self, run):
        result = run("backup", "restore")
        assert result.exit_code == 1
        assert "No backups" in result.output

    def test_restore_unknown(self, run, installed):
        result = run("backup", "restore", "nope")
        assert result.exit_code == 1
        assert "Backup not found" in result.output

    def test_list_empty(self, run):
        assert "No backups" in run("backup", "list").output

    def test_restore_refuses_during_upgrade(self, run, installed):
        assert run("backup", "create").exit_code == 0
        installed.context_path.write_text('{"variant": "modern-cjs", "nodeVersion": 20, "mid": "upgrade"}')
        before = installed.context_path.read_text()
        _write_lock(installed, operation="upgrade")

        result = run("backup", "restore", liveness=FakeProcessLiveness({OTHER}))

        assert result.exit_code == 1
        assert "Another upgrade operation is in progress" in result.output
        assert installed.context_path.read_text() == before
        assert installed.lock_path.exists()

    def test_create_refuses_during_upgrade(self, run, installed):
        _write_lock(installed, operation="upgrade")
        result = run("backup", "create", "--json", liveness=FakeProcessLiveness({OTHER}))
        assert result.exit_code == 1
        assert json.loads(result.output)["success"] is False
        assert not installed.backups_dir.exists()

    def test_create_releases_lock(self, run, installed):
        assert run("backup", "create").exit_code == 0
        assert not installed.lock_path.exists()


class TestLogs:
    def test_empty(self, run):
        result = run("logs")
        assert result.exit_code == 0
        assert "No install log entries" in result.output

    def test_after_init(self, run, with_core):
        run("init")
        result = run("logs", "--json", "-n", "2")
        assert result.exit_code == 0
        entries = json.loads(result.output)
        assert len(entries) == 2
        assert "installation completed successfully" in entries[-1]["message"]
