"""
CLI commands for config backups.

Thin wrappers over ``artk.core.services.lifecycle.backup``.
"""

from __future__ import annotations

from pathlib import Path

import click

from artk.ui.cli.helpers import emit_json, fail, lock_manager, project_handle


def _under_lock(ctx: click.Context, as_json: bool, fn):
    """Run ``fn`` holding the install lock; exit 1 if another operation holds it."""
    from artk.core.errors import LockError
    from artk.core.models.lock import LockOperation

    try:
        with lock_manager(ctx).hold(LockOperation.UPGRADE):
            return fn()
    except LockError as e:
        if as_json:
            emit_json({"success": False, "error": str(e)}, ok=False)
        fail(str(e))


@click.group()
def backup() -> None:
    """Backups — snapshot and restore context.json and artk.config.yml."""


@backup.command("create")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def backup_create(ctx: click.Context, as_json: bool) -> None:
    """Snapshot the current configuration."""
    from artk.core.services.lifecycle.backup import create_backup

    handle = project_handle(ctx)
    result = _under_lock(ctx, as_json, lambda: create_backup(handle))

    if as_json:
        emit_json(result.model_dump(exclude_none=True), ok=result.success)
        return

    if not result.success:
        fail(result.error or "Backup failed")

    click.secho(f"✅ Backup created: {result.backup_path}", fg="green")
    if not result.copied_files:
        click.echo("   (nothing to back up yet)")
    for name in result.copied_files:
        click.echo(f"   • {name}")


@backup.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def backup_list(ctx: click.Context, as_json: bool) -> None:
    """List snapshots, newest first."""
    from artk.core.services.lifecycle.backup import list_backups

    backups = list_backups(project_handle(ctx))

    if as_json:
        emit_json({"backups": [
            {"name": b.name, "path": str(b), "files": sorted(p.name for p in b.iterdir())}
            for b in backups
        ]})
        return

    if not backups:
        click.echo("No backups")
        return
    for b in backups:
        files = ", ".join(sorted(p.name for p in b.iterdir())) or "empty"
        click.echo(f"   {b.name}  ({files})")


@backup.command("restore")
@click.argument("name", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def backup_restore(ctx: click.Context, name: str | None, as_json: bool) -> None:
    """Restore a snapshot (default: the newest).

    NAME is a directory under .artk/backups/ or a path to one.
    """
    from artk.core.services.lifecycle.backup import list_backups, restore_from_backup

    handle = project_handle(ctx)
    if name is None:
        backups = list_backups(handle)
        if not backups:
            fail("No backups to restore")
        source = backups[0]
    else:
        source = handle.backups_dir / name
        if not source.is_dir():
            source = Path(name)
        if not source.is_dir():
            fail(f"Backup not found: {name}")

    result = _under_lock(ctx, as_json, lambda: restore_from_backup(handle, source))

    if as_json:
        data = result.model_dump(exclude_none=True)
        data["backup_path"] = str(source)
        emit_json(data, ok=result.success)
        return

    if not result.success:
        fail(result.error or "Restore failed")

    click.secho(f"✅ Restored from {source.name}", fg="green")
    for f in result.restored_files:
        click.echo(f"   • {f}")
