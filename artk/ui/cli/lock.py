"""
CLI commands for the install lock.
"""

from __future__ import annotations

import click

from artk.ui.cli.helpers import emit_json, lock_manager


@click.group()
def lock() -> None:
    """Install lock — inspect or clear it."""


@lock.command("status")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def lock_status(ctx: click.Context, as_json: bool) -> None:
    """Show whether an operation holds the install lock."""
    manager = lock_manager(ctx)
    info = manager.get_lock_info()

    if as_json:
        data = info.model_dump(mode="json", exclude_none=True)
        data["path"] = str(manager.get_lock_path())
        emit_json(data)
        return

    if info.locked and info.lock is not None:
        click.secho(
            f"🔒 Locked by pid {info.lock.pid} ({info.lock.operation}, started {info.lock.started_at:%Y-%m-%d %H:%M:%S})",
            fg="yellow",
        )
    elif info.locked:
        click.secho("🔒 Lock file is being written by another process", fg="yellow")
    elif info.stale:
        what = "corrupt" if info.malformed else f"left by pid {info.lock.pid}" if info.lock else "stale"
        click.secho(f"⚠️  Stale lock ({what}); the next operation will reclaim it", fg="yellow")
        click.echo("   Remove it now with: artk lock release")
    else:
        click.secho("🔓 Not locked", fg="green")


@lock.command("release")
@click.option("--yes", "-y", is_flag=True, help="Release even if the holder is alive.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def lock_release(ctx: click.Context, yes: bool, as_json: bool) -> None:
    """Remove the lock file.  Asks first when its holder is still running."""
    manager = lock_manager(ctx)
    info = manager.get_lock_info()

    if info.locked and info.lock is not None and not yes:
        question = f"pid {info.lock.pid} is still running {info.lock.operation}. Remove its lock anyway?"
        if as_json:
            emit_json({"released": False, "error": f"{question} Pass --yes to confirm."}, ok=False)
            return
        click.confirm(question, abort=True)

    removed = manager.force_release()
    if as_json:
        emit_json({"released": removed})
        return

    if removed:
        click.secho("✅ Install lock released", fg="green")
    else:
        click.echo("No lock file to release")
