"""
CLI commands for partial-install detection and rollback.
"""

from __future__ import annotations

import sys

import click

from artk.ui.cli.helpers import emit_json, fail, lock_manager, project_handle, settings_or_fail


@click.group()
def rollback() -> None:
    """Rollback — detect and remove partial installations."""


@rollback.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def rollback_check(ctx: click.Context, as_json: bool) -> None:
    """Report whether a previous run left a partial installation."""
    from artk.core.services.lifecycle.rollback import needs_rollback

    check = needs_rollback(project_handle(ctx))

    if as_json:
        emit_json(check.model_dump(exclude_none=True))
        return

    if check.needed:
        click.secho(f"⚠️  {check.reason}", fg="yellow")
        click.echo("   Clean up with: artk rollback run")
    else:
        click.secho("✅ No rollback needed", fg="green")


@rollback.command("run")
@click.option("--reason", default="Manual rollback", show_default=True, help="Reason recorded in the install log.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def rollback_run(ctx: click.Context, reason: str, as_json: bool) -> None:
    """Remove the vendor directories and context.json.

    Takes the install lock, so it refuses to run while an install or
    upgrade is in progress.
    """
    from artk.core.errors import LockError
    from artk.core.models.lock import LockOperation
    from artk.core.persistence.install_log import InstallLogger
    from artk.core.services.lifecycle.rollback import rollback as run_rollback

    handle = project_handle(ctx)
    settings = settings_or_fail(ctx)
    try:
        with lock_manager(ctx, settings).hold(LockOperation.INSTALL):
            result = run_rollback(
                handle, reason, install_log=InstallLogger(handle, max_bytes=settings.log_max_bytes)
            )
    except LockError as e:
        if as_json:
            emit_json({"success": False, "error": str(e)}, ok=False)
            return
        fail(str(e))

    if as_json:
        emit_json(result.model_dump(), ok=result.success)
        return

    for path in result.removed_directories + result.removed_files:
        click.echo(f"   removed {path}")
    if result.success:
        click.secho("✅ Rollback complete", fg="green")
        return

    click.secho("❌ Rollback left files behind:", fg="red", bold=True)
    for err in result.errors:
        click.echo(f"   • {err}")
    sys.exit(1)
