"""
CLI command for reading the install log.
"""

from __future__ import annotations

import click

from artk.ui.cli.helpers import emit_json, project_handle

_LEVEL_COLORS = {"INFO": "white", "WARN": "yellow", "ERROR": "red"}


@click.command()
@click.option("-n", "--lines", "count", default=20, show_default=True, help="Number of entries.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def logs(ctx: click.Context, count: int, as_json: bool) -> None:
    """Show recent install log entries."""
    from artk.core.persistence.install_log import InstallLogger

    entries = InstallLogger(project_handle(ctx)).read_recent(count)

    if as_json:
        emit_json([e.model_dump(mode="json", exclude_none=True) for e in entries])
        return

    if not entries:
        click.echo("No install log entries")
        return

    for e in entries:
        click.secho(f"{e.timestamp} {e.level:<5} ", fg=_LEVEL_COLORS.get(e.level, "white"), nl=False)
        click.echo(f"[{e.operation}] {e.message}")
