"""
ARTK installer — CLI entrypoint.

Usage:
    artk --help
    artk detect
    artk init --variant legacy-16
    artk doctor --json
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from artk import __version__
from artk.core.observability.logging_config import resolve_level, setup_logging
from artk.core.project import ProjectHandle
from artk.ui.cli.helpers import emit_json, fail, probes, project_handle


@click.group()
@click.version_option(version=__version__, prog_name="artk")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--project",
    "-p",
    "project_path",
    type=click.Path(file_okay=False),
    default=None,
    help="Project directory (default: current directory).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    project_path: str | None,
) -> None:
    """ARTK installer — install, upgrade and recover ARTK variants."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["handle"] = ProjectHandle.at(Path(project_path) if project_path else Path.cwd())
    ctx.obj.setdefault("node", None)
    ctx.obj.setdefault("liveness", None)

    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """Detect Node.js and module system, and show the matching variant."""
    from artk.core.services.variants.resolver import EnvironmentResolver

    handle = project_handle(ctx)
    resolver = EnvironmentResolver(probes(ctx)["node"])
    result = resolver.detect_environment(handle)
    drift = resolver.detect_environment_change(handle)

    if as_json:
        data = result.model_dump(mode="json")
        data["environment_change"] = drift.model_dump(mode="json")
        emit_json(data, ok=result.success)
        return

    if not result.success:
        fail(result.error or "Detection failed")

    click.secho(f"\n🔍 {handle.root}", fg="cyan", bold=True)
    click.echo(f"   Node.js:       {result.node_version_full}")
    click.echo(f"   Module system: {result.module_system}")
    click.secho(f"   Variant:       {result.selected_variant}", fg="green", bold=True)
    if drift.changed:
        click.secho(f"   ⚠️  {drift.reason} (installed: {drift.previous_variant})", fg="yellow")
    click.echo()


@cli.command()
@click.option("--variant", default=None, help="Install this variant instead of auto-detecting.")
@click.option("--force", is_flag=True, help="Reinstall over an existing installation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def init(ctx: click.Context, variant: str | None, force: bool, as_json: bool) -> None:
    """Install ARTK core into the project."""
    from artk.core.services.variants.catalog import get_variant_help_text
    from artk.core.use_cases.install import InstallOptions, install

    result = install(project_handle(ctx), InstallOptions(variant=variant, force=force), **probes(ctx))

    if as_json:
        emit_json(result.to_dict(), ok=result.success)
        return

    if not result.success:
        if variant and result.variant is None:
            click.echo(get_variant_help_text(), err=True)
        if result.rollback is not None:
            click.secho(
                f"   Rolled back: {len(result.rollback.removed_directories)} directories, "
                f"{len(result.rollback.removed_files)} files",
                fg="yellow",
                err=True,
            )
            for err in result.rollback.errors:
                click.secho(f"   • {err}", fg="red", err=True)
        fail(result.error or "Install failed")

    click.secho(f"✅ Installed ARTK ({result.variant})", fg="green", bold=True)
    click.echo(f"   Node.js {result.node_version}, {result.module_system}, {result.copied_files} files")
    if result.override_used:
        click.echo("   Variant chosen with --variant")
    for warning in result.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")


@cli.command()
@click.option("--force", is_flag=True, help="Reinstall even if the variant is unchanged.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def upgrade(ctx: click.Context, force: bool, as_json: bool) -> None:
    """Switch to the variant matching the current environment."""
    from artk.core.use_cases.upgrade import upgrade as run_upgrade

    result = run_upgrade(project_handle(ctx), force=force, **probes(ctx))

    if as_json:
        emit_json(result.to_dict(), ok=result.success)
        return

    if not result.success:
        if result.restored:
            click.secho("   Configuration restored from backup", fg="yellow", err=True)
        fail(result.error or "Upgrade failed")

    for warning in result.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow")
    if result.changed or force:
        click.secho(
            f"✅ Upgraded {result.previous_variant} → {result.new_variant}", fg="green", bold=True
        )
        if result.backup_path:
            click.echo(f"   Backup: {result.backup_path}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def doctor(ctx: click.Context, as_json: bool) -> None:
    """Diagnose the ARTK installation."""
    from artk.core.use_cases.doctor import doctor as run_doctor

    result = run_doctor(project_handle(ctx), **probes(ctx))

    if as_json:
        emit_json(result.to_dict(), ok=result.healthy)
        return

    icons = {"pass": ("✓", "green"), "warn": ("!", "yellow"), "fail": ("✗", "red")}
    click.secho(f"\n🩺 {project_handle(ctx).root}", fg="cyan", bold=True)
    for check in result.checks:
        icon, color = icons[check.status]
        click.secho(f"   {icon} ", fg=color, nl=False)
        click.echo(f"{check.name}: {check.message}")

    if result.recommendations:
        click.echo()
        click.secho("   Recommendations:", fg="white", bold=True)
        for rec in result.recommendations:
            click.echo(f"     • {rec}")
    click.echo()

    if not result.healthy:
        sys.exit(1)


# ── Subgroups ───────────────────────────────────────────────────

from artk.ui.cli.backup import backup  # noqa: E402
from artk.ui.cli.lock import lock  # noqa: E402
from artk.ui.cli.logs import logs  # noqa: E402
from artk.ui.cli.rollback import rollback  # noqa: E402

cli.add_command(lock)
cli.add_command(rollback)
cli.add_command(backup)
cli.add_command(logs)


if __name__ == "__main__":
    cli()
