"""
Shared plumbing for the CLI command modules.
"""

from __future__ import annotations

import json
import sys
from typing import Any

import click

from artk.core.project import ProjectHandle


def project_handle(ctx: click.Context) -> ProjectHandle:
    """The project the group was pointed at (``--project`` or CWD)."""
    return ctx.obj["handle"]


def probes(ctx: click.Context) -> dict[str, Any]:
    """Host probes to hand to use cases.  None means the real OS probe."""
    return {"node": ctx.obj.get("node"), "liveness": ctx.obj.get("liveness")}


def emit_json(data: Any, ok: bool = True) -> None:
    """Print ``data`` as JSON and exit 1 when ``ok`` is False."""
    click.echo(json.dumps(data, indent=2, default=str))
    if not ok:
        sys.exit(1)


def fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def settings_or_fail(ctx: click.Context):
    """Installer settings for the project, or exit 1 on a config error."""
    from artk.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(project_handle(ctx))
    except ConfigError as e:
        fail(str(e))


def lock_manager(ctx: click.Context, settings=None):
    """A ``LockManager`` for the project, honouring the configured stale timeout."""
    from artk.core.services.lifecycle.lock_manager import LockManager

    settings = settings or settings_or_fail(ctx)
    return LockManager(
        project_handle(ctx),
        liveness=probes(ctx)["liveness"],
        stale_timeout=settings.lock_stale_timeout_seconds,
    )
