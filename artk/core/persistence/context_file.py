"""
Context file persistence — ``.artk/context.json``.

Only the lock holder writes this file.  Readers tolerate absence and
corruption: both come back as ``None``.
"""

from __future__ import annotations

import logging

from artk.core.models.context import ArtkContext, InstalledEnvironment
from artk.core.persistence.json_file import (
    Malformed,
    Parsed,
    ok_or_none,
    read_model,
    write_json,
)
from artk.core.project import ProjectHandle

logger = logging.getLogger(__name__)


def read_context_parsed(handle: ProjectHandle) -> Parsed[ArtkContext]:
    """Read the context file keeping the missing/malformed distinction."""
    return read_model(handle.context_path, ArtkContext)


def load_context(handle: ProjectHandle) -> ArtkContext | None:
    """Load the installation context, or None when absent or corrupt."""
    parsed = read_context_parsed(handle)
    if isinstance(parsed, Malformed):
        logger.info("Ignoring malformed context at %s (%s)", handle.context_path, parsed.reason)
        return None
    return ok_or_none(parsed)


def load_installed_environment(handle: ProjectHandle) -> InstalledEnvironment | None:
    """Read just ``variant`` and ``nodeVersion``; other keys may be absent.

    Returns None when the file is missing, unparseable, or lacks either field.
    """
    parsed = read_model(handle.context_path, InstalledEnvironment)
    if isinstance(parsed, Malformed):
        logger.info("No usable variant/nodeVersion in %s (%s)", handle.context_path, parsed.reason)
        return None
    return ok_or_none(parsed)


def save_context(handle: ProjectHandle, context: ArtkContext) -> None:
    """Persist the installation context (atomic write).

    Raises:
        OSError: If the file cannot be written.
    """
    write_json(handle.context_path, context.to_json_dict())
    logger.debug("Context saved: variant=%s", context.variant)


def has_existing_installation(handle: ProjectHandle) -> bool:
    """True when a context file is present (valid or not)."""
    return handle.context_path.is_file()
