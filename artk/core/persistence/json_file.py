"""
JSON record I/O — tagged reads and atomic writes for small state files.

Reading never raises.  The caller gets one of three explicit outcomes:

    Ok(value)          the file parsed and validated
    Missing()          the file does not exist
    Malformed(reason)  unreadable, not JSON, or fails the schema

Lock and context readers treat ``Missing`` and ``Malformed`` alike
("absent"), so a corrupt file can never wedge a project.

Writes go through write-to-temp-then-rename so a crash mid-write leaves
either the old file or the new one, never half of each.
"""

from __future__ import annotations

import json
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar, Union

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Ok(Generic[M]):
    value: M


@dataclass(frozen=True)
class Missing:
    pass


@dataclass(frozen=True)
class Malformed:
    reason: str


Parsed = Union[Ok[M], Missing, Malformed]


def read_model(path: Path, model: type[M]) -> Parsed[M]:
    """Read and validate a JSON record.

    Args:
        path: File to read.
        model: Pydantic model the JSON must satisfy.

    Returns:
        ``Ok``, ``Missing`` or ``Malformed``.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Missing()
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return Malformed(f"unreadable: {e}")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Corrupt JSON in %s: %s", path, e)
        return Malformed(f"invalid JSON: {e}")

    try:
        return Ok(model.model_validate(data))
    except ValidationError as e:
        logger.warning("Invalid %s in %s: %s", model.__name__, path, e)
        return Malformed(f"schema mismatch: {e.error_count()} error(s)")


def ok_or_none(parsed: Parsed[M]) -> M | None:
    """Collapse a tagged read to "value or absent"."""
    if isinstance(parsed, Ok):
        return parsed.value
    return None


def write_json(path: Path, data: dict) -> None:
    """Write a JSON document atomically.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with open(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
        logger.debug("Wrote %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
