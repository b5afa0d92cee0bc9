"""
Install log — append-only structured record of lifecycle operations.

Every install, upgrade, rollback and detection writes NDJSON lines to
``.artk/install.log``.  When the file grows past ``max_bytes`` it is
renamed to ``install.<timestamp>.log`` and a fresh file is started; old
entries are never truncated.

The logger is a side-effect sink.  Write failures are reported through
the standard ``logging`` module and otherwise ignored, so logging can
never change the outcome of an install.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from artk.core.models.log_entry import InstallLogEntry, LogLevel, OperationType
from artk.core.project import ProjectHandle

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOG_BYTES = 10 * 1024 * 1024


class InstallLogger:
    """Append-only NDJSON writer for ``.artk/install.log``."""

    def __init__(self, handle: ProjectHandle, max_bytes: int = DEFAULT_MAX_LOG_BYTES):
        self._path = handle.log_path
        self._max_bytes = max_bytes

    @property
    def path(self) -> Path:
        return self._path

    def get_log_path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # ── Level helpers ────────────────────────────────────────────

    def info(self, operation: str, message: str, details: dict[str, Any] | None = None) -> None:
        self._write(LogLevel.INFO, operation, message, details)

    def warn(self, operation: str, message: str, details: dict[str, Any] | None = None) -> None:
        self._write(LogLevel.WARN, operation, message, details)

    def error(self, operation: str, message: str, details: dict[str, Any] | None = None) -> None:
        self._write(LogLevel.ERROR, operation, message, details)

    # ── Semantic helpers ─────────────────────────────────────────

    def log_install_start(self, variant: str, node_version: int) -> None:
        self.info(
            "install",
            "Starting ARTK installation",
            {"variant": variant, "nodeVersion": node_version},
        )

    def log_install_complete(self, variant: str) -> None:
        self.info("install", f"ARTK installation completed successfully ({variant})", {"variant": variant})

    def log_install_failed(self, error: str, variant: str | None = None) -> None:
        details: dict[str, Any] = {"error": error}
        if variant:
            details["variant"] = variant
        self.error("install", f"ARTK installation failed: {error}", details)

    def log_detection(self, node_version: int, module_system: str, variant: str) -> None:
        self.info(
            "detect",
            "Environment detected",
            {"nodeVersion": node_version, "moduleSystem": module_system, "selectedVariant": variant},
        )

    def log_rollback_start(self, reason: str) -> None:
        self.warn("rollback", "Starting rollback", {"reason": reason})

    def log_rollback_complete(self, success: bool, removed: list[str]) -> None:
        level = LogLevel.INFO if success else LogLevel.ERROR
        message = "Rollback completed" if success else "Rollback completed with errors"
        self._write(level, "rollback", message, {"removed": removed})

    def log_upgrade_start(self, from_variant: str, to_variant: str) -> None:
        self.info(
            "upgrade",
            "Starting variant upgrade",
            {"fromVariant": from_variant, "toVariant": to_variant},
        )

    def log_upgrade_complete(self, variant: str) -> None:
        self.info("upgrade", f"Variant upgrade completed ({variant})", {"variant": variant})

    # ── Reading ──────────────────────────────────────────────────

    def read_recent(self, n: int = 50) -> list[InstallLogEntry]:
        """Return the last ``n`` parseable entries, oldest first.

        Corrupt lines are skipped.
        """
        if not self._path.is_file():
            return []

        entries: list[InstallLogEntry] = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(InstallLogEntry.model_validate_json(line))
                    except ValueError as e:
                        logger.debug("Skipping corrupt install log line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read install log: %s", e)

        return entries[-n:] if n > 0 else []

    # ── Internals ────────────────────────────────────────────────

    def _write(
        self,
        level: LogLevel,
        operation: str,
        message: str,
        details: dict[str, Any] | None,
    ) -> None:
        try:
            entry = InstallLogEntry(
                level=level,
                operation=OperationType(operation),
                message=message,
                details=details or None,
            )
        except ValueError as e:
            logger.error("Rejected install log entry (%s): %s", operation, e)
            return

        line = json.dumps(entry.model_dump(mode="json", exclude_none=True), ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._rotate_if_needed()
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Install log: [%s] %s: %s", level, operation, message)
        except OSError as e:
            logger.error("Failed to write install log entry: %s", e)

    def _rotate_if_needed(self) -> None:
        try:
            size = self._path.stat().st_size
        except FileNotFoundError:
            return
        if size <= self._max_bytes:
            return

        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")
        rotated = self._path.with_name(f"{self._path.stem}.{stamp}{self._path.suffix}")
        self._path.rename(rotated)
        logger.info("Rotated install log to %s", rotated.name)
