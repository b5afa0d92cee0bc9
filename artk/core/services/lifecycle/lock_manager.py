"""
Install lock — one install/upgrade/rollback per project directory.

The lock is ``.artk/install.lock``, created with an exclusive
create-if-absent open so two processes racing ``acquire`` can never both
win.  A lock left behind by a crashed run is reclaimed when its holder is
dead, or when it is older than the stale timeout regardless of liveness:

    UNLOCKED ──acquire, no file──────────────────────▶ LOCKED(self)
    UNLOCKED ──acquire, holder alive and fresh───────▶ UNLOCKED (denied)
    UNLOCKED ──acquire, holder dead or timed out─────▶ LOCKED(self)  [reclaim]
    LOCKED   ──release / force_release───────────────▶ UNLOCKED

``acquire`` never waits.  A denied acquire is reported immediately and the
caller decides whether to retry.

A corrupt lock file is stale, with one exception: a file whose mtime is
within ``CREATE_GRACE_SECONDS`` may be a lock another process has created
but not yet finished writing, so it is reported as held.
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TypeVar

from artk.adapters.process import OsProcessLiveness, ProcessLiveness
from artk.core.config.loader import DEFAULT_STALE_TIMEOUT_SECONDS
from artk.core.errors import LockContention, LockError
from artk.core.models.lock import AcquireResult, LockFile, LockInfo, LockOperation
from artk.core.persistence.json_file import Malformed, Missing, Ok, Parsed, read_model
from artk.core.project import ProjectHandle

logger = logging.getLogger(__name__)

CREATE_GRACE_SECONDS = 2.0

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        view = view[written:]


class LockManager:
    """Acquire, inspect and release the install lock of one project."""

    def __init__(
        self,
        handle: ProjectHandle,
        liveness: ProcessLiveness | None = None,
        clock: Callable[[], datetime] | None = None,
        stale_timeout: float = DEFAULT_STALE_TIMEOUT_SECONDS,
        pid: int | None = None,
    ):
        self._handle = handle
        self._liveness = liveness or OsProcessLiveness()
        self._clock = clock or _utcnow
        self._stale_timeout = timedelta(seconds=stale_timeout)
        self._pid = pid if pid is not None else os.getpid()

    @property
    def pid(self) -> int:
        return self._pid

    def get_lock_path(self) -> Path:
        return self._handle.lock_path

    # ── Acquire / release ────────────────────────────────────────

    def acquire(self, operation: LockOperation | str) -> AcquireResult:
        """Try to take the lock for ``operation``.

        Returns:
            ``acquired=True`` on success.  ``acquired=False`` with an error
            naming the holder when a live, fresh lock exists.

        Raises:
            LockError: If the ``.artk`` directory or the lock file cannot be
                created or written.
        """
        operation = LockOperation(operation)
        try:
            self._handle.artk_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LockError(f"Cannot create {self._handle.artk_dir}: {e}") from e

        if self._try_create(operation):
            logger.debug("Lock acquired for %s (pid=%d)", operation, self._pid)
            return AcquireResult(acquired=True)

        raw, parsed = self._read_raw()
        denied = self._deny_if_held(parsed)
        if denied is not None:
            return denied

        reclaimed = self._discard_stale(raw)
        if self._try_create(operation):
            if reclaimed:
                logger.info("Reclaimed stale install lock in %s", self._handle.root)
            return AcquireResult(acquired=True, reclaimed=reclaimed)

        # Someone else won the retry.
        _, parsed = self._read_raw()
        denied = self._deny_if_held(parsed)
        if denied is not None:
            return denied
        return AcquireResult(
            acquired=False,
            error=f"Another operation is in progress (lock file: {self.get_lock_path()})",
        )

    def release(self) -> None:
        """Delete the lock file if present.  Never raises."""
        try:
            self.get_lock_path().unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to release lock %s: %s", self.get_lock_path(), e)

    def force_release(self) -> bool:
        """Delete the lock file without any ownership or liveness check.

        Returns:
            True if a lock file was removed.
        """
        path = self.get_lock_path()
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to force-release lock %s: %s", path, e)
            return False
        logger.warning("Install lock force-released in %s", self._handle.root)
        return True

    @contextmanager
    def hold(self, operation: LockOperation | str) -> Iterator[AcquireResult]:
        """Hold the lock for the duration of a ``with`` block.

        Raises:
            LockContention: If the lock is held by a live, fresh process.
        """
        result = self.acquire(operation)
        if not result.acquired:
            holder = result.holder
            raise LockContention(
                result.error or "Install lock is held",
                pid=holder.pid if holder else None,
                operation=holder.operation.value if holder else None,
            )
        try:
            yield result
        finally:
            self.release()

    # ── Inspection ───────────────────────────────────────────────

    def read_lock(self) -> LockFile | None:
        """The current lock record, or None when absent or corrupt."""
        parsed = read_model(self.get_lock_path(), LockFile)
        return parsed.value if isinstance(parsed, Ok) else None

    def is_own_lock(self) -> bool:
        lock = self.read_lock()
        return lock is not None and lock.pid == self._pid

    def is_locked(self) -> bool:
        """True iff a lock file exists and is not stale."""
        return self.get_lock_info().locked

    def get_lock_info(self) -> LockInfo:
        parsed = read_model(self.get_lock_path(), LockFile)
        if isinstance(parsed, Missing):
            return LockInfo(locked=False)
        if isinstance(parsed, Malformed):
            held = self._recently_created()
            return LockInfo(locked=held, stale=not held, malformed=True)

        stale = self.is_stale(parsed.value)
        return LockInfo(locked=not stale, lock=parsed.value, stale=stale)

    def is_stale(self, lock: LockFile) -> bool:
        """Dead holder, or older than the stale timeout."""
        started = lock.started_at
        if started.tzinfo is None:
            started = started.replace(tzinfo=UTC)
        if self._clock() - started > self._stale_timeout:
            return True
        return not self._liveness.is_alive(lock.pid)

    # ── Internals ────────────────────────────────────────────────

    def _try_create(self, operation: LockOperation) -> bool:
        """Exclusive create.  False when the file already exists."""
        path = self.get_lock_path()
        record = LockFile(pid=self._pid, started_at=self._clock(), operation=operation)
        payload = json.dumps(record.to_json_dict(), indent=2).encode("utf-8")

        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        except OSError as e:
            raise LockError(f"Cannot create lock file {path}: {e}") from e

        try:
            try:
                _write_all(fd, payload)
            finally:
                os.close(fd)
        except OSError as e:
            path.unlink(missing_ok=True)
            raise LockError(f"Cannot write lock file {path}: {e}") from e
        return True

    def _read_raw(self) -> tuple[bytes | None, Parsed[LockFile]]:
        """Read the lock once, keeping the bytes for the reclaim check."""
        path = self.get_lock_path()
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None, Missing()
        except OSError as e:
            return None, Malformed(f"unreadable: {e}")
        try:
            return raw, Ok(LockFile.model_validate_json(raw))
        except ValueError as e:
            logger.warning("Corrupt lock file %s: %s", path, e)
            return raw, Malformed(str(e))

    def _deny_if_held(self, parsed: Parsed[LockFile]) -> AcquireResult | None:
        if isinstance(parsed, Ok) and not self.is_stale(parsed.value):
            lock = parsed.value
            return AcquireResult(
                acquired=False,
                error=f"Another {lock.operation} operation is in progress (pid={lock.pid})",
                holder=lock,
            )
        if isinstance(parsed, Malformed) and self._recently_created():
            return AcquireResult(
                acquired=False,
                error="Another operation is acquiring the lock",
            )
        return None

    def _recently_created(self) -> bool:
        try:
            mtime = self.get_lock_path().stat().st_mtime
        except OSError:
            return False
        return time.time() - mtime < CREATE_GRACE_SECONDS

    def _discard_stale(self, raw: bytes | None) -> bool:
        """Move the stale lock aside, then make sure it was the one judged stale.

        Returns True if a stale lock was removed.
        """
        if raw is None:
            return False

        path = self.get_lock_path()
        tombstone = path.with_name(f"{path.name}.stale-{uuid.uuid4().hex[:8]}")
        try:
            os.replace(path, tombstone)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise LockError(f"Cannot remove stale lock {path}: {e}") from e

        try:
            try:
                moved = tombstone.read_bytes()
            except OSError as e:
                raise LockError(f"Cannot inspect stale lock {tombstone}: {e}") from e
            if moved != raw:
                # Another process reclaimed first; put its fresh lock back.
                # A third process may have created a lock in the gap since
                # the rename; that lock is kept and this one is lost.
                try:
                    os.link(tombstone, path)
                except FileExistsError:
                    pass
                except OSError as e:
                    raise LockError(f"Cannot restore lock {path}: {e}") from e
                return False
        finally:
            tombstone.unlink(missing_ok=True)
        return True


def with_lock(
    handle: ProjectHandle,
    operation: LockOperation | str,
    fn: Callable[[], T],
    **manager_kwargs,
) -> T:
    """Run ``fn`` while holding the project lock; always release afterwards.

    Raises:
        LockContention: If the lock is held (``fn`` is not called).
    """
    manager = LockManager(handle, **manager_kwargs)
    with manager.hold(operation):
        return fn()
