"""File-presence advisory lock guarding the deploy directory.

The lock is a file whose existence means "a deploy is in progress".  Its
content is a JSON :class:`LockRecord` naming the holder; the record is only
read to decide whether an abandoned lock may be reclaimed and to make sure
a process never deletes a lock it does not own.

Acquisition polls with a fixed delay and gives up with
:class:`LockTimeoutError` after a bounded number of waits.  Release runs on
every exit path of the ``with`` block.  While the lock is held, SIGTERM and
SIGHUP are turned into :class:`SystemExit` so that release still happens;
SIGKILL cannot be intercepted and leaves a stale lock behind, which is
reclaimed when the recorded process no longer exists on this host or when
the lock is older than ``stale_after`` seconds.  Anything else needs
``sitepub unlock``.

Reclaiming renames the abandoned lock aside before removing it.  If the
renamed file turns out to be a lock another process took in the meantime
it is linked back into place rather than deleted.
"""

from __future__ import annotations

import logging
import os
import signal
import socket
import threading
import time
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from types import FrameType, TracebackType
from typing import Any

import psutil
from pydantic import ValidationError

from sitepub_core.deploy.errors import DeployLockError, LockTimeoutError
from sitepub_core.models.deploy import LockRecord

logger = logging.getLogger(__name__)

# Signals converted to SystemExit while the lock is held.
_RELEASE_SIGNALS: tuple[str, ...] = ("SIGTERM", "SIGHUP")


# ---------------------------------------------------------------------------
# Lock record helpers
# ---------------------------------------------------------------------------


def read_lock_record(lock_path: Path) -> LockRecord | None:
    """Return the parsed lock record, or ``None`` if absent or unreadable.

    A lock file written by an older tool (plain timestamp) is unreadable
    here but still counts as held; use :meth:`Path.exists` for presence.
    """
    try:
        raw = lock_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    try:
        return LockRecord.model_validate_json(raw)
    except ValidationError:
        logger.debug("Lock file %s does not contain a lock record", lock_path)
        return None


def holder_is_alive(record: LockRecord) -> bool | None:
    """Return whether the lock holder still runs.

    ``None`` means it cannot be known, i.e. the holder is on another host.
    """
    if record.hostname != socket.gethostname():
        return None
    return psutil.pid_exists(record.pid)


def lock_age_seconds(lock_path: Path, record: LockRecord | None, now: datetime | None = None) -> float | None:
    """Seconds since the lock was taken, from the record or the file mtime."""
    now = now or datetime.now(UTC)
    if record is not None:
        return (now - record.acquired_at).total_seconds()
    try:
        mtime = lock_path.stat().st_mtime
    except FileNotFoundError:
        return None
    return now.timestamp() - mtime


def is_stale(lock_path: Path, stale_after: float | None = None, now: datetime | None = None) -> bool:
    """Return ``True`` if the lock at *lock_path* was abandoned."""
    record = read_lock_record(lock_path)
    if record is not None and holder_is_alive(record) is False:
        return True
    if stale_after is not None:
        age = lock_age_seconds(lock_path, record, now)
        if age is not None and age > stale_after:
            return True
    return False


def remove_lock(lock_path: Path) -> LockRecord | None:
    """Delete the lock file unconditionally and return what it contained."""
    record = read_lock_record(lock_path)
    lock_path.unlink(missing_ok=True)
    return record


# ---------------------------------------------------------------------------
# DeployLock
# ---------------------------------------------------------------------------


class DeployLock:
    """Scoped, non-reentrant deploy lock.

    Parameters
    ----------
    lock_path:
        Lock file location, usually ``<output>/deploy.lock``.
    max_attempts:
        Number of waits allowed while another deploy holds the lock.
    delay:
        Seconds to wait between attempts.
    stale_after:
        Age in seconds beyond which a lock is reclaimed regardless of its
        holder.  ``None`` disables age-based reclamation.
    sleep:
        Sleep function, replaceable in tests.
    """

    def __init__(
        self,
        lock_path: Path,
        max_attempts: int = 30,
        delay: float = 2.0,
        stale_after: float | None = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.lock_path = lock_path
        self.max_attempts = max_attempts
        self.delay = delay
        self.stale_after = stale_after
        self._sleep = sleep
        self._record: LockRecord | None = None
        self._previous_handlers: dict[int, Any] = {}
        self.waited_attempts = 0
        self.reclaimed = False

    @property
    def held(self) -> bool:
        return self._record is not None

    # -- Acquisition ---------------------------------------------------------

    def acquire(self) -> LockRecord:
        """Block until the lock is ours.

        Raises
        ------
        DeployLockError
            If this instance already holds the lock.
        LockTimeoutError
            If the lock is still held after ``max_attempts`` waits.
        """
        if self._record is not None:
            raise DeployLockError(f"Deploy lock {self.lock_path} is already held by this process.")

        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        self.waited_attempts = 0
        self.reclaimed = False

        while True:
            record = self._try_create()
            if record is not None:
                self._record = record
                logger.info("Obtained deploy lock %s", self.lock_path.name)
                return record
            if self._reclaim_if_stale():
                continue
            if self.waited_attempts >= self.max_attempts:
                raise LockTimeoutError(self.lock_path, self.waited_attempts)
            self.waited_attempts += 1
            logger.info(
                "Deploy lock is held; waiting %.1fs (attempt %d/%d)",
                self.delay,
                self.waited_attempts,
                self.max_attempts,
            )
            self._sleep(self.delay)

    def _try_create(self) -> LockRecord | None:
        record = LockRecord(
            pid=os.getpid(),
            hostname=socket.gethostname(),
            token=uuid.uuid4().hex,
            acquired_at=datetime.now(UTC),
        )
        try:
            fd = os.open(self.lock_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            return None
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(record.model_dump_json())
        except BaseException:
            # An empty lock file would count as held forever.
            self.lock_path.unlink(missing_ok=True)
            raise
        return record

    def _reclaim_if_stale(self) -> bool:
        if not self.lock_path.exists():
            # Released between our create attempt and now; retry right away.
            return True
        existing = read_lock_record(self.lock_path)
        if not is_stale(self.lock_path, self.stale_after):
            return False

        # Move the lock aside atomically, then check that what was moved is
        # the lock judged stale and not one another process took meanwhile.
        claimed = self.lock_path.with_name(f"{self.lock_path.name}.{uuid.uuid4().hex}.stale")
        try:
            os.rename(self.lock_path, claimed)
        except FileNotFoundError:
            return True
        try:
            if read_lock_record(claimed) != existing:
                self._restore_claimed(claimed)
                return False
        finally:
            claimed.unlink(missing_ok=True)

        holder = f"pid {existing.pid} on {existing.hostname}" if existing else "unknown holder"
        logger.warning("Reclaiming stale deploy lock %s (%s)", self.lock_path, holder)
        self.reclaimed = True
        return True

    def _restore_claimed(self, claimed: Path) -> None:
        try:
            os.link(claimed, self.lock_path)
        except FileExistsError:
            logger.warning("Deploy lock %s was re-taken while restoring a live lock", self.lock_path)
        else:
            logger.info("Deploy lock %s was re-taken by another process; left in place", self.lock_path)

    # -- Release -------------------------------------------------------------

    def release(self) -> None:
        """Remove the lock file if this instance owns it.  Idempotent."""
        record, self._record = self._record, None
        if record is None:
            return
        current = read_lock_record(self.lock_path)
        if current is None and not self.lock_path.exists():
            logger.warning("Deploy lock %s vanished before release", self.lock_path)
            return
        if current is None or current.token != record.token:
            logger.warning("Deploy lock %s is owned by another process; leaving it in place", self.lock_path)
            return
        self.lock_path.unlink(missing_ok=True)
        logger.info("Released deploy lock %s", self.lock_path.name)

    # -- Signal handling -----------------------------------------------------

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return

        def _raise_exit(signum: int, frame: FrameType | None) -> None:
            logger.warning("Received signal %d while holding the deploy lock; releasing", signum)
            raise SystemExit(128 + signum)

        for name in _RELEASE_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            self._previous_handlers[signum] = signal.signal(signum, _raise_exit)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    # -- Context manager -----------------------------------------------------

    def __enter__(self) -> DeployLock:
        self.acquire()
        try:
            self._install_signal_handlers()
        except BaseException:
            self.release()
            raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            self.release()
        finally:
            self._restore_signal_handlers()
