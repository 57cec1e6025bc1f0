"""Deploy and build events recorded as JSON lines.

Each event goes to the configured metrics file, to stdout when structured
logging is on, or nowhere.  A metrics file that cannot be written is
logged as a warning and otherwise ignored; it never fails a deploy.
"""

from __future__ import annotations

import logging
import sys
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sitepub_core.models.telemetry import MetricsEvent

logger = logging.getLogger(__name__)


class MetricsEmitter:
    """Append :class:`MetricsEvent` lines to *metrics_file* and/or stdout.

    The file and its parent directories are created on the first event.
    With neither a file nor *structured* set, every call is a no-op.
    """

    def __init__(
        self,
        metrics_file: Path | None = None,
        structured: bool = False,
    ) -> None:
        self._metrics_file = metrics_file
        self._structured = structured
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._metrics_file is not None or self._structured

    def emit(self, event: str, data: dict[str, Any]) -> None:
        """Record *event* (e.g. ``"deploy.completed"``) with payload *data*."""
        if not self.enabled:
            return

        line = MetricsEvent(event=event, timestamp=datetime.now(UTC), data=data).model_dump_json() + "\n"

        if self._metrics_file is not None:
            try:
                with self._lock:
                    self._metrics_file.parent.mkdir(parents=True, exist_ok=True)
                    with self._metrics_file.open("a", encoding="utf-8") as fh:
                        fh.write(line)
            except OSError as exc:
                logger.warning("Could not write metrics event %s to %s: %s", event, self._metrics_file, exc)

        if self._structured:
            sys.stdout.write(line)
            sys.stdout.flush()

        logger.debug("Recorded metrics event %s", event)

    # -- Deploy lifecycle ----------------------------------------------------

    def deploy_skipped(self, revision: str) -> None:
        """Emit a ``deploy.skipped`` event."""
        self.emit("deploy.skipped", {"revision": revision})

    def lock_acquired(self, lock_path: Path, waited_attempts: int, reclaimed: bool) -> None:
        """Emit a ``lock.acquired`` event."""
        self.emit(
            "lock.acquired",
            {
                "lock_path": str(lock_path),
                "waited_attempts": waited_attempts,
                "reclaimed_stale": reclaimed,
            },
        )

    def build_completed(self, dest_dir: Path, files: int, duration_ms: float) -> None:
        """Emit a ``build.completed`` event."""
        self.emit(
            "build.completed",
            {
                "dest_dir": str(dest_dir),
                "files": files,
                "duration_ms": duration_ms,
            },
        )

    def deploy_completed(
        self,
        old_revision: str | None,
        new_revision: str,
        snapshot: Path,
        cleaned_count: int,
        failed_count: int,
        duration_ms: float,
    ) -> None:
        """Emit a ``deploy.completed`` event."""
        self.emit(
            "deploy.completed",
            {
                "old_revision": old_revision,
                "new_revision": new_revision,
                "snapshot": snapshot.name,
                "cleaned_count": cleaned_count,
                "failed_count": failed_count,
                "duration_ms": duration_ms,
            },
        )

    def deploy_failed(self, new_revision: str | None, error: BaseException) -> None:
        """Emit a ``deploy.failed`` event."""
        self.emit(
            "deploy.failed",
            {
                "new_revision": new_revision,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
