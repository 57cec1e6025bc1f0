"""Snapshot store: timestamped, immutable build outputs kept for diffing.

Snapshot directories are named ``<timestamp>-<revision>`` where the
timestamp is a compact UTC ISO-8601 string (``20261019T035312Z``).  The
fixed-width timestamp prefix makes lexical order equal chronological
order, which is what :meth:`SnapshotStore.latest_snapshot` relies on.
Dot-prefixed directories are builds in progress and are never listed.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from sitepub_core.models.deploy import SnapshotInfo

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"
_SNAPSHOT_NAME_RE = re.compile(r"^(?P<ts>\d{8}T\d{6}Z)-(?P<revision>.+)$")


def snapshot_timestamp(moment: datetime) -> str:
    """Return the filename-safe timestamp used as the snapshot name prefix.

    Equivalent to an ISO-8601 UTC string with dashes, colons and the
    fractional seconds stripped.
    """
    return moment.astimezone(UTC).strftime(_TIMESTAMP_FORMAT)


def parse_snapshot_name(name: str) -> tuple[datetime, str] | None:
    """Split a snapshot directory name into its timestamp and revision."""
    match = _SNAPSHOT_NAME_RE.match(name)
    if match is None:
        return None
    created = datetime.strptime(match.group("ts"), _TIMESTAMP_FORMAT).replace(tzinfo=UTC)
    return created, match.group("revision")


class SnapshotStore:
    """Ordered collection of snapshot directories under *snapshots_dir*.

    Parameters
    ----------
    snapshots_dir:
        Directory holding one sub-directory per build.
    clock:
        Returns the current time; replaceable in tests.
    """

    def __init__(
        self,
        snapshots_dir: Path,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.snapshots_dir = snapshots_dir
        self._clock = clock

    def _snapshot_names(self) -> list[str]:
        try:
            entries = os.scandir(self.snapshots_dir)
        except FileNotFoundError:
            return []
        with entries:
            return sorted(entry.name for entry in entries if entry.is_dir() and not entry.name.startswith("."))

    def latest_snapshot(self) -> Path | None:
        """Return the most recent snapshot, or ``None`` if there is none."""
        names = self._snapshot_names()
        if not names:
            return None
        return self.snapshots_dir / names[-1]

    def list_snapshots(self) -> list[SnapshotInfo]:
        """Return every snapshot, oldest first."""
        snapshots: list[SnapshotInfo] = []
        for name in self._snapshot_names():
            parsed = parse_snapshot_name(name)
            created, revision = parsed if parsed else (None, None)
            snapshots.append(
                SnapshotInfo(
                    path=self.snapshots_dir / name,
                    name=name,
                    created_at=created,
                    revision=revision,
                )
            )
        return snapshots

    def deployed_snapshot(self, revision: str | None) -> tuple[Path | None, list[Path]]:
        """Return the snapshot that went live for *revision* and those built after it.

        Snapshots newer than the deployed one belong to deploys that failed
        before recording their revision, so they may have been partly
        promoted.  When no snapshot matches *revision* the latest snapshot
        is returned on its own.
        """
        snapshots = self.list_snapshots()
        if revision:
            for index in range(len(snapshots) - 1, -1, -1):
                if snapshots[index].revision == revision:
                    return snapshots[index].path, [s.path for s in snapshots[index + 1 :]]
        return self.latest_snapshot(), []

    def new_snapshot_path(self, revision: str) -> Path:
        """Return where the snapshot for *revision* should be built.

        Nothing is created on disk.

        Raises
        ------
        ValueError
            If *revision* is empty.
        """
        if not revision:
            raise ValueError("Deploy revision is empty. Deploy cannot proceed.")
        return self.snapshots_dir / f"{snapshot_timestamp(self._clock())}-{revision}"

    @staticmethod
    def list_files(snapshot: Path | None) -> list[str]:
        """Return every entry below *snapshot* as a POSIX relative path.

        Directories sort before files, entries directly under the snapshot
        root before nested ones, then by relative path.  ``None`` yields an
        empty manifest.
        """
        if snapshot is None:
            return []

        entries: list[tuple[bool, bool, str]] = []
        for dirpath, dirnames, filenames in os.walk(snapshot):
            parent = Path(dirpath)
            at_root = parent == snapshot
            for name in dirnames:
                rel = (parent / name).relative_to(snapshot).as_posix()
                entries.append((False, not at_root, rel))
            for name in filenames:
                rel = (parent / name).relative_to(snapshot).as_posix()
                entries.append((True, not at_root, rel))

        entries.sort()
        return [rel for _, _, rel in entries]
