"""Revision tracking: decides whether a deploy is needed at all."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from sitepub_core.models.deploy import RevisionCheck, short_revision

logger = logging.getLogger(__name__)


class RevisionTracker:
    """Compare the current source revision with the last deployed one.

    Parameters
    ----------
    marker_path:
        File holding the full revision of the last successful deploy.
    revision_source:
        Zero-argument callable returning the current full revision, usually
        ``lambda: get_current_sha(root)``.
    """

    def __init__(self, marker_path: Path, revision_source: Callable[[], str]) -> None:
        self.marker_path = marker_path
        self._revision_source = revision_source

    def read_marker(self) -> str | None:
        """Return the deployed revision, or ``None`` before the first deploy."""
        try:
            value = self.marker_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return value or None

    def check(self) -> RevisionCheck:
        """Evaluate whether the current revision still has to be deployed."""
        old_revision = self.read_marker()
        new_revision = self._revision_source().strip()
        if not new_revision:
            raise ValueError("Current revision is empty; deploy cannot proceed.")

        if old_revision == new_revision:
            logger.info(
                "Previous version matches current version (%s). Doing nothing.",
                short_revision(new_revision),
            )
            return RevisionCheck(proceed=False, old_revision=old_revision, new_revision=new_revision)

        logger.info(
            "Checked revisions (old:%s) (new:%s) and continuing to publish...",
            short_revision(old_revision),
            short_revision(new_revision),
        )
        return RevisionCheck(proceed=True, old_revision=old_revision, new_revision=new_revision)

    def save(self, revision: str) -> None:
        """Persist *revision* as the last successfully deployed one.

        The marker is replaced atomically so an interrupted write leaves the
        previous revision in place.
        """
        self.marker_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.marker_path.parent, prefix=".latest-deploy.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(revision)
            os.replace(tmp_name, self.marker_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Saved the current revision to %s", self.marker_path.name)
