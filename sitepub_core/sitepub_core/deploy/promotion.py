"""Promotion of a snapshot into the live deploy directory.

The live directory is never replaced wholesale.  The new snapshot is
copied over it (add and overwrite only), then every path that existed in
the previous snapshot but not in the new one is removed.  Paths shared by
both snapshots are untouched by the removal pass, so the published site
is never missing a page that the new build still contains.

Snapshots built by deploys whose promotion did not complete may have been
partly copied into the live directory; their paths are removed the same
way.  A live path the new snapshot holds as a different kind of entry
(a directory becoming a file or the reverse) is replaced before copying.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from functools import partial
from pathlib import Path

from sitepub_core.deploy.errors import PromotionError
from sitepub_core.deploy.snapshots import SnapshotStore
from sitepub_core.models.deploy import PromotionResult
from sitepub_core.retry import RetryConfig, retry_with_backoff

logger = logging.getLogger(__name__)


def _remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree; a missing path is not an error."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


def _remove_tolerant(path: Path) -> None:
    try:
        _remove_path(path)
    except (FileNotFoundError, NotADirectoryError):
        # A parent was already removed or replaced by a file.
        pass


def _entry_kind(path: Path) -> str | None:
    if path.is_symlink():
        return "link"
    if path.is_dir():
        return "dir"
    if path.exists():
        return "file"
    return None


class PromotionEngine:
    """Copy snapshots into *deploy_dir* and clean up orphaned paths.

    Parameters
    ----------
    deploy_dir:
        The externally visible published tree.
    removal_retry:
        Retry policy for removals that fail with :class:`OSError`.
    """

    def __init__(self, deploy_dir: Path, removal_retry: RetryConfig | None = None) -> None:
        self.deploy_dir = deploy_dir
        self.removal_retry = removal_retry or RetryConfig()

    def promote(
        self,
        old_snapshot: Path | None,
        new_snapshot: Path,
        interrupted: Sequence[Path] = (),
    ) -> PromotionResult:
        """Make *deploy_dir* reflect *new_snapshot*.

        Parameters
        ----------
        old_snapshot:
            The snapshot that was live before this promotion, if any.
        new_snapshot:
            The snapshot to publish.
        interrupted:
            Snapshots whose promotion failed after *old_snapshot* went live.
            Their paths count as possibly live.

        Raises
        ------
        PromotionError
            If the new snapshot is missing or cannot be copied.  Removal
            failures are reported in the result instead.
        """
        if not new_snapshot.is_dir():
            raise PromotionError(f"Snapshot does not exist: {new_snapshot}")

        built_files = SnapshotStore.list_files(new_snapshot)
        replaced = self._copy(new_snapshot, built_files)
        logger.info("Copied build to deploy destination.")

        result = PromotionResult(
            snapshot=new_snapshot,
            previous_snapshot=old_snapshot,
            interrupted=list(interrupted),
            copied_count=len(built_files),
            replaced=replaced,
        )

        old_files = self._previously_live(old_snapshot, interrupted)
        if not old_files:
            return result

        built = set(built_files)
        files_to_delete = [f for f in old_files if f not in built]
        for rel in files_to_delete:
            target = self.deploy_dir / rel
            try:
                retry_with_backoff(partial(_remove_tolerant, target), self.removal_retry)
            except OSError as exc:
                logger.error("Could not remove %s from deploy dir: %s", rel, exc)
                result.failed.append(rel)
                continue
            logger.info("Removed %s from deploy dir.", rel)
            result.removed.append(rel)

        if result.cleaned_count:
            logger.info("Cleaned up %d files.", result.cleaned_count)
        if result.failed:
            logger.warning("%d stale files could not be removed from the deploy dir.", len(result.failed))
        return result

    @staticmethod
    def _previously_live(old_snapshot: Path | None, interrupted: Sequence[Path]) -> list[str]:
        """Manifest of *old_snapshot* followed by paths only the interrupted snapshots have."""
        files = SnapshotStore.list_files(old_snapshot)
        seen = set(files)
        for snapshot in interrupted:
            extra = [f for f in SnapshotStore.list_files(snapshot) if f not in seen]
            if extra:
                logger.info("Including %d paths from interrupted snapshot %s", len(extra), snapshot.name)
            seen.update(extra)
            files.extend(extra)
        return files

    def _clear_conflicts(self, snapshot: Path, built_files: list[str]) -> list[str]:
        """Remove live entries that *snapshot* holds as a different kind.

        Existing symlinks are always removed since the copy recreates them.
        """
        replaced: list[str] = []
        for rel in built_files:
            live = self.deploy_dir / rel
            live_kind = _entry_kind(live)
            if live_kind is None:
                continue
            new_kind = _entry_kind(snapshot / rel)
            if live_kind == new_kind and new_kind != "link":
                continue
            logger.info("Replacing %s %s with a %s.", live_kind, rel, new_kind)
            _remove_path(live)
            replaced.append(rel)
        return replaced

    def _copy(self, snapshot: Path, built_files: list[str]) -> list[str]:
        try:
            self.deploy_dir.mkdir(parents=True, exist_ok=True)
            replaced = self._clear_conflicts(snapshot, built_files)
            shutil.copytree(snapshot, self.deploy_dir, symlinks=True, dirs_exist_ok=True)
        except (shutil.Error, OSError) as exc:
            raise PromotionError(f"Failed to copy {snapshot.name} into {self.deploy_dir}: {exc}") from exc
        return replaced
