"""Deploy orchestration.

A deploy run goes through these steps, strictly in order:

1. Compare the current revision with the deployed one; stop if equal.
2. Take the deploy lock.
3. Build the site into a new snapshot directory.
4. Promote the snapshot into the live deploy directory.
5. Record the new revision.
6. Release the lock (on every exit path).

The revision marker is only written after a successful promotion, so a
failed or interrupted run is retried on the next invocation.  The retry
diffs against the snapshot matching the recorded revision plus every
snapshot built after it.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from collections.abc import Callable
from pathlib import Path

from sitepub_core.build.builder import build_site
from sitepub_core.build.errors import BuildError
from sitepub_core.config import DeployContext
from sitepub_core.deploy.errors import DeployError
from sitepub_core.deploy.lock import DeployLock
from sitepub_core.deploy.promotion import PromotionEngine
from sitepub_core.deploy.revision import RevisionTracker
from sitepub_core.deploy.snapshots import SnapshotStore
from sitepub_core.git import GitClientError, get_current_sha
from sitepub_core.models.build import BuildResult
from sitepub_core.models.deploy import DeployResult, DeployStatus
from sitepub_core.retry import RetryConfig
from sitepub_core.telemetry.emitter import MetricsEmitter

logger = logging.getLogger(__name__)

SnapshotBuilder = Callable[[DeployContext, Path], BuildResult]

_STAGING_PREFIX = ".building-"


def _default_builder(context: DeployContext, dest_dir: Path) -> BuildResult:
    return build_site(context, dest_dir)


class DeployOrchestrator:
    """Run one deploy for *context*.

    Every collaborator can be injected; the defaults are wired from
    ``context.settings``.
    """

    def __init__(
        self,
        context: DeployContext,
        tracker: RevisionTracker | None = None,
        lock: DeployLock | None = None,
        store: SnapshotStore | None = None,
        promoter: PromotionEngine | None = None,
        builder: SnapshotBuilder | None = None,
        emitter: MetricsEmitter | None = None,
    ) -> None:
        settings = context.settings
        self.context = context
        self.tracker = tracker or RevisionTracker(context.marker_path, lambda: get_current_sha(context.root))
        self.lock = lock or DeployLock(
            context.lock_path,
            max_attempts=settings.lock_wait_max_attempts,
            delay=settings.lock_wait_delay,
            stale_after=settings.lock_stale_seconds,
        )
        self.store = store or SnapshotStore(context.snapshots_dir)
        self.promoter = promoter or PromotionEngine(
            context.deploy_dir,
            removal_retry=RetryConfig(max_retries=settings.removal_retries),
        )
        self.builder = builder or _default_builder
        self.emitter = emitter or MetricsEmitter(settings.metrics_file, structured=settings.structured_logging)

    def run(self) -> DeployResult:
        """Deploy the current revision if it is not live yet.

        Raises
        ------
        LockTimeoutError
            If another deploy holds the lock for too long.
        BuildError
            If the site cannot be built.
        PromotionError
            If the snapshot cannot be copied into the deploy directory.
        GitClientError
            If the current revision cannot be determined.
        """
        start = time.perf_counter()
        self.context.output_dir.mkdir(parents=True, exist_ok=True)

        check = self.tracker.check()
        if not check.proceed:
            self.emitter.deploy_skipped(check.new_revision)
            return DeployResult(
                status=DeployStatus.SKIPPED,
                old_revision=check.old_revision,
                new_revision=check.new_revision,
            )

        try:
            with self.lock:
                self.emitter.lock_acquired(self.lock.lock_path, self.lock.waited_attempts, self.lock.reclaimed)
                self.context.snapshots_dir.mkdir(parents=True, exist_ok=True)
                old_snapshot, interrupted = self.store.deployed_snapshot(check.old_revision)
                if interrupted:
                    logger.warning("%d snapshots from failed deploys may be partly live", len(interrupted))
                new_snapshot = self._build_snapshot(check.new_revision)
                promotion = self.promoter.promote(old_snapshot, new_snapshot, interrupted)
                self.tracker.save(check.new_revision)
        except (DeployError, BuildError, GitClientError) as exc:
            self.emitter.deploy_failed(check.new_revision, exc)
            raise

        result = DeployResult(
            status=DeployStatus.DEPLOYED,
            old_revision=check.old_revision,
            new_revision=check.new_revision,
            snapshot=new_snapshot,
            promotion=promotion,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        logger.info("Deploy complete. %s", result.transition())
        self.emitter.deploy_completed(
            old_revision=result.old_revision,
            new_revision=result.new_revision,
            snapshot=new_snapshot,
            cleaned_count=promotion.cleaned_count,
            failed_count=len(promotion.failed),
            duration_ms=result.duration_ms,
        )
        return result

    def _build_snapshot(self, revision: str) -> Path:
        """Build into a hidden staging directory and move it into place.

        A failed build never shows up as the latest snapshot.
        """
        snapshot = self.store.new_snapshot_path(revision)
        if snapshot.exists():
            raise DeployError(f"Snapshot already exists: {snapshot}")
        staging = snapshot.with_name(_STAGING_PREFIX + snapshot.name)
        if staging.exists():
            shutil.rmtree(staging)
        try:
            build = self.builder(self.context, staging)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        os.replace(staging, snapshot)
        self.emitter.build_completed(snapshot, build.total, build.duration_ms)
        logger.info("Built into %s", self.context.relative(snapshot))
        return snapshot
