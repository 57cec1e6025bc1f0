"""Deploy orchestration: revision gating, locking, snapshots and promotion."""

from __future__ import annotations

from sitepub_core.deploy.errors import DeployError, DeployLockError, LockTimeoutError, PromotionError
from sitepub_core.deploy.lock import DeployLock, is_stale, read_lock_record, remove_lock
from sitepub_core.deploy.orchestrator import DeployOrchestrator
from sitepub_core.deploy.promotion import PromotionEngine
from sitepub_core.deploy.revision import RevisionTracker
from sitepub_core.deploy.snapshots import SnapshotStore

__all__ = [
    "DeployError",
    "DeployLock",
    "DeployLockError",
    "DeployOrchestrator",
    "LockTimeoutError",
    "PromotionEngine",
    "PromotionError",
    "RevisionTracker",
    "SnapshotStore",
    "is_stale",
    "read_lock_record",
    "remove_lock",
]
