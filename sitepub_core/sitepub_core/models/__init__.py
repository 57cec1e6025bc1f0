"""Domain models for the sitepub core engine."""

from sitepub_core.models.build import BuildResult, SourceFiles
from sitepub_core.models.deploy import (
    DeployResult,
    DeployStatus,
    LockRecord,
    PromotionResult,
    RevisionCheck,
    SnapshotInfo,
)
from sitepub_core.models.telemetry import MetricsEvent

__all__ = [
    "BuildResult",
    "DeployResult",
    "DeployStatus",
    "LockRecord",
    "MetricsEvent",
    "PromotionResult",
    "RevisionCheck",
    "SnapshotInfo",
    "SourceFiles",
]
