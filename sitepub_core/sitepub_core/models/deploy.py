"""Models describing deploy state: revisions, locks, snapshots and outcomes.

``RevisionCheck`` is the gate evaluated before any side effect happens,
``LockRecord`` is what gets written into ``deploy.lock``, and
``PromotionResult`` / ``DeployResult`` summarise a finished run for the CLI
and for metrics.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

# Only used for display; anything written to disk keeps the full revision.
SHORT_REVISION_LENGTH = 7


def short_revision(revision: str | None) -> str:
    """Truncate *revision* for human-readable output."""
    if not revision:
        return "(none)"
    return revision[:SHORT_REVISION_LENGTH]


class RevisionCheck(BaseModel):
    """Outcome of comparing the deployed revision with the current one."""

    proceed: bool = Field(
        ...,
        description="False when the current revision is already deployed.",
    )
    old_revision: str | None = Field(
        default=None,
        description="Revision recorded by the last successful deploy, if any.",
    )
    new_revision: str = Field(
        ...,
        min_length=1,
        description="Full revision identifier of the source tree being deployed.",
    )


class LockRecord(BaseModel):
    """Contents of the deploy lock file."""

    pid: int = Field(..., ge=0, description="Process id of the lock holder.")
    hostname: str = Field(..., description="Host the lock holder runs on.")
    token: str = Field(..., min_length=1, description="Random value identifying this acquisition.")
    acquired_at: datetime = Field(..., description="UTC acquisition time.")


class SnapshotInfo(BaseModel):
    """A retained snapshot directory with its name decoded."""

    path: Path
    name: str
    created_at: datetime | None = Field(
        default=None,
        description="Timestamp parsed from the directory name; None if it does not follow the convention.",
    )
    revision: str | None = None


class PromotionResult(BaseModel):
    """What a promotion did to the live deploy directory."""

    snapshot: Path
    previous_snapshot: Path | None = None
    interrupted: list[Path] = Field(default_factory=list)
    copied_count: int = Field(default=0, ge=0)
    replaced: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def cleaned_count(self) -> int:
        return len(self.removed)


class DeployStatus(str, Enum):
    """Terminal state of a deploy run."""

    SKIPPED = "skipped"
    DEPLOYED = "deployed"


class DeployResult(BaseModel):
    """Summary of a deploy run returned by the orchestrator."""

    status: DeployStatus
    old_revision: str | None = None
    new_revision: str
    snapshot: Path | None = None
    promotion: PromotionResult | None = None
    duration_ms: float = Field(default=0.0, ge=0.0)

    def transition(self) -> str:
        """Render ``(old:abc1234) (new:def5678)`` for summaries."""
        return f"(old:{short_revision(self.old_revision)}) (new:{short_revision(self.new_revision)})"
