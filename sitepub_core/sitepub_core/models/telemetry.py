"""Envelope for timestamped observability events emitted by deploys."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class MetricsEvent(BaseModel):
    """A single metrics event written as one JSON line."""

    event: str = Field(
        ...,
        min_length=1,
        description="Event type identifier, e.g. 'deploy.completed'.",
    )
    timestamp: datetime = Field(
        ...,
        description="UTC time the event was emitted.",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Arbitrary event payload.",
    )
