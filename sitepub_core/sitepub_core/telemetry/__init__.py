"""Deploy observability: JSON-lines metrics events."""

from __future__ import annotations

from sitepub_core.telemetry.emitter import MetricsEmitter

__all__ = ["MetricsEmitter"]
