"""Process-wide logging setup for sitepub commands.

Two formats are supported:

* the default human-readable line format, and
* one JSON object per line (``SITEPUB_STRUCTURED_LOGGING=true``) for CI log
  aggregators.

Output schema per line in structured mode::

    {
        "timestamp": "2026-10-19T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "sitepub_core.deploy.orchestrator",
        "message": "Deploy complete.",
        "exc_info": "Traceback ..."  // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from typing import Any

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Structured deploy context passed via ``extra={"deploy": ...}``.
        deploy_data = getattr(record, "deploy", None)
        if deploy_data is not None:
            payload["deploy"] = deploy_data

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(debug: bool = False, structured: bool = False) -> None:
    """Install a single stderr handler on the root logger.

    Calling this more than once replaces the previous handler instead of
    stacking duplicates.
    """
    handler = logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_sitepub_handler", False):
            root.removeHandler(existing)
    handler._sitepub_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
