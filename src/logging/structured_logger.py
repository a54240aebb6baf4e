"""JSON log output for the console API and CLI.

Logs carry user_id / asset_id / project_id extras when the caller supplies
them, so one mutation can be traced across modules.
PII sanitization is applied to stdout output only.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from src.logging.pii_sanitizer import sanitize_pii

_EXTRA_FIELDS = ("user_id", "asset_id", "project_id", "template_id", "request_id", "duration_ms")


class JSONFormatter(logging.Formatter):
    """One JSON object per record; the message is PII-masked."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "event": sanitize_pii(record.getMessage()),
        }

        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])

        return json.dumps(log_entry, ensure_ascii=False)


_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Per-request access lines come from RequestContextMiddleware instead
_QUIET_LOGGERS = ("uvicorn.access", "httpx")


def setup_logging(level: str = "INFO", format_type: str = "json") -> None:
    """Send every record to stdout as JSON or as plain text.

    Unknown level names fall back to INFO. A repeated call replaces the
    previous handler rather than adding a second one.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))

    formatter = JSONFormatter() if format_type == "json" else logging.Formatter(_TEXT_FORMAT)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
