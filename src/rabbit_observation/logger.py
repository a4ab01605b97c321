"""
Logging setup for rabbit-observation.

Every module logs through ``logging.getLogger(__name__)`` under the
``rabbit_observation`` namespace.  ``configure_logging()`` attaches a single
handler to that namespace: JSON lines for log aggregation (Loki and the
like) or plain text for a console.

Usage:
    from rabbit_observation.logger import configure_logging

    configure_logging(level="debug", fmt="text")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

LOGGER_NAME = "rabbit_observation"

# LogRecord attributes that are not user-supplied ``extra`` fields.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "info",
    fmt: str = "json",
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    Configure the ``rabbit_observation`` logger.

    Replaces any handler installed by an earlier call.

    Args:
        level: debug, info, warning or error
        fmt: json or text
        stream: Output stream (stderr by default)
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, "_rabbit_observation", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    handler._rabbit_observation = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
