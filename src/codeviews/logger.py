"""
Logging setup for codeviews.

Modules log through ``logging.getLogger(__name__)``; this module only
installs the handler on the ``codeviews`` logger. Two formats:

- text: ``LEVEL codeviews.module: message``
- json: one JSON object per line (timestamp, level, logger, message)

Usage:
    from codeviews.logger import configure_logging

    configure_logging("debug", "json")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

ROOT_LOGGER = "codeviews"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "warning",
    fmt: str = "text",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Install a single stderr handler on the ``codeviews`` logger.

    Calling it again replaces the previous handler rather than adding one.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(_LEVELS.get(level.lower(), logging.WARNING))

    for handler in list(logger.handlers):
        if getattr(handler, "_codeviews", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler._codeviews = True
    logger.addHandler(handler)
    return logger
