"""
JSON logging for LearnContext.

Every line is one JSON object. Learner context (user_id, action, session_id)
is lifted to top-level keys when a call site supplies it.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from learncontext.shared.config import settings

CONTEXT_FIELDS = ("user_id", "action", "session_id")

# Attributes every LogRecord carries; anything else arrived via `extra=`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

# SDK loggers that log each HTTP request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


class StructuredFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        entry.update({
            key: value for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        })

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Route the root logger to stdout (and optionally a file) as JSON.

    Replaces any handlers already on the root logger, so calling it again
    reconfigures rather than duplicates output.
    """
    level = getattr(logging, (log_level or settings.log_level).upper())
    log_file = log_file or settings.log_file

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = StructuredFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers[:] = handlers

    # Keep per-request transport chatter out unless debugging
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    session_id: Optional[str] = None,
    **kwargs
):
    """Log `message` with learner context; fields left as None are omitted."""
    context = dict(zip(CONTEXT_FIELDS, (user_id, action, session_id)))
    extra = {key: value for key, value in {**context, **kwargs}.items() if value is not None}
    logger.log(level, message, extra=extra)


setup_logging()
