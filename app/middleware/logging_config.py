"""
Structured logging configuration.

- Development / tests: one readable line per record, review context appended
- Production: one JSON object per record
- Log level: LOG_LEVEL env variable

Request-scoped identity (request id, caller) is attached by
``ReviewContextFilter`` so services only pass the review keys they own
(``proposal_id``, ``assignment_id``, ``toggle_key``) through ``extra``.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Keys copied from ``extra`` into the output when present.
REQUEST_FIELDS = ("request_id", "method", "path", "status", "duration_ms", "remote_addr")
REVIEW_FIELDS = ("user_id", "role", "proposal_id", "assignment_id", "toggle_key")


class ReviewContextFilter(logging.Filter):
    """Fill request_id / user_id / role from flask.g when a request is active."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            if getattr(record, "request_id", None) is None:
                record.request_id = getattr(g, "request_id", None)
            if getattr(record, "user_id", None) is None:
                record.user_id = getattr(g, "jwt_user_id", None)
            if getattr(record, "role", None) is None:
                record.role = getattr(g, "jwt_role", None)
        return True


def _fields(record: logging.LogRecord, keys) -> dict:
    return {k: getattr(record, k) for k in keys if getattr(record, k, None) is not None}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production / log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_fields(record, REQUEST_FIELDS))
        entry.update(_fields(record, REVIEW_FIELDS))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Coloured single-line formatter for development."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        context = " ".join(f"{k}={v}" for k, v in _fields(record, REVIEW_FIELDS).items())
        line = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"
        if context:
            line += f" [{context}]"
        rid = getattr(record, "request_id", None)
        if rid:
            line += f" ({rid})"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """
    Install one stderr handler on the root logger.

    JSON in production, readable otherwise. LOG_LEVEL defaults to INFO in
    production and DEBUG elsewhere.
    """
    testing = app.config.get("TESTING", False)
    production = not app.config.get("DEBUG", False) and not testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if production else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if production else ReadableFormatter())
    handler.addFilter(ReviewContextFilter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Per-query SQL is only useful when asked for explicitly.
    for name in ("werkzeug", "sqlalchemy.engine", "alembic"):
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.setLevel(level)
    if not testing:
        app.logger.info("Logging configured: level=%s json=%s", level_name, production)
