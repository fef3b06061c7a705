"""
Logging setup for the studio service.

One stderr handler on the root logger.  ``LOG_FORMAT=json`` emits one JSON
object per line for the log aggregator; ``readable`` prints a short colored
line with the studio context (actor, entity, shooting) appended.

Services attach context through ``extra=``; only the keys in CONTEXT_KEYS
reach the output.
"""

import json
import logging
import sys
from datetime import datetime, timezone

CONTEXT_KEYS = (
    # request
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "request_id",
    # domain
    "actor_id",
    "entity_type",
    "entity_id",
    "shooting_id",
    "event_id",
    "meeting_id",
    "task_id",
    "user_id",
    "crew_id",
    "freelancer_id",
    "freelance_changes",
)

# shown inline by the readable formatter
_INLINE_KEYS = ("actor_id", "entity_type", "entity_id", "shooting_id", "event_id", "request_id")


def _context(record: logging.LogRecord, keys) -> dict:
    return {k: getattr(record, k) for k in keys if getattr(record, k, None) is not None}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(_context(record, CONTEXT_KEYS))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
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
        line = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        ctx = _context(record, _INLINE_KEYS)
        if ctx:
            line += " (" + " ".join(f"{k}={v}" for k, v in ctx.items()) + ")"
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install the handler according to LOG_LEVEL / LOG_FORMAT in app.config.

    LOG_LEVEL defaults to DEBUG when the app runs in debug mode, INFO otherwise.
    """
    level_name = (app.config.get("LOG_LEVEL") or ("DEBUG" if app.debug else "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    use_json = app.config.get("LOG_FORMAT", "json") == "json"

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if use_json else ReadableFormatter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("werkzeug", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not app.testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "json" if use_json else "readable")
