"""Structured Logging — formatters and setup shared by the API, worker and scripts.

Invariants:
    - Every record carries timestamp, level, logger name and message
    - Known extras (bootcamper_id, job, error_code, ...) are surfaced in both formats
    - setup_logging is idempotent: calling it twice does not duplicate handlers
    - httpx and sqlalchemy.engine stay at WARNING unless the root level is DEBUG

Design Decisions:
    - stdlib logging with a hand-written JSON formatter, no structlog
    - Text format appends extras as key=value so worker output stays greppable
"""

import logging
import json
from datetime import datetime, timezone

EXTRA_KEYS = (
    "bootcamper_id", "user_id", "service", "job", "error_code", "path",
    "attempt", "status_code", "riot_game_id", "event_type", "duration_ms",
)

NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")

_HANDLER_NAME = "bootcamp_tracker"


def _extras(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in EXTRA_KEYS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class KeyValueFormatter(logging.Formatter):
    """Human-readable line with the known extras appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extras(record)
        if not extras:
            return line
        tail = " ".join(f"{k}={v}" for k, v in extras.items())
        head, sep, trace = line.partition("\n")
        return f"{head} [{tail}]{sep}{trace}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the single application handler on the root logger."""
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else KeyValueFormatter())
    logging.root.addHandler(handler)

    root_level = getattr(logging, level.upper(), logging.INFO)
    logging.root.setLevel(root_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.NOTSET if root_level <= logging.DEBUG else logging.WARNING,
        )
    return handler
