"""
Structured logging for the backfill and the API.

Every record carries the ``run_id`` of the backfill run (or request) that
produced it. The pipeline attaches its position through ``extra``:

    logger.info("saved", extra={"date": "20240413", "event_id": "600041"})

Those pipeline keys (year, date, event_id, table) are promoted to top-level
fields by the JSON formatter and rendered as ``key=value`` pairs by the
console formatter, so a failed write can be traced back to its window,
event and table. Anything else passed in ``extra`` goes under "extra".
"""
import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Tuple

# Context variable for the run ID - shared across the application
run_id_var: ContextVar[str] = ContextVar("run_id", default="")

# Pipeline position, outermost first
CONTEXT_KEYS = ("year", "date", "event_id", "table")

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def split_context(record: logging.LogRecord) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Separate pipeline context keys from any other ``extra`` values."""
    context: Dict[str, Any] = {}
    extra: Dict[str, Any] = {}
    for key, value in vars(record).items():
        if key in _RECORD_ATTRS:
            continue
        if key in CONTEXT_KEYS:
            context[key] = value
        else:
            extra[key] = value
    ordered = {key: context[key] for key in CONTEXT_KEYS if key in context}
    return ordered, extra


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Fields: timestamp (UTC), level, logger, message, run_id, then any of
    year/date/event_id/table that were passed, then "extra" and "exception".
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": run_id_var.get(),
        }

        context, extra = split_context(record)
        log_data.update(context)
        if extra:
            log_data["extra"] = extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Single-line console output for local backfills.

        12:03:44 INFO  sportsfeed.services.ingest.scheduler: UFC 300 [run=ab12 date=20240413 event_id=600041]
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<5}"
        if self.use_color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{clock} {level} {record.name}: {record.getMessage()}"

        context, _ = split_context(record)
        pairs = [f"run={run_id_var.get()}"] if run_id_var.get() else []
        pairs += [f"{key}={value}" for key, value in context.items()]
        if pairs:
            line += f" [{' '.join(pairs)}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    handler: logging.Handler | None = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name; unknown names fall back to INFO
        json_output: JSON lines when True, console lines otherwise
        handler: Optional handler (tests pass one); defaults to stdout
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)

    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        stream = getattr(handler, "stream", None)
        handler.setFormatter(ConsoleFormatter(use_color=bool(stream is not None and stream.isatty())))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_run_id(run_id: str) -> Any:
    """Set the run ID; returns the token for clear_run_id."""
    return run_id_var.set(run_id)


def get_run_id() -> str:
    return run_id_var.get()


def clear_run_id(token: Any) -> None:
    run_id_var.reset(token)


@contextmanager
def run_context(run_id: str) -> Iterator[str]:
    """Tag every record logged inside the block with ``run_id``."""
    token = set_run_id(run_id)
    try:
        yield run_id
    finally:
        clear_run_id(token)
