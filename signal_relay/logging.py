"""
Logging setup for the signaling relay.

Console output is human readable and tagged with the connection being
handled; errors are also appended as JSON lines to LOG_FILE_PATH so they can
be shipped elsewhere. The connection tag comes from `connection_id_var`,
which the hub sets when a session is accepted and which every task spawned
for that session inherits.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from typing import Any

from signal_relay.settings import app_settings

# Identity of the signaling connection the current task works for
connection_id_var: ContextVar[int | None] = ContextVar(
    "connection_id", default=None
)

# Free-form fields merged into JSON log lines (peer, message type, ...)
log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# LogRecord attributes that are not user-supplied `extra` fields
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "connection_id"}

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_connection_id() -> str:
    """Connection ID of the current task as text, or "" outside a session."""
    cid = connection_id_var.get()
    return "" if cid is None else str(cid)


def set_log_context(**kwargs: Any) -> None:
    """
    Add fields to every JSON log line written by the current task.

    Example:
        >>> set_log_context(peer=2, message_type="RTCOffer")
    """
    log_context.set({**log_context.get(), **kwargs})


def get_log_context() -> dict[str, Any]:
    return log_context.get()


def clear_log_context() -> None:
    """Drop all contextual fields, e.g. once a session has ended."""
    log_context.set({})


class StructuredJSONFormatter(logging.Formatter):
    """
    Renders a record as one JSON object per line.

    The object carries the usual record fields, the connection ID when the
    record was emitted on behalf of a session, the current log context, the
    deployment environment, any `extra=` fields and the formatted traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "environment": app_settings.ENVIRONMENT,
        }

        if connection_id := get_connection_id():
            payload["connection_id"] = connection_id

        payload.update(get_log_context())
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        )

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Console formatter tagging each line with the connection being handled.

    INFO lines stay short; every other level also shows where the record
    was emitted from.
    """

    INFO_FMT = "%(asctime)s - [conn %(connection_id)s] %(levelname)s: %(message)s"
    DETAILED_FMT = (
        "%(asctime)s - [conn %(connection_id)s] %(levelname)s: "
        "%(module)s.%(funcName)s:%(lineno)d - %(message)s"
    )

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._info = logging.Formatter(self.INFO_FMT, datefmt=_DATE_FORMAT)
        self._detailed = logging.Formatter(
            self.DETAILED_FMT, datefmt=_DATE_FORMAT
        )

    def format(self, record: logging.LogRecord) -> str:
        record.connection_id = get_connection_id() or "-"
        if record.levelno == logging.INFO:
            return self._info.format(record)
        return self._detailed.format(record)


def _error_file_handler() -> logging.Handler | None:
    directory = os.path.dirname(app_settings.LOG_FILE_PATH)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        handler = logging.FileHandler(app_settings.LOG_FILE_PATH)
    except OSError as e:
        print(f"Error log file disabled: {e}", file=sys.stderr)
        return None

    handler.setLevel(logging.ERROR)
    handler.setFormatter(StructuredJSONFormatter())
    return handler


def setup_logging() -> logging.Logger:
    """
    Configure the "signal_relay" logger.

    Installs a stdout handler with HumanReadableFormatter and, when the
    LOG_FILE_PATH directory is writable, a JSON error file handler. Calling
    it again replaces the handlers instead of duplicating them.

    Returns:
        The configured logger.
    """
    relay_logger = logging.getLogger("signal_relay")
    relay_logger.setLevel(app_settings.LOG_LEVEL.upper())
    relay_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(HumanReadableFormatter())
    relay_logger.addHandler(console)

    if file_handler := _error_file_handler():
        relay_logger.addHandler(file_handler)

    # Keep test output quiet
    if os.path.basename(sys.argv[0]) == "pytest":
        logging.disable(logging.ERROR)

    return relay_logger


logger = setup_logging()
