"""Logging configuration for the dambridge client."""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone

# Context variable for the file_id of the upload running in the current task
upload_file_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "upload_file_id", default=None
)

# Attributes of a bare LogRecord; anything else came in through extra={...}
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line: level, logger, message, upload file_id and extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        file_id = upload_file_id_context.get()
        if file_id:
            entry["upload_file_id"] = file_id

        entry.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RECORD_FIELDS
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception_type"] = exc_type.__name__
            entry["exception_message"] = str(exc_value)
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(level: str | None = None) -> None:
    """Configure logging for applications embedding the client.

    Library modules only create loggers; nothing is emitted anywhere until
    the embedding application calls this (or configures logging itself).

    For local development, uses a simple text format. Any other ENV gets
    JSON formatting for log aggregation.

    Args:
        level: Log level name, defaults to settings.LOG_LEVEL
    """
    from dambridge.core.config import settings

    log_level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)

    if settings.ENV == "local":
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = JsonLogFormatter()

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # httpx logs every request at INFO; chunked uploads make that very noisy
    for logger_name in ["httpx", "httpcore"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
