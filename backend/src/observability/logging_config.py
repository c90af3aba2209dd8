"""Structured logging.

Log records carry the request id of the HTTP request being served, or the
run id and tenant of the background job being executed (see
observability.context.bind_run_context). With LOG_JSON enabled each record
is written as one JSON document.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from .context import get_request_id, get_run_id, get_tenant

# Attributes copied from a record into its JSON document when set
EXTRA_FIELDS = ("tenant", "instance_id", "job_id", "run_id", "status_code", "duration_ms")

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] [%(run_id)s] %(name)s: %(message)s"

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "celery.app.trace")


class CorrelationFilter(logging.Filter):
    """Attach request_id, run_id and tenant to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        # Explicit extra= values win over the bound context
        if getattr(record, "run_id", None) is None:
            record.run_id = get_run_id()
        if getattr(record, "tenant", None) is None:
            record.tenant = get_tenant()
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        document = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "no-request-id"),
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                document[name] = value if isinstance(value, (int, float)) else str(value)

        if record.exc_info:
            document["error"] = str(record.exc_info[1])
            document["traceback"] = self.formatException(record.exc_info)

        return json.dumps(document)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: Write JSON documents instead of text lines
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    handler.addFilter(CorrelationFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
