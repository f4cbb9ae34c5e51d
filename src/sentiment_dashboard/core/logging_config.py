# src/sentiment_dashboard/core/logging_config.py

# ==============================================================================
# CENTRAL LOGGING CONFIGURATION
# ==============================================================================
# Single place where the JSON log format is defined. Every record leaving the
# API carries the request id and the caller identity of the request that
# produced it, so one dashboard request can be traced across the readers and
# aggregators it touched.
# ==============================================================================

import logging
import sys
from contextvars import ContextVar
from typing import Optional

from pythonjsonlogger import jsonlogger

# Populated by the request middleware in main.py, read by the filter below.
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[Optional[str]] = ContextVar("user_id", default=None)
role_ctx: ContextVar[Optional[str]] = ContextVar("role", default=None)


class RequestContextFilter(logging.Filter):
    """
    Adds `request_id`, `user_id` and `role` to every log record.

    Records emitted outside a request (start-up, scripts) get "N/A" so the
    fields are always present in the JSON output.
    """

    def filter(self, record):
        record.request_id = request_id_ctx.get() or "N/A"
        record.user_id = user_id_ctx.get() or "N/A"
        record.role = role_ctx.get() or "N/A"
        return True


def setup_logging(log_level: str = "INFO"):
    """
    Configures structured JSON logging on the root logger.
    Safe to call more than once (hot reload, tests).
    """
    root_logger = logging.getLogger()

    if root_logger.hasHandlers() and any(isinstance(h.formatter, jsonlogger.JsonFormatter) for h in root_logger.handlers):
        return

    root_logger.setLevel(log_level.upper())

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s %(user_id)s %(role)s',
        rename_fields={
            'asctime': 'timestamp',
            'levelname': 'level',
            'name': 'logger_name'
        },
        datefmt='%Y-%m-%dT%H:%M:%S%z'
    )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Third-party loggers only report warnings and errors.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    logging.info("Structured JSON logging configured.")
