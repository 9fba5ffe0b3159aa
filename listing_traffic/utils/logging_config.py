"""Logging configuration from environment variables."""

import os
import logging
import sys
from contextvars import ContextVar
from typing import Optional
from pythonjsonlogger import jsonlogger

# Set per request by utils.logging.correlation_context
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Chatty dependencies: HTTP transport under supabase-py, and PIL when reportlab decodes images
QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "supabase", "postgrest", "PIL")


class CorrelationIdFilter(logging.Filter):
    """Stamp the request's correlation id on records from plain stdlib loggers too."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = correlation_id_var.get() or "-"
        return True


class LoggingConfig:
    """Logging settings; handlers call ``ensure_configured`` on cold start."""

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_MASK_SENSITIVE = os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true"
    LOG_CORRELATION_ID_HEADER = os.environ.get("LOG_CORRELATION_ID_HEADER", "X-Correlation-ID")
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))
    SERVICE_NAME = os.environ.get("SERVICE_NAME", "listing-traffic-backend")
    ENVIRONMENT = os.environ.get("ENVIRONMENT", "production")

    _configured = False

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        if cls.LOG_FORMAT == "json":
            return jsonlogger.JsonFormatter(
                "%(timestamp)s %(levelname)s %(name)s %(correlation_id)s %(message)s",
                timestamp=True,
                static_fields={"service": cls.SERVICE_NAME, "environment": cls.ENVIRONMENT},
            )
        return logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"
        )

    @classmethod
    def setup_logging(cls) -> None:
        """Replace root handlers with a single stdout handler."""
        level = getattr(logging, cls.LOG_LEVEL, logging.INFO)
        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        # stdout for serverless/Vercel
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.addFilter(CorrelationIdFilter())
        handler.setFormatter(cls.build_formatter())
        root_logger.addHandler(handler)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
        cls._configured = True

    @classmethod
    def ensure_configured(cls) -> None:
        if not cls._configured:
            cls.setup_logging()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
