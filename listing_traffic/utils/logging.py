"""Structured logging: correlation IDs, operation timing and masking of user data."""

import asyncio
import hashlib
import logging
import re
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional

from listing_traffic.utils.logging_config import LoggingConfig, correlation_id_var, get_logger

# Free-text fields that may echo datastore or auth error payloads
MASKED_FIELDS = ("error", "reason")

_EMAIL_RE = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
_BEARER_RE = re.compile(r"bearer\s+[A-Za-z0-9._-]+", re.IGNORECASE)
_JWT_RE = re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")
_SECRET_RE = re.compile(r"(api[_-]?key|apikey|token|secret|password)[\s:=]+([A-Za-z0-9._-]{20,})", re.IGNORECASE)


def generate_correlation_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    correlation_id_var.set(correlation_id)


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Bind a correlation ID (the caller's, or a new one) for the duration of a request."""
    if not correlation_id:
        correlation_id = generate_correlation_id()

    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)


def mask_sensitive_data(text: str) -> str:
    """Redact emails, bearer tokens, Supabase JWTs and key-like secrets."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text

    text = _EMAIL_RE.sub("[REDACTED_EMAIL]", text)
    text = _BEARER_RE.sub("Bearer [REDACTED]", text)
    text = _JWT_RE.sub("[REDACTED_JWT]", text)
    return _SECRET_RE.sub(r"\1=[REDACTED]", text)


def mask_user_id(user_id: str) -> str:
    """First four characters plus a short hash, so log lines stay joinable per user."""
    if not LoggingConfig.LOG_MASK_SENSITIVE or not user_id:
        return user_id

    if len(user_id) > 12:
        hashed = hashlib.sha256(user_id.encode()).hexdigest()[:8]
        return f"{user_id[:4]}...{hashed}"
    return user_id


class StructuredLogger:
    """Logger wrapper that takes structured fields as keyword arguments."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _get_extra(self, **fields: Any) -> Dict[str, Any]:
        extra: Dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat()}

        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id

        for key, value in fields.items():
            if key in MASKED_FIELDS and isinstance(value, str):
                value = mask_sensitive_data(value)
            extra[key] = value
        return extra

    def debug(self, message: str, **fields: Any) -> None:
        self.logger.debug(message, extra=self._get_extra(**fields))

    def info(self, message: str, **fields: Any) -> None:
        self.logger.info(message, extra=self._get_extra(**fields))

    def warning(self, message: str, **fields: Any) -> None:
        self.logger.warning(message, extra=self._get_extra(**fields))

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self.logger.error(message, extra=self._get_extra(**fields), exc_info=exc_info)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """Log the duration of the wrapped block; warn past the slow-operation threshold."""
    if logger is None:
        logger = get_structured_logger(__name__)

    start = time.perf_counter()
    logger.debug(f"Starting {operation_name}", operation=operation_name, **context)

    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(f"Completed {operation_name}", operation=operation_name, processing_time_ms=elapsed_ms, **context)

        if elapsed_ms > LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                f"Slow operation detected: {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                threshold_ms=LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS,
                **context
            )


def timed(operation_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Decorator form of ``log_timing`` for sync and async functions."""
    def decorator(func: Callable) -> Callable:
        op_name = operation_name or f"{func.__module__}.{func.__name__}"
        log = logger or get_structured_logger(func.__module__)

        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with log_timing(op_name, logger=log):
                    return await func(*args, **kwargs)
            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            with log_timing(op_name, logger=log):
                return func(*args, **kwargs)
        return sync_wrapper

    return decorator
