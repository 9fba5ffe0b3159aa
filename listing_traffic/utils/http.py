"""Shared plumbing for the serverless HTTP handlers under api/."""

import asyncio
import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Coroutine, Optional
from urllib.parse import parse_qs, urlparse

from listing_traffic.models.caller import CallerIdentity
from listing_traffic.services.auth import extract_bearer_token, resolve_caller
from listing_traffic.utils.errors import (
    AuthenticationError,
    ExportError,
    HarImportError,
    InputError,
    ListingTrafficError,
    NotFoundError,
)
from listing_traffic.utils.logging import correlation_context, get_structured_logger
from listing_traffic.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

ERROR_STATUS = (
    (AuthenticationError, 401),
    (InputError, 400),
    (HarImportError, 400),
    (NotFoundError, 404),
    (ExportError, 422),
)


def run_coroutine(coro: Coroutine) -> Any:
    """Run a coroutine to completion from synchronous handler code."""
    try:
        loop = asyncio.get_event_loop()
        if loop.is_closed():
            raise RuntimeError("event loop is closed")
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def status_for_error(error: Exception) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


class ApiHandler(BaseHTTPRequestHandler):
    """
    Base for api/ handlers.

    Subclasses implement ``handle_get`` / ``handle_post``; errors raised from
    them are mapped onto JSON error responses. ``ListingTrafficError``
    messages are shown to the client for 4xx statuses; anything else gets
    ``generic_error``.
    """

    generic_error = "Internal server error"

    def do_GET(self):
        self._dispatch(self.handle_get)

    def do_POST(self):
        self._dispatch(self.handle_post)

    def handle_get(self):
        self.send_json(405, {"error": "Method not allowed"})

    def handle_post(self):
        self.send_json(405, {"error": "Method not allowed"})

    def _dispatch(self, method):
        LoggingConfig.ensure_configured()
        incoming = self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)
        with correlation_context(incoming) as correlation_id:
            self.correlation_id = correlation_id
            try:
                method()
            except Exception as e:
                status = status_for_error(e)
                if status == 500:
                    logger.error("Request failed", exc_info=True, path=self.path, error=str(e))
                    self.send_json(500, {"error": self.generic_error})
                else:
                    logger.info("Request rejected", path=self.path, status=status, error=str(e))
                    self.send_json(status, {"error": self.client_message(e)})

    def client_message(self, error: Exception) -> str:
        if isinstance(error, NotFoundError):
            return "Listing not found"
        if isinstance(error, ListingTrafficError):
            return str(error)
        return self.generic_error

    # Request helpers
    @property
    def query(self) -> dict[str, str]:
        params = parse_qs(urlparse(self.path).query)
        return {key: values[0] for key, values in params.items() if values}

    def path_param(self, name: str, after: str) -> Optional[str]:
        """``name`` from the query string, else the path segment following ``after``."""
        if self.query.get(name):
            return self.query[name]
        segments = [segment for segment in urlparse(self.path).path.split("/") if segment]
        if after in segments:
            index = segments.index(after) + 1
            if index < len(segments):
                return segments[index]
        return None

    def read_body(self) -> str:
        content_length = int(self.headers.get("Content-Length", 0))
        return self.rfile.read(content_length).decode("utf-8") if content_length > 0 else ""

    def caller(self) -> CallerIdentity:
        """Resolve the caller from the Authorization header. Raises AuthenticationError."""
        token = extract_bearer_token(self.headers.get("Authorization"))
        return run_coroutine(resolve_caller(token))

    # Response helpers
    def send_body(self, status: int, body: bytes, content_type: str, headers: Optional[dict] = None):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        correlation_id = getattr(self, "correlation_id", None)
        if correlation_id:
            self.send_header(LoggingConfig.LOG_CORRELATION_ID_HEADER, correlation_id)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def send_json(self, status: int, payload: Any, headers: Optional[dict] = None):
        self.send_body(status, json.dumps(payload, default=str).encode("utf-8"), "application/json", headers)

    def log_message(self, format, *args):
        logger.debug("HTTP access", request=format % args)
