"""Test helper functions."""

from http.client import parse_headers
from io import BytesIO
from typing import Dict, Optional
from unittest.mock import Mock


def build_headers(headers: Optional[Dict[str, str]] = None, body: bytes = b""):
    """Case-insensitive header object like the one BaseHTTPRequestHandler parses."""
    headers = dict(headers or {})
    if body:
        headers.setdefault("Content-Length", str(len(body)))
    raw = "".join(f"{name}: {value}\r\n" for name, value in headers.items()) + "\r\n"
    return parse_headers(BytesIO(raw.encode("iso-8859-1")))


def call_handler(
    handler_cls,
    method: str = "GET",
    path: str = "/",
    headers: Optional[Dict[str, str]] = None,
    body: bytes = b""
):
    """
    Drive a serverless handler without a socket.

    Returns (status, headers, body_bytes).
    """
    h = handler_cls.__new__(handler_cls)
    h.command = method
    h.path = path
    h.request_version = "HTTP/1.1"
    h.requestline = f"{method} {path} HTTP/1.1"
    h.client_address = ("127.0.0.1", 8000)
    h.headers = build_headers(headers, body)
    h.rfile = BytesIO(body)
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()

    getattr(h, f"do_{method}")()

    status = h.send_response.call_args[0][0]
    sent_headers = {call.args[0]: call.args[1] for call in h.send_header.call_args_list}
    return status, sent_headers, h.wfile.getvalue()


def auth_headers(token: str = "test-token") -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
