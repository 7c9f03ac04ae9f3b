"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Raw bytes in, structured messages out, and back again.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST PARSER (request.py)                                         │
    │   b"GET / HTTP/1.1\r\nAccept-Encoding: br\r\n\r\n"                  │
    │        → HTTPRequest(method="GET", path="/", headers={...})         │
    ├─────────────────────────────────────────────────────────────────────┤
    │ RESPONSE (response.py)                                              │
    │   HTTPResponse with an in-memory body or a file body                │
    │   head_bytes() for the status line and headers                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │ STATUS CODES (status_codes.py)                                      │
    │   HTTPStatus.NOT_FOUND → 404, phrase="Not Found"                    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    TEXT_CONTENT_TYPE,
    error_response,
    not_found,
    method_not_allowed,
    internal_error,
)
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Responses
    "HTTPResponse",
    "ResponseBuilder",
    "TEXT_CONTENT_TYPE",
    "error_response",
    "not_found",
    "method_not_allowed",
    "internal_error",

    # Status codes
    "HTTPStatus",
]
