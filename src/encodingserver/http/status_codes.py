"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can actually emit, with their reason phrases.

=============================================================================
WHICH CODES AND WHERE THEY COME FROM
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    STATUS CODE SOURCES                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   NEGOTIATING HANDLER                                               │
    │     200 OK                  File (encoded or not) streamed          │
    │     404 Not Found           Resolved variant missing on disk        │
    │     405 Method Not Allowed  Anything other than GET / OPTIONS       │
    │     500 Internal Error      stat/open failed before headers went    │
    │                                                                      │
    │   TRANSPORT LAYER (server.py / request.py)                          │
    │     400 Bad Request         Malformed request line                  │
    │     408 Request Timeout     Client never finished its request       │
    │     413 Payload Too Large   Request exceeds max_request_size        │
    │     503 Unavailable         Worker queue is full                    │
    │     505 Version N/S         Neither HTTP/1.0 nor HTTP/1.1           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A 405 response carries the reason phrase itself as its body.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.METHOD_NOT_ALLOWED.phrase
        'Method Not Allowed'
    """

    # 2xx SUCCESS
    OK = 200                            # Variant or original served

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400                   # Malformed request syntax
    NOT_FOUND = 404                     # Resolved file is missing
    METHOD_NOT_ALLOWED = 405            # Only GET and OPTIONS are served
    REQUEST_TIMEOUT = 408               # Client took too long to send request
    PAYLOAD_TOO_LARGE = 413             # Request body too large

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500         # Fault while resolving or piping the file
    SERVICE_UNAVAILABLE = 503           # Thread pool queue is full
    HTTP_VERSION_NOT_SUPPORTED = 505    # HTTP version not supported

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 405 Method Not Allowed
                     ─── ──────────────────
                      │          │
                      │          └── Reason phrase
                      └───────────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


# =============================================================================
# REASON PHRASES
# =============================================================================
#
# Per RFC 7230 reason phrases are informational; clients may ignore them.
# The 405 phrase doubles as that response's body.
#
# =============================================================================

_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
