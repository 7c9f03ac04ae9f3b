"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per request, on the "encodingserver.access" logger:

    TEXT (Apache-style, plus the negotiated coding):
        127.0.0.1 - - [18/Oct/2026:12:00:00 +0000] "GET /" 200 5123 br 0.41ms

    JSON (for log aggregators):
        {"request_id": "a1b2c3d4", "method": "GET", "path": "/",
         "client_ip": "127.0.0.1", "status_code": 200,
         "content_encoding": "br", "content_length": 5123, ...}

content_length is what the response promises to send. For a file body
that is the on-disk size of the negotiated variant, so the log shows how
much brotli or gzip actually saved per request.

Each response also gets an X-Request-ID header carrying the id from the
log line, so a client report can be matched to it.

Because the access logger is namespaced it can be routed separately:

    logging.getLogger("encodingserver.access").addHandler(file_handler)

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("encodingserver.access")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    request_id:       Unique ID, echoed in X-Request-ID
    method:           HTTP method
    path:             Request path
    client_ip:        Client's IP address
    user_agent:       Client identifier ("-" if absent)
    accept_encoding:  Raw Accept-Encoding header ("-" if absent)
    status_code:      HTTP response code
    content_encoding: Served coding ("identity" when none)
    content_length:   Response body size in bytes
    duration_ms:      Time spent building the response
    timestamp:        When the request was processed
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    accept_encoding: str
    status_code: int
    content_encoding: str
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.content_encoding} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware. Add it first so it sees every request.

        pipeline.add(LoggingMiddleware(log_format="json"))

    A handler exception is logged at ERROR and re-raised; the server turns
    it into a 500.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        """
        Args:
            log_format: "text" or "json".
            include_request_id: Add X-Request-ID to every response.
            log_level: Level the access lines are logged at.
            skip_paths: Request paths that are not logged.
        """
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        if request.path in self.skip_paths:
            return response

        accept_encoding = request.accept_encoding
        log_entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            accept_encoding=accept_encoding if accept_encoding is not None else "-",
            status_code=int(response.status),
            content_encoding=response.content_encoding or "identity",
            content_length=response.content_length,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(self.log_level, log_entry.to_text())

        return response
