"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read off a client socket into an HTTPRequest.

=============================================================================
WHAT THIS SERVER NEEDS FROM A REQUEST
=============================================================================

The negotiating handler is a catch-all: it never looks at the path to pick
a resource. Out of the whole request it only consumes two things:

    GET /anything/at/all HTTP/1.1\r\n         ← method (GET / OPTIONS?)
    Host: localhost:8080\r\n
    Accept-Encoding: gzip, deflate, br\r\n    ← client acceptance set
    \r\n

Everything else is parsed anyway, because the transport layer uses it:

    - version + Connection header   → keep-alive decision
    - Content-Length                → how many body bytes belong to us
    - User-Agent, client address    → access log

=============================================================================
HEADER NORMALIZATION
=============================================================================

Header NAMES are case-insensitive (RFC 7230), so they are lowercased at
parse time: "Accept-Encoding" and "accept-encoding" land on the same key.

Header VALUES are kept verbatim apart from trimming surrounding whitespace.
In particular the Accept-Encoding value is NOT lowercased; token matching
downstream is exact.

Repeated headers are folded into one comma-separated value:

    Accept-Encoding: gzip
    Accept-Encoding: br          →   "gzip, br"

which is exactly the shape the Accept-Encoding splitter expects.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlparse, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code that should be returned to the client:

        400 Bad Request                - Malformed request syntax
        405 Method Not Allowed         - Unknown method token
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Unknown HTTP version

    `method` is set when the request line was valid and only the body
    framing failed, so the caller can still reject the method first.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        method: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.method = method


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

        method:         GET, OPTIONS, POST, ...
        path:           Request path without the query string
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        Header dict with LOWERCASE names
        body:           Raw body bytes (exactly Content-Length of them)
        client_address: (ip, port) of the peer, for logging
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)

    @property
    def accept_encoding(self) -> Optional[str]:
        """
        Raw Accept-Encoding header value, or None if the client sent none.

        None and "" are different: a missing header and an empty one both
        negotiate to "no encoding", but the access log tells them apart.
        """
        return self.headers.get("accept-encoding")

    @property
    def user_agent(self) -> str:
        """User-Agent header value (empty if missing)."""
        return self.headers.get("user-agent", "")

    @property
    def is_keep_alive(self) -> bool:
        """
        Check if this connection should be kept alive.

        HTTP/1.1 keeps alive unless "Connection: close".
        HTTP/1.0 closes unless "Connection: keep-alive".
        """
        connection = self.headers.get("connection", "").lower()

        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        1. Size check                 too large → HTTPParseError(413)
        2. Split at \r\n\r\n          missing   → HTTPParseError(400)
        3. Request line               bad       → HTTPParseError(400/405/505)
        4. Headers                    lowercase names, folded duplicates
        5. Body                       exactly Content-Length bytes

    Method tokens that are valid HTTP but not served here (POST, PUT, ...)
    parse fine. Turning them into 405 is the handler's job, so that the
    response carries the handler's body and headers. When such a request
    has a broken body, the HTTPParseError carries the method so the server
    can still answer 405.

    ==========================================================================
    """

    VALID_METHODS = {
        "GET",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "HEAD",
        "OPTIONS",
        "TRACE",
        "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 1024 * 1024):
        """
        Args:
            max_request_size: Maximum allowed request size in bytes.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from socket.
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError(
                f"Invalid Content-Length: {headers['content-length']}",
                method=method,
            )

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}",
                method=method,
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str]:
        """
        Parse "METHOD SP REQUEST-URI SP HTTP-VERSION".

        Returns:
            Tuple of (method, path, version); the query string is dropped.
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        path = unquote(urlparse(uri).path) or "/"
        return method, path, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: Value" lines into a dict keyed by lowercase name.

        Continuation lines (leading space/tab) extend the previous header;
        repeated names are joined with ", "; malformed lines are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 1024 * 1024
) -> HTTPRequest:
    """Parse a request with a one-off RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
