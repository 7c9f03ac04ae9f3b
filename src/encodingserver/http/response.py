"""
=============================================================================
HTTP RESPONSE GENERATION
=============================================================================

HTTPResponse objects and their serialization to bytes.

=============================================================================
TWO KINDS OF BODY
=============================================================================

A response body is either held in memory or lives in a file on disk:

    IN MEMORY (errors, 405)            ON DISK (the negotiated asset)
    ────────────────────────           ──────────────────────────────
    HTTPResponse(                      HTTPResponse(
        status=404,                        status=200,
        body=b"Error: ...",                file_path=Path("test.html.br"),
    )                                      file_size=5123,
                                       )

    to_bytes() → head + body           head_bytes() → head only;
                                       the server streams the file after it

For a file body Content-Length comes from the size measured when the
response was built (one stat() call), not from reading the file. The file
is opened only when the server is about to stream it.

=============================================================================
RESPONSE FORMAT
=============================================================================

    HTTP/1.1 200 OK\r\n                      ← status line
    Content-Type: text/html; UTF-8\r\n
    Content-Encoding: br\r\n                 ← only when an encoding won
    Vary: Accept-Encoding\r\n
    Content-Length: 5123\r\n                 ← auto-added
    Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n  ← auto-added
    Server: EncodingServer/1.0\r\n           ← auto-added
    \r\n
    <5123 bytes of brotli data>

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus


TEXT_CONTENT_TYPE = "text/plain; UTF-8"


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

        status:     HTTPStatus member
        headers:    Header name → value, names in canonical case
        body:       In-memory body bytes
        file_path:  When set, the body is this file's content instead
        file_size:  Byte size of file_path, measured by whoever built this
        version:    HTTP version for the status line
    """
    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    file_path: Optional[Path] = None
    file_size: int = 0
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE

            "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def is_file(self) -> bool:
        """True when the body is streamed from file_path."""
        return self.file_path is not None

    @property
    def content_length(self) -> int:
        """Number of body bytes this response promises to send."""
        if self.file_path is not None:
            return self.file_size
        return len(self.body)

    @property
    def content_encoding(self) -> Optional[str]:
        """Value of the Content-Encoding header, if any."""
        return self.headers.get("Content-Encoding")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header; returns self for chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set an in-memory body, encoding str as UTF-8."""
        if isinstance(body, str):
            self.body = body.encode("utf-8")
        else:
            self.body = body
        self.file_path = None
        self.file_size = 0
        return self

    def head_bytes(self, server_name: str = "EncodingServer/1.0") -> bytes:
        """
        Serialize the status line and headers, ending with the blank line.

        Content-Length, Date and Server are added unless already present.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(self.content_length)

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("utf-8") + b"\r\n"

    def to_bytes(self, server_name: str = "EncodingServer/1.0") -> bytes:
        """
        Serialize a complete in-memory response.

        Raises:
            ValueError: For a file-backed response, which must be streamed.
        """
        if self.file_path is not None:
            raise ValueError(
                f"Response body lives in {self.file_path}; stream it instead"
            )
        return self.head_bytes(server_name) + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("text/html; UTF-8")
            .header("Content-Encoding", "br")
            .file("test.html.br", size=5123)
            .build())

    Every method except build() returns self.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._file_path: Optional[Path] = None
        self._file_size = 0

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set an in-memory body (str is encoded as UTF-8)."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self._file_path = None
        self._file_size = 0
        return self

    def text(self, text: str, content_type: str = TEXT_CONTENT_TYPE) -> "ResponseBuilder":
        """Plain text body plus its Content-Type."""
        self.body(text)
        self._headers["Content-Type"] = content_type
        return self

    def file(self, path: Union[str, Path], size: int) -> "ResponseBuilder":
        """
        Make the body the content of `path`, `size` bytes long.

        Nothing is read here; the size is the caller's stat() result.
        """
        self._file_path = Path(path)
        self._file_size = size
        self._body = b""
        return self

    def close_connection(self) -> "ResponseBuilder":
        """Tell the client this connection ends after the response."""
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
            file_path=self._file_path,
            file_size=self._file_size,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date, always in GMT.

        Sun, 18 Oct 2026 12:00:00 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# The fixed responses the handler and the server send. Error bodies are
# short plain text so that curl shows exactly what went wrong.
#
# =============================================================================

def error_response(status: HTTPStatus, message: Optional[str] = None) -> HTTPResponse:
    """Plain-text error; the body defaults to the reason phrase."""
    return (ResponseBuilder()
            .status(status)
            .text(message if message is not None else status.phrase)
            .build())


def not_found(path: Union[str, Path]) -> HTTPResponse:
    """
    404 naming the file that could not be found.

        Error: Requested file "test.html.br" not found
    """
    return error_response(
        HTTPStatus.NOT_FOUND,
        f'Error: Requested file "{path}" not found',
    )


def method_not_allowed(allowed: tuple = ("GET", "OPTIONS")) -> HTTPResponse:
    """405 with the reason phrase as body and the Allow header set."""
    response = error_response(HTTPStatus.METHOD_NOT_ALLOWED)
    response.set_header("Allow", ", ".join(allowed))
    return response


def internal_error(detail: object) -> HTTPResponse:
    """500 raised while resolving or opening the file to stream."""
    return error_response(
        HTTPStatus.INTERNAL_SERVER_ERROR,
        f"Encountered internal server error while piping file: {detail}",
    )
