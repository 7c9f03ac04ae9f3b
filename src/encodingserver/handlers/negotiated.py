"""
=============================================================================
NEGOTIATING FILE HANDLER
=============================================================================

The one handler of the server. Every path lands here; only the method and
the Accept-Encoding header decide the response.

=============================================================================
FLOW
=============================================================================

    Request ──► method GET/OPTIONS? ──no──► 405 Method Not Allowed
                       │
                      yes
                       ▼
          parse Accept-Encoding → {"gzip", "deflate"}
                       ▼
          negotiate against (br, gzip, deflate) → gzip
                       ▼
          variant table lookup → test.html.gz
                       ▼
              file exists? ──no──► 404 Error: Requested file "..." not found
                       │
                      yes
                       ▼
              stat() ──fails──► 500
                       │
                       ▼
          200, Content-Length = st_size, Content-Encoding: gzip,
          body = the file (streamed later by the server)

There is no fallback. A missing variant is a 404 even when the plain
source or another variant exists; negotiation never consults the disk.

OPTIONS goes through the same flow as GET and returns the same
headers and body.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from ..encoding.negotiation import parse_accept_encoding, negotiate
from ..encoding.variants import DEFAULT_PRIORITY, Encoding, variant_table
from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    ResponseBuilder,
    internal_error,
    method_not_allowed,
    not_found,
)
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class NegotiatingFileHandler:
    """
    Serves one asset in whichever pre-encoded form the client accepts best.

    Usage:
        handler = NegotiatingFileHandler("test.html")
        response = handler.handle(request)

    All state is fixed at construction, so one instance is shared by every
    worker thread.
    """

    ALLOWED_METHODS = ("GET", "OPTIONS")

    def __init__(
        self,
        source_path: Union[str, Path],
        priority: Tuple[Encoding, ...] = DEFAULT_PRIORITY,
        content_type: str = "text/html; UTF-8",
    ):
        """
        Args:
            source_path: The unencoded asset; variants sit next to it.
            priority: Encoding preference, highest first.
            content_type: Content-Type sent with every 200.
        """
        self.source_path = Path(source_path)
        self.priority = tuple(priority)
        self.content_type = content_type
        self.variants: Dict[Optional[Encoding], Path] = variant_table(self.source_path)

    def select(self, request: HTTPRequest) -> Optional[Encoding]:
        """Negotiate the encoding for `request` (None = unencoded)."""
        accepted = parse_accept_encoding(request.accept_encoding)
        logger.debug(
            f"Client supports encodings: {', '.join(sorted(accepted)) or '(none)'}"
        )
        return negotiate(accepted, self.priority)

    def resolve(self, encoding: Optional[Encoding]) -> Path:
        """File path served for `encoding`."""
        return self.variants[encoding]

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Build the response for one request.

        The returned 200 response carries the file path and size; the body
        itself is streamed by the server afterwards.
        """
        ip = request.client_address[0]
        logger.debug(f'Got request with method "{request.method}" from IP address "{ip}"')

        if request.method not in self.ALLOWED_METHODS:
            return method_not_allowed(self.ALLOWED_METHODS)

        encoding = self.select(request)
        path = self.resolve(encoding)

        if encoding is not None:
            rank = self.priority.index(encoding) + 1
            logger.info(
                f'Client and server agreed on encoding "{encoding.token}" '
                f"(priority {rank} of {len(self.priority)}), selected file \"{path}\""
            )
        else:
            logger.info("Client doesn't support encoding, serving content without encoding")

        if not path.exists():
            logger.warning(f"Negotiated file is missing: {path}")
            return not_found(path)

        try:
            size = path.stat().st_size
        except OSError as e:
            logger.error(f"Internal error: {e}")
            return internal_error(e)

        builder = (ResponseBuilder()
                   .status(HTTPStatus.OK)
                   .content_type(self.content_type))
        if encoding is not None:
            builder.header("Content-Encoding", encoding.token)
        builder.header("Vary", "Accept-Encoding")

        return builder.file(path, size).build()
