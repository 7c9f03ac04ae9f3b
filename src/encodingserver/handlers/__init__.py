"""
=============================================================================
REQUEST HANDLERS
=============================================================================

    NegotiatingFileHandler
        Catch-all handler: negotiates a content coding from
        Accept-Encoding and serves the matching pre-encoded file.

    from encodingserver.handlers import NegotiatingFileHandler

    handler = NegotiatingFileHandler("test.html")
    response = handler.handle(request)

=============================================================================
"""

from .negotiated import NegotiatingFileHandler

__all__ = [
    "NegotiatingFileHandler",
]
