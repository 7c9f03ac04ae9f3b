"""
=============================================================================
ENCODING SERVER
=============================================================================

An HTTP/1.1 server that pre-compresses one static asset with brotli, gzip
and deflate at startup, then answers every request with the variant that
best matches the client's Accept-Encoding header.

=============================================================================
HOW IT FITS TOGETHER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  STARTUP                                                            │
    │    encoding.generator     test.html → test.html.{br,gz,zz}          │
    ├─────────────────────────────────────────────────────────────────────┤
    │  PER REQUEST                                                        │
    │    core                   accept, thread pool, read request bytes   │
    │    http                   parse request, build/serialize response   │
    │    middleware             access log                                │
    │    handlers.negotiated    Accept-Encoding → encoding → file         │
    │    encoding.negotiation   server priority order (br, gzip, deflate) │
    │    core.connection        stream the file back in chunks            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from encodingserver import EncodingServer, ServerConfig

    server = EncodingServer(ServerConfig(source_path="test.html", port=8080))
    server.run()

or from a shell:

    python -m encodingserver --source test.html

=============================================================================
"""

__version__ = "1.0.0"

from .server import EncodingServer, create_app
from .config import ServerConfig
from .encoding import Encoding, SourceAssetError

__all__ = [
    "EncodingServer",
    "create_app",
    "ServerConfig",
    "Encoding",
    "SourceAssetError",
    "__version__",
]
