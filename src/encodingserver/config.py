"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every knob of the encoding server in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m encodingserver --port 3000                       │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m encodingserver                    │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHAT IS IMMUTABLE AT RUNTIME
=============================================================================

encoding_priority is a tuple and the server never mutates the config
after validate(). Worker threads read it concurrently without locks.

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from .encoding.variants import Encoding, DEFAULT_PRIORITY
from .encoding.generator import LEVEL_RANGES


@dataclass
class ServerConfig:
    """
    Configuration for the encoding server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    HTTP SETTINGS
    - keep_alive, keep_alive_timeout, max_request_size

    THREADING SETTINGS
    - min_workers, max_workers, queue_size

    CONTENT
    - source_path, content_type, encoding_priority, chunk_size

    GENERATION
    - generate_on_start, gzip_level, deflate_level, brotli_quality

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """IP address to bind to. "0.0.0.0" listens on every interface."""

    port: int = 8080
    """
    Port to listen on. 0 lets the OS pick a free port; the bound port is
    then available from EncodingServer.address.
    """

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 8192
    """recv() size in bytes."""

    timeout: Optional[float] = 30.0
    """Socket timeout in seconds for reading the first request."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    """Serve several requests per TCP connection."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a keep-alive connection is closed."""

    max_request_size: int = 1024 * 1024  # 1 MB
    """
    Upper bound on a whole request. Only GET/OPTIONS are served, so
    requests are tiny; anything near this limit is not a real client.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16
    queue_size: int = 100
    """Connections waiting for a worker before new ones get 503."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    source_path: str = "test.html"
    """
    The asset to serve. Its variants live next to it:
    <source>.br, <source>.gz, <source>.zz
    """

    content_type: str = "text/html; UTF-8"
    """Content-Type of every 200 response, whatever the encoding."""

    encoding_priority: Tuple[Encoding, ...] = DEFAULT_PRIORITY
    """Server preference order for negotiation, highest first."""

    chunk_size: int = 64 * 1024
    """Bytes read from disk and written to the socket per round."""

    # ─────────────────────────────────────────────────────────────────────
    # GENERATION
    # ─────────────────────────────────────────────────────────────────────

    generate_on_start: bool = True
    """Write the encoded variants before binding the socket."""

    gzip_level: int = 6
    deflate_level: int = 6
    brotli_quality: int = 11

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache style) or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "EncodingServer/1.0"
    """Value of the Server response header."""

    @property
    def source(self) -> Path:
        return Path(self.source_path)

    @property
    def compression_levels(self) -> Dict[Encoding, int]:
        """Per-encoding levels in the shape generate() takes."""
        return {
            Encoding.BROTLI: self.brotli_quality,
            Encoding.GZIP: self.gzip_level,
            Encoding.DEFLATE: self.deflate_level,
        }

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST         Server host (default: 127.0.0.1)
        HTTP_PORT         Server port (default: 8080)
        HTTP_WORKERS      Max worker threads (default: 16, min is capped at 4)
        HTTP_TIMEOUT      Request timeout in seconds (default: 30)
        HTTP_SOURCE_FILE  Asset to encode and serve (default: test.html)
        HTTP_LOG_LEVEL    Logging level (default: INFO)

        =====================================================================
        """
        workers = int(os.getenv("HTTP_WORKERS", "16"))
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            min_workers=min(4, workers),
            max_workers=workers,
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            source_path=os.getenv("HTTP_SOURCE_FILE", "test.html"),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values at startup.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")

        if not self.encoding_priority:
            raise ValueError("encoding_priority must name at least one encoding")

        if len(set(self.encoding_priority)) != len(self.encoding_priority):
            raise ValueError(
                f"encoding_priority has duplicates: {list(self.encoding_priority)}"
            )

        for encoding in self.encoding_priority:
            if not isinstance(encoding, Encoding):
                raise ValueError(f"Unknown encoding in encoding_priority: {encoding!r}")

        for encoding, level in self.compression_levels.items():
            low, high = LEVEL_RANGES[encoding]
            if not low <= level <= high:
                raise ValueError(
                    f"{encoding.token} level must be {low}-{high}, got {level}"
                )

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with a dataclass
# 2. Environment variable support (from_env)
# 3. Validation at startup (validate)
# 4. Defaults that serve ./test.html on 127.0.0.1:8080
#
# =============================================================================
