"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: buffered request reading, keep-alive
timeouts, writing response heads and streaming file bodies, and a proper
TCP close.

=============================================================================
READING: TCP IS A BYTE STREAM
=============================================================================

TCP does not preserve message boundaries. A single request can arrive as

    recv() → "GET / HT"
    recv() → "TP/1.1\r\nAccept-Encoding: br\r\n\r\n"

so bytes are buffered until the blank line that ends the headers shows
up, then exactly Content-Length more bytes are read for the body. Anything
past that stays in the buffer for the next request (pipelining).

=============================================================================
WRITING: HEAD FIRST, THEN THE FILE IN CHUNKS
=============================================================================

Responses served from disk are never loaded into memory whole:

    ┌──────────────┐   send_response(head)    ┌──────────────┐
    │   Server     │ ───────────────────────► │   Client     │
    │              │   send_stream(file):     │              │
    │  read(64K) ──┼──► sendall(chunk) ──────►│              │
    │  read(64K) ──┼──► sendall(chunk) ──────►│              │
    │  read() → b""│   done                   │              │
    └──────────────┘                          └──────────────┘

Once the head is on the wire the status code is committed. If the file
read or the socket write fails halfway, the only honest thing left is to
log it and close the connection: the client sees fewer bytes than
Content-Length promised and knows the body is truncated.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ──┐
               ▲                          │                      │
               └──────────────────────────┼──────────────────────┘
                                          ▼
                                 CLOSING ──► CLOSED

=============================================================================
"""

import socket
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and cleanup."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents a client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. BUFFERED READING                                                 │
    │     └── _buffer holds partial data between recv() calls              │
    │                                                                      │
    │  2. TIMEOUT MANAGEMENT                                               │
    │     └── First request: timeout (30s by default)                      │
    │     └── Keep-alive: keep_alive_timeout (5s by default)               │
    │                                                                      │
    │  3. WRITING                                                          │
    │     └── send_response(): a complete byte string                      │
    │     └── send_stream(): a file object, chunk by chunk                 │
    │                                                                      │
    │  4. GRACEFUL CLOSE                                                   │
    │     └── shutdown(SHUT_WR), drain, close()                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique connection identifier (for logging).
        state: Current connection state.
        requests_handled: Number of requests read on this connection.
        bytes_sent: Total bytes written to the client so far.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0
    bytes_sent: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request from the socket.

        Returns:
            Complete request bytes, or None if the client closed the
            connection (or went idle on a keep-alive connection).

        Raises:
            TimeoutError: The first request never arrived in time.
            ValueError: The request exceeds max_request_size.
        """
        self.state = ConnectionState.READING

        # A client that already got a response should be quick about the next
        # one; otherwise we stop waiting.
        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None

                self._buffer += chunk
                if len(self._buffer) > self.max_request_size:
                    raise ValueError(f"Request too large: {len(self._buffer)} bytes")

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break

                self._buffer += chunk
                if len(self._buffer) > self.max_request_size:
                    raise ValueError(f"Request too large: {len(self._buffer)} bytes")

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            self.state = ConnectionState.PROCESSING
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            if not self.is_closed:
                self.socket.settimeout(self.timeout)

    def _recv(self) -> bytes:
        """recv() that maps an abrupt client disconnect to b''."""
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _parse_content_length(self, headers: bytes) -> int:
        """
        Pull Content-Length out of raw header bytes.

        Needed before the request can be parsed, so this is a plain
        line scan rather than a full header parse. Missing or garbled
        values count as 0; the parser reports them properly later.
        """
        try:
            header_str = headers.decode("utf-8", errors="replace").lower()
            for line in header_str.split("\r\n"):
                if line.startswith("content-length:"):
                    return max(0, int(line.split(":", 1)[1].strip()))
        except (ValueError, IndexError):
            pass
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send a complete byte string to the client.

        Returns:
            True if send succeeded, False if the connection is gone.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

        self.bytes_sent += len(data)
        return True

    def send_stream(
        self,
        source: BinaryIO,
        length: Optional[int] = None,
        chunk_size: int = 64 * 1024,
    ) -> bool:
        """
        Copy a binary file object to the client, one chunk at a time.

        At most one chunk is held in memory.

        Args:
            source: Open binary file positioned at the start of the body.
            length: Exact number of bytes promised in Content-Length.
                None streams until EOF.
            chunk_size: Bytes per read()/sendall() round.

        Returns:
            True if the whole body was sent. False if reading the file or
            writing the socket failed partway, or the file ended before
            `length` bytes; the caller must then close the connection
            because the body on the wire is truncated.
        """
        self.state = ConnectionState.WRITING
        streamed = 0

        try:
            while length is None or streamed < length:
                want = chunk_size if length is None else min(chunk_size, length - streamed)
                chunk = source.read(want)
                if not chunk:
                    break
                self.socket.sendall(chunk)
                streamed += len(chunk)
                self.bytes_sent += len(chunk)
        except OSError as e:
            logger.error(f"[{self.id}] Stream aborted after {streamed} bytes: {e}")
            return False

        if length is not None and streamed < length:
            logger.error(
                f"[{self.id}] File ended after {streamed} of {length} bytes"
            )
            return False

        logger.debug(f"[{self.id}] Streamed {streamed} bytes")
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR) sends FIN so the client sees end-of-stream
        2. drain whatever the client still had in flight
        3. close() releases the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed after {self.requests_handled} requests, "
            f"{self.bytes_sent} bytes sent"
        )

    def set_keep_alive(self):
        """Mark connection as waiting for the next request."""
        self.state = ConnectionState.KEEP_ALIVE

    def __enter__(self):
        """
        Allows `with conn:` so the socket is always released:

            with conn:
                data = conn.read_request()
                conn.send_response(response)
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
