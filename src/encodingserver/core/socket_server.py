"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket: create, bind, listen, accept in a loop, and
hand every accepted client to a callback wrapped in a Connection.

=============================================================================
SOCKET LIFECYCLE (SERVER SIDE)
=============================================================================

    socket()  →  bind(host, port)  →  listen(backlog)  →  accept() ...
                                                              │
                      ┌───────────────────────────────────────┘
                      ▼
              new client socket ──► Connection ──► callback(conn)

The listening socket keeps listening after every accept(); each client
gets its own socket.

Binding to port 0 asks the OS for any free port. The port actually bound
is read back with getsockname() and exposed as `address`, which is how
tests start a server without guessing a free port.

=============================================================================
INTERRUPTIBLE ACCEPT
=============================================================================

accept() normally blocks forever, which would make shutdown impossible.
The listening socket gets a 1 second timeout instead:

    while running:
        try:
            accept()          # at most 1 second
        except timeout:
            continue          # re-check the running flag

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, systemd, kill) trigger a
graceful shutdown. Python only lets the main thread install signal
handlers, so when the server runs on a background thread (tests, embedding)
the handlers are simply not installed and shutdown() must be called.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(callback)                                                   │
    │        ├──► _create_socket()   SO_REUSEADDR, TCP_NODELAY, 1s timeout │
    │        ├──► bind() / listen()                                        │
    │        ├──► _setup_signals()   main thread only                      │
    │        ├──► _ready_event.set() address is now valid                  │
    │        └──► _accept_loop()     blocks until shutdown()               │
    │                                                                      │
    │    shutdown()                                                        │
    │        └──► _running = False                                        │
    │                                                                      │
    │    _cleanup()                                                        │
    │        └──► restore signal handlers, close socket                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None

        self._running = False
        self._ready_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The (host, port) the server listens on.

        After start() has bound the socket this is the real address,
        including the OS-assigned port when config.port was 0.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create the listening TCP socket with its options set."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting right after a shutdown must not hit TIME_WAIT.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Small response heads go out immediately.
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers that call shutdown().

        No-op off the main thread; signal.signal() would raise there.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept connections until shutdown() is called.

        Args:
            connection_handler: Called with every accepted Connection.
                The HTTP layer submits it to the thread pool.

        Raises:
            OSError: The address could not be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._setup_signals()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """Accept clients and pass them on until _running goes False."""
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()

                logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    buffer_size=self.config.buffer_size,
                    timeout=self.config.timeout,
                    keep_alive_timeout=self.config.keep_alive_timeout,
                    max_request_size=self.config.max_request_size,
                )

                connection_handler(conn)

            except socket.timeout:
                continue

            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

    def shutdown(self):
        """
        Ask the accept loop to stop.

        Safe to call from a signal handler, another thread, or repeatedly.
        The loop notices within one accept timeout.
        """
        if not self._running:
            return
        logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket is bound and listening.

        Returns:
            True once ready, False on timeout.
        """
        return self._ready_event.wait(timeout)
