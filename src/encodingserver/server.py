"""
=============================================================================
ENCODING SERVER
=============================================================================

Ties the pieces together: generate the encoded variants, then serve them.

=============================================================================
STARTUP
=============================================================================

    EncodingServer.run()
        │
        ├──► _setup_logging()
        ├──► generate(source)             test.html → .br / .gz / .zz
        │       └── SourceAssetError aborts startup here
        ├──► handler = middleware.wrap(negotiator.handle)
        ├──► thread pool start
        └──► SocketServer.start()         blocks until shutdown

Generation finishes before the socket is bound, so no client can ever
observe a half-written variant.

=============================================================================
ONE REQUEST
=============================================================================

    worker thread
        │
        ├──► conn.read_request()           raw bytes
        ├──► RequestParser.parse()         HTTPRequest
        ├──► handler(request)              HTTPResponse (maybe file-backed)
        │
        └──► _send_response()
                in-memory body: send head + body in one go
                file body:      open() ─fails─► 500 instead
                                send head
                                send_stream(file) ─fails─► close connection

Once the head of a 200 is sent the status is committed; a read or write
error while streaming can only be logged, and the connection is closed
so the client sees a short body rather than a mangled next response.

=============================================================================
"""

import logging
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .encoding.generator import GenerationReport, generate
from .handlers.negotiated import NegotiatingFileHandler
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, error_response, internal_error,
)
from .middleware import MiddlewarePipeline, Middleware, LoggingMiddleware


logger = logging.getLogger(__name__)


class EncodingServer:
    """
    HTTP/1.1 server that serves one asset in its best negotiated encoding.

    =========================================================================
    USAGE
    =========================================================================

        server = EncodingServer(ServerConfig(source_path="test.html"))
        server.run()                    # blocks; Ctrl+C to stop

    From another thread (tests, embedding):

        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready(5)
        host, port = server.address
        ...
        server.stop()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults are used if omitted.

        Raises:
            ValueError: The configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self.negotiator = NegotiatingFileHandler(
            source_path=self.config.source,
            priority=self.config.encoding_priority,
            content_type=self.config.content_type,
        )

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))

        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False
        self.generation_report: Optional[GenerationReport] = None

    def use(self, middleware: Middleware) -> "EncodingServer":
        """Add middleware inside the access logger; returns self for chaining."""
        self._middleware.add(middleware)
        return self

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    def generate_variants(self) -> GenerationReport:
        """
        Write the encoded variants of the configured source.

        Raises:
            SourceAssetError: The source file cannot be read.
        """
        self.generation_report = generate(
            self.config.source,
            levels=self.config.compression_levels,
            encodings=self.config.encoding_priority,
        )
        return self.generation_report

    def run(self):
        """
        Generate the variants, then serve until stopped (blocking).

        Raises:
            SourceAssetError: The source file cannot be read.
            OSError: The listening socket cannot be bound.
        """
        self._setup_logging()

        if self.config.generate_on_start:
            self.generate_variants()

        self._handler = self._middleware.wrap(self.negotiator.handle)
        self._running = True
        self._thread_pool.start()

        host, port = self.config.host, self.config.port
        logger.info(f"Starting encoding server on {host}:{port} for {self.config.source}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Ask a running server to shut down; run() returns shortly after."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening; False on timeout."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("encodingserver").setLevel(level)

    def _shutdown(self):
        """Stop the workers after the accept loop has ended."""
        logger.info("Shutting down server...")
        self._running = False
        stats = self._thread_pool.stats
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout or 30.0)
        logger.info(
            f"Server stopped ({stats['tasks']['completed']} connections served, "
            f"{stats['tasks']['failed']} failed)"
        )

    # =========================================================================
    # CONNECTION HANDLING (worker threads)
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Queue a connection for a worker; 503 if the queue is full."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            block=False,
        )

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE)
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Keep-alive loop for one connection.

        read → parse → handler → send, repeated while both sides want
        keep-alive and every response went out complete.
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    try:
                        request = self._parser.parse(raw_request, conn.address)
                    except HTTPParseError as e:
                        logger.info(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                        status = HTTPStatus(e.status_code)
                        # A method we never serve is a 405 however broken its body is.
                        if (e.method is not None
                                and e.method not in self.negotiator.ALLOWED_METHODS):
                            status = HTTPStatus.METHOD_NOT_ALLOWED
                        self._send_error(conn, status)
                        break

                    try:
                        response = self._handler(request)
                    except Exception as e:
                        logger.exception(f"[{conn.id}] Handler error: {e}")
                        response = internal_error(e)

                    keep_alive = request.is_keep_alive and self.config.keep_alive
                    if not self._send_response(conn, response, keep_alive):
                        break

                    if not keep_alive:
                        break

                    conn.set_keep_alive()

                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT)
                    break

                except ValueError as e:
                    logger.warning(f"[{conn.id}] {e}")
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE)
                    break

                except Exception as e:
                    logger.exception(f"[{conn.id}] Connection error: {e}")
                    break

    def _send_response(
        self,
        conn: Connection,
        response: HTTPResponse,
        keep_alive: bool,
    ) -> bool:
        """
        Write one response, streaming the file body if there is one.

        Returns:
            True if the connection is still usable for another request.
        """
        if not response.is_file:
            self._set_connection_headers(response, keep_alive)
            return conn.send_response(response.to_bytes(self.config.server_name))

        try:
            body = open(response.file_path, "rb")
        except OSError as e:
            logger.error(f"[{conn.id}] Internal error opening {response.file_path}: {e}")
            fallback = internal_error(e)
            self._set_connection_headers(fallback, keep_alive)
            return conn.send_response(fallback.to_bytes(self.config.server_name))

        with body:
            self._set_connection_headers(response, keep_alive)
            if not conn.send_response(response.head_bytes(self.config.server_name)):
                return False

            if not conn.send_stream(
                body,
                length=response.content_length,
                chunk_size=self.config.chunk_size,
            ):
                logger.error(
                    f"[{conn.id}] Response body for {response.file_path} truncated, "
                    f"closing connection"
                )
                return False

        return True

    def _set_connection_headers(self, response: HTTPResponse, keep_alive: bool):
        if keep_alive:
            response.headers.setdefault("Connection", "keep-alive")
            response.headers.setdefault(
                "Keep-Alive",
                f"timeout={int(self.config.keep_alive_timeout)}"
            )
        else:
            response.headers["Connection"] = "close"

    def _send_error(self, conn: Connection, status: HTTPStatus):
        """
        Send a plain-text error for failures before the handler ran
        (parse errors, timeouts, overload). The connection closes after.
        """
        response = error_response(status)
        response.set_header("Connection", "close")
        if status == HTTPStatus.METHOD_NOT_ALLOWED:
            response.set_header("Allow", ", ".join(self.negotiator.ALLOWED_METHODS))
        conn.send_response(response.to_bytes(self.config.server_name))


def create_app(config: Optional[ServerConfig] = None) -> EncodingServer:
    """
    Factory for EncodingServer instances.

        app = create_app(ServerConfig(port=3000, source_path="index.html"))
        app.run()
    """
    return EncodingServer(config)
