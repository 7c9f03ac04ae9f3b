"""
pytest configuration and fixtures.
"""

import threading
from pathlib import Path
from typing import Callable, Generator, Iterable

import pytest

from encodingserver import EncodingServer, ServerConfig
from encodingserver.encoding import GenerationReport, generate
from encodingserver.middleware import Middleware


SAMPLE_HTML = (
    b"<!DOCTYPE html>\n<html>\n<head><title>Encoding test</title></head>\n<body>\n"
    + b"<p>The quick brown fox jumps over the lazy dog.</p>\n" * 200
    + b"</body>\n</html>\n"
)


@pytest.fixture
def sample_get_request() -> bytes:
    """GET request that accepts every supported encoding."""
    return (
        b"GET /index.html?v=2 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept-Encoding: gzip, deflate, br\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """POST request with a small body."""
    body = b"name=fox"
    return (
        b"POST /submit HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """An HTML asset in a temporary directory."""
    path = tmp_path / "test.html"
    path.write_bytes(SAMPLE_HTML)
    return path


@pytest.fixture
def generated(source_file: Path) -> GenerationReport:
    """source_file plus its .br/.gz/.zz variants."""
    return generate(source_file)


@pytest.fixture
def config(source_file: Path) -> ServerConfig:
    """Test server configuration bound to an OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        source_path=str(source_file),
        log_level="WARNING",
    )


class TestServer:
    """Runs an EncodingServer in a background thread."""

    def __init__(self, server: EncodingServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def host(self) -> str:
        return self.server.address[0]

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def server_factory() -> Generator[Callable[..., TestServer], None, None]:
    """
    Start servers with custom config or middleware; all are stopped after
    the test.

        srv = server_factory(config, middleware=[MyMiddleware()])
    """
    started = []

    def start(config: ServerConfig, middleware: Iterable[Middleware] = ()) -> TestServer:
        server = EncodingServer(config)
        for mw in middleware:
            server.use(mw)
        test_srv = TestServer(server)
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield start

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def test_server(config: ServerConfig, server_factory) -> TestServer:
    """A running server with freshly generated variants."""
    return server_factory(config)
