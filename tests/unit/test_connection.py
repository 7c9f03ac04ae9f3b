"""
Unit tests for Connection reading and streaming.
"""

import io
import socket

import pytest

from encodingserver.core import Connection, ConnectionState


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    server_side.close()
    client_side.close()


def make_connection(sock, **kwargs) -> Connection:
    kwargs.setdefault("timeout", 2.0)
    return Connection(socket=sock, address=("127.0.0.1", 54321), **kwargs)


def read_exactly(sock, n: int) -> bytes:
    data = b""
    while len(data) < n:
        chunk = sock.recv(n - len(data))
        if not chunk:
            break
        data += chunk
    return data


class FailingReader(io.RawIOBase):
    """File object whose second read() fails."""

    def __init__(self):
        self.reads = 0

    def readable(self):
        return True

    def read(self, size=-1):
        self.reads += 1
        if self.reads > 1:
            raise OSError("I/O error")
        return b"a" * size


class TestReadRequest:
    """Tests for Connection.read_request()."""

    def test_reads_one_request(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        client_side.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        assert conn.read_request() == b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"
        assert conn.requests_handled == 1
        assert conn.state == ConnectionState.PROCESSING

    def test_pipelined_requests_are_split(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        first = b"GET /a HTTP/1.1\r\n\r\n"
        second = b"GET /b HTTP/1.1\r\n\r\n"
        client_side.sendall(first + second)

        assert conn.read_request() == first
        assert conn.read_request() == second

    def test_reads_body_by_content_length(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        raw = b"POST / HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"
        client_side.sendall(raw)

        assert conn.read_request() == raw

    def test_client_close_returns_none(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        client_side.shutdown(socket.SHUT_WR)

        assert conn.read_request() is None

    def test_first_request_timeout_raises(self, socket_pair):
        server_side, _ = socket_pair
        conn = make_connection(server_side, timeout=0.1)

        with pytest.raises(TimeoutError):
            conn.read_request()

    def test_keep_alive_idle_returns_none(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side, keep_alive_timeout=0.1)
        client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")
        conn.read_request()

        assert conn.read_request() is None

    def test_too_large(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side, max_request_size=64)
        client_side.sendall(b"GET / HTTP/1.1\r\nX-Big: " + b"a" * 200)

        with pytest.raises(ValueError):
            conn.read_request()


class TestSendStream:
    """Tests for Connection.send_stream()."""

    def test_streams_whole_file_in_chunks(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        payload = bytes(range(256)) * 40

        assert conn.send_stream(io.BytesIO(payload), length=len(payload), chunk_size=1000)
        assert read_exactly(client_side, len(payload)) == payload
        assert conn.bytes_sent == len(payload)

    def test_stops_at_length(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        assert conn.send_stream(io.BytesIO(b"0123456789"), length=4, chunk_size=3)
        assert conn.bytes_sent == 4
        assert read_exactly(client_side, 4) == b"0123"

    def test_stream_to_eof_without_length(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        assert conn.send_stream(io.BytesIO(b"abc"), chunk_size=2)
        assert read_exactly(client_side, 3) == b"abc"

    def test_short_file_reports_failure(self, socket_pair):
        server_side, _ = socket_pair
        conn = make_connection(server_side)

        assert conn.send_stream(io.BytesIO(b"abc"), length=10) is False
        assert conn.bytes_sent == 3

    def test_read_error_reports_failure(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        assert conn.send_stream(FailingReader(), length=100, chunk_size=10) is False
        assert conn.bytes_sent == 10

    def test_closed_peer_reports_failure(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        client_side.close()

        payload = io.BytesIO(b"x" * (4 * 1024 * 1024))
        assert conn.send_stream(payload, chunk_size=64 * 1024) is False


class TestClose:
    """Tests for Connection.close()."""

    def test_close_is_idempotent(self, socket_pair):
        server_side, _ = socket_pair
        conn = make_connection(server_side)

        conn.close()
        conn.close()

        assert conn.is_closed

    def test_context_manager_closes(self, socket_pair):
        server_side, client_side = socket_pair

        with make_connection(server_side) as conn:
            conn.send_response(b"bye")

        assert conn.is_closed
        assert client_side.recv(16) == b"bye"
