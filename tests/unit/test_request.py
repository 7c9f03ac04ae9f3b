"""
Unit tests for HTTP request parsing.
"""

import pytest

from encodingserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/index.html"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.headers["host"] == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.accept_encoding == "gzip, deflate, br"
        assert request.is_keep_alive is True

    def test_accept_encoding_missing_is_none(self):
        request = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")

        assert request.accept_encoding is None

    def test_accept_encoding_value_kept_verbatim(self):
        raw = b"GET / HTTP/1.1\r\nACCEPT-ENCODING:   GZip;q=0.5 , BR  \r\n\r\n"
        request = parse_request(raw)

        assert request.accept_encoding == "GZip;q=0.5 , BR"

    def test_repeated_accept_encoding_headers_are_folded(self):
        raw = (
            b"GET / HTTP/1.1\r\n"
            b"Accept-Encoding: gzip\r\n"
            b"Accept-Encoding: br\r\n"
            b"\r\n"
        )
        request = parse_request(raw)

        assert request.accept_encoding == "gzip, br"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/submit"
        assert request.body == b"name=fox"
        assert request.is_keep_alive is False

    def test_query_string_is_dropped_from_path(self):
        request = parse_request(b"GET /a%20b?x=1 HTTP/1.1\r\n\r\n")

        assert request.path == "/a b"

    def test_parse_invalid_method(self):
        raw = b"INVALID /path HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 405

    def test_parse_invalid_request_line(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET\r\nHost: test\r\n\r\n")

        assert exc_info.value.status_code == 400

    def test_parse_unsupported_version(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET / HTTP/2.0\r\n\r\n")

        assert exc_info.value.status_code == 505

    def test_parse_missing_terminator(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_parse_missing_headers(self):
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/"
        assert len(request.headers) == 0

    def test_parse_request_too_large(self):
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_invalid_content_length(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: abc\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400
        assert exc_info.value.method == "POST"

    def test_short_body_error_carries_method(self):
        raw = b"PUT / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400
        assert exc_info.value.method == "PUT"

    def test_request_line_errors_carry_no_method(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET / HTTP/2.0\r\n\r\n")

        assert exc_info.value.method is None

    def test_http_version_keep_alive_defaults(self):
        request_10 = parse_request(b"GET / HTTP/1.0\r\nHost: test\r\n\r\n")
        assert request_10.version == "HTTP/1.0"
        assert request_10.is_keep_alive is False

        request_10_ka = parse_request(
            b"GET / HTTP/1.0\r\nConnection: Keep-Alive\r\n\r\n"
        )
        assert request_10_ka.is_keep_alive is True

        request_11 = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request_11.is_keep_alive is True

    def test_case_insensitive_headers(self):
        raw = b"GET / HTTP/1.1\r\nUSER-AGENT: curl/8.0\r\n\r\n"
        request = parse_request(raw)

        assert request.user_agent == "curl/8.0"
        assert request.get_header("User-Agent") == "curl/8.0"
        assert request.get_header("user-agent") == "curl/8.0"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_header_default(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_defaults(self):
        request = HTTPRequest(method="OPTIONS", path="*")

        assert request.version == "HTTP/1.1"
        assert request.body == b""
        assert request.accept_encoding is None
