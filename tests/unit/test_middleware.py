"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from encodingserver.http import HTTPRequest, HTTPResponse, HTTPStatus
from encodingserver.middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


ACCESS_LOGGER = "encodingserver.access"


def make_request(accept_encoding=None) -> HTTPRequest:
    headers = {"user-agent": "pytest"}
    if accept_encoding is not None:
        headers["accept-encoding"] = accept_encoding
    return HTTPRequest(
        method="GET",
        path="/",
        headers=headers,
        client_address=("10.0.0.7", 40000),
    )


def encoded_handler(request: HTTPRequest) -> HTTPResponse:
    return HTTPResponse(
        status=HTTPStatus.OK,
        headers={"Content-Encoding": "gzip"},
        body=b"x" * 42,
    )


class RecordingMiddleware(Middleware):
    def __init__(self, label, calls):
        self.label = label
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.label}:before")
        response = next(request)
        self.calls.append(f"{self.label}:after")
        return response


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline."""

    def test_first_added_is_outermost(self):
        calls = []
        pipeline = MiddlewarePipeline().use(
            RecordingMiddleware("a", calls),
            RecordingMiddleware("b", calls),
        )

        def handler(request):
            calls.append("handler")
            return HTTPResponse()

        pipeline.wrap(handler)(make_request())

        assert calls == ["a:before", "b:before", "handler", "b:after", "a:after"]

    def test_empty_pipeline_returns_handler(self):
        assert MiddlewarePipeline().wrap(encoded_handler) is encoded_handler

    def test_short_circuit(self):
        class Deny(Middleware):
            def __call__(self, request, next):
                return HTTPResponse(status=HTTPStatus.SERVICE_UNAVAILABLE)

        def handler(request):
            raise AssertionError("handler should not run")

        response = MiddlewarePipeline().add(Deny()).wrap(handler)(make_request())

        assert response.status == HTTPStatus.SERVICE_UNAVAILABLE


class TestLoggingMiddleware:
    """Tests for LoggingMiddleware."""

    def test_adds_request_id(self):
        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(encoded_handler)

        response = handler(make_request())

        assert len(response.headers["X-Request-ID"]) == 8

    def test_request_id_can_be_disabled(self):
        handler = (MiddlewarePipeline()
                   .add(LoggingMiddleware(include_request_id=False))
                   .wrap(encoded_handler))

        assert "X-Request-ID" not in handler(make_request()).headers

    def test_text_log_line(self, caplog):
        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(encoded_handler)

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            handler(make_request("gzip"))

        line = caplog.records[-1].getMessage()
        assert line.startswith("10.0.0.7 - - [")
        assert '"GET /" 200 42 gzip' in line

    def test_json_log_line(self, caplog):
        handler = (MiddlewarePipeline()
                   .add(LoggingMiddleware(log_format="json"))
                   .wrap(encoded_handler))

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            response = handler(make_request("gzip, br"))

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["request_id"] == response.headers["X-Request-ID"]
        assert entry["status_code"] == 200
        assert entry["accept_encoding"] == "gzip, br"
        assert entry["content_encoding"] == "gzip"
        assert entry["content_length"] == 42
        assert entry["user_agent"] == "pytest"

    def test_identity_and_missing_header(self, caplog):
        handler = (MiddlewarePipeline()
                   .add(LoggingMiddleware(log_format="json"))
                   .wrap(lambda request: HTTPResponse(body=b"plain")))

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            handler(make_request())

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["content_encoding"] == "identity"
        assert entry["accept_encoding"] == "-"

    def test_skip_paths(self, caplog):
        handler = (MiddlewarePipeline()
                   .add(LoggingMiddleware(skip_paths=["/"]))
                   .wrap(encoded_handler))

        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            handler(make_request())

        assert not [r for r in caplog.records if r.name == ACCESS_LOGGER]

    def test_handler_exception_is_logged_and_reraised(self, caplog):
        def failing(request):
            raise RuntimeError("disk on fire")

        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(failing)

        with caplog.at_level(logging.ERROR, logger=ACCESS_LOGGER):
            with pytest.raises(RuntimeError):
                handler(make_request())

        assert "RuntimeError: disk on fire" in caplog.text
