"""
=============================================================================
MIDDLEWARE
=============================================================================

    base.py      Middleware ABC and MiddlewarePipeline
    logging.py   Access log with request id, served coding and size

    pipeline = MiddlewarePipeline()
    pipeline.add(LoggingMiddleware(log_format="text"))
    handler = pipeline.wrap(negotiator.handle)

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
]
