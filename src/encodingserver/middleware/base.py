"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

Middleware wraps the negotiating handler to add cross-cutting behaviour
without touching it.

    Request  ──► LoggingMiddleware ──► NegotiatingFileHandler
    Response ◄── LoggingMiddleware ◄──┘

Each middleware gets the request plus `next`, the rest of the chain. It
may look at the request, call next(request), look at or amend the
response, and return it. Not calling next() short-circuits the chain.

File-backed responses pass through middleware as HTTPResponse objects
like any other; the body is only streamed after the whole chain has
returned, so middleware never touches file contents.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class MyMiddleware(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Processed-By", "MyMiddleware")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming HTTP request
            next: The next handler in the chain

        Returns:
            HTTP response (either from next() or short-circuited)
        """

    @property
    def name(self) -> str:
        """Middleware name for logging."""
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler, like layers of an onion.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())      # first added = outermost
        handler = pipeline.wrap(negotiator.handle)
        response = handler(request)

    The request flows inward in the order middleware was added; the
    response flows back out in reverse.
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append middleware (innermost so far); returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Add several middleware at once."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around `handler`.

        Given [MW1, MW2] the result calls MW1 → MW2 → handler. Middleware is
        wrapped in reverse so the first one added ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return wrapped
