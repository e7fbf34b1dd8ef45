"""
=============================================================================
MIDDLEWARE BASE CLASSES
=============================================================================

Middleware wraps the router so that cross-cutting work (access logging,
response compression) happens around every routed request without the
route handlers knowing about it.

=============================================================================
CHAIN OF RESPONSIBILITY
=============================================================================

    pipeline.add(LoggingMiddleware())       # first added = outermost
    pipeline.add(CompressionMiddleware())   # closest to the router

            ┌───────────────────────────────────────────────┐
            │  LoggingMiddleware                            │
            │  ┌─────────────────────────────────────────┐  │
            │  │  CompressionMiddleware                  │  │
            │  │  ┌───────────────────────────────────┐  │  │
            │  │  │         router.handle             │  │  │
            │  │  └───────────────────────────────────┘  │  │
            │  └─────────────────────────────────────────┘  │
            └───────────────────────────────────────────────┘

Request flows inward, response flows outward. With the order above the
access log records the size of the body actually sent (after gzip).

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware, or the router itself at the end of the chain.
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    =========================================================================
    THE MIDDLEWARE CONTRACT
    =========================================================================

        class MyMiddleware(Middleware):
            def __call__(self, request, next):
                # before the handler
                response = next(request)
                # after the handler
                return response

    Requests are immutable; middleware may only change the response.

    =========================================================================
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Process the request, normally by calling next(request)."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered list of middleware that can wrap a final handler.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware()).add(CompressionMiddleware())
        handler = pipeline.wrap(router.handle)
        response = handler(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append middleware (it will sit inside everything added before)."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the call chain around `handler`.

        Given [MW1, MW2] the result behaves like MW1(MW2(handler)). We wrap
        in reverse so the first-added middleware ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    @staticmethod
    def _create_wrapped_handler(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped
