"""
=============================================================================
MIDDLEWARE
=============================================================================

LoggingMiddleware:
    One access-log line per request (text or JSON).

CompressionMiddleware:
    Gzip-encodes responses when the client's Accept-Encoding allows it.

Both are installed by create_app(); order matters (logging outermost).

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware
from .compression import CompressionMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "CompressionMiddleware",
]
