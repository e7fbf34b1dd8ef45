"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The protocol half of the server: bytes in, bytes out.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   raw bytes ──► RequestParser ──► HTTPRequest                        │
    │                                       │                              │
    │                                       ▼                              │
    │                                    Router ──► handler ──► HTTPResponse
    │                                                               │      │
    │                                                  compress() ◄─┘      │
    │                                                      │               │
    │                                                      ▼               │
    │                                                 to_bytes()           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    request.py       request parsing (three passes, single bounded read)
    response.py      response construction and serialization
    compression.py   Accept-Encoding negotiation (gzip)
    router.py        ordered route table with 404 fallback
    status_codes.py  the closed set of status codes

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ok,
    created,
    no_content,
    bad_request,
    not_found,
    conflict,
    internal_error,
)
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus, InvalidStatusError

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ok",
    "created",
    "no_content",
    "bad_request",
    "not_found",
    "conflict",
    "internal_error",

    # Routing
    "Router",
    "Route",
    "RouteMatch",

    # Status codes
    "HTTPStatus",
    "InvalidStatusError",
]
