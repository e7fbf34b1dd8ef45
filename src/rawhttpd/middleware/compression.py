"""
=============================================================================
COMPRESSION MIDDLEWARE
=============================================================================

Applies the Compression Stage to every routed response, driven by the
request's Accept-Encoding header.

=============================================================================
WHAT GETS COMPRESSED
=============================================================================

Everything the router returns, whatever its size or Content-Type, as long
as the client listed a supported encoding:

    Accept-Encoding: gzip             → gzip
    Accept-Encoding: br, gzip         → gzip (br unsupported, skipped)
    Accept-Encoding: identity         → untouched
    (no header)                       → untouched

An empty body still compresses (to the ~20-byte gzip frame), which keeps
the negotiation rule simple: supported token listed ⇒ encoded response.

The negotiation itself lives in HTTPResponse.compress(); this class only
decides WHEN to call it.

=============================================================================
"""

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


class CompressionMiddleware(Middleware):
    """
    Compress routed responses according to Accept-Encoding.

    Should be the LAST middleware added (closest to the router), so that
    outer middleware observes the final, encoded response.
    """

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)

        # Already encoded by a handler: never double-compress
        if "Content-Encoding" in response.headers:
            return response

        return response.compress(request.accept_encoding)
