"""
Stateless route handlers: index, echo and user-agent.

All three answer 200 with a text/plain body (or no body at all).
"""

from typing import Dict

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok


def index(request: HTTPRequest, params: Dict[str, str]) -> HTTPResponse:
    """GET / → 200, empty body. Works as a liveness check."""
    return ok()


def echo(request: HTTPRequest, params: Dict[str, str]) -> HTTPResponse:
    """
    /echo/{text} → 200 with {text} as the body.

    The text is returned exactly as it appeared in the path: no
    percent-decoding, and the original bytes are preserved even when they
    are not valid UTF-8.
    """
    return ok(params["text"])


def user_agent(request: HTTPRequest, params: Dict[str, str]) -> HTTPResponse:
    """GET /user-agent → 200 with the User-Agent header (empty if absent)."""
    return ok(request.user_agent)
