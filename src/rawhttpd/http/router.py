"""
=============================================================================
URL ROUTER
=============================================================================

An ordered chain of route matchers. The first route whose method and path
pattern both match handles the request; if none does, the router answers
404 with an empty body.

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /files/notes.txt                                               │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  1. GET  /               ✗ path                             │   │
    │   │  2. *    /echo/:text     ✗ path                             │   │
    │   │  3. GET  /user-agent     ✗ path                             │   │
    │   │  4. GET  /files/:name    ✓ → read_file(request,             │   │
    │   │                               {"name": "notes.txt"})        │   │
    │   │  5. POST /files/:name    (not tried)                        │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   no match at all → 404, empty body                                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ROUTE PATTERNS
=============================================================================

    Pattern:  /files/:name
                       │
                       ▼
    Regex:    ^/files/(?P<name>[^/]+)$

    - Static segments match exactly (re.escape'd).
    - ":param" captures one non-empty segment (no slashes).
    - The path is matched as received: no decoding, no trailing-slash
      normalization. "/echo/abc/" does NOT match "/echo/:text".

The table is built once at startup and only read while serving, so
concurrent lookups need no locking.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List
import re

from .request import HTTPRequest
from .response import HTTPResponse, not_found


# Handler: receives the request and the captured path parameters
Handler = Callable[[HTTPRequest, Dict[str, str]], HTTPResponse]


@dataclass
class Route:
    """
    One entry of the routing table: a predicate (method + pattern) and the
    handler to call when it matches.
    """

    path: str                        # URL pattern (e.g. /files/:name)
    method: Optional[str]            # HTTP method (None = any method)
    handler: Handler

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)

    def matches(self, request: HTTPRequest) -> Optional[Dict[str, str]]:
        """
        Check this route against a request.

        Returns:
            The captured params when both method and path match and every
            capture is non-empty, otherwise None.
        """
        if self.method and self.method != request.method:
            return None

        match = self._pattern.match(request.path)
        if match is None:
            return None

        params = match.groupdict()
        if not all(params.values()):
            return None

        return params


@dataclass
class RouteMatch:
    """A route together with the params it captured."""

    route: Route
    params: Dict[str, str]


class Router:
    """
    Ordered route table with a 404 fallback.

    ==========================================================================
    USAGE
    ==========================================================================

        router = Router()

        router.add_route("/", index, method="GET")
        router.add_route("/echo/:text", echo)     # any method

        response = router.handle(request)

    Registration order IS priority order.

    ==========================================================================
    """

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
    ) -> Route:
        """
        Append a route to the end of the table.

        Args:
            path: URL pattern (e.g. /files/:name)
            handler: Called as handler(request, params)
            method: Exact method token to require, or None for any
        """
        pattern = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            _pattern=pattern,
        )

        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> re.Pattern:
        """
        Compile a path pattern into an anchored regex.

            "/files/:name"  →  ^/files/(?P<name>[^/]+)$
            "/"             →  ^/$
        """
        regex_parts = ["^"]

        for segment in path.split("/")[1:]:
            regex_parts.append("/")

            if segment.startswith(":"):
                param_name = segment[1:]
                regex_parts.append(f"(?P<{param_name}>[^/]+)")
            else:
                regex_parts.append(re.escape(segment))

        regex_parts.append("$")
        return re.compile("".join(regex_parts))

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, request: HTTPRequest) -> Optional[RouteMatch]:
        """
        Find the first route that accepts the request.

        Returns:
            RouteMatch, or None when no route applies.
        """
        for route in self._routes:
            params = route.matches(request)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        Returns:
            The matched handler's response, or 404 with an empty body.
        """
        match = self.match(request)
        if match is None:
            return not_found()
        return match.route.handler(request, match.params)

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def routes(self) -> List[Route]:
        """All routes, in priority order."""
        return list(self._routes)

    def describe(self) -> List[str]:
        """
        One line per route, for startup logging:

            GET      /
            ANY      /echo/:text
        """
        return [f"{route.method or 'ANY':8} {route.path}" for route in self._routes]
