"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes of a single HTTP/1.1 request into an HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │    GET /files/report.txt?v=2 HTTP/1.1\r\n                      │ │
    │  │    ─┬─ ─────────┬──────────  ────┬───                          │ │
    │  │   Method     Target           Version                          │ │
    │  │                 │                                              │ │
    │  │       ┌─────────┴─────────┐                                    │ │
    │  │     Path              Query string                             │ │
    │  │  /files/report.txt       v=2                                   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Host: localhost\r\n             → request.host              │ │
    │  │    User-Agent: curl/8.5.0\r\n      → request.headers[...]      │ │
    │  │    Accept-Encoding: gzip\r\n                                   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    hello                                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THREE INDEPENDENT PASSES
=============================================================================

The parser does not walk the message once from top to bottom. It makes
three separate passes over the same buffer, each one looking for one
thing:

    1. ADDRESS LINE   first CRLF-delimited line → method, path, query, version
    2. HEADERS        every CRLF-delimited line with exactly one ':'
    3. BODY           the segment between the first and second CRLF CRLF

Consequences worth knowing:

    - Header names are matched case-sensitively ("Host", not "host").
    - A header whose value contains a ':' (e.g. "Host: localhost:4221")
      has two colons and is skipped.
    - Content-Length is never consulted; the body is whatever arrived.
    - A body that itself contains CRLF CRLF is cut at that point.

=============================================================================
SINGLE BOUNDED READ
=============================================================================

read() performs exactly ONE recv() of at most `buffer_size` bytes (1024 by
default). A request that does not fit is truncated: the head and body are
parsed from whatever fit in the buffer. This is a known limitation, not a
feature. There is no loop that reassembles a request split across TCP
segments.

=============================================================================
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple


DEFAULT_BUFFER_SIZE = 1024

# Text decoding keeps undecodable bytes as lone surrogates so that they can
# be re-encoded byte-for-byte (the echo route depends on this).
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


class HTTPParseError(Exception):
    """
    Raised when a request cannot be read or parsed.

    The message is written verbatim as the body of the 400 response, so it
    should read well on its own:

        invalid request, missing method, path and version
        EOF
        [Errno 104] Connection reset by peer
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request. Immutable once built.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:          Request method token ("GET", "POST", ...)
        path:            Target up to the first '?', NOT percent-decoded
        version:         Protocol token ("HTTP/1.1")
        host:            Value of the Host header ("" if absent)
        headers:         Every other header, name → value, last one wins
        query:           key → value for each well-formed key=value pair
        body:            Raw bytes of the second CRLFCRLF segment (b"" if none)
        client_address:  Peer (ip, port), used for logging
        raw:             The bytes the request was parsed from

    The mappings are exposed read-only so route handlers cannot modify the
    request they were given.

    =========================================================================
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    host: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    client_address: Tuple[str, int] = ("", 0)
    raw: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        # frozen dataclass: bypass __setattr__ to swap in read-only views
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "query", MappingProxyType(dict(self.query)))

    def get_header(self, name: str, default: str = "") -> str:
        """Header value by exact (case-sensitive) name."""
        return self.headers.get(name, default)

    @property
    def user_agent(self) -> str:
        """The User-Agent header, or "" when the client sent none."""
        return self.get_header("User-Agent")

    @property
    def accept_encoding(self) -> str:
        """The raw Accept-Encoding header, or ""."""
        return self.get_header("Accept-Encoding")


class RequestParser:
    """
    Reads and parses one HTTP request.

    =========================================================================
    USAGE
    =========================================================================

        parser = RequestParser()

        # From anything with a recv(n) method (a socket, a Connection)
        request = parser.read(conn, conn.address)

        # From bytes you already have
        request = parser.parse(b"GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")

    =========================================================================
    """

    INVALID_REQUEST_LINE = "invalid request, missing method, path and version"

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """
        Args:
            buffer_size: Maximum number of bytes taken from the socket.
                         Anything beyond this is left unread.
        """
        self.buffer_size = buffer_size

    def read(self, source, client_address: Tuple[str, int] = ("", 0)) -> HTTPRequest:
        """
        Read a request from `source` with a single recv() and parse it.

        Args:
            source: Object with a recv(bufsize) -> bytes method.
            client_address: Peer address, carried into the request.

        Raises:
            HTTPParseError: On an I/O error, an empty read, or a malformed
                            request line.
        """
        try:
            data = source.recv(self.buffer_size)
        except OSError as e:
            raise HTTPParseError(str(e) or type(e).__name__) from e

        if not data:
            # Peer closed before sending anything
            raise HTTPParseError("EOF")

        return self.parse(data, client_address)

    def parse(self, data: bytes, client_address: Tuple[str, int] = ("", 0)) -> HTTPRequest:
        """
        Parse a buffer holding one request.

        Raises:
            HTTPParseError: If the request line is not exactly three
                            non-empty space-separated tokens.
        """
        text = data.decode(TEXT_ENCODING, errors=TEXT_ERRORS)

        # ─────────────────────────────────────────────────────────────────
        # PASS 1: ADDRESS LINE
        # ─────────────────────────────────────────────────────────────────
        method, path, query, version = self._parse_request_line(text)

        # ─────────────────────────────────────────────────────────────────
        # PASS 2: HEADERS
        # ─────────────────────────────────────────────────────────────────
        host, headers = self._parse_headers(text)

        # ─────────────────────────────────────────────────────────────────
        # PASS 3: BODY
        # ─────────────────────────────────────────────────────────────────
        body = self._parse_body(data)

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            host=host,
            headers=headers,
            query=query,
            body=body,
            client_address=client_address,
            raw=data,
        )

    def _parse_request_line(self, text: str) -> Tuple[str, str, dict, str]:
        """
        Split the first line into method, target and version.

            "GET /echo/abc?x=1&y=2 HTTP/1.1"
              │      │               │
              │      ├── path  "/echo/abc"
              │      └── query {"x": "1", "y": "2"}
              method          version
        """
        first_line = text.split("\r\n", 1)[0]
        tokens = first_line.split(" ")
        if len(tokens) != 3:
            raise HTTPParseError(self.INVALID_REQUEST_LINE)

        method, target, version = tokens
        path, _, query_string = target.partition("?")

        # Doubled spaces or a target of just "?..." leave an empty token
        if not method or not path or not version:
            raise HTTPParseError(self.INVALID_REQUEST_LINE)

        return method, path, self._parse_query(query_string), version

    @staticmethod
    def _parse_query(query_string: str) -> dict:
        """
        Parse "a=1&b=2" into {"a": "1", "b": "2"}.

        A pair is kept only when splitting it on '=' yields exactly two
        parts, so "flag" and "a=b=c" are dropped without error. Values are
        not percent-decoded.
        """
        query = {}
        if not query_string:
            return query

        for pair in query_string.split("&"):
            parts = pair.split("=")
            if len(parts) == 2:
                query[parts[0]] = parts[1]
        return query

    @staticmethod
    def _parse_headers(text: str) -> Tuple[str, dict]:
        """
        Collect "Name: Value" lines from the whole buffer.

        Returns:
            (host, headers) where headers excludes Host.
        """
        host = ""
        headers = {}

        for line in text.split("\r\n"):
            if not line:
                continue

            parts = line.split(":")
            if len(parts) != 2:
                continue

            name = parts[0].strip(" ")
            value = parts[1].strip(" ")

            if name == "Host":
                host = value
            else:
                headers[name] = value

        return host, headers

    @staticmethod
    def _parse_body(data: bytes) -> bytes:
        """The second CRLFCRLF-delimited segment, or b"" if there is none."""
        segments = data.split(b"\r\n\r\n")
        return segments[1] if len(segments) > 1 else b""


def parse_request(data: bytes, client_address: Tuple[str, int] = ("", 0)) -> HTTPRequest:
    """Parse `data` with a default RequestParser."""
    return RequestParser().parse(data, client_address)
