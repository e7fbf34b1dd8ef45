"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them to wire bytes.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │    Version  Code Phrase                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Length: 3\r\n        ← always present               │ │
    │  │    Content-Type: text/plain\r\n ← only when the body is not    │ │
    │  │                                   empty                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    abc                                                          │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    HTTPResponse.new(200, b"abc")       Content-Length / Content-Type set
            │
            ▼
    .set_header("Content-Type", ...)    handlers may override defaults
            │
            ▼
    .compress("gzip, br")               body swapped for gzip bytes,
            │                           Content-Encoding + Content-Length
            ▼                           updated
    .to_bytes()                         wire format, written with sendall()

Headers keep insertion order, so the wire output is deterministic. HTTP
gives header order no meaning, and tests compare header mappings rather
than exact byte sequences.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Union

from .compression import negotiate
from .status_codes import HTTPStatus, InvalidStatusError
from .request import TEXT_ENCODING, TEXT_ERRORS


HTTP_VERSION = "HTTP/1.1"

DEFAULT_CONTENT_TYPE = "text/plain"


def _to_bytes(body: Union[str, bytes, None]) -> bytes:
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode(TEXT_ENCODING, errors=TEXT_ERRORS)
    return bytes(body)


@dataclass
class HTTPResponse:
    """
    An HTTP response under construction.

    Prefer HTTPResponse.new() (or the helpers at the bottom of this module),
    which fill in the default headers. The plain constructor only validates
    the status code.

    Raises:
        InvalidStatusError: If `status` is not an HTTPStatus code.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = HTTP_VERSION

    def __post_init__(self):
        if not isinstance(self.status, HTTPStatus):
            if not isinstance(self.status, int):
                raise InvalidStatusError(self.status)
            self.status = HTTPStatus.from_code(self.status)
        self.body = _to_bytes(self.body)

    @classmethod
    def new(cls, status: Union[HTTPStatus, int], body: Union[str, bytes, None] = b"") -> "HTTPResponse":
        """
        Build a response with the default headers.

            Content-Length  always, from len(body)
            Content-Type    text/plain, only if the body is not empty

        Args:
            status: An HTTPStatus member or its numeric code.
            body: Response body; str is UTF-8 encoded.
        """
        response = cls(status=status, body=_to_bytes(body))
        response.headers["Content-Length"] = str(len(response.body))
        if response.body:
            response.headers["Content-Type"] = DEFAULT_CONTENT_TYPE
        return response

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 404 Not Found"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """
        Set (or override) a header.

        Returns self for chaining:
            response.set_header("A", "1").set_header("B", "2")
        """
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Replace the body and recompute Content-Length."""
        self.body = _to_bytes(body)
        self.headers["Content-Length"] = str(len(self.body))
        return self

    def compress(self, accept_encoding: str) -> "HTTPResponse":
        """
        Apply the first supported encoding the client accepts.

        =====================================================================
        NEGOTIATION
        =====================================================================

        `accept_encoding` is the raw header value. Tokens are tried in the
        order the client listed them; the first supported one whose encoder
        succeeds is applied:

            body              → encoded bytes
            Content-Encoding  → the token
            Content-Length    → encoded length

        If nothing matches, the response is left exactly as it was.

        =====================================================================
        """
        result = negotiate(accept_encoding or "", self.body)
        if result is None:
            return self

        token, encoded = result
        self.body = encoded
        self.headers["Content-Encoding"] = token
        self.headers["Content-Length"] = str(len(encoded))
        return self

    def to_bytes(self) -> bytes:
        """
        Serialize for socket.sendall().

            HTTP/1.1 200 OK\\r\\n
            Content-Length: 3\\r\\n
            Content-Type: text/plain\\r\\n
            \\r\\n
            abc
        """
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        # Blank line separates the head from the body
        lines.append("")

        head = "\r\n".join(lines).encode(TEXT_ENCODING, errors=TEXT_ERRORS) + b"\r\n"
        return head + self.body


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
#     return ok("pong")
#     return not_found()
#     return bad_request(str(error))
#
# =============================================================================

def ok(body: Union[str, bytes] = b"") -> HTTPResponse:
    """200 OK."""
    return HTTPResponse.new(HTTPStatus.OK, body)


def created(body: Union[str, bytes] = b"") -> HTTPResponse:
    """201 Created. Returned after a file has been written."""
    return HTTPResponse.new(HTTPStatus.CREATED, body)


def no_content() -> HTTPResponse:
    """204 No Content."""
    return HTTPResponse.new(HTTPStatus.NO_CONTENT)


def bad_request(message: Union[str, bytes] = b"") -> HTTPResponse:
    """400 Bad Request, with the error text (if any) as a plain body."""
    return HTTPResponse.new(HTTPStatus.BAD_REQUEST, message)


def not_found(message: Union[str, bytes] = b"") -> HTTPResponse:
    """404 Not Found. The routes use an empty body."""
    return HTTPResponse.new(HTTPStatus.NOT_FOUND, message)


def conflict(message: Union[str, bytes] = b"") -> HTTPResponse:
    """409 Conflict."""
    return HTTPResponse.new(HTTPStatus.CONFLICT, message)


def internal_error(message: Union[str, bytes] = b"") -> HTTPResponse:
    """500 Internal Server Error, with the error description as body."""
    return HTTPResponse.new(HTTPStatus.INTERNAL_SERVER_ERROR, message)
