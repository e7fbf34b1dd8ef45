"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The closed set of status codes this server can emit.

=============================================================================
WHY A CLOSED SET?
=============================================================================

Every response the router produces comes from a small, known list of
outcomes. Keeping the enum closed means a typo like `HTTPStatus(420)` fails
loudly at construction time instead of putting a made-up status line on
the wire:

    ┌────────┬──────────────────────────────────────────────────────────┐
    │  Code  │  Where it comes from                                     │
    ├────────┼──────────────────────────────────────────────────────────┤
    │  200   │ index, echo, user-agent, file read                       │
    │  201   │ file create                                              │
    │  204   │ reserved for empty success responses                     │
    │  400   │ parse errors, mkdir/write failures, POST onto a directory│
    │  404   │ missing file, directory read, no route matched           │
    │  409   │ file create with existing-file rejection enabled         │
    │  500   │ unexpected stat/read errors, handler crashes             │
    └────────┴──────────────────────────────────────────────────────────┘

An unknown code is a PROGRAMMING error, never a client error, so it is
reported with InvalidStatusError and never turned into a response.

=============================================================================
"""

from enum import IntEnum


class InvalidStatusError(ValueError):
    """
    Raised when a response is built with a status code outside HTTPStatus.

    This can only happen through a bug in a handler. The server lets it
    propagate instead of answering 500, so the bug is visible.
    """

    def __init__(self, code: int):
        super().__init__(f"invalid status code: {code}")
        self.code = code


class HTTPStatus(IntEnum):
    """
    HTTP status codes supported by the server.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    NOT_FOUND = 404
    CONFLICT = 409

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500

    @classmethod
    def from_code(cls, code: int) -> "HTTPStatus":
        """
        Look up a status by its numeric code.

        Raises:
            InvalidStatusError: If the code is not one of the members.
        """
        try:
            return cls(code)
        except ValueError:
            raise InvalidStatusError(code) from None

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES[self]

    @property
    def is_error(self) -> bool:
        """4xx or 5xx. Used by the access log to pick a log level."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.CONFLICT: "Conflict",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
