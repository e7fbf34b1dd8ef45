"""
=============================================================================
CONTENT ENCODINGS
=============================================================================

Registry of the body encodings the server can apply, keyed by the token a
client sends in Accept-Encoding.

=============================================================================
CONTENT NEGOTIATION
=============================================================================

    Request:   Accept-Encoding: br, gzip, deflate
                                 │    │     │
                                 │    │     └── never tried
                                 │    └── supported → used
                                 └── unsupported → skipped

    Response:  Content-Encoding: gzip
               Content-Length: <compressed size>

Tokens are tried in the order the CLIENT listed them; the first one with a
working encoder wins. Quality values (";q=0.5") are not interpreted, so a
token carrying one never matches. Only gzip is registered.

=============================================================================
"""

import gzip
import zlib
import logging
from typing import Callable, Dict, Iterator, Optional, Tuple


logger = logging.getLogger(__name__)

Encoder = Callable[[bytes], bytes]

GZIP = "gzip"

ENCODERS: Dict[str, Encoder] = {
    GZIP: gzip.compress,
}

# What a broken encoder may raise; treated as "encoding unavailable".
ENCODER_ERRORS = (OSError, zlib.error, ValueError)


def parse_accept_encoding(header: str) -> Iterator[str]:
    """
    Yield the non-empty, whitespace-trimmed tokens of an Accept-Encoding
    value, in client order.

        >>> list(parse_accept_encoding(" gzip , ,br"))
        ['gzip', 'br']
    """
    for token in header.split(","):
        token = token.strip()
        if token:
            yield token


def negotiate(
    header: str,
    body: bytes,
    encoders: Optional[Dict[str, Encoder]] = None,
) -> Optional[Tuple[str, bytes]]:
    """
    Encode `body` with the first acceptable encoding.

    Args:
        header: Accept-Encoding header value ("" if absent).
        body: Uncompressed response body.
        encoders: Registry to use (defaults to ENCODERS).

    Returns:
        (token, encoded_body), or None if no listed token could be used.
    """
    encoders = ENCODERS if encoders is None else encoders

    for token in parse_accept_encoding(header):
        encoder = encoders.get(token)
        if encoder is None:
            continue

        try:
            return token, encoder(body)
        except ENCODER_ERRORS as e:
            logger.debug(f"Encoder {token!r} failed, trying next token: {e}")
            continue

    return None
