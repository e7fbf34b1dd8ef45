"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the duration of a single
request/response exchange.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

There is no keep-alive. Every connection goes through exactly one cycle:

    ┌─────┐  recv()  ┌─────────┐  handler  ┌────────────┐ sendall() ┌─────────┐
    │ NEW │ ───────► │ READING │ ────────► │ PROCESSING │ ────────► │ WRITING │
    └─────┘          └─────────┘           └────────────┘           └────┬────┘
                                                                         │
                                            ┌────────┐   close()         │
                                            │ CLOSED │ ◄─────────────────┘
                                            └────────┘

The read is a single recv() (see RequestParser.read), so Connection does
not buffer or reassemble anything. It only adds:

    - an id for correlating log lines
    - state tracking
    - a send that reports failure instead of raising
    - a TCP-friendly close

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)

# Upper bounds on discarding unread request bytes in close()
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"                # Just accepted
    READING = "reading"        # Waiting on recv()
    PROCESSING = "processing"  # Request parsed, handler is executing
    WRITING = "writing"        # Sending response bytes
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used as a log prefix.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        timeout: Socket timeout in seconds, None for blocking.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = None

    def __post_init__(self):
        # Accepted sockets inherit the listener's poll timeout on some
        # platforms; reset to blocking (or the configured timeout).
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def recv(self, bufsize: int) -> bytes:
        """
        One recv() on the underlying socket.

        This is what RequestParser.read() calls. Errors propagate so the
        parser can turn them into a 400.
        """
        self.state = ConnectionState.READING
        return self.socket.recv(bufsize)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        Uses sendall() so a large body is never cut short by a partial
        send().

        Returns:
            True if the send succeeded, False if the peer went away.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    TCP Close Sequence                            │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   1. shutdown(SHUT_WR)   send FIN, client sees end of response  │
        │   2. drain               discard unread request bytes, so the   │
        │                          kernel does not answer with RST        │
        │                          (at most DRAIN_LIMIT bytes and         │
        │                          DRAIN_TIMEOUT seconds)                 │
        │   3. close()             release the file descriptor            │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Requests longer than the read buffer leave bytes unread; without
        step 2 the client could lose the response to a reset.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.2f}ms")

    def _drain(self):
        """Read and discard what the client still sends, within the drain limits."""
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0

        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # socket.timeout is an OSError

        if drained:
            logger.debug(f"[{self.id}] Discarded {drained} unread bytes")

    def __enter__(self):
        """
        Close automatically when leaving a `with` block:

            with conn:
                request = parser.read(conn, conn.address)
                conn.send_response(response.to_bytes())
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
