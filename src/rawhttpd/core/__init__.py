"""
=============================================================================
CORE NETWORKING
=============================================================================

SocketServer:
    The listening socket and its stoppable accept loop.

Connection:
    One accepted client socket, used for exactly one request.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
]
