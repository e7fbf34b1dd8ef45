"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket: create, bind, listen, accept, close. Each
accepted client socket is wrapped in a Connection and handed to a callback;
what happens next (threads, HTTP) is the caller's business.

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    │                       │     Bound to 0.0.0.0:4221
                    └───────────┬───────────┘
                                │ accept()
            ┌───────────────────┼───────────────────┐
            ▼                   ▼                   ▼
    ┌───────────────┐   ┌───────────────┐   ┌───────────────┐
    │  Connection   │   │  Connection   │   │  Connection   │
    │  (client A)   │   │  (client B)   │   │  (client C)   │
    └───────────────┘   └───────────────┘   └───────────────┘

=============================================================================
STOPPING AN ACCEPT LOOP
=============================================================================

accept() blocks. To make the loop stoppable, the listening socket gets a
short timeout (config.accept_poll_interval): accept() returns
socket.timeout every interval, the loop re-checks its running flag and
carries on. shutdown() only flips that flag, so it is safe to call from a
signal handler or any thread.

    Ctrl+C / SIGTERM → shutdown() → loop exits within one interval
                                   → listening socket closed
                                   → in-flight connections keep running

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(callback)                                                   │
    │        ├──► _create_socket()   socket() + SO_REUSEADDR + poll timeout│
    │        ├──► bind()             OSError is logged and re-raised       │
    │        ├──► listen()                                                 │
    │        ├──► _setup_signals()   main thread only                      │
    │        └──► _accept_loop()     blocks until shutdown()               │
    │                                                                      │
    │    shutdown()                  _running = False                      │
    │    _cleanup()                  restore signals, close socket         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._running = False

        # Set once listen() succeeds, cleared on cleanup
        self._ready_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound, once listening.

        With port 0 the OS picks the port; this reports the real one.
        Before start() it falls back to the configured address.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Allow an immediate restart while old connections sit in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # accept() returns every interval so the loop can notice shutdown
        sock.settimeout(self.config.accept_poll_interval)

        return sock

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers that trigger a graceful shutdown.

        Python only allows signal handlers in the main thread. When the
        server runs anywhere else (embedded, or in tests) stopping it is
        left to whoever calls shutdown().
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept connections until shutdown() is called.

        Args:
            connection_handler: Called with each new Connection, on the
                                accept thread. It must not block for long;
                                the HTTP server hands the connection to a
                                new thread and returns.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._setup_signals()
        self._ready_event.set()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept until shutdown.

            while running:
                accept()          ← returns a new socket per client
                Connection(...)   ← wrap it
                callback(conn)    ← hand off

        An accept error other than the poll timeout ends the loop. It is
        logged unless shutdown had already been requested.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.timeout,
            )
            connection_handler(conn)

    def shutdown(self):
        """
        Stop accepting new connections.

        Idempotent and safe from a signal handler or another thread.
        Connections already accepted are not interrupted.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the server is listening.

        Returns:
            True once listening, False on timeout.
        """
        return self._ready_event.wait(timeout)
