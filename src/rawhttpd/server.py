"""
=============================================================================
MAIN HTTP SERVER
=============================================================================

Ties the pieces together: the socket server accepts, a new thread per
connection reads and parses one request, the middleware-wrapped router
produces a response, the response is written and the connection closed.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP SERVER ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        │  (Orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            │                    │                    │              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │RequestParser │    │    Router    │        │
    │    │ (Networking) │    │  (Parsing)   │    │ (Dispatching)│        │
    │    └──────┬───────┘    └──────────────┘    └──────┬───────┘        │
    │           │                                       │                 │
    │           ▼                                       ▼                 │
    │    ┌──────────────┐                        ┌──────────────┐        │
    │    │  Connection  │                        │   Handlers   │        │
    │    │ (one thread) │                        │ (files, echo)│        │
    │    └──────────────┘                        └──────────────┘        │
    │                                                                      │
    │           ┌─────────────────────────────────────────┐               │
    │           │         Middleware Pipeline             │               │
    │           │   Logging → Compression → Router        │               │
    │           └─────────────────────────────────────────┘               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    accept() ──► Thread(_process_connection) ──► recv() once
                                                    │
                                    ┌───────────────┴───────────────┐
                                    │ HTTPParseError                │ HTTPRequest
                                    ▼                               ▼
                            400 + error text          Logging → Compression → Router
                                    │                               │
                                    └───────────────┬───────────────┘
                                                    ▼
                                               sendall()
                                                    │
                                                    ▼
                                                 close()

=============================================================================
"""

import logging
import threading
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core.connection import Connection, ConnectionState
from .core.socket_server import SocketServer
from .handlers.basic import index, echo, user_agent
from .handlers.files import FileStore, FileHandlers
from .http.request import HTTPRequest, HTTPParseError, RequestParser
from .http.response import HTTPResponse, internal_error
from .http.router import Router
from .http.status_codes import HTTPStatus, InvalidStatusError
from .middleware.base import Middleware, MiddlewarePipeline
from .middleware.compression import CompressionMiddleware
from .middleware.logging import LoggingMiddleware


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    HTTP server: one thread and one request per connection.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(port=8080))

        server.router.add_route("/", index, method="GET")
        server.run()  # Blocks until SIGINT/SIGTERM or shutdown()

    create_app() builds a server with the standard routes and middleware.

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser(buffer_size=self.config.buffer_size)
        self._router = Router()
        self._middleware = MiddlewarePipeline()

        # middleware.wrap(router.handle), built in run()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

        self._active_connections = 0
        self._active_lock = threading.Lock()

        # Set by a connection thread when a handler returns an unknown status
        self._fatal_error: Optional[InvalidStatusError] = None

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """
        Add middleware. The first one added is the outermost.

            server.use(LoggingMiddleware()).use(CompressionMiddleware())
        """
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening, even with port 0."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    @property
    def active_connections(self) -> int:
        """Connections currently being served."""
        with self._active_lock:
            return self._active_connections

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Returns after shutdown() or SIGINT/SIGTERM. Connections already
        accepted keep running on their own threads.

        Raises:
            OSError: If the listening address cannot be bound.
            InvalidStatusError: If a handler produced an unknown status
                                code; the server stops accepting first.
        """
        self._setup_logging()
        self._handler = self._middleware.wrap(self._router.handle)

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        logger.info(f"Serving files from {self.config.directory}")
        for line in self._router.describe():
            logger.debug(f"Route: {line}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

        if self._fatal_error is not None:
            raise self._fatal_error

    def shutdown(self):
        """Stop accepting connections. Safe to call from any thread."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("rawhttpd").setLevel(level)

    def _shutdown(self):
        self._socket_server.shutdown()

        active = self.active_connections
        if active:
            # Connection threads are not daemons, so the interpreter waits
            # for them before exiting.
            logger.info(f"Waiting for {active} in-flight connection(s)")

        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one request through middleware and router.

        Unexpected handler errors become 500 responses carrying the error
        text. InvalidStatusError is a programming error and is re-raised.
        """
        handler = self._handler or self._middleware.wrap(self._router.handle)

        try:
            return handler(request)
        except InvalidStatusError:
            raise
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.path}: {e}")
            return internal_error(str(e))

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread; gives the connection its own thread."""
        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"rawhttpd-conn-{conn.id}",
        )
        thread.start()

    def _process_connection(self, conn: Connection):
        """
        Serve exactly one request, then close. Runs on its own thread.

        =====================================================================
        CONNECTION PROCESSING
        =====================================================================

        1. Read and parse (single recv)
        2. Parse failure → 400 with the error text
        3. Otherwise → middleware + router
        4. Send the response
        5. Close

        =====================================================================
        """
        with self._active_lock:
            self._active_connections += 1

        try:
            with conn:
                try:
                    request = self._parser.read(conn, conn.address)
                except HTTPParseError as e:
                    logger.warning(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                    self._send_error(conn, e.status_code, str(e))
                    return

                conn.state = ConnectionState.PROCESSING

                try:
                    response = self.handle_request(request)
                except InvalidStatusError as e:
                    logger.critical(f"[{conn.id}] {e}; stopping server")
                    self._fatal_error = e
                    self.shutdown()
                    raise

                conn.send_response(response.to_bytes())
        finally:
            with self._active_lock:
                self._active_connections -= 1

    def _send_error(self, conn: Connection, status: int, message: str):
        """
        Send an error response for a request that never reached the router.

        No compression here: without a parsed request there is no
        Accept-Encoding to honour.
        """
        response = HTTPResponse.new(HTTPStatus.from_code(status), message)
        conn.send_response(response.to_bytes())


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Create the server with its standard route table and middleware.

    =========================================================================
    ROUTE TABLE (first match wins)
    =========================================================================

        GET   /                 index
        ANY   /echo/:text       echo
        GET   /user-agent       user_agent
        GET   /files/:name      read_file
        POST  /files/:name      create_file
        (no match)              404

    =========================================================================
    """
    server = HTTPServer(config)
    config = server.config

    server.use(LoggingMiddleware(log_format=config.log_format))
    server.use(CompressionMiddleware())

    files = FileHandlers(
        FileStore(config.directory),
        reject_existing=config.reject_existing_files,
    )

    router = server.router
    router.add_route("/", index, method="GET")
    router.add_route("/echo/:text", echo)
    router.add_route("/user-agent", user_agent, method="GET")
    router.add_route("/files/:name", files.read_file, method="GET")
    router.add_route("/files/:name", files.create_file, method="POST")

    return server


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Accept: SocketServer, stoppable by signal or shutdown()
# 2. Per connection: one thread, one recv, one response, close
# 3. Dispatch: Logging → Compression → Router → handler
# 4. Errors: parse → 400, handler crash → 500, bad status → fatal
#
# KEY DESIGN DECISIONS:
# - Thread per connection (no pool, no async)
# - No keep-alive
# - Graceful shutdown only stops accepting; in-flight work completes
# =============================================================================
