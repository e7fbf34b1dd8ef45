"""
=============================================================================
RAWHTTPD - Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

A small HTTP/1.1 server written directly against the socket API, with no
HTTP library underneath. It serves one request per connection, one thread
per connection.

=============================================================================
ENDPOINTS
=============================================================================

    GET   /                 200, empty body
    ANY   /echo/{text}      200, body = text
    GET   /user-agent       200, body = User-Agent header
    GET   /files/{name}     200 + file bytes, or 404
    POST  /files/{name}     201, body stored as the file
    (anything else)         404

Responses are gzip-compressed when the client's Accept-Encoding lists gzip.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    rawhttpd/
    ├── __init__.py          ← You are here
    ├── __main__.py          CLI (python -m rawhttpd)
    ├── config.py            ServerConfig
    ├── server.py            HTTPServer, create_app()
    │
    ├── core/
    │   ├── socket_server.py Listening socket, accept loop, signals
    │   └── connection.py    One client socket
    │
    ├── http/
    │   ├── request.py       RequestParser, HTTPRequest
    │   ├── response.py      HTTPResponse
    │   ├── compression.py   Accept-Encoding negotiation
    │   ├── router.py        Route table
    │   └── status_codes.py  HTTPStatus
    │
    ├── middleware/
    │   ├── base.py          Middleware, MiddlewarePipeline
    │   ├── logging.py       Access log
    │   └── compression.py   Applies compression to routed responses
    │
    └── handlers/
        ├── basic.py         index, echo, user_agent
        └── files.py         FileStore, FileHandlers

=============================================================================
QUICK START
=============================================================================

    from rawhttpd import ServerConfig, create_app

    app = create_app(ServerConfig(port=8080, directory="/srv/files"))
    app.run()

=============================================================================
"""

__version__ = "1.0.0"
__author__ = "rawhttpd contributors"

from .server import HTTPServer, create_app
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
