"""
=============================================================================
HANDLERS MODULE
=============================================================================

Route handlers. Every handler has the same shape:

    def handler(request: HTTPRequest, params: Dict[str, str]) -> HTTPResponse

where `params` holds the `:name` segments captured by the route pattern.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Handler                  │ Route                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │ index                    │ GET  /                                   │
    │ echo                     │ ANY  /echo/:text                         │
    │ user_agent               │ GET  /user-agent                         │
    │ FileHandlers.read_file   │ GET  /files/:name                        │
    │ FileHandlers.create_file │ POST /files/:name                        │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .basic import index, echo, user_agent
from .files import FileStore, FileHandlers

__all__ = [
    "index",
    "echo",
    "user_agent",
    "FileStore",
    "FileHandlers",
]
