"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the server in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m rawhttpd --directory /srv/files                  │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── RAWHTTPD_PORT=8080 python -m rawhttpd                      │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout, accept_poll_interval

    FILE STORE
    - directory, reject_existing_files

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """The IP address to bind to. All interfaces by default."""

    port: int = 4221
    """
    The port number to listen on.
    0 asks the OS for a free ephemeral port (see SocketServer.address).
    """

    backlog: int = 128
    """Maximum number of queued connections before new ones are refused."""

    buffer_size: int = 1024
    """
    Size of the single recv() a request is parsed from.
    Anything a client sends beyond this is never read.
    """

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = blocking; a stalled client holds its thread until it disconnects.
    """

    accept_poll_interval: float = 1.0
    """
    How often (seconds) the accept loop wakes up to check for shutdown.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILE STORE
    # ─────────────────────────────────────────────────────────────────────

    directory: str = "tmp"
    """
    Root directory for /files/{name}. Relative to the working directory
    unless absolute. Created on the first upload if missing.
    """

    reject_existing_files: bool = False
    """
    POST /files/{name} answers 409 Conflict when the file already exists.
    Off by default: uploads silently overwrite.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        RAWHTTPD_HOST       Server host (default: 0.0.0.0)
        RAWHTTPD_PORT       Server port (default: 4221)
        RAWHTTPD_DIRECTORY  File store root (default: tmp)
        RAWHTTPD_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        defaults = cls()
        return cls(
            host=os.getenv("RAWHTTPD_HOST", defaults.host),
            port=int(os.getenv("RAWHTTPD_PORT", str(defaults.port))),
            directory=os.getenv("RAWHTTPD_DIRECTORY", defaults.directory),
            log_level=os.getenv("RAWHTTPD_LOG_LEVEL", defaults.log_level),
        )

    def validate(self) -> None:
        """
        Validate configuration values. Called once at startup.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.accept_poll_interval <= 0:
            raise ValueError("accept_poll_interval must be > 0")

        if not self.directory:
            raise ValueError("directory must not be empty")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
