"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

    python -m rawhttpd                          # 0.0.0.0:4221, files in ./tmp
    python -m rawhttpd --directory /srv/files   # custom file root
    rawhttpd --port 8080 --log-format json      # console script

Settings come from, in order of precedence: flags, RAWHTTPD_* environment
variables, ServerConfig defaults.

Exit status is 1 when the server cannot start (address in use, invalid
setting) or stops on a fatal error (a handler produced an unknown status).

=============================================================================
"""

import argparse
import sys
from dataclasses import replace

from . import __version__
from .config import LOG_FORMATS, ServerConfig
from .server import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rawhttpd",
        description="Minimal HTTP/1.1 server on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rawhttpd                          # Run with defaults
  python -m rawhttpd --directory /tmp/files   # Serve /files/* from here
  python -m rawhttpd --port 0                 # Any free port
  python -m rawhttpd --reject-existing        # 409 instead of overwrite
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 4221)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILE STORE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        default=None,
        help="Root directory for /files/{name} (default: tmp)"
    )

    parser.add_argument(
        "--reject-existing",
        action="store_true",
        help="Answer 409 Conflict when uploading over an existing file"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"rawhttpd {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Layer the flags that were given over the environment config."""
    config = ServerConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "directory": args.directory,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})

    if args.reject_existing:
        config.reject_existing_files = True

    return config


def main(argv=None):
    """
    Main CLI entry point.

    Blocks until SIGINT/SIGTERM. Exits with status 1 if the server cannot
    be configured, cannot bind its address, or stopped because a handler
    produced an unknown status code.
    """
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = create_app(config)
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
