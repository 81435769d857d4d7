"""
=============================================================================
FILE SERVER CLI ENTRY POINT
=============================================================================

This module provides the command-line interface for running the server.

=============================================================================
USAGE
=============================================================================

    # Serve ./content on localhost:8080
    python -m fileserver

    # Serve another directory on another port
    python -m fileserver --content-base ./public --port 3000

    # Listen on all interfaces (for containers)
    python -m fileserver --host 0.0.0.0

    # Use the system MIME table and trace every request
    python -m fileserver --mime-types /etc/mime.types --debug

Every option also has an environment variable (see ServerConfig.from_env);
command-line arguments win.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig
from .server import FileServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Build the argument parser, with defaults taken from `defaults`."""
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="HTTP/1.x file server: GET, HEAD, PUT, POST and DELETE on a directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m fileserver                          # Serve ./content on :8080
  python -m fileserver -c ./public -p 3000      # Custom directory and port
  python -m fileserver --host 0.0.0.0           # Listen on all interfaces
  python -m fileserver -m /etc/mime.types -d    # System MIME table, debug
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on, 0 for any free port (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.timeout,
        help="Socket timeout in seconds for client connections (default: none)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--content-base", "-c",
        default=defaults.content_base,
        help=f"Directory to serve (default: {defaults.content_base})"
    )

    parser.add_argument(
        "--mime-types", "-m",
        default=defaults.mime_types_path,
        help="mime.types file (default: the table bundled with fileserver)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # HTTP ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--server-name",
        default=defaults.server_name,
        help=f"Server header value (default: {defaults.server_name})"
    )

    parser.add_argument(
        "--protocol",
        default=defaults.server_protocol,
        help=f"Protocol in status lines (default: {defaults.server_protocol})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        default=defaults.debug,
        help="Log request and response heads (implies --log-level DEBUG)"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"fileserver {__version__}"
    )

    return parser


def parse_config(argv: Optional[Sequence[str]] = None) -> ServerConfig:
    """Translate environment and command-line arguments into a ServerConfig."""
    args = build_parser(ServerConfig.from_env()).parse_args(argv)

    return ServerConfig(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        content_base=args.content_base,
        mime_types_path=args.mime_types,
        server_name=args.server_name,
        server_protocol=args.protocol,
        debug=args.debug,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    try:
        config = parse_config(argv)
        server = FileServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
