"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration management for the file server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m fileserver --port 3000                           │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── FILESERVER_PORT=3000 python -m fileserver                  │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The configuration is read once at startup and never changes while the
server runs. Worker threads share it read-only.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .access_log import LOG_FORMATS


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    CONTENT
    - content_base, mime_types_path

    HTTP SETTINGS
    - server_name, server_protocol, buffer_size, max_line_length,
      max_headers

    LOGGING
    - debug, log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """
    The port number to listen on. 0 asks the OS for a free port.
    """

    backlog: int = 128
    """
    Maximum number of queued connections.
    """

    timeout: Optional[float] = None
    """
    Socket timeout in seconds for accepted connections.
    None = blocking (a silent client holds its worker thread until it
    disconnects).
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    content_base: str = "content"
    """
    Directory that request URIs are resolved against.
    "/docs/a.txt" → "<content_base>/docs/a.txt"
    """

    mime_types_path: Optional[str] = None
    """
    Path of a mime.types file. None uses the table bundled with the package.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "FileServer/1.0"
    """
    Value of the Server response header.
    """

    server_protocol: str = "HTTP/1.1"
    """
    Protocol string written at the start of every status line.
    """

    buffer_size: int = 8192
    """
    Chunk size in bytes for copying file and request bodies.
    """

    max_line_length: int = 8192
    """
    Longest request line or header line accepted, in bytes.
    """

    max_headers: int = 100
    """
    Capacity of each request and response header store.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    debug: bool = False
    """
    Trace request and response heads at DEBUG level. Forces log_level
    to DEBUG.
    """

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    log_format: str = "text"
    """
    Access log format: 'text' (Apache-style) or 'json'.
    """

    @property
    def content_base_path(self) -> str:
        """Content base without a trailing "/" (unless it is the root)."""
        base = self.content_base
        if len(base) > 1:
            base = base.rstrip("/") or "/"
        return base

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILESERVER_HOST          Server host (default: 127.0.0.1)
        FILESERVER_PORT          Server port (default: 8080)
        FILESERVER_CONTENT_BASE  Content directory (default: content)
        FILESERVER_SERVER_NAME   Server header (default: FileServer/1.0)
        FILESERVER_PROTOCOL      Status line protocol (default: HTTP/1.1)
        FILESERVER_DEBUG         Trace heads when 1/true/yes/on
        FILESERVER_MIME_TYPES    Path of a mime.types file
        FILESERVER_TIMEOUT       Connection timeout in seconds
        FILESERVER_LOG_LEVEL     Logging level (default: INFO)

        =====================================================================
        USAGE
        =====================================================================

        # From shell:
        FILESERVER_PORT=3000 FILESERVER_DEBUG=1 python -m fileserver

        # In code:
        config = ServerConfig.from_env()
        server = FileServer(config)

        =====================================================================
        """
        defaults = cls()
        return cls(
            host=os.getenv("FILESERVER_HOST", defaults.host),
            port=int(os.getenv("FILESERVER_PORT", str(defaults.port))),
            content_base=os.getenv("FILESERVER_CONTENT_BASE", defaults.content_base),
            server_name=os.getenv("FILESERVER_SERVER_NAME", defaults.server_name),
            server_protocol=os.getenv("FILESERVER_PROTOCOL", defaults.server_protocol),
            debug=_env_bool("FILESERVER_DEBUG", defaults.debug),
            mime_types_path=os.getenv("FILESERVER_MIME_TYPES") or None,
            timeout=_env_float("FILESERVER_TIMEOUT"),
            log_level=os.getenv("FILESERVER_LOG_LEVEL", defaults.log_level),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_line_length < 1:
            raise ValueError("max_line_length must be >= 1")

        if self.max_headers < 1:
            raise ValueError("max_headers must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if not self.server_protocol.startswith("HTTP/"):
            raise ValueError(f"Invalid protocol: {self.server_protocol!r}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level!r}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log format: {self.log_format!r}")

        if not os.path.isdir(self.content_base):
            raise ValueError(f"Content base is not a directory: {self.content_base!r}")
