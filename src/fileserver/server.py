"""
=============================================================================
FILE SERVER
=============================================================================

The main server class that ties all components together.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           FileServer                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   SocketServer ── accept() ──► Connection                           │
    │                                    │                                │
    │                                    ▼                                │
    │                         threading.Thread (one per connection)       │
    │                                    │                                │
    │                                    ▼                                │
    │                         RequestProcessor.process()                  │
    │                            │              │                         │
    │                            ▼              ▼                         │
    │                 MediaTypeRegistry    MethodHandlers                 │
    │                 (shared, swapped     (GET/HEAD/PUT/                 │
    │                  on reload)           POST/DELETE)                  │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Every connection gets its own thread, answers one request and closes.
The only state shared between threads is the read-only configuration and
the MIME type table, which is replaced (never modified) on reload.

=============================================================================
"""

import logging
import threading
from typing import Optional

from .access_log import AccessLogger
from .config import ServerConfig
from .core import Connection, SocketServer
from .http.mime_types import MediaTypeRegistry
from .processor import RequestProcessor


logger = logging.getLogger(__name__)


class FileServer:
    """
    HTTP file server.

    Usage:
        config = ServerConfig(content_base="./public", port=8080)
        server = FileServer(config)
        server.run()  # Blocks until Ctrl+C / SIGTERM
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize the file server.

        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self.media_types = MediaTypeRegistry()
        self._load_media_types()

        self._socket_server = SocketServer(
            self.config,
            reload_handler=self.reload_media_types,
        )
        self._processor = RequestProcessor(
            self.config,
            self.media_types,
            access_logger=AccessLogger(self.config.log_format),
        )

        self._workers: set[threading.Thread] = set()
        self._workers_lock = threading.Lock()

    @property
    def ready(self) -> threading.Event:
        """Set once the server is accepting connections."""
        return self._socket_server.ready

    @property
    def bound_address(self):
        return self._socket_server.bound_address

    # =========================================================================
    # MIME TYPES
    # =========================================================================

    def _load_media_types(self) -> None:
        path = self.config.mime_types_path
        if path is None:
            self.media_types.load_bundled()
        elif self.media_types.load(path) is None:
            logger.warning("Serving with an empty MIME type table")

    def reload_media_types(self) -> Optional[int]:
        """
        Re-read the MIME type table.

        Requests in flight keep the table they started with.

        Returns:
            Entries read, or None if the file could not be read (the
            current table stays in place).
        """
        path = self.config.mime_types_path
        if path is None:
            return self.media_types.load_bundled()
        return self.media_types.load(path)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        This method blocks until shutdown() is called or the process
        receives SIGINT/SIGTERM.
        """
        if setup_logging:
            self._setup_logging()

        logger.info(
            f"Starting {self.config.server_name} on "
            f"{self.config.host}:{self.config.port}, serving {self.config.content_base}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._wait_for_workers()

    def shutdown(self):
        """Stop accepting connections. run() returns once workers finish."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        if self.config.debug:
            level = logging.DEBUG
        else:
            level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("fileserver").setLevel(level)

    def _wait_for_workers(self, timeout: float = 30.0):
        with self._workers_lock:
            workers = list(self._workers)
        if workers:
            logger.info(f"Waiting for {len(workers)} connection(s) to finish...")
        for worker in workers:
            worker.join(timeout)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Start a worker thread for a new connection."""
        worker = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        with self._workers_lock:
            self._workers.add(worker)
        worker.start()

    def _process_connection(self, conn: Connection):
        """Answer one request on a connection (runs in its worker thread)."""
        try:
            with conn:  # Context manager ensures connection is closed
                self._processor.process(
                    conn.rfile,
                    conn.wfile,
                    client_address=conn.address,
                    connection_id=conn.id,
                )
        except Exception as e:
            logger.exception(f"[{conn.id}] Connection error: {e}")
        finally:
            with self._workers_lock:
                self._workers.discard(threading.current_thread())
