"""
=============================================================================
SOCKET SERVER
=============================================================================

The TCP layer of the file server: creates the listening socket, accepts
clients and hands each one to a callback as a Connection.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    socket() ──► setsockopt() ──► bind() ──► listen() ──► accept() loop
                                                              │
                                              ┌───────────────┘
                                              ▼
                                   Connection(client_socket)
                                              │
                                              ▼
                                   connection_handler(conn)

The listening socket has a 1-second timeout so the accept loop can notice
shutdown() promptly instead of blocking in accept() forever.

=============================================================================
SIGNALS
=============================================================================

    SIGTERM, SIGINT   → graceful shutdown
    SIGHUP            → reload handler (when one is given), e.g. re-read
                        the MIME type table

Python only allows signal handlers to be installed from the main thread.
A server started on any other thread (tests, embedding) skips them.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Listening socket plus accept loop.

    Usage:
        server = SocketServer(config, reload_handler=registry_reload)
        server.start(on_connection)  # returns after shutdown()
    """

    def __init__(
        self,
        config: ServerConfig,
        reload_handler: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            config: Supplies host, port, backlog and per-connection settings.
            reload_handler: Called on SIGHUP, if given.

        No socket exists until start() is called.
        """
        self.config = config
        self.reload_handler = reload_handler

        self._listener: Optional[socket.socket] = None
        self._accepting = False
        self._bound_address: Optional[Tuple[str, int]] = None
        self._previous_handlers: dict = {}

        # Set once the socket is listening; tests wait on it
        self.ready = threading.Event()

    @property
    def bound_address(self) -> Optional[Tuple[str, int]]:
        """The address actually bound, with the real port if 0 was asked for."""
        return self._bound_address

    def _open_listener(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.config.host else socket.AF_INET
        listener = socket.socket(family, socket.SOCK_STREAM)

        # Rebind right away while an old socket sits in TIME_WAIT
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Status line and headers are small writes; don't hold them back
        listener.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # Bounded accept() so the loop can see shutdown()
        listener.settimeout(1.0)

        return listener

    def _install_signal_handlers(self):
        """
        SIGTERM/SIGINT stop the server; SIGHUP runs the reload handler.

        Only possible on the main thread.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return

        def on_stop(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, stopping")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._previous_handlers[sig] = signal.signal(sig, on_stop)

        if self.reload_handler is not None and hasattr(signal, "SIGHUP"):
            def on_reload(signum, frame):
                logger.info("Received SIGHUP, reloading")
                self.reload_handler()

            self._previous_handlers[signal.SIGHUP] = signal.signal(signal.SIGHUP, on_reload)

    def _restore_signal_handlers(self):
        while self._previous_handlers:
            sig, handler = self._previous_handlers.popitem()
            signal.signal(sig, handler)

    def start(self, on_connection: Callable[[Connection], None]):
        """
        Bind, listen and hand every accepted client to `on_connection`.

        Blocks until shutdown() is called.

        Raises:
            OSError: If the address cannot be bound.
        """
        listener = self._open_listener()
        try:
            listener.bind((self.config.host, self.config.port))
            listener.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Cannot listen on {self.config.host}:{self.config.port}: {e}")
            listener.close()
            raise

        self._listener = listener
        self._bound_address = listener.getsockname()[:2]
        self._accepting = True
        self._install_signal_handlers()

        host, port = self._bound_address
        logger.info(f"Listening on {host}:{port}")
        self.ready.set()

        try:
            self._serve(on_connection)
        finally:
            self._close_listener()

    def _serve(self, on_connection: Callable[[Connection], None]):
        while self._accepting:
            try:
                client, peer = self._listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._accepting:
                    logger.error(f"accept() failed: {e}")
                break

            logger.debug(f"Accepted {peer[0]}:{peer[1]}")
            try:
                conn = Connection(
                    socket=client,
                    address=peer,
                    timeout=self.config.timeout,
                    buffer_size=self.config.buffer_size,
                )
            except OSError as e:
                logger.warning(f"Cannot set up connection from {peer[0]}: {e}")
                client.close()
                continue

            on_connection(conn)

    def shutdown(self):
        """
        Stop the accept loop within about a second.

        Safe from a signal handler, from another thread, and more than once.
        """
        logger.info("Stopping listener")
        self._accepting = False

    def _close_listener(self):
        self._restore_signal_handlers()

        if self._listener is not None:
            try:
                self._listener.close()
            except OSError as e:
                logger.debug(f"Listener close failed: {e}")
            self._listener = None

        self.ready.clear()
        logger.info("Listener closed")
