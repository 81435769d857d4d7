"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps an accepted client socket with the buffered byte
streams the request pipeline reads from and writes to.

=============================================================================
WHY FILE OBJECTS
=============================================================================

TCP does NOT preserve message boundaries. A request line may arrive split
across several recv() calls, or glued to the headers and body that follow:

    Client sends:   "GET /a.txt HTTP/1.0\r\nHost: x\r\n\r\n"

    Server recv():  "GET /a.t"
    Server recv():  "xt HTTP/1.0\r\nHost: x\r\n\r\n"

Rather than reassembling chunks by hand, the connection exposes the socket
as two buffered file objects (socket.makefile):

    rfile.readline()      → one complete line, however it was fragmented
    rfile.read(n)         → up to n body bytes, never more
    wfile.write(data)     → buffered, sent on flush()

Because rfile.read(n) never over-reads, a PUT handler can copy exactly
Content-Length body bytes and leave anything after them untouched.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

The file server answers a single request and then closes:

    NEW ──────► PROCESSING ──────► CLOSING ──────► CLOSED
     │                                ▲
     └────────────────────────────────┘   (peer sent nothing)

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Optional


logger = logging.getLogger(__name__)


# Upper bounds on reading leftover input after the response
DRAIN_TIMEOUT = 2.0
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states."""

    NEW = "new"                  # Just accepted
    PROCESSING = "processing"    # Request being read and answered
    CLOSING = "closing"          # Shutdown sequence under way
    CLOSED = "closed"            # Socket released


@dataclass
class Connection:
    """
    One accepted client.

    Attributes:
        socket: Accepted socket.
        address: Peer (ip, port).
        id: Short random id that prefixes the connection's log lines.
        state: Where the connection is in its lifecycle.
        accepted_at: time.time() when accepted.
        timeout: Socket timeout in seconds, or None to block.
        buffer_size: Buffer size of rfile and wfile.
        rfile: Buffered reader over the socket.
        wfile: Buffered writer over the socket.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    accepted_at: float = field(default_factory=time.time)
    timeout: Optional[float] = None
    buffer_size: int = 8192

    rfile: BinaryIO = field(init=False, repr=False)
    wfile: BinaryIO = field(init=False, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)
        self.rfile = self.socket.makefile("rb", buffering=self.buffer_size)
        self.wfile = self.socket.makefile("wb", buffering=self.buffer_size)

    def close(self):
        """
        Flush, send FIN, drain and release the socket.

        Draining matters when the request body was never read (411, 405):
        closing a socket with unread input makes the kernel send RST, and
        the peer can lose the response it has not read yet.
        """
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING

        try:
            self.wfile.flush()
        except OSError as e:
            logger.debug(f"[{self.id}] Flush on close failed: {e}")

        for stream in (self.wfile, self.rfile):
            try:
                stream.close()
            except OSError as e:
                logger.debug(f"[{self.id}] Stream close failed: {e}")

        try:
            self.socket.shutdown(socket.SHUT_WR)
            self._drain()
        except OSError as e:
            # Includes socket.timeout and a peer that is already gone
            logger.debug(f"[{self.id}] Drain stopped: {e}")

        try:
            self.socket.close()
        except OSError as e:
            logger.debug(f"[{self.id}] Socket close failed: {e}")

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {time.time() - self.accepted_at:.3f}s")

    def _drain(self):
        """Read and discard input until EOF, DRAIN_LIMIT bytes or DRAIN_TIMEOUT."""
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0
        while drained < DRAIN_LIMIT:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.debug(f"[{self.id}] Drain timed out after {drained} bytes")
                return
            self.socket.settimeout(min(0.5, remaining))
            chunk = self.socket.recv(4096)
            if not chunk:
                return
            drained += len(chunk)
        logger.debug(f"[{self.id}] Drain stopped at {drained} bytes")

    def __enter__(self):
        self.state = ConnectionState.PROCESSING
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
