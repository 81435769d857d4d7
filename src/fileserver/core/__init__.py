"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The low-level networking infrastructure of the file server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                               │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates the main TCP listening socket                            │
    │  • Binds to IP:PORT and listens for connections                     │
    │  • Runs the accept() loop                                           │
    │  • Handles shutdown and reload signals (SIGTERM, SIGINT, SIGHUP)    │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Hands off new connections
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                 │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Wraps a client socket with buffered rfile/wfile streams          │
    │  • Carries a short id used in every log line for the connection     │
    │  • Closes streams and socket when its `with` block ends             │
    └─────────────────────────────────────────────────────────────────────┘

THREAD-PER-CONNECTION MODEL
   FileServer starts one thread per accepted connection. Each thread
   answers one request with blocking I/O, then exits.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Main TCP server - accepts connections
    "Connection",       # Wrapper for client socket - handles I/O
    "ConnectionState",  # Enum for connection lifecycle states
]
