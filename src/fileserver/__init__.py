"""
=============================================================================
FILESERVER - AN HTTP/1.x FILE SERVER FROM RAW SOCKETS
=============================================================================

Serves, stores and deletes files under one directory (the content base)
over plain HTTP/1.x, one request per connection.

=============================================================================
WHAT IT DOES
=============================================================================

    GET    /docs/a.txt     → file bytes, with Content-Length, Last-Modified
                             and a Content-type from the MIME table
    GET    /docs/          → generated HTML directory listing
    HEAD   /docs/a.txt     → same headers as GET, no body
    PUT    /docs/b.txt     → store the request body (201 new, 200 replaced)
    POST   /docs/b.txt     → store the request body (200)
    DELETE /docs/b.txt     → unlink the file
    DELETE /docs/old/      → remove the (empty) directory

=============================================================================
PACKAGE LAYOUT
=============================================================================

    fileserver/
    ├── __main__.py        CLI: python -m fileserver
    ├── config.py          ServerConfig (dataclass, env, validation)
    ├── server.py          FileServer: sockets + one thread per connection
    ├── processor.py       RequestProcessor: the per-request pipeline
    ├── access_log.py      One access log line per response
    ├── mime.types         Default extension → media type table
    ├── core/
    │   ├── socket_server.py   Listening socket, accept loop, signals
    │   └── connection.py      Client socket + rfile/wfile streams
    ├── http/
    │   ├── headers.py         HeaderSet: ordered, bounded header store
    │   ├── request.py         Request line and header parsing
    │   ├── response.py        ResponseWriter, HTTP dates
    │   ├── uri.py             Percent-decoding and path resolution
    │   ├── mime_types.py      MediaTypes table and registry
    │   └── status_codes.py    HTTPStatus
    └── handlers/
        ├── methods.py         GET/HEAD/PUT/POST/DELETE
        └── listing.py         Directory listing pages

=============================================================================
QUICK START
=============================================================================

    from fileserver import FileServer, ServerConfig

    server = FileServer(ServerConfig(content_base="./public", port=8080))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer
from .config import ServerConfig

__all__ = ["FileServer", "ServerConfig", "__version__"]
