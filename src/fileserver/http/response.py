"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

Writes HTTP/1.x responses straight onto the connection's output stream
per RFC 7230.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  STATUS LINE        HTTP/1.1 200 OK\r\n           write_status()    │
    │                                                                     │
    │  HEADERS            Server: FileServer/1.0\r\n    write_headers()   │
    │                     Date: Sun, 06 Nov ... GMT\r\n                   │
    │                     Content-Length: 1234\r\n                        │
    │                                                                     │
    │  EMPTY LINE         \r\n                          (write_headers)   │
    │                                                                     │
    │  BODY               <exactly 1234 bytes>          write_body()      │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Unlike a builder that assembles the whole response in memory, the writer
emits each part as soon as the handler knows it. A 2 GB file is never held
in memory; write_body() copies it through in buffer-sized chunks.

=============================================================================
ERROR RESPONSES
=============================================================================

write_error() produces a complete response for any failure status:

    HTTP/1.1 404 Not Found\r\n
    Server: FileServer/1.0\r\n
    Date: ...\r\n
    Content-Length: 80\r\n
    Content-type: text/html\r\n
    \r\n
    <html><head><title>404 Not Found</title></head><body>404 Not Found</body></html>

=============================================================================
"""

import logging
from datetime import datetime, timezone
from typing import BinaryIO, Optional

from .headers import HeaderSet
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


CRLF = b"\r\n"

# Chunk size used when copying a body from a file or listing stream.
DEFAULT_BUFFER_SIZE = 8192

ERROR_PAGE_TEMPLATE = (
    "<html><head><title>{code} {phrase}</title></head>"
    "<body>{code} {phrase}</body></html>"
)


class ResponseWriter:
    """
    Writes one response onto a binary output stream.

    Tracks the status and the number of body bytes written so the
    access log can report them after the handler returns.

    Usage:
        writer = ResponseWriter(wfile, "HTTP/1.1")
        writer.write_status(HTTPStatus.OK)
        writer.write_headers(response_headers)
        writer.write_body(f, size)
    """

    def __init__(
        self,
        stream: BinaryIO,
        protocol: str = "HTTP/1.1",
        debug: bool = False,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        self.stream = stream
        self.protocol = protocol
        self.debug = debug
        self.buffer_size = buffer_size

        self.status: Optional[int] = None
        self.bytes_sent = 0

    @property
    def started(self) -> bool:
        """Check if a status line has already been written."""
        return self.status is not None

    def write_status(self, status: int, phrase: Optional[str] = None) -> None:
        """
        Write the status line.

        Args:
            status: Status code; an HTTPStatus supplies its own phrase.
            phrase: Reason phrase override.
        """
        if phrase is None:
            phrase = HTTPStatus(status).phrase
        line = f"{self.protocol} {int(status)} {phrase}"
        if self.debug:
            logger.debug(f"> {line}")

        self.stream.write(line.encode("latin-1") + CRLF)
        self.status = int(status)

    def write_headers(self, headers: HeaderSet) -> None:
        """Write every header in store order, then the blank separator line."""
        lines = []
        for name, value in headers:
            if self.debug:
                logger.debug(f"> {name}: {value}")
            lines.append(f"{name}: {value}".encode("latin-1", "replace") + CRLF)
        lines.append(CRLF)
        self.stream.write(b"".join(lines))

    def write_error(
        self,
        status: int,
        headers: HeaderSet,
        phrase: Optional[str] = None,
    ) -> None:
        """
        Write a complete error response with a small HTML body.

        Content-Length and Content-type are added to `headers`; anything
        already in it (Server, Date) is written first.
        """
        if phrase is None:
            phrase = HTTPStatus(status).phrase
        body = ERROR_PAGE_TEMPLATE.format(code=int(status), phrase=phrase)
        body_bytes = body.encode("utf-8")

        self.write_status(status, phrase)
        if not headers.put("Content-Length", str(len(body_bytes))):
            logger.warning("Response header store full; Content-Length dropped")
        if not headers.put("Content-type", "text/html"):
            logger.warning("Response header store full; Content-type dropped")
        self.write_headers(headers)

        self.stream.write(body_bytes)
        self.bytes_sent += len(body_bytes)

    def write_body(self, source: BinaryIO, nbytes: int) -> int:
        """
        Copy exactly `nbytes` from `source` to the output stream.

        Stops early only if `source` hits end-of-file.

        Returns:
            Number of bytes actually copied.
        """
        copied = copy_bytes(source, self.stream, nbytes, self.buffer_size)
        self.bytes_sent += copied
        if copied < nbytes:
            logger.warning(f"Body source ended after {copied} of {nbytes} bytes")
        return copied

    def flush(self) -> None:
        self.stream.flush()


def copy_bytes(
    source: BinaryIO,
    destination: BinaryIO,
    nbytes: int,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> int:
    """
    Copy up to `nbytes` bytes between binary streams.

    Never reads past `nbytes`, so a request body can be copied without
    consuming bytes that follow it on the connection.
    """
    remaining = nbytes
    while remaining > 0:
        chunk = source.read(min(buffer_size, remaining))
        if not chunk:
            break
        destination.write(chunk)
        remaining -= len(chunk)
    return nbytes - remaining


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(when: float | datetime) -> str:
    """
    Format a time as an HTTP-date (RFC 1123).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sun, 06 Nov 1994 08:49:37 GMT

    Important: HTTP dates are ALWAYS in GMT (UTC), never local time.

    Args:
        when: POSIX timestamp or datetime (naive datetimes are taken as UTC).

    Returns:
        Formatted date string.
    """
    if isinstance(when, datetime):
        dt = when if when.tzinfo else when.replace(tzinfo=timezone.utc)
        dt = dt.astimezone(timezone.utc)
    else:
        dt = datetime.fromtimestamp(when, tz=timezone.utc)

    # Weekday names (0=Monday in Python's datetime)
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    # Month names (1-indexed, so we subtract 1)
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
