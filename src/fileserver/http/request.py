"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads the request line and headers of one HTTP/1.x request directly from
the connection's input stream (RFC 7230). The body is left unread on the
stream for the method handler to consume.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  REQUEST LINE     PUT /docs/a%20b.txt?v=2 HTTP/1.1\r\n              │
    │                   ─┬─ ──────────┬──────── ────┬───                  │
    │                    │            │             │                     │
    │                  Method    Escaped URI     Version                  │
    │                                                                     │
    │  HEADERS          Host: example.com\r\n                             │
    │                   Content-Length: 5\r\n                             │
    │                                                                     │
    │  EMPTY LINE       \r\n                                              │
    │                                                                     │
    │  BODY             hello          ← read later by the PUT handler    │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. REQUEST LINE:
   - Split on whitespace; exactly three tokens or 400 Bad Request
   - A line longer than the configured limit is also 400
   - End-of-file before any line means the peer went away: no response

2. HEADERS:
   - "Name: value" with leading spaces of the value skipped
   - Lines without ":" are ignored
   - No continuation-line folding
   - Read until an empty line or end-of-file
   - When the header store is full, remaining lines are still READ
     (and dropped) so the body boundary stays intact

3. QUERY STRING:
   - The first "?" or "&" in the escaped URI starts the query
   - The query is stored under the synthetic header name "?"

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from .headers import HeaderSet
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


# Longest request line or header line accepted, in bytes.
DEFAULT_MAX_LINE_LENGTH = 8192

# Synthetic header name under which the query string is stored.
QUERY_HEADER = "?"


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    This exception carries an HTTP status code that should be returned
    to the client:

        400 Bad Request     - Malformed request line or Content-Length
    """

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST):
        super().__init__(message)
        self.status_code = status_code  # HTTP status to return


@dataclass
class HTTPRequest:
    """
    One parsed request head.

    `uri` is the escaped URI with the query stripped. `path` is filled in
    by the pipeline once `uri` has been unescaped.
    """

    method: str
    uri: str
    version: str
    headers: HeaderSet = field(default_factory=HeaderSet)
    path: Optional[str] = None

    @property
    def query(self) -> Optional[str]:
        """The raw query string, if the URI carried one."""
        return self.headers.find(QUERY_HEADER)

    @property
    def content_length(self) -> Optional[int]:
        """
        Get the declared body length.

        Returns:
            The length, or None if no Content-Length header was sent.

        Raises:
            HTTPParseError: If the value is not a non-negative integer.
        """
        value = self.headers.find("Content-Length", ignore_case=True)
        if value is None:
            return None

        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise HTTPParseError(f"Invalid Content-Length: {value!r}")
        return int(value)


def read_line(rfile: BinaryIO, max_length: int = DEFAULT_MAX_LINE_LENGTH) -> bytes:
    """
    Read one line of at most `max_length` bytes.

    Returns:
        The raw line including its terminator, or b"" at end-of-file. A
        returned line longer than `max_length` was cut short.
    """
    return rfile.readline(max_length + 1)


def _is_overlong(line: bytes, max_length: int) -> bool:
    return len(line) > max_length and not line.endswith(b"\n")


def _discard_rest_of_line(rfile: BinaryIO, max_length: int) -> None:
    while True:
        chunk = rfile.readline(max_length + 1)
        if not chunk or chunk.endswith(b"\n"):
            return


def _decode(line: bytes) -> str:
    # surrogateescape keeps non-UTF-8 bytes intact for the filesystem
    return line.decode("utf-8", "surrogateescape").rstrip("\r\n")


def parse_request_line(line: str) -> tuple[str, str, str]:
    """
    Split a request line into (method, escaped URI, version).

    Raises:
        HTTPParseError: If the line does not have exactly three tokens.

    Examples:
        >>> parse_request_line("GET /index.html HTTP/1.0")
        ('GET', '/index.html', 'HTTP/1.0')
    """
    tokens = line.split()
    if len(tokens) != 3:
        raise HTTPParseError(f"Invalid request line: {line!r}")
    method, uri, version = tokens
    return method, uri, version


def split_query(uri: str) -> tuple[str, Optional[str]]:
    """
    Split the query off an escaped URI at the first "?" or "&".

    Examples:
        >>> split_query("/search?q=x&page=2")
        ('/search', 'q=x&page=2')
        >>> split_query("/a&b")
        ('/a', 'b')
        >>> split_query("/plain")
        ('/plain', None)
    """
    positions = [i for i in (uri.find("?"), uri.find("&")) if i >= 0]
    if not positions:
        return uri, None
    cut = min(positions)
    return uri[:cut], uri[cut + 1:]


def parse_header_line(line: str) -> Optional[tuple[str, str]]:
    """
    Parse "Name: value" into a pair.

    Leading spaces of the value are skipped; nothing else is trimmed.

    Returns:
        (name, value), or None if the line has no ":".
    """
    name, sep, value = line.partition(":")
    if not sep:
        return None
    return name, value.lstrip(" ")


def read_headers(
    rfile: BinaryIO,
    headers: HeaderSet,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> int:
    """
    Read header lines into `headers` until an empty line or end-of-file.

    Returns:
        Number of headers dropped because the store was full.
    """
    dropped = 0
    while True:
        raw = read_line(rfile, max_line_length)
        if not raw:
            break

        if _is_overlong(raw, max_line_length):
            _discard_rest_of_line(rfile, max_line_length)
            logger.warning(f"Header line longer than {max_line_length} bytes dropped")
            continue

        line = _decode(raw)
        if not line:
            break

        parsed = parse_header_line(line)
        if parsed is None:
            continue

        name, value = parsed
        if not headers.put(name, value):
            dropped += 1
            logger.warning(f"Header store full, dropping header {name!r}")

    return dropped


def read_request_head(
    rfile: BinaryIO,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    max_headers: Optional[int] = None,
) -> Optional[HTTPRequest]:
    """
    Read and parse a request line and its headers.

    The query string is split off the URI and stored under the "?" header.

    Returns:
        The request, or None if the stream ended before a request line.

    Raises:
        HTTPParseError: If the request line is malformed or too long. The
            headers have NOT been read in that case.
    """
    raw = read_line(rfile, max_line_length)
    if not raw:
        return None
    if _is_overlong(raw, max_line_length):
        raise HTTPParseError(f"Request line longer than {max_line_length} bytes")

    method, uri, version = parse_request_line(_decode(raw))

    headers = HeaderSet(capacity=max_headers)
    read_headers(rfile, headers, max_line_length)

    uri, query = split_query(uri)
    if query is not None and not headers.put(QUERY_HEADER, query):
        logger.warning("Header store full, query string dropped")

    return HTTPRequest(method=method, uri=uri, version=version, headers=headers)
