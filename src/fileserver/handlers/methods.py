"""
=============================================================================
METHOD HANDLERS
=============================================================================

One handler per supported HTTP method. Each one receives an Exchange
(the parsed request, its resolved filesystem path, the input stream and a
ResponseWriter) and writes exactly one response.

=============================================================================
WHAT EACH METHOD DOES
=============================================================================

    ┌──────────┬───────────────────────────────────────────────────────────┐
    │  Method  │  Behavior                                                 │
    ├──────────┼───────────────────────────────────────────────────────────┤
    │  GET     │  Send a file, or a listing for "dir/"                     │
    │  HEAD    │  Same status and headers as GET, no body                  │
    │  PUT     │  Write the body to the path; 201 if new, 200 if replaced  │
    │  POST    │  Same as PUT but always 200                               │
    │  DELETE  │  Unlink a file, or rmdir an empty "dir/"                  │
    └──────────┴───────────────────────────────────────────────────────────┘

=============================================================================
STATUS CODES
=============================================================================

    404  Path does not exist (or is not a regular file for GET/HEAD)
    405  The filesystem refused: open, unlink, rmdir, or listing failed
    411  PUT/POST without Content-Length
    400  PUT/POST with a Content-Length that is not a non-negative integer,
         or whose body ends before Content-Length bytes arrived

A PUT or POST that fails with 411 has already opened (and so truncated or
created) its destination. The body is NOT read in that case.

=============================================================================
"""

import logging
import os
import stat
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from ..http.headers import HeaderSet
from ..http.mime_types import DIRECTORY_MEDIA_TYPE, MediaTypeRegistry
from ..http.request import HTTPParseError, HTTPRequest
from ..http.response import ResponseWriter, copy_bytes, format_http_date
from ..http.status_codes import HTTPStatus
from .listing import Resource, generate_listing


logger = logging.getLogger(__name__)


@dataclass
class Exchange:
    """Everything a method handler needs to answer one request."""

    request: HTTPRequest
    file_path: str
    rfile: BinaryIO
    writer: ResponseWriter
    headers: HeaderSet

    def put_header(self, name: str, value: str) -> None:
        if not self.headers.put(name, value):
            logger.warning(f"Response header store full, dropping {name!r}")

    def send_error(self, status: HTTPStatus) -> None:
        self.writer.write_error(status, self.headers)

    def send_empty(self, status: HTTPStatus) -> None:
        self.put_header("Content-Length", "0")
        self.writer.write_status(status)
        self.writer.write_headers(self.headers)


Handler = Callable[[Exchange], None]


def _stat(path: str) -> Optional[os.stat_result]:
    try:
        return os.stat(path)
    except OSError:
        return None


class MethodHandlers:
    """
    The file server's method handlers.

    Usage:
        handlers = MethodHandlers(registry)
        handler = handlers.lookup("get")   # case-insensitive
        if handler is None:
            ...  # 501 Not Implemented
        handler(exchange)
    """

    def __init__(self, media_types: MediaTypeRegistry, buffer_size: int = 8192):
        self.media_types = media_types
        self.buffer_size = buffer_size
        self._handlers: dict[str, Handler] = {
            "GET": self.do_get,
            "HEAD": self.do_head,
            "PUT": self.do_put,
            "POST": self.do_post,
            "DELETE": self.do_delete,
        }

    def lookup(self, method: str) -> Optional[Handler]:
        """Get the handler for a method name, ignoring case."""
        return self._handlers.get(method.upper())

    # -------------------------------------------------------------------------
    # GET / HEAD
    # -------------------------------------------------------------------------

    def do_get(self, exchange: Exchange) -> None:
        self._get_or_head(exchange, send_content=True)

    def do_head(self, exchange: Exchange) -> None:
        self._get_or_head(exchange, send_content=False)

    def _get_or_head(self, exchange: Exchange, send_content: bool) -> None:
        path = exchange.file_path
        st = _stat(path)
        if st is None:
            exchange.send_error(HTTPStatus.NOT_FOUND)
            return

        if stat.S_ISDIR(st.st_mode) and path.endswith("/"):
            resource = generate_listing(exchange.request.path or "/", path)
            if resource is None:
                exchange.send_error(HTTPStatus.METHOD_NOT_ALLOWED)
                return
        elif not stat.S_ISREG(st.st_mode):
            exchange.send_error(HTTPStatus.NOT_FOUND)
            return
        elif send_content:
            # Open before the status line so a failure can still be reported
            try:
                stream = open(path, "rb")
            except OSError as e:
                logger.warning(f"Cannot open {path}: {e}")
                exchange.send_error(HTTPStatus.METHOD_NOT_ALLOWED)
                return
            resource = Resource(stream, st.st_size, st.st_mtime)
        else:
            resource = None

        size = resource.size if resource is not None else st.st_size
        mtime = resource.mtime if resource is not None else st.st_mtime

        media_type = self.media_types.resolve(path)
        if media_type == DIRECTORY_MEDIA_TYPE:
            # Some browsers treat text/directory as a vCard
            media_type = "text/html"

        exchange.put_header("Content-Length", str(size))
        exchange.put_header("Last-Modified", format_http_date(mtime))
        exchange.put_header("Content-type", media_type)

        if resource is None:
            exchange.writer.write_status(HTTPStatus.OK)
            exchange.writer.write_headers(exchange.headers)
            return

        with resource:
            exchange.writer.write_status(HTTPStatus.OK)
            exchange.writer.write_headers(exchange.headers)
            if send_content:
                exchange.writer.write_body(resource.stream, size)

    # -------------------------------------------------------------------------
    # PUT / POST
    # -------------------------------------------------------------------------

    def do_put(self, exchange: Exchange) -> None:
        created = not os.path.exists(exchange.file_path)
        if self._store_body(exchange):
            exchange.send_empty(HTTPStatus.CREATED if created else HTTPStatus.OK)

    def do_post(self, exchange: Exchange) -> None:
        if self._store_body(exchange):
            exchange.send_empty(HTTPStatus.OK)

    def _store_body(self, exchange: Exchange) -> bool:
        """
        Write the request body to the exchange's path.

        Returns:
            True if the body was stored; otherwise an error response has
            already been sent.
        """
        path = exchange.file_path
        parent = os.path.dirname(path)
        if parent:
            try:
                os.makedirs(parent, exist_ok=True)
            except OSError as e:
                logger.warning(f"Cannot create directories for {path}: {e}")

        try:
            destination = open(path, "wb")
        except OSError as e:
            logger.warning(f"Cannot open {path} for writing: {e}")
            exchange.send_error(HTTPStatus.METHOD_NOT_ALLOWED)
            return False

        with destination:
            try:
                length = exchange.request.content_length
            except HTTPParseError as e:
                logger.info(f"Rejected body for {path}: {e}")
                exchange.send_error(HTTPStatus.BAD_REQUEST)
                return False

            if length is None:
                exchange.send_error(HTTPStatus.LENGTH_REQUIRED)
                return False

            copied = copy_bytes(exchange.rfile, destination, length, self.buffer_size)
            if copied < length:
                logger.warning(f"Request body for {path} ended after {copied} of {length} bytes")
                exchange.send_error(HTTPStatus.BAD_REQUEST)
                return False

        return True

    # -------------------------------------------------------------------------
    # DELETE
    # -------------------------------------------------------------------------

    def do_delete(self, exchange: Exchange) -> None:
        path = exchange.file_path
        st = _stat(path)
        if st is None:
            exchange.send_error(HTTPStatus.NOT_FOUND)
            return

        if stat.S_ISREG(st.st_mode):
            remove = os.unlink
        elif stat.S_ISDIR(st.st_mode) and path.endswith("/"):
            remove = os.rmdir
        else:
            exchange.send_error(HTTPStatus.METHOD_NOT_ALLOWED)
            return

        try:
            remove(path)
        except OSError as e:
            logger.info(f"Cannot delete {path}: {e}")
            exchange.send_error(HTTPStatus.METHOD_NOT_ALLOWED)
            return

        exchange.send_empty(HTTPStatus.OK)
