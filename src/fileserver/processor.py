"""
=============================================================================
REQUEST PROCESSOR
=============================================================================

Handles exactly one request on an open connection: reads it, dispatches
it to a method handler and writes one response.

=============================================================================
PIPELINE
=============================================================================

    rfile ──► request line ──► Server/Date ──► headers ──► query split
                  │                                            │
                  │ EOF: no response                           ▼
                  │ malformed: 400                        unescape URI
                                                               │
                                                 bad escape/traversal: 400
                                                               ▼
                                                       method dispatch
                                                               │
                                                  unknown method: 501
                                                               ▼
                                               GET/HEAD/PUT/POST/DELETE
                                                               │
    wfile ◄──────────────────── status + headers + body ◄──────┘

The processor never closes the streams it is given. The caller (the
server's worker, or a test with BytesIO streams) owns them.

=============================================================================
"""

import logging
import time
from typing import BinaryIO, Optional

from .access_log import AccessLogger
from .config import ServerConfig
from .handlers.methods import Exchange, MethodHandlers
from .http.headers import HeaderSet
from .http.mime_types import MediaTypeRegistry
from .http.request import HTTPParseError, HTTPRequest, read_request_head
from .http.response import ResponseWriter, format_http_date
from .http.status_codes import HTTPStatus
from .http.uri import URIDecodeError, resolve_uri, unescape_uri


logger = logging.getLogger(__name__)


class RequestProcessor:
    """
    Runs the request pipeline for one connection at a time.

    A single processor is shared by all worker threads; it keeps no
    per-request state of its own.

    Usage:
        processor = RequestProcessor(config, registry)
        processor.process(conn.rfile, conn.wfile, conn.address)
    """

    def __init__(
        self,
        config: ServerConfig,
        media_types: MediaTypeRegistry,
        access_logger: Optional[AccessLogger] = None,
    ):
        self.config = config
        self.media_types = media_types
        self.handlers = MethodHandlers(media_types, buffer_size=config.buffer_size)
        self.access_logger = access_logger

    def process(
        self,
        rfile: BinaryIO,
        wfile: BinaryIO,
        client_address: tuple = ("-", 0),
        connection_id: str = "-",
    ) -> Optional[ResponseWriter]:
        """
        Read one request from `rfile` and answer it on `wfile`.

        Returns:
            The writer used for the response, or None if no request
            arrived (end-of-file or transport error before a request line).
        """
        started = time.time()
        writer = ResponseWriter(
            wfile,
            self.config.server_protocol,
            debug=self.config.debug,
            buffer_size=self.config.buffer_size,
        )
        request: Optional[HTTPRequest] = None

        try:
            response_headers = HeaderSet(capacity=self.config.max_headers)
            response_headers.put("Server", self.config.server_name)
            response_headers.put("Date", format_http_date(time.time()))

            try:
                request = read_request_head(
                    rfile,
                    max_line_length=self.config.max_line_length,
                    max_headers=self.config.max_headers,
                )
            except HTTPParseError as e:
                logger.info(f"[{connection_id}] {e}")
                writer.write_error(e.status_code, response_headers)
                return writer

            if request is None:
                logger.debug(f"[{connection_id}] Connection closed before request line")
                return None

            if self.config.debug:
                self._trace_request(connection_id, request)

            self._dispatch(request, rfile, writer, response_headers)
            return writer

        except OSError as e:
            # Peer reset or timed out mid-request
            logger.debug(f"[{connection_id}] Transport error: {e}")
            return writer if writer.started else None

        finally:
            try:
                writer.flush()
            except OSError as e:
                logger.debug(f"[{connection_id}] Flush failed: {e}")

            if writer.started and self.access_logger is not None:
                self.access_logger.log(
                    connection_id=connection_id,
                    method=request.method if request else "-",
                    uri=request.uri if request else "-",
                    query=(request.query or "") if request else "",
                    client_ip=str(client_address[0]),
                    status_code=writer.status or 0,
                    bytes_sent=writer.bytes_sent,
                    started=started,
                )

    def _dispatch(
        self,
        request: HTTPRequest,
        rfile: BinaryIO,
        writer: ResponseWriter,
        response_headers: HeaderSet,
    ) -> None:
        try:
            request.path = unescape_uri(request.uri)
        except URIDecodeError as e:
            logger.info(f"Rejected URI {request.uri!r}: {e}")
            writer.write_error(HTTPStatus.BAD_REQUEST, response_headers)
            return

        handler = self.handlers.lookup(request.method)
        if handler is None:
            writer.write_error(HTTPStatus.NOT_IMPLEMENTED, response_headers)
            return

        try:
            file_path = resolve_uri(request.path, self.config.content_base_path)
        except URIDecodeError as e:
            logger.warning(f"Rejected URI {request.uri!r}: {e}")
            writer.write_error(HTTPStatus.BAD_REQUEST, response_headers)
            return

        handler(Exchange(
            request=request,
            file_path=file_path,
            rfile=rfile,
            writer=writer,
            headers=response_headers,
        ))

    def _trace_request(self, connection_id: str, request: HTTPRequest) -> None:
        logger.debug(f"[{connection_id}] < {request.method} {request.uri} {request.version}")
        for name, value in request.headers:
            logger.debug(f"[{connection_id}] < {name}: {value}")
