"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can produce, with their reason phrases.

=============================================================================
WHAT THE FILE SERVER ANSWERS
=============================================================================

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK             - GET/HEAD/POST/DELETE succeeded       │
    │        │ 201 Created        - PUT created a new resource           │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request    - Malformed request line or URI        │
    │        │ 404 Not Found      - Nothing at the resolved path         │
    │        │ 405 Method Not Allowed - Operation impossible on target   │
    │        │ 411 Length Required    - PUT/POST without Content-Length  │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 501 Not Implemented - Method outside GET/HEAD/PUT/POST/   │
    │        │                       DELETE                              │
    └────────┴───────────────────────────────────────────────────────────┘

Note that 405 is used more loosely than RFC 7231 intends: it covers any
operation the filesystem refused (failed open, failed unlink, failed rmdir,
listing that could not be generated).

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    Extends IntEnum, so members compare equal to their integer codes:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200                    # Transfer / update / removal succeeded
    CREATED = 201               # PUT created a resource that did not exist

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400           # Malformed request line, escape or length
    NOT_FOUND = 404             # Resolved path does not exist
    METHOD_NOT_ALLOWED = 405    # Filesystem refused the operation
    LENGTH_REQUIRED = 411       # Body-bearing write without Content-Length

    # 5xx SERVER ERRORS
    NOT_IMPLEMENTED = 501       # Unknown method

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.LENGTH_REQUIRED: "Length Required",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
}
