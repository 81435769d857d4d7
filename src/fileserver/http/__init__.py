"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The protocol pieces of the file server: reading request heads, writing
responses, decoding URIs and choosing media types.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ headers.py      HeaderSet       ordered (name, value) pairs          │
    │ request.py      read_request_head, HTTPRequest, HTTPParseError       │
    │ response.py     ResponseWriter, format_http_date                     │
    │ uri.py          unescape_uri, escape_uri, resolve_uri                │
    │ mime_types.py   MediaTypes, MediaTypeRegistry                        │
    │ status_codes.py HTTPStatus                                           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .headers import HeaderSet
from .request import HTTPParseError, HTTPRequest, read_request_head
from .response import ResponseWriter, format_http_date
from .status_codes import HTTPStatus
from .mime_types import (
    DEFAULT_MIME_TYPE,
    DIRECTORY_MEDIA_TYPE,
    MediaTypeRegistry,
    MediaTypes,
)
from .uri import (
    PathTraversalError,
    URIDecodeError,
    escape_uri,
    resolve_uri,
    unescape_uri,
)

__all__ = [
    # Header store
    "HeaderSet",

    # Request parsing
    "HTTPRequest",
    "HTTPParseError",
    "read_request_head",

    # Response writing
    "ResponseWriter",
    "format_http_date",

    # Status codes
    "HTTPStatus",

    # MIME types
    "MediaTypes",
    "MediaTypeRegistry",
    "DEFAULT_MIME_TYPE",
    "DIRECTORY_MEDIA_TYPE",

    # URIs
    "unescape_uri",
    "escape_uri",
    "resolve_uri",
    "URIDecodeError",
    "PathTraversalError",
]
