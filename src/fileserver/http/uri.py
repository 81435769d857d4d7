"""
=============================================================================
URI CODEC AND RESOLVER
=============================================================================

Turns the escaped URI from a request line into a filesystem path under the
content base.

=============================================================================
PERCENT-ENCODING (RFC 3986 Section 2.1)
=============================================================================

Bytes that may not appear literally in a URI are written as "%" followed by
two hex digits:

    /my%20file.txt      →   /my file.txt
    /caf%C3%A9          →   /café            (two bytes, one UTF-8 char)
    /a+b                →   /a+b             ("+" is NOT a space here)

Escapes are decoded to raw BYTES first and only then interpreted as UTF-8
with the "surrogateescape" error handler. A URI naming a file whose name is
not valid UTF-8 therefore still reaches the exact file on disk:

    /%FF.bin  →  b"/\\xff.bin"  →  "/\\udcff.bin"  →  os.stat() sees b"\\xff.bin"

Malformed escapes are rejected rather than guessed at:

    /bad%zz     →   URIDecodeError   ("z" is not a hex digit)
    /bad%4      →   URIDecodeError   (truncated escape)

=============================================================================
RESOLUTION
=============================================================================

    content_base = "/srv/www"

    "/index.html"       →   "/srv/www/index.html"
    "/docs/"            →   "/srv/www/docs/"          (trailing "/" kept)
    "/../etc/passwd"    →   PathTraversalError        (escapes the base)

The trailing "/" matters: it is how a request asks for a directory
(listing on GET, rmdir on DELETE).

=============================================================================
"""

import string
from urllib.parse import quote


_HEX_DIGITS = frozenset(string.hexdigits)

# Characters left literal by escape_uri(). Everything else is %XX-encoded.
_SAFE_CHARACTERS = "/-._~"


class URIDecodeError(ValueError):
    """Raised when an escaped URI cannot be decoded."""


class PathTraversalError(URIDecodeError):
    """Raised when a decoded URI would resolve outside the content base."""


def unescape_uri(escaped: str) -> str:
    """
    Decode %XX escapes in a URI.

    Args:
        escaped: The URI as it appeared on the request line.

    Returns:
        The decoded URI. Non-UTF-8 bytes survive as surrogate escapes.

    Raises:
        URIDecodeError: If an escape is truncated or not hexadecimal.
    """
    if "%" not in escaped:
        return escaped

    raw = escaped.encode("utf-8", "surrogateescape")
    decoded = bytearray()
    i = 0
    while i < len(raw):
        byte = raw[i]
        if byte != 0x25:  # "%"
            decoded.append(byte)
            i += 1
            continue

        digits = raw[i + 1:i + 3].decode("ascii", "replace")
        if len(digits) != 2 or not all(c in _HEX_DIGITS for c in digits):
            raise URIDecodeError(
                f"Invalid escape sequence at offset {i} in {escaped!r}"
            )
        decoded.append(int(digits, 16))
        i += 3

    return bytes(decoded).decode("utf-8", "surrogateescape")


def escape_uri(path: str) -> str:
    """
    Percent-encode a path for use in a URI or an href.

    Unreserved characters and "/" pass through; everything else, including
    spaces and "+", is encoded. The inverse of unescape_uri().
    """
    return quote(path.encode("utf-8", "surrogateescape"), safe=_SAFE_CHARACTERS)


def resolve_uri(uri: str, content_base: str) -> str:
    """
    Map a decoded URI onto the filesystem.

    Args:
        uri: Decoded request URI, normally starting with "/".
        content_base: Directory that URIs are relative to (no trailing "/").

    Returns:
        content_base + uri, with a trailing "/" preserved.

    Raises:
        URIDecodeError: If the URI contains a NUL byte, which no path can hold.
        PathTraversalError: If ".." segments would climb out of the base.
    """
    if "\x00" in uri:
        raise URIDecodeError(f"NUL byte in URI: {uri!r}")
    if _climbs_above_root(uri):
        raise PathTraversalError(f"URI escapes content base: {uri!r}")
    if uri and not uri.startswith("/"):
        uri = "/" + uri
    return content_base + uri


def _climbs_above_root(uri: str) -> bool:
    """Check if walking the segments of `uri` ever goes above "/"."""
    depth = 0
    for segment in uri.split("/"):
        if segment == "..":
            depth -= 1
            if depth < 0:
                return True
        elif segment not in ("", "."):
            depth += 1
    return False
