"""
=============================================================================
HEADER STORE
=============================================================================

An ordered collection of (name, value) pairs representing the headers of
one request or one response.

=============================================================================
WHY NOT A DICT?
=============================================================================

A plain `Dict[str, str]` folds duplicates together and loses the order
the peer sent them in. For a file server that writes
response headers back verbatim, the order IS the wire format:

    put("Server", ...)          →   Server: FileServer/1.0\r\n
    put("Date", ...)            →   Date: Sun, 06 Nov 1994 08:49:37 GMT\r\n
    put("Content-Length", ...)  →   Content-Length: 42\r\n

So a HeaderSet is a list of pairs with three explicit contracts:

    1. INSERTION ORDER   - get(i) and iteration return pairs as added
    2. DUPLICATES KEPT   - put() never replaces an existing name
    3. FIRST MATCH WINS  - find() returns the earliest matching value

=============================================================================
CAPACITY
=============================================================================

A HeaderSet may be given a capacity. When it is full, put() returns
False instead of raising or silently growing. Callers decide whether a
dropped header is harmless (log and continue) or fatal.

    ┌──────────────────────────────────────────────────────────────────┐
    │  headers = HeaderSet(capacity=2)                                 │
    │  headers.put("A", "1")   → True                                  │
    │  headers.put("B", "2")   → True                                  │
    │  headers.put("C", "3")   → False   (store unchanged)             │
    └──────────────────────────────────────────────────────────────────┘

=============================================================================
CASE SENSITIVITY
=============================================================================

HTTP header names are case-insensitive (RFC 7230), but the store itself
compares names exactly. Readers that look up a well-known header ask for
it with ignore_case=True:

    request_headers.find("Content-Length", ignore_case=True)

The synthetic "?" entry holding the query string is looked up exactly.

=============================================================================
"""

from typing import Iterator, Optional


# Default limit for a single store. Generous for real clients, small enough
# to bound memory for a peer that streams header lines forever.
DEFAULT_MAX_HEADERS = 100


class HeaderSet:
    """
    Ordered, optionally bounded list of header (name, value) pairs.

    Usage:
        headers = HeaderSet()
        headers.put("Server", "FileServer/1.0")
        headers.put("Date", format_http_date(time.time()))

        for name, value in headers:
            print(f"{name}: {value}")

        length = headers.find("content-length", ignore_case=True)
    """

    def __init__(self, capacity: Optional[int] = DEFAULT_MAX_HEADERS):
        """
        Create an empty store.

        Args:
            capacity: Maximum number of pairs, or None for no limit.
        """
        if capacity is not None and capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._items: list[tuple[str, str]] = []

    @property
    def is_full(self) -> bool:
        """Check if another put() would fail."""
        return self.capacity is not None and len(self._items) >= self.capacity

    def put(self, name: str, value: str) -> bool:
        """
        Append a header pair.

        Duplicate names are allowed; both pairs are kept in order.

        Returns:
            True if stored, False if the store is full.
        """
        if self.is_full:
            return False
        self._items.append((name, value))
        return True

    def get(self, index: int) -> Optional[tuple[str, str]]:
        """
        Get the pair at a position.

        Returns:
            (name, value), or None past the last pair.
        """
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def find(
        self,
        name: str,
        start: int = 0,
        ignore_case: bool = False,
    ) -> Optional[str]:
        """
        Find the first value stored under a name.

        Args:
            name: Header name to look for.
            start: Position to start scanning from.
            ignore_case: Compare names case-insensitively.

        Returns:
            The first matching value at or after `start`, or None.
        """
        wanted = name.lower() if ignore_case else name
        for key, value in self._items[max(start, 0):]:
            if (key.lower() if ignore_case else key) == wanted:
                return value
        return None

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._items)

    def __repr__(self) -> str:
        return f"HeaderSet({self._items!r}, capacity={self.capacity})"
