"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file extensions to their corresponding MIME types for the
Content-type header of GET and HEAD responses.

=============================================================================
WHAT IS A MIME TYPE?
=============================================================================

MIME = Multipurpose Internet Mail Extensions

MIME types tell the client how to interpret the response body.
They follow the format: type/subtype

    text/html         → HTML document
    image/png         → PNG image
    application/octet-stream  → Unknown/binary (default)

=============================================================================
THE mime.types FILE FORMAT
=============================================================================

The table is not hard-coded. It is loaded from a text file in the
format used by Apache and most Unix systems:

    ┌────────────────────────────────────────────────────────────────────┐
    │  # comment line (first token is exactly "#")                      │
    │  text/html                      html htm                          │
    │  image/jpeg                     jpeg jpg jpe                      │
    │  application/x-unregistered                                       │
    └────────────────────────────────────────────────────────────────────┘

    - Tokens are separated by any whitespace
    - First token is the media type
    - Every following token is an extension mapped to it
    - A type with no extensions registers nothing
    - If an extension appears twice, the FIRST registration wins

Only a line whose first token is exactly "#" is a comment. "#text/foo bar"
is read as media type "#text/foo" for extension "bar".

=============================================================================
RELOADING WITHOUT LOCKS
=============================================================================

A MediaTypes table is immutable once built. The registry holds a single
reference to the current table:

    worker threads ──resolve()──► registry.table ──► MediaTypes (old)
                                        │
    load("/etc/mime.types")             │  (one reference assignment)
                                        ▼
                                   MediaTypes (new)

A worker that already read the old reference keeps using a complete,
consistent table. No worker ever sees a half-built one.

=============================================================================
"""

import logging
from importlib import resources
from pathlib import Path
from typing import Iterable, Optional


logger = logging.getLogger(__name__)


# Default MIME type for unknown extensions
# application/octet-stream = "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Marker type for a request that names a directory (trailing "/").
# Handlers rewrite it to text/html when they send a generated listing.
DIRECTORY_MEDIA_TYPE = "text/directory"

# Name of the table shipped inside the package.
BUNDLED_TABLE = "mime.types"


class MediaTypes:
    """
    Immutable extension → media type table.

    Build one with parse() or from_file(); never mutate it afterwards.
    """

    __slots__ = ("_types", "_count")

    def __init__(self, types: Optional[dict[str, str]] = None, count: int = 0):
        self._types = dict(types or {})
        self._count = count

    @classmethod
    def parse(cls, lines: Iterable[str]) -> "MediaTypes":
        """
        Build a table from lines in mime.types format.

        Examples:
            >>> table = MediaTypes.parse(["text/html html htm"])
            >>> table.lookup("htm")
            'text/html'
        """
        types: dict[str, str] = {}
        count = 0
        for line in lines:
            tokens = line.split()
            if not tokens or tokens[0] == "#":
                continue

            media_type, extensions = tokens[0], tokens[1:]
            for extension in extensions:
                # Counted even when shadowed by an earlier registration
                count += 1
                types.setdefault(extension.lower(), media_type)

        return cls(types, count)

    @classmethod
    def from_file(cls, path: str | Path) -> "MediaTypes":
        """
        Build a table from a mime.types file.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return cls.parse(f)

    @classmethod
    def bundled(cls) -> "MediaTypes":
        """Build the table that ships with the package."""
        text = resources.files("fileserver").joinpath(BUNDLED_TABLE).read_text(
            encoding="utf-8"
        )
        return cls.parse(text.splitlines())

    @property
    def count(self) -> int:
        """Number of extension entries read, duplicates included."""
        return self._count

    def lookup(self, extension: str) -> Optional[str]:
        """Get the media type for a bare extension (no dot), or None."""
        return self._types.get(extension.lower())

    def __len__(self) -> int:
        return len(self._types)


def get_extension(filename: str) -> Optional[str]:
    """
    Get the extension of the last path component, lower-cased.

    Examples:
        >>> get_extension("/docs/Report.PDF")
        'pdf'
        >>> get_extension("/archive.tar.gz")
        'gz'
        >>> get_extension("/v1.2/README") is None
        True
    """
    name = filename.rsplit("/", 1)[-1]
    if "." not in name:
        return None
    return name.rsplit(".", 1)[1].lower()


class MediaTypeRegistry:
    """
    Holder for the current MediaTypes table, shared by all workers.

    Usage:
        registry = MediaTypeRegistry()
        registry.load("/etc/mime.types")

        registry.resolve("/index.html")   # 'text/html'
        registry.resolve("/docs/")        # 'text/directory'
        registry.resolve("/Makefile")     # 'application/octet-stream'
    """

    def __init__(self, table: Optional[MediaTypes] = None):
        self._table = table if table is not None else MediaTypes()

    @property
    def table(self) -> MediaTypes:
        return self._table

    def load(self, path: str | Path) -> Optional[int]:
        """
        Replace the table with one read from `path`.

        Returns:
            Number of entries read, or None if the file could not be
            opened (the previous table stays in place).
        """
        try:
            table = MediaTypes.from_file(path)
        except OSError as e:
            logger.warning(f"Cannot read MIME types from {path}: {e}")
            return None

        self._table = table
        logger.info(f"Loaded {table.count} MIME type entries from {path}")
        return table.count

    def load_bundled(self) -> int:
        """Replace the table with the one shipped in the package."""
        table = MediaTypes.bundled()
        self._table = table
        logger.debug(f"Loaded {table.count} bundled MIME type entries")
        return table.count

    def resolve(self, filename: str) -> str:
        """
        Get the media type for a resolved path or URI.

        A trailing "/" yields DIRECTORY_MEDIA_TYPE. A missing or unknown
        extension yields DEFAULT_MIME_TYPE.
        """
        if filename.endswith("/"):
            return DIRECTORY_MEDIA_TYPE

        extension = get_extension(filename)
        if extension is None:
            return DEFAULT_MIME_TYPE
        return self._table.lookup(extension) or DEFAULT_MIME_TYPE
