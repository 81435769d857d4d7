"""
=============================================================================
DIRECTORY LISTING
=============================================================================

Generates the HTML index page for a GET on a directory URI ("/docs/").

=============================================================================
PAGE LAYOUT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Index of /docs/                                                    │
    │                                                                     │
    │      Name               Last modified         Size   File Type      │
    │  ─────────────────────────────────────────────────────────────────  │
    │      Parent Directory   2026-01-01 12:00:00   4096   Directory      │
    │      images/            2026-01-01 12:00:00   4096   Directory      │
    │      latest             2026-01-02 09:30:00     10   Link           │
    │      readme.txt         2026-01-02 09:30:00    512   File           │
    │  ─────────────────────────────────────────────────────────────────  │
    └─────────────────────────────────────────────────────────────────────┘

    - Entries are sorted by name; "." is never listed
    - Directory links end in "/" so relative links keep working
    - Times are local time, "YYYY-MM-DD HH:MM:SS"
    - Types come from lstat(), so a symlink shows as "Link"
    - Names are HTML-escaped and links percent-encoded

The page is built in memory and handed back as a Resource, so GET streams
it exactly like a file. Nothing is written to the directory being listed.

=============================================================================
"""

import html
import io
import logging
import os
import stat
import time
from dataclasses import dataclass
from typing import BinaryIO, Optional

from ..http.uri import escape_uri


logger = logging.getLogger(__name__)


TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class DirectoryEntry:
    """One row of a listing. `kind` is Directory, Link, File or unknown."""

    name: str
    mtime: str
    size: str
    kind: str

    @property
    def is_directory(self) -> bool:
        return self.kind == "Directory"


@dataclass
class Resource:
    """
    A readable body with its length and modification time.

    Wraps both opened files and generated listings.
    """

    stream: BinaryIO
    size: int
    mtime: float

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "Resource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _kind(mode: int) -> str:
    if stat.S_ISDIR(mode):
        return "Directory"
    if stat.S_ISLNK(mode):
        return "Link"
    return "File"


def read_entry(dir_path: str, name: str) -> DirectoryEntry:
    """
    Read the metadata of one directory entry.

    Metadata errors do not propagate; the entry is reported as unknown.
    """
    try:
        st = os.lstat(os.path.join(dir_path, name))
    except OSError as e:
        logger.warning(f"Cannot stat {name!r} in {dir_path}: {e}")
        return DirectoryEntry(name, UNKNOWN, UNKNOWN, UNKNOWN)

    return DirectoryEntry(
        name=name,
        mtime=time.strftime(TIME_FORMAT, time.localtime(st.st_mtime)),
        size=str(st.st_size),
        kind=_kind(st.st_mode),
    )


def _page_start(uri: str) -> str:
    return (
        "<html>\n<head>\n"
        f"  <title>index of {uri}</title></head>\n"
        "<body>\n"
        f"  <h1>Index of {uri}</h1>\n"
        "  <table>\n"
        "  <tr>\n"
        '    <th valign="top"></th>\n'
        "    <th>Name</th>\n"
        "    <th>Last modified</th>\n"
        "    <th>Size</th>\n"
        "    <th>File Type</th>\n"
        "  </tr>\n"
        "  <tr>\n"
        '    <td colspan="5"><hr></td>\n'
        "  </tr>\n\n"
    )


def _page_row(entry: DirectoryEntry) -> str:
    if entry.name == "..":
        label, href = "Parent Directory", "../"
    else:
        label = html.escape(entry.name)
        href = escape_uri(entry.name)
        if entry.is_directory:
            href += "/"

    return (
        "<tr>\n"
        "    <td></td>\n"
        f'    <td><a href="{href}">{label}</a></td>\n'
        f'    <td align="right">{entry.mtime}</td>\n'
        f'    <td align="right">{entry.size}</td>\n'
        f"    <td>{entry.kind}</td>\n"
        "    <td></td>\n"
        "  </tr>"
    )


_PAGE_END = (
    "\n"
    "  <tr>\n"
    '    <td colspan="5"><hr></td>\n'
    "  </tr>\n"
    "  </table>\n"
    "</body>\n"
    "</html>"
)


def render_listing(uri: str, entries: list[DirectoryEntry]) -> str:
    """Render listing rows into a complete HTML page."""
    parts = [_page_start(html.escape(uri))]
    parts.extend(_page_row(entry) for entry in entries)
    parts.append(_PAGE_END)
    return "".join(parts)


def generate_listing(uri: str, dir_path: str) -> Optional[Resource]:
    """
    Build the listing page for a directory.

    Args:
        uri: The decoded request URI, shown in the title and heading.
        dir_path: Filesystem path of the directory.

    Returns:
        A Resource holding the page, or None if the directory itself
        could not be read.
    """
    try:
        names = sorted(os.listdir(dir_path))
    except OSError as e:
        logger.warning(f"Cannot list directory {dir_path}: {e}")
        return None

    entries = [read_entry(dir_path, "..")]
    entries.extend(read_entry(dir_path, name) for name in names if name != ".")

    body = render_listing(uri, entries).encode("utf-8", "surrogateescape")
    return Resource(stream=io.BytesIO(body), size=len(body), mtime=time.time())
