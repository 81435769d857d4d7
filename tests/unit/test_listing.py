"""
Unit tests for directory listings.
"""

import os
from pathlib import Path

import pytest

from fileserver.handlers.listing import (
    DirectoryEntry,
    generate_listing,
    read_entry,
    render_listing,
)


def listing_html(uri: str, path: Path) -> str:
    resource = generate_listing(uri, str(path) + "/")
    assert resource is not None
    with resource:
        return resource.stream.read().decode("utf-8")


class TestGenerateListing:
    """Tests for generate_listing()."""

    def test_title_and_heading(self, content_base: Path):
        html = listing_html("/", content_base)

        assert "<title>index of /</title>" in html
        assert "<h1>Index of /</h1>" in html
        for column in ("Name", "Last modified", "Size", "File Type"):
            assert f"<th>{column}</th>" in html

    def test_entries_sorted_with_parent_first(self, content_base: Path):
        html = listing_html("/", content_base)

        positions = [
            html.index('href="../">Parent Directory'),
            html.index('href="docs/">docs'),
            html.index('href="empty/">empty'),
            html.index('href="index.html">index.html'),
            html.index('href="notes.txt">notes.txt'),
        ]
        assert positions == sorted(positions)

    def test_no_dot_entry(self, content_base: Path):
        html = listing_html("/", content_base)
        assert 'href="./"' not in html
        assert 'href=".">' not in html

    def test_kinds_and_sizes(self, content_base: Path):
        html = listing_html("/", content_base)

        assert "<td>Directory</td>" in html
        assert "<td>File</td>" in html
        assert '<td align="right">11</td>' in html

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
    def test_symlink_is_link(self, content_base: Path):
        (content_base / "latest").symlink_to(content_base / "notes.txt")
        entry = read_entry(str(content_base), "latest")
        assert entry.kind == "Link"

    def test_nothing_written_to_directory(self, content_base: Path):
        before = sorted(os.listdir(content_base))
        listing_html("/", content_base)
        assert sorted(os.listdir(content_base)) == before

    def test_size_matches_stream(self, content_base: Path):
        resource = generate_listing("/docs/", str(content_base / "docs") + "/")
        with resource:
            assert len(resource.stream.read()) == resource.size

    def test_names_escaped(self, content_base: Path):
        (content_base / "a<b> c.txt").write_bytes(b"x")
        html = listing_html("/", content_base)

        assert "a&lt;b&gt; c.txt</a>" in html
        assert 'href="a%3Cb%3E%20c.txt"' in html

    def test_uri_escaped(self, content_base: Path):
        html = listing_html("/<x>/", content_base)
        assert "<h1>Index of /&lt;x&gt;/</h1>" in html

    def test_unreadable_directory(self, tmp_path: Path):
        assert generate_listing("/gone/", str(tmp_path / "gone") + "/") is None


class TestReadEntry:
    """Tests for read_entry()."""

    def test_missing_entry_is_unknown(self, tmp_path: Path, caplog):
        entry = read_entry(str(tmp_path), "vanished")

        assert entry == DirectoryEntry("vanished", "unknown", "unknown", "unknown")
        assert "vanished" in caplog.text

    def test_time_format(self, content_base: Path):
        entry = read_entry(str(content_base), "notes.txt")
        # YYYY-MM-DD HH:MM:SS
        assert len(entry.mtime) == 19
        assert entry.mtime[4] == "-" and entry.mtime[10] == " "

    def test_unknown_row_rendered(self):
        html = render_listing("/", [DirectoryEntry("x", "unknown", "unknown", "unknown")])
        assert html.count("unknown") == 3
