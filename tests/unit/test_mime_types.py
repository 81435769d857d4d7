"""
Unit tests for MIME type detection.
"""

from pathlib import Path

from fileserver.http.mime_types import (
    DEFAULT_MIME_TYPE,
    DIRECTORY_MEDIA_TYPE,
    MediaTypeRegistry,
    MediaTypes,
    get_extension,
)


class TestMediaTypesParse:
    """Tests for parsing mime.types content."""

    def test_extensions_map_to_first_token(self):
        table = MediaTypes.parse(["text/html    html htm"])

        assert table.lookup("html") == "text/html"
        assert table.lookup("htm") == "text/html"
        assert table.count == 2

    def test_any_whitespace_separates(self):
        table = MediaTypes.parse(["image/jpeg\tjpeg \t jpg\tjpe\n"])
        assert table.lookup("jpe") == "image/jpeg"
        assert table.count == 3

    def test_comment_and_blank_lines(self):
        table = MediaTypes.parse([
            "# comment with text/plain txt",
            "",
            "   ",
            "text/plain txt",
        ])
        assert table.lookup("txt") == "text/plain"
        assert table.count == 1

    def test_hash_must_be_its_own_token(self):
        """Test that "#type ext" is an entry, not a comment."""
        table = MediaTypes.parse(["#text/foo bar"])
        assert table.lookup("bar") == "#text/foo"

    def test_type_without_extensions(self):
        table = MediaTypes.parse(["application/x-nothing"])
        assert len(table) == 0
        assert table.count == 0

    def test_first_registration_wins(self):
        """Test that a duplicate extension keeps its first type."""
        table = MediaTypes.parse([
            "text/xml xml",
            "application/xml xml",
        ])
        assert table.lookup("xml") == "text/xml"
        assert table.count == 2

    def test_lookup_ignores_case(self):
        table = MediaTypes.parse(["image/png png"])
        assert table.lookup("PNG") == "image/png"

    def test_bundled_table(self):
        """Test that the packaged table loads and knows common types."""
        table = MediaTypes.bundled()
        assert table.lookup("html") == "text/html"
        assert table.lookup("png") == "image/png"
        assert table.count > 20


class TestGetExtension:
    """Tests for get_extension()."""

    def test_simple(self):
        assert get_extension("/a/b/page.HTML") == "html"

    def test_last_dot(self):
        assert get_extension("/archive.tar.gz") == "gz"

    def test_dot_in_directory_only(self):
        assert get_extension("/v1.2/README") is None

    def test_no_extension(self):
        assert get_extension("Makefile") is None


class TestMediaTypeRegistry:
    """Tests for MediaTypeRegistry."""

    def test_resolve(self, registry: MediaTypeRegistry):
        assert registry.resolve("/content/index.html") == "text/html"
        assert registry.resolve("/content/IMAGE.PNG") == "image/png"

    def test_resolve_directory(self, registry: MediaTypeRegistry):
        assert registry.resolve("/content/docs/") == DIRECTORY_MEDIA_TYPE

    def test_resolve_unknown(self, registry: MediaTypeRegistry):
        assert registry.resolve("/content/data.xyz") == DEFAULT_MIME_TYPE
        assert registry.resolve("/content/Makefile") == DEFAULT_MIME_TYPE

    def test_load(self, mime_types_file: Path):
        registry = MediaTypeRegistry()
        assert registry.resolve("a.txt") == DEFAULT_MIME_TYPE

        count = registry.load(mime_types_file)

        assert count == 5
        assert registry.resolve("a.txt") == "text/plain"

    def test_load_missing_file_keeps_table(self, registry: MediaTypeRegistry, tmp_path: Path):
        """Test that a failed reload leaves the previous table in place."""
        before = registry.table

        assert registry.load(tmp_path / "missing.types") is None
        assert registry.table is before
        assert registry.resolve("a.txt") == "text/plain"

    def test_reload_swaps_table(self, registry: MediaTypeRegistry, tmp_path: Path):
        """Test that a reload replaces the table object instead of mutating it."""
        old = registry.table
        path = tmp_path / "new.types"
        path.write_text("text/x-custom txt\n")

        registry.load(path)

        assert registry.table is not old
        assert old.lookup("txt") == "text/plain"
        assert registry.resolve("a.txt") == "text/x-custom"
