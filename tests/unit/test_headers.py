"""
Unit tests for the header store.
"""

import pytest

from fileserver.http.headers import HeaderSet


class TestHeaderSet:
    """Tests for HeaderSet."""

    def test_insertion_order(self):
        """Test that pairs come back in the order they were added."""
        headers = HeaderSet()
        headers.put("Server", "Test")
        headers.put("Date", "now")
        headers.put("Content-Length", "5")

        assert list(headers) == [
            ("Server", "Test"),
            ("Date", "now"),
            ("Content-Length", "5"),
        ]
        assert headers.get(0) == ("Server", "Test")
        assert headers.get(2) == ("Content-Length", "5")

    def test_get_past_end(self):
        """Test positional access beyond the last pair."""
        headers = HeaderSet()
        headers.put("A", "1")

        assert headers.get(1) is None
        assert headers.get(-1) is None

    def test_duplicates_kept_first_wins(self):
        """Test that duplicate names are kept and find() returns the first."""
        headers = HeaderSet()
        headers.put("Accept", "text/html")
        headers.put("Accept", "text/plain")

        assert len(headers) == 2
        assert headers.find("Accept") == "text/html"
        assert headers.find("Accept", start=1) == "text/plain"
        assert headers.find("Accept", start=2) is None

    def test_find_is_case_sensitive_by_default(self):
        """Test exact and case-insensitive lookup."""
        headers = HeaderSet()
        headers.put("content-length", "42")

        assert headers.find("Content-Length") is None
        assert headers.find("Content-Length", ignore_case=True) == "42"

    def test_capacity(self):
        """Test that a full store refuses new pairs without changing."""
        headers = HeaderSet(capacity=2)

        assert headers.put("A", "1") is True
        assert headers.put("B", "2") is True
        assert headers.is_full
        assert headers.put("C", "3") is False

        assert len(headers) == 2
        assert headers.find("C") is None

    def test_unbounded(self):
        """Test that capacity=None never fills up."""
        headers = HeaderSet(capacity=None)
        for i in range(500):
            assert headers.put(f"X-{i}", str(i))
        assert len(headers) == 500

    def test_negative_capacity_rejected(self):
        with pytest.raises(ValueError):
            HeaderSet(capacity=-1)

    def test_contains(self):
        headers = HeaderSet()
        headers.put("?", "q=1")

        assert "?" in headers
        assert "Host" not in headers
