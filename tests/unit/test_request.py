"""
Unit tests for HTTP request parsing.
"""

import io

import pytest

from fileserver.http.headers import HeaderSet
from fileserver.http.request import (
    HTTPParseError,
    HTTPRequest,
    parse_header_line,
    parse_request_line,
    read_headers,
    read_request_head,
    split_query,
)


class TestRequestLine:
    """Tests for parse_request_line()."""

    def test_three_tokens(self):
        assert parse_request_line("GET /index.html HTTP/1.0") == (
            "GET", "/index.html", "HTTP/1.0",
        )

    def test_extra_whitespace(self):
        """Test that any run of whitespace separates tokens."""
        assert parse_request_line("PUT\t/a  HTTP/1.1 ") == ("PUT", "/a", "HTTP/1.1")

    @pytest.mark.parametrize("line", [
        "",
        "GET",
        "GET /",
        "GET / HTTP/1.1 extra",
    ])
    def test_wrong_token_count(self, line):
        """Test that anything but three tokens is a 400."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request_line(line)
        assert exc_info.value.status_code == 400


class TestSplitQuery:
    """Tests for split_query()."""

    def test_question_mark(self):
        assert split_query("/search?q=x") == ("/search", "q=x")

    def test_ampersand_first(self):
        """Test that "&" also starts the query."""
        assert split_query("/a&b?c") == ("/a", "b?c")

    def test_no_query(self):
        assert split_query("/plain") == ("/plain", None)

    def test_empty_query(self):
        assert split_query("/a?") == ("/a", "")


class TestHeaderLines:
    """Tests for header line parsing and reading."""

    def test_leading_spaces_skipped(self):
        assert parse_header_line("Host:    example.com") == ("Host", "example.com")

    def test_no_space(self):
        assert parse_header_line("Accept:text/html") == ("Accept", "text/html")

    def test_value_with_colon(self):
        assert parse_header_line("Host: localhost:8080") == ("Host", "localhost:8080")

    def test_no_colon(self):
        assert parse_header_line("garbage line") is None

    def test_read_until_blank_line(self):
        rfile = io.BytesIO(b"A: 1\r\nB: 2\r\n\r\nbody")
        headers = HeaderSet()

        read_headers(rfile, headers)

        assert list(headers) == [("A", "1"), ("B", "2")]
        assert rfile.read() == b"body"

    def test_read_until_eof(self):
        rfile = io.BytesIO(b"A: 1\r\nB: 2")
        headers = HeaderSet()

        read_headers(rfile, headers)

        assert list(headers) == [("A", "1"), ("B", "2")]

    def test_bare_newlines(self):
        rfile = io.BytesIO(b"A: 1\nB: 2\n\nbody")
        headers = HeaderSet()

        read_headers(rfile, headers)

        assert len(headers) == 2
        assert rfile.read() == b"body"

    def test_no_folding(self):
        """Test that continuation lines are not joined to the previous header."""
        rfile = io.BytesIO(b"A: 1\r\n   continued\r\n\r\n")
        headers = HeaderSet()

        read_headers(rfile, headers)

        assert list(headers) == [("A", "1")]

    def test_full_store_keeps_draining(self):
        """Test that extra headers are dropped but still consumed."""
        rfile = io.BytesIO(b"A: 1\r\nB: 2\r\nC: 3\r\n\r\nbody")
        headers = HeaderSet(capacity=1)

        dropped = read_headers(rfile, headers)

        assert dropped == 2
        assert list(headers) == [("A", "1")]
        assert rfile.read() == b"body"

    def test_overlong_header_dropped(self):
        rfile = io.BytesIO(b"Long: " + b"x" * 100 + b"\r\nShort: ok\r\n\r\n")
        headers = HeaderSet()

        read_headers(rfile, headers, max_line_length=32)

        assert list(headers) == [("Short", "ok")]


class TestReadRequestHead:
    """Tests for read_request_head()."""

    def test_simple_get(self):
        rfile = io.BytesIO(b"GET /docs/ HTTP/1.1\r\nHost: test\r\n\r\n")
        request = read_request_head(rfile)

        assert request.method == "GET"
        assert request.uri == "/docs/"
        assert request.version == "HTTP/1.1"
        assert request.headers.find("Host") == "test"
        assert request.query is None

    def test_query_stored_as_header(self):
        rfile = io.BytesIO(b"GET /search?q=1&p=2 HTTP/1.1\r\n\r\n")
        request = read_request_head(rfile)

        assert request.uri == "/search"
        assert request.query == "q=1&p=2"
        assert request.headers.find("?") == "q=1&p=2"

    def test_eof_before_request_line(self):
        assert read_request_head(io.BytesIO(b"")) is None

    def test_body_left_unread(self):
        rfile = io.BytesIO(b"PUT /a HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello")
        read_request_head(rfile)
        assert rfile.read() == b"hello"

    def test_overlong_request_line(self):
        rfile = io.BytesIO(b"GET /" + b"a" * 100 + b" HTTP/1.1\r\n\r\n")
        with pytest.raises(HTTPParseError):
            read_request_head(rfile, max_line_length=64)

    def test_malformed_request_line(self):
        with pytest.raises(HTTPParseError):
            read_request_head(io.BytesIO(b"GET\r\n\r\n"))


class TestContentLength:
    """Tests for HTTPRequest.content_length."""

    def make_request(self, *headers: tuple[str, str]) -> HTTPRequest:
        store = HeaderSet()
        for name, value in headers:
            store.put(name, value)
        return HTTPRequest("PUT", "/a", "HTTP/1.1", store)

    def test_missing(self):
        assert self.make_request().content_length is None

    def test_case_insensitive_name(self):
        assert self.make_request(("content-length", "12")).content_length == 12

    def test_first_wins(self):
        request = self.make_request(("Content-Length", "3"), ("Content-Length", "9"))
        assert request.content_length == 3

    @pytest.mark.parametrize("value", ["abc", "-1", "1.5", "", "²"])
    def test_invalid(self, value):
        with pytest.raises(HTTPParseError) as exc_info:
            self.make_request(("Content-Length", value)).content_length
        assert exc_info.value.status_code == 400
