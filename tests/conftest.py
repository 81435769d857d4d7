"""
pytest configuration and fixtures.
"""

import io
import socket
import threading
from dataclasses import dataclass
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig
from fileserver.http import MediaTypeRegistry, MediaTypes
from fileserver.processor import RequestProcessor


TEST_MIME_TYPES = """\
# test table
text/html               html htm
text/plain              txt
image/png               png
application/json        json
"""


@pytest.fixture
def content_base(tmp_path: Path) -> Path:
    """A content directory with a few files and subdirectories."""
    base = tmp_path / "content"
    base.mkdir()
    (base / "index.html").write_bytes(b"<html><body>Hello</body></html>")
    (base / "notes.txt").write_bytes(b"some notes\n")
    (base / "docs").mkdir()
    (base / "docs" / "guide.txt").write_bytes(b"guide")
    (base / "empty").mkdir()
    return base


@pytest.fixture
def mime_types_file(tmp_path: Path) -> Path:
    path = tmp_path / "mime.types"
    path.write_text(TEST_MIME_TYPES)
    return path


@pytest.fixture
def registry() -> MediaTypeRegistry:
    """Registry holding the small test table."""
    return MediaTypeRegistry(MediaTypes.parse(TEST_MIME_TYPES.splitlines()))


@pytest.fixture
def config(content_base: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        content_base=str(content_base),
        server_name="TestServer/1.0",
        log_level="WARNING",
    )


@pytest.fixture
def processor(config: ServerConfig, registry: MediaTypeRegistry) -> RequestProcessor:
    return RequestProcessor(config, registry)


@dataclass
class RawResponse:
    """A response split into its parts."""

    status_line: str
    headers: list[tuple[str, str]]
    body: bytes

    @property
    def status(self) -> int:
        return int(self.status_line.split()[1])

    def header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


def parse_response(data: bytes) -> RawResponse:
    """Split raw response bytes into status line, headers and body."""
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = []
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers.append((name, value))
    return RawResponse(status_line=lines[0], headers=headers, body=body)


def send_request(processor: RequestProcessor, raw: bytes) -> tuple[bytes, io.BytesIO]:
    """
    Run one request through a processor.

    Returns:
        The response bytes and the input stream (to check what was left
        unread).
    """
    rfile = io.BytesIO(raw)
    wfile = io.BytesIO()
    processor.process(rfile, wfile, ("127.0.0.1", 50000), "test")
    return wfile.getvalue(), rfile


@pytest.fixture
def request_raw(processor: RequestProcessor):
    """Send raw request bytes; get the parsed response back."""
    def _send(raw: bytes) -> RawResponse:
        data, _ = send_request(processor, raw)
        return parse_response(data)
    return _send


@pytest.fixture
def request_stream(processor: RequestProcessor):
    """Send raw request bytes; get the raw response and the input stream."""
    def _send(raw: bytes) -> tuple[bytes, io.BytesIO]:
        return send_request(processor, raw)
    return _send


@pytest.fixture
def process_with():
    """Send raw request bytes through a given processor; get the parsed response."""
    def _send(processor: RequestProcessor, raw: bytes) -> RawResponse:
        data, _ = send_request(processor, raw)
        return parse_response(data)
    return _send


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class, despite the name

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.bound_address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.ready.wait(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def exchange(self, raw: bytes) -> bytes:
        """Send raw bytes and read until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as s:
            s.sendall(raw)
            chunks = []
            while True:
                chunk = s.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def test_server(config: ServerConfig, mime_types_file: Path) -> Generator[TestServer, None, None]:
    """Create a running test server."""
    config.mime_types_path = str(mime_types_file)
    test_srv = TestServer(FileServer(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()
