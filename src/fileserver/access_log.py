"""
=============================================================================
ACCESS LOG
=============================================================================

One log record per answered request, written to the "fileserver.access"
logger in either Apache-style text or JSON.

=============================================================================
FORMATS
=============================================================================

    text:
        127.0.0.1 - - [06/Nov/2026:08:49:37 +0000] "GET /index.html" 200 512 0.84ms [a1b2c3d4]

    json:
        {"connection_id": "a1b2c3d4", "method": "GET", "uri": "/index.html",
         "query": "", "client_ip": "127.0.0.1", "status_code": 200,
         "bytes_sent": 512, "duration_ms": 0.84, "timestamp": "..."}

Requests that never produced a response (the peer closed the connection
before sending a request line) are not logged.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass


# Namespaced so the access log can be routed or silenced on its own:
#     logging.getLogger("fileserver.access").setLevel(logging.WARNING)
logger = logging.getLogger("fileserver.access")

LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    connection_id:  Short id of the connection (matches worker log lines)
    method:         Request method as sent
    uri:            Escaped request URI without the query
    query:          Query string, or "" if none
    client_ip:      Peer address
    status_code:    Status written, or 0 if none was written
    bytes_sent:     Body bytes written
    duration_ms:    Time from first byte read to last byte written
    timestamp:      When the request was processed
    """

    connection_id: str
    method: str
    uri: str
    query: str
    client_ip: str
    status_code: int
    bytes_sent: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "connection_id": self.connection_id,
            "method": self.method,
            "uri": self.uri,
            "query": self.query,
            "client_ip": self.client_ip,
            "status_code": self.status_code,
            "bytes_sent": self.bytes_sent,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Format as an Apache-style access log line."""
        target = f"{self.uri}?{self.query}" if self.query else self.uri
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {target}" {self.status_code} '
            f'{self.bytes_sent} {self.duration_ms:.2f}ms [{self.connection_id}]'
        )


class AccessLogger:
    """Emits RequestLog entries in the configured format."""

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    def log(
        self,
        *,
        connection_id: str,
        method: str,
        uri: str,
        query: str,
        client_ip: str,
        status_code: int,
        bytes_sent: int,
        started: float,
    ) -> RequestLog:
        entry = RequestLog(
            connection_id=connection_id,
            method=method,
            uri=uri,
            query=query,
            client_ip=client_ip,
            status_code=status_code,
            bytes_sent=bytes_sent,
            duration_ms=(time.time() - started) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
        return entry
