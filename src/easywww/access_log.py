"""
=============================================================================
ACCESS LOG
=============================================================================

One line per answered connection on the "easywww.access" logger.

    text:  127.0.0.1 - - [19/Oct/2026:10:00:00 +0000] "GET /img/a.png" images.localhost 200 5120 1.84ms
    json:  {"connection_id": "3f2a9c1b", "method": "GET", "uri": "/img/a.png", ...}

Route the logger anywhere without touching the server:

    logging.getLogger("easywww.access").addHandler(file_handler)

Connections that time out without sending anything are not logged here
(they produce no response); they show up at DEBUG on easywww.core.connection.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .http.request import Request
from .http.response import Response


logger = logging.getLogger("easywww.access")


@dataclass
class RequestLog:
    """Structured access log entry."""

    connection_id: str
    client_ip: str
    method: str
    uri: str
    host: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "connection_id": self.connection_id,
            "client_ip": self.client_ip,
            "method": self.method,
            "uri": self.uri,
            "host": self.host,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Apache-style line with the Host header added before the status."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.uri}" {self.host or "-"} {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def build_entry(
    connection_id: str,
    client_ip: str,
    request: Optional[Request],
    response: Response,
    started_at: float,
) -> RequestLog:
    """
    Assemble an entry. request is None when the request did not parse.
    """
    return RequestLog(
        connection_id=connection_id,
        client_ip=client_ip or "-",
        method=request.method if request else "-",
        uri=request.uri if request else "-",
        host=request.host if request else "",
        status_code=response.status_code,
        content_length=len(response.body_bytes),
        duration_ms=(time.time() - started_at) * 1000,
        timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
    )


def emit(entry: RequestLog, log_format: str = "text", level: int = logging.INFO):
    if not logger.isEnabledFor(level):
        return

    if log_format == "json":
        logger.log(level, json.dumps(entry.to_dict()))
    else:
        logger.log(level, entry.to_text())
