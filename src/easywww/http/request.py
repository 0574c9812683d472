"""
=============================================================================
HTTP REQUEST
=============================================================================

Structured form of the raw text a client sends.

=============================================================================
REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /img/logo.png HTTP/1.1\r\n        ← request line                │
    │  ─┬─ ──────┬────── ───┬────                                          │
    │   │        │          │                                              │
    │ method    uri      http_version                                      │
    │                                                                      │
    │  Host: images.example.com\r\n          ← headers                     │
    │  Accept: */*\r\n                                                      │
    │  \r\n                                  ← blank line                  │
    │  optional body text                    ← body                        │
    └─────────────────────────────────────────────────────────────────────┘

Differences from a full HTTP/1.1 parser:

    - The URI is kept exactly as sent: no percent-decoding, no split into
      path and query string. Handler prefixes match against the raw text.
    - Header names keep their case. Lookups try the exact name first and
      fall back to a case-insensitive scan (see get_header()).
    - The body is text. It is whatever followed the blank line, with
      trailing whitespace trimmed per line.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .message import MalformedMessage, MessageParser, ParseStage, split_request_line


_parser = MessageParser(split_request_line)


@dataclass(frozen=True)
class Request:
    """
    A parsed, immutable HTTP request.

    Build one with Request.parse(raw_text); a Request never exists for
    empty or malformed input.

    Example:
        >>> req = Request.parse("GET /a HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
        >>> req.method, req.uri, req.host
        ('GET', '/a', 'x')
    """

    method: str
    uri: str
    http_version: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def parse(cls, raw: str) -> "Request":
        """
        Parse raw request text.

        Raises:
            MalformedMessage: empty input or a request line that is not
                exactly METHOD SP URI SP VERSION.
        """
        parsed = _parser.parse(raw)
        method, uri, version = parsed.start_line

        if not method or not uri or not version:
            raise MalformedMessage(
                f"Incomplete request line: {' '.join(parsed.start_line)!r}",
                ParseStage.START_LINE,
            )

        return cls(
            method=method,
            uri=uri,
            http_version=version,
            headers=parsed.headers,
            body=parsed.body,
        )

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Header value by name.

        Exact-case match wins; otherwise the first header whose name matches
        case-insensitively is returned.
        """
        if name in self.headers:
            return self.headers[name]

        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    @property
    def host(self) -> str:
        """The Host header, or "" when the client sent none."""
        return self.get_header("Host", "") or ""

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_text(self) -> str:
        lines = [f"{self.method} {self.uri} {self.http_version}"]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        lines.append("")
        lines.append(self.body)
        return "\r\n".join(lines).strip()

    def to_bytes(self) -> bytes:
        """UTF-8 wire form, e.g. for sending from a test client."""
        return self.to_text().encode("utf-8")

    def __str__(self) -> str:
        return self.to_text()
