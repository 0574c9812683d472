"""
=============================================================================
HTTP MESSAGE PARSER
=============================================================================

Line-oriented parser shared by Request.parse() and Response.parse().

Requests and responses have the same framing; only the start line
differs:

    GET /index.html HTTP/1.1          ← start line (3 tokens)
    Host: localhost                   ← headers until the first blank line
    Accept: */*
                                      ← blank line
    body text                         ← everything else

=============================================================================
STATE MACHINE
=============================================================================

    ┌──────────────┐  first non-blank line   ┌──────────┐  blank line  ┌──────┐
    │  START_LINE  │ ──────────────────────► │ HEADERS  │ ───────────► │ BODY │
    └──────────────┘                         └──────────┘              └──────┘
          │                                       │
          │ empty input / bad start line          │ "name: value" or skipped
          ▼                                       ▼
    MalformedMessage                         (never fatal)

Policy: the start line is strict, headers are lenient. A header line
without ":" or with an empty name is dropped, but a start line that does
not split into three parts rejects the whole message.

Bodies are read as text. Each body line is right-trimmed and the lines are
re-joined with CRLF; the assembled body is then stripped. There is no
Content-Length or chunked framing on input.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Tuple


class ParseStage(Enum):
    """Where in the message a parse failure happened."""
    START_LINE = "start-line"
    HEADERS = "headers"
    BODY = "body"


class MalformedMessage(ValueError):
    """
    Raised when raw text cannot be turned into a request or response.

    Carries the stage that failed. The connection engine turns this into a
    400 Bad Request; it never escapes past the connection boundary.
    """

    def __init__(self, message: str, stage: ParseStage = ParseStage.START_LINE):
        super().__init__(message)
        self.stage = stage


@dataclass
class ParsedMessage:
    """Stage-by-stage output of MessageParser before it becomes a Request/Response."""
    start_line: Tuple[str, ...]
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""


# Splits a start line into its parts, or returns None if the line is invalid
StartLineSplitter = Callable[[str], "Tuple[str, ...] | None"]


def split_request_line(line: str) -> "Tuple[str, ...] | None":
    """
    METHOD SP URI SP VERSION → exactly three space-separated tokens.

    "GET / HTTP/1.1" is valid, "GET /a b HTTP/1.1" and "GET /" are not.
    Trailing spaces are ignored, so "GET / HTTP/1.1 " is valid too.
    """
    parts = line.rstrip(" ").split(" ")
    if len(parts) != 3:
        return None
    return tuple(part.strip() for part in parts)


def split_status_line(line: str) -> "Tuple[str, ...] | None":
    """
    VERSION SP CODE SP REASON → the reason phrase may contain spaces.

    "HTTP/1.1 404 Not Found" gives ("HTTP/1.1", "404", "Not Found").
    """
    parts = line.split(" ", 2)
    if len(parts) != 3:
        return None
    return tuple(part.strip() for part in parts)


class MessageParser:
    """
    Explicit START_LINE → HEADERS → BODY parser.

    Usage:
        parsed = MessageParser(split_request_line).parse(raw_text)
        parsed.start_line   # ("GET", "/", "HTTP/1.1")
        parsed.headers      # {"Host": "localhost"}
        parsed.body         # ""
    """

    def __init__(self, split_start_line: StartLineSplitter):
        self._split_start_line = split_start_line

    def parse(self, raw: str) -> ParsedMessage:
        if not raw or not raw.strip():
            raise MalformedMessage("Empty message", ParseStage.START_LINE)

        # CRLF and bare LF are both accepted
        lines = [line.rstrip("\r") for line in raw.split("\n")]

        index = self._skip_blank_lines(lines, 0)
        start_line, index = self._parse_start_line(lines, index)
        headers, index = self._parse_headers(lines, index)
        body = self._parse_body(lines, index)

        return ParsedMessage(start_line=start_line, headers=headers, body=body)

    # =========================================================================
    # STAGES
    # =========================================================================

    @staticmethod
    def _skip_blank_lines(lines: List[str], index: int) -> int:
        while index < len(lines) and not lines[index].strip():
            index += 1
        return index

    def _parse_start_line(self, lines: List[str], index: int) -> Tuple[Tuple[str, ...], int]:
        line = lines[index]
        parts = self._split_start_line(line)
        if parts is None:
            raise MalformedMessage(f"Invalid start line: {line!r}", ParseStage.START_LINE)
        return parts, index + 1

    @staticmethod
    def _parse_headers(lines: List[str], index: int) -> Tuple[Dict[str, str], int]:
        """
        Consume "name: value" lines up to the first blank line.

        Returns the headers and the index of the first body line (the blank
        separator is consumed).
        """
        headers: Dict[str, str] = {}

        while index < len(lines) and lines[index].strip():
            name, sep, value = lines[index].partition(":")
            index += 1

            if not sep or not name.strip():
                continue  # lenient: drop the line, keep parsing

            # Last write wins on duplicate names
            headers[name.strip()] = value.strip()

        # Skip the blank separator line
        return headers, index + 1

    @staticmethod
    def _parse_body(lines: List[str], index: int) -> str:
        if index >= len(lines):
            return ""
        return "\r\n".join(line.rstrip() for line in lines[index:]).strip()
