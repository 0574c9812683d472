"""
=============================================================================
HTTP RESPONSE
=============================================================================

Mutable response that handlers and resolvers fill in, serialized once at
the end of the connection.

=============================================================================
BODY MODEL
=============================================================================

A response carries exactly one of two payloads:

    ┌──────────────┬──────────────────────────────┬──────────────────────────┐
    │  Payload     │  Set by                      │  On the wire             │
    ├──────────────┼──────────────────────────────┼──────────────────────────┤
    │  text        │  set_text() / set_html()     │  UTF-8 encoded, no       │
    │              │                              │  Content-Length          │
    ├──────────────┼──────────────────────────────┼──────────────────────────┤
    │  binary      │  set_binary()                │  raw bytes, plus         │
    │              │                              │  Content-Length          │
    └──────────────┴──────────────────────────────┴──────────────────────────┘

Selecting one clears the other. The connection closes after every
response, so a text body is delimited by the close.

=============================================================================
SERIALIZATION FORMAT
=============================================================================

    HTTP/1.1 200 OK\r\n                       ← status line
    Content-Type: image/png; charset=utf-8\r\n
    Server: Easy-WWW\r\n                      ← headers, insertion order
    Content-Length: 5120\r\n                  ← binary bodies only
    \r\n
    <payload>

A fresh Response is "501 Not Implemented" with an empty text body, so a
request nobody answers says so explicitly.

=============================================================================
"""

from typing import Dict, Optional, Union

from .message import MalformedMessage, MessageParser, ParseStage, split_status_line
from .status_codes import HTTPStatus, StatusClass, class_of, reason_for


HTTP_VERSION = "HTTP/1.1"

# Used on the status line when no reason phrase is known
PLACEHOLDER_REASON = "Status message not set"

_parser = MessageParser(split_status_line)


class Response:
    """
    An HTTP response under construction.

    Example:
        response = Response()
        response.set_status(HTTPStatus.OK)
        response.set_content_type("text/html")
        response.set_html("<h1>Hello</h1>")
        sock.sendall(response.to_bytes())
    """

    def __init__(self):
        self.status_code: int = int(HTTPStatus.NOT_IMPLEMENTED)
        self.status_message: str = HTTPStatus.NOT_IMPLEMENTED.phrase
        self.headers: Dict[str, str] = {}

        # Exactly one of these is not None
        self._text: Optional[str] = ""
        self._binary: Optional[bytes] = None

        # Filesystem root the static resolver serves from for this request
        self.website_root: Optional[str] = None

    # =========================================================================
    # STATUS
    # =========================================================================

    def set_status(self, status: Union[HTTPStatus, int], message: Optional[str] = None) -> "Response":
        """
        Set the status code and reason phrase.

        The phrase defaults to the registry's phrase for the code, or "" for
        unregistered codes.
        """
        self.status_code = int(status)
        self.status_message = message if message is not None else reason_for(self.status_code)
        return self

    @property
    def status_class(self) -> StatusClass:
        return class_of(self.status_code)

    @property
    def status_line(self) -> str:
        return f"{HTTP_VERSION} {self.status_code} {self.status_message or PLACEHOLDER_REASON}"

    # =========================================================================
    # HEADERS
    # =========================================================================

    def set_header(self, name: str, value: str) -> "Response":
        self.headers[name] = value
        return self

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name, default)

    def remove_header(self, name: str) -> bool:
        return self.headers.pop(name, None) is not None

    def set_content_type(self, mime_type: str) -> "Response":
        """Content-Type is always sent with a UTF-8 charset parameter."""
        return self.set_header("Content-Type", f"{mime_type}; charset=utf-8")

    def binary_headers(self) -> Dict[str, str]:
        """Headers that only exist while the binary payload is active."""
        if self._binary is None:
            return {}
        return {"Content-Length": str(len(self._binary))}

    # =========================================================================
    # BODY
    # =========================================================================

    @property
    def text(self) -> Optional[str]:
        return self._text

    @property
    def binary(self) -> Optional[bytes]:
        return self._binary

    @property
    def is_binary(self) -> bool:
        return self._binary is not None

    def set_text(self, text: str) -> "Response":
        self._text = text
        self._binary = None
        return self

    def set_html(self, html: str) -> "Response":
        """Text body plus a text/html Content-Type."""
        self.set_content_type("text/html")
        return self.set_text(html)

    def set_binary(self, payload: bytes) -> "Response":
        self._binary = bytes(payload)
        self._text = None
        return self

    @property
    def body_bytes(self) -> bytes:
        if self._binary is not None:
            return self._binary
        return (self._text or "").encode("utf-8")

    # =========================================================================
    # WIRE FORMAT
    # =========================================================================

    def to_bytes(self) -> bytes:
        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        lines.extend(f"{name}: {value}" for name, value in self.binary_headers().items())
        lines.append("")

        head = ("\r\n".join(lines) + "\r\n").encode("utf-8")
        return head + self.body_bytes

    @classmethod
    def parse(cls, raw: str) -> "Response":
        """
        Parse response text, e.g. from a test client.

        Raises:
            MalformedMessage: empty input, fewer than three status line
                parts, or a non-integer status code.
        """
        parsed = _parser.parse(raw)
        _version, code, reason = parsed.start_line

        try:
            status_code = int(code)
        except ValueError:
            raise MalformedMessage(f"Invalid status code: {code!r}", ParseStage.START_LINE)

        response = cls()
        response.set_status(status_code, reason)
        response.headers.update(parsed.headers)
        response.set_text(parsed.body)
        return response

    def __repr__(self) -> str:
        kind = "binary" if self.is_binary else "text"
        return f"<Response {self.status_code} {self.status_message!r} {kind}>"
