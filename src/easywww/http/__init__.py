"""
=============================================================================
HTTP WIRE MODEL
=============================================================================

Text in, text out: everything between the socket and the filesystem.

    raw text ──► MessageParser ──► Request ──► HandlerChain ──► Response ──► bytes

    message.py       START_LINE → HEADERS → BODY parser, MalformedMessage
    request.py       Immutable parsed request
    response.py      Mutable response with text XOR binary body
    router.py        Ordered URI-prefix handler chain
    status_codes.py  HTTPStatus registry and status classes
    mime_types.py    Extension → MIME type table

=============================================================================
"""

from .message import MalformedMessage, MessageParser, ParseStage
from .request import Request
from .response import Response
from .router import Handler, HandlerChain, HandlerChainBuilder
from .status_codes import HTTPStatus, StatusClass, class_of, reason_for
from .mime_types import get_mime_type, mime_for

__all__ = [
    # Parsing
    "MalformedMessage",
    "MessageParser",
    "ParseStage",

    # Messages
    "Request",
    "Response",

    # Routing
    "Handler",
    "HandlerChain",
    "HandlerChainBuilder",

    # Status codes
    "HTTPStatus",
    "StatusClass",
    "class_of",
    "reason_for",

    # MIME types
    "get_mime_type",
    "mime_for",
]
