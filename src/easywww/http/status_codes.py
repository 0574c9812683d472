"""
=============================================================================
HTTP STATUS REGISTRY
=============================================================================

Numeric status codes, their reason phrases and their class (1xx..5xx).

=============================================================================
STATUS CODE CLASSES
=============================================================================

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  1xx   │ INFORMATIONAL: Request received, continuing process       │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  2xx   │ SUCCESS: 200 is what a served file gets                   │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  3xx   │ REDIRECTION: 303 sends a browser to the canonical         │
    │        │ subdomain                                                 │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ CLIENT ERROR: 400 unparsable request, 403 path outside    │
    │        │ the root, 404 missing file                                │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ SERVER ERROR: 500 read failure, 501 default/unsupported,  │
    │        │ 503 worker pool saturated                                 │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  xxx   │ OTHER: anything outside 100..599 (custom codes)           │
    └────────┴───────────────────────────────────────────────────────────┘

The registry is a static table. Responses may carry codes that are not in
it; reason_for() then returns an empty string and the serializer falls
back to a placeholder phrase.

=============================================================================
"""

from enum import Enum, IntEnum


class StatusClass(Enum):
    """Classification of a status code by its first digit."""
    OTHER = "xxx"
    INFORMATIONAL = "1xx"
    SUCCESS = "2xx"
    REDIRECTION = "3xx"
    CLIENT_ERROR = "4xx"
    SERVER_ERROR = "5xx"


class HTTPStatus(IntEnum):
    """
    HTTP status codes known to the server.

    IntEnum, so members compare equal to plain ints:

        >>> HTTPStatus.SEE_OTHER == 303
        True
        >>> HTTPStatus.SEE_OTHER.phrase
        'See Other'
        >>> HTTPStatus.SEE_OTHER.status_class
        <StatusClass.REDIRECTION: '3xx'>
    """

    # 1xx
    CONTINUE = 100
    SWITCHING_PROTOCOLS = 101

    # 2xx
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NON_AUTHORITATIVE_INFORMATION = 203
    NO_CONTENT = 204
    RESET_CONTENT = 205
    PARTIAL_CONTENT = 206

    # 3xx
    MULTIPLE_CHOICES = 300
    MOVED_PERMANENTLY = 301
    FOUND = 302
    SEE_OTHER = 303
    NOT_MODIFIED = 304
    USE_PROXY = 305
    TEMPORARY_REDIRECT = 307

    # 4xx
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    PAYMENT_REQUIRED = 402
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    NOT_ACCEPTABLE = 406
    PROXY_AUTHENTICATION_REQUIRED = 407
    REQUEST_TIMEOUT = 408
    CONFLICT = 409
    GONE = 410
    LENGTH_REQUIRED = 411
    PRECONDITION_FAILED = 412
    PAYLOAD_TOO_LARGE = 413
    URI_TOO_LONG = 414
    UNSUPPORTED_MEDIA_TYPE = 415
    RANGE_NOT_SATISFIABLE = 416
    EXPECTATION_FAILED = 417

    # 5xx
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase used on the status line ("HTTP/1.1 303 See Other")."""
        return _STATUS_PHRASES[self]

    @property
    def status_class(self) -> StatusClass:
        return class_of(self)


_STATUS_PHRASES = {
    HTTPStatus.CONTINUE: "Continue",
    HTTPStatus.SWITCHING_PROTOCOLS: "Switching Protocols",

    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.ACCEPTED: "Accepted",
    HTTPStatus.NON_AUTHORITATIVE_INFORMATION: "Non-Authoritative Information",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.RESET_CONTENT: "Reset Content",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",

    HTTPStatus.MULTIPLE_CHOICES: "Multiple Choices",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.SEE_OTHER: "See Other",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.USE_PROXY: "Use Proxy",
    HTTPStatus.TEMPORARY_REDIRECT: "Temporary Redirect",

    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.PAYMENT_REQUIRED: "Payment Required",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.NOT_ACCEPTABLE: "Not Acceptable",
    HTTPStatus.PROXY_AUTHENTICATION_REQUIRED: "Proxy Authentication Required",
    HTTPStatus.REQUEST_TIMEOUT: "Request Time-out",
    HTTPStatus.CONFLICT: "Conflict",
    HTTPStatus.GONE: "Gone",
    HTTPStatus.LENGTH_REQUIRED: "Length Required",
    HTTPStatus.PRECONDITION_FAILED: "Precondition Failed",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Request Entity Too Large",
    HTTPStatus.URI_TOO_LONG: "Request-URI Too Large",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Requested range not satisfiable",
    HTTPStatus.EXPECTATION_FAILED: "Expectation Failed",

    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.BAD_GATEWAY: "Bad Gateway",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.GATEWAY_TIMEOUT: "Gateway Time-out",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version not supported",
}


def reason_for(code: int) -> str:
    """
    Reason phrase for a numeric code, or "" when the code is not registered.

    Example:
        >>> reason_for(404)
        'Not Found'
        >>> reason_for(299)
        ''
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


def class_of(code: int) -> StatusClass:
    """
    Classify any integer code by its hundreds digit.

    Codes outside 100..599 are StatusClass.OTHER, registered or not.
    """
    if 100 <= code < 200:
        return StatusClass.INFORMATIONAL
    if 200 <= code < 300:
        return StatusClass.SUCCESS
    if 300 <= code < 400:
        return StatusClass.REDIRECTION
    if 400 <= code < 500:
        return StatusClass.CLIENT_ERROR
    if 500 <= code < 600:
        return StatusClass.SERVER_ERROR
    return StatusClass.OTHER
