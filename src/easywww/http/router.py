"""
=============================================================================
HANDLER CHAIN
=============================================================================

Routes a request through URI-prefix handlers before static serving.

=============================================================================
DISPATCH FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   GET /api/users/7                                                   │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌──────────────────────────────────────────────────────────────┐  │
    │   │  HANDLER CHAIN (longest prefix first)                         │  │
    │   │                                                               │  │
    │   │   /api/users   → users_handler     ← match, returns False     │  │
    │   │   /api/admin   → admin_handler       (no match, skipped)      │  │
    │   │   /api         → api_handler       ← match, returns True      │  │
    │   │   /            → catch_all           (never reached)          │  │
    │   └──────────────────────────────────────────────────────────────┘  │
    │        │                                                             │
    │        ▼                                                             │
    │   dispatch() == True → static serving is skipped                    │
    └─────────────────────────────────────────────────────────────────────┘

A handler receives the request and the shared response. It may decorate
the response (add headers, pick a root) and return False to let the chain
continue, or finish the response and return True to stop it.

Matching is a plain character prefix test on the raw URI: "/ap" matches
"/api" as well as "/apple". There are no path segments, methods or
parameters.

=============================================================================
ORDERING
=============================================================================

    1. Longer prefixes first.
    2. Equal lengths: descending lexicographic order.

    register("/a"), register("/abc"), register("/abd"), register("/")
        → ["/abd", "/abc", "/a", "/"]

The order depends only on the set of prefixes, never on registration
order.

=============================================================================
LIFECYCLE
=============================================================================

    HandlerChainBuilder (mutable)  ──build()──►  HandlerChain (immutable)
    register / unregister                        dispatch / prefixes

The server builds its chain once at start() and serves from that snapshot;
the builder is locked while the server runs.

=============================================================================
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .request import Request
from .response import Response


logger = logging.getLogger(__name__)

# A handler returns True when it fully answered the request
Handler = Callable[[Request, Response], bool]


def order_prefixes(prefixes) -> List[str]:
    """Longest first; equal lengths in descending lexicographic order."""
    return sorted(prefixes, key=lambda prefix: (len(prefix), prefix), reverse=True)


class HandlerChain:
    """
    Immutable, ordered list of (prefix, handler) pairs.

    Example:
        chain = builder.build()
        if not chain.dispatch(request, response):
            serve_static(request, response)
    """

    __slots__ = ("_entries",)

    def __init__(self, handlers: Optional[Dict[str, Handler]] = None):
        handlers = handlers or {}
        entries: Tuple[Tuple[str, Handler], ...] = tuple(
            (prefix, handlers[prefix]) for prefix in order_prefixes(handlers)
        )
        object.__setattr__(self, "_entries", entries)

    def __setattr__(self, name, value):
        raise AttributeError("HandlerChain is immutable")

    @property
    def prefixes(self) -> List[str]:
        """Registered prefixes in dispatch order."""
        return [prefix for prefix, _ in self._entries]

    def matching(self, uri: str) -> List[str]:
        """Prefixes that would be tried for this URI, in dispatch order."""
        return [prefix for prefix, _ in self._entries if uri.startswith(prefix)]

    def dispatch(self, request: Request, response: Response) -> bool:
        """
        Run matching handlers in order until one returns True.

        Exceptions from a handler propagate to the caller.

        Returns:
            True if a handler fully handled the request
        """
        for prefix, handler in self._entries:
            if not request.uri.startswith(prefix):
                continue

            if handler(request, response):
                logger.debug("Handler %r answered %s", prefix, request.uri)
                return True

        return False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, prefix: str) -> bool:
        return any(existing == prefix for existing, _ in self._entries)

    def __repr__(self) -> str:
        return f"HandlerChain({self.prefixes!r})"


class HandlerChainBuilder:
    """
    Collects prefix → handler registrations before the server starts.

    Example:
        builder = HandlerChainBuilder()

        @builder.prefix("/api")
        def api(request, response):
            response.set_status(HTTPStatus.OK)
            response.set_html("<p>api</p>")
            return True

        chain = builder.build()
    """

    def __init__(self):
        self._handlers: Dict[str, Handler] = {}

    def register(self, prefix: str, handler: Handler) -> bool:
        """
        Add a handler for a URI prefix.

        Returns:
            False if the prefix is already registered (nothing changes)
        """
        if prefix in self._handlers:
            logger.warning("Handler for prefix %r is already registered", prefix)
            return False

        self._handlers[prefix] = handler
        return True

    def unregister(self, prefix: str) -> bool:
        """Remove a prefix. False if it was not registered."""
        return self._handlers.pop(prefix, None) is not None

    def prefix(self, prefix: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of register().

        Usage:
            @builder.prefix("/status")
            def status(request, response):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.register(prefix, handler)
            return handler
        return decorator

    @property
    def prefixes(self) -> List[str]:
        return order_prefixes(self._handlers)

    def build(self) -> HandlerChain:
        """Snapshot the current registrations."""
        return HandlerChain(dict(self._handlers))

    def __len__(self) -> int:
        return len(self._handlers)
