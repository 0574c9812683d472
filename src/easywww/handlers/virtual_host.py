"""
=============================================================================
VIRTUAL HOST RESOLUTION
=============================================================================

Picks the filesystem root for a request from its Host header, or decides
to redirect the browser to the canonical subdomain.

=============================================================================
DECISION TABLE
=============================================================================

Configuration used in the examples:

    hostname        = localhost
    defaultRoot     = ./
    subdomainRoot:images       = ./img
    subdomainRoot:images.other = ../other/img
    redirectToMatchedSubdomain = true

    ┌──────────────────────────────┬──────────────────────────────────────────┐
    │  Host header                 │  Decision                                │
    ├──────────────────────────────┼──────────────────────────────────────────┤
    │  localhost                   │  serve from ./                           │
    │  images.localhost            │  serve from ./img                        │
    │  images.other.localhost      │  serve from ../other/img                 │
    │  aaa.images.localhost        │  303 → //images.localhost<uri>           │
    │  other.localhost             │  303 → //localhost<uri>                  │
    │  127.0.0.1:8866              │  serve from ./  (not under hostname)     │
    └──────────────────────────────┴──────────────────────────────────────────┘

With redirectToMatchedSubdomain = false the two 303 rows serve from the
matched root (./img and ./) instead.

=============================================================================
SUBDOMAIN SCAN
=============================================================================

For Host = "aaa.images.localhost" the candidates are the texts between
each "." boundary (plus the start of the string) and the hostname:

    aaa.images.localhost
    ▲   ▲      ▲
    │   │      └── hostname starts here: scanning stops
    │   └── "images."       ← matches key "images"
    └── "aaa.images."       ← no key "aaa.images"

Candidates are tried leftmost first, so the longest configured subdomain
wins.

The suffix test is a plain string test: with hostname "localhost",
"mylocalhost" counts as being under the hostname too and is redirected to
"//localhost<uri>" when redirects are enabled.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from ..http.request import Request
from ..http.response import Response
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RootDecision:
    """
    Outcome of root resolution.

    root:              Directory to serve from (None: nothing to serve)
    subdomain:         Matched label including its trailing dot ("images."),
                       "" when no subdomain matched
    redirect_location: Set when the browser should be sent elsewhere
    """
    root: Optional[str] = None
    subdomain: str = ""
    redirect_location: Optional[str] = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect_location is not None

    def apply(self, response: Response) -> bool:
        """
        Write the decision into the response.

        Returns:
            True if the caller should go on to serve static content from
            response.website_root
        """
        if self.redirect_location is not None:
            response.set_status(HTTPStatus.SEE_OTHER)
            response.set_header("Location", self.redirect_location)
            return False

        if self.root is None:
            return False

        response.website_root = self.root
        return True


def match_subdomain(host: str, hostname: str, subdomains: Mapping[str, str]) -> Tuple[str, Optional[str]]:
    """
    Find the longest configured subdomain of host in front of hostname.

    Assumes host ends with hostname.

    Returns:
        (label with trailing dot, root) or ("", None) when nothing matched

    Example:
        >>> match_subdomain("aaa.images.localhost", "localhost", {"images": "./img"})
        ('images.', './img')
    """
    hostname_start = len(host) - len(hostname)

    # The start of the string acts as a boundary before index 0
    boundary = -1
    while True:
        start = boundary + 1
        if start >= hostname_start:
            break

        candidate = host[start:hostname_start]
        for key, root in subdomains.items():
            if candidate == key + ".":
                return candidate, root

        boundary = host.find(".", start)
        if boundary < 0:
            break

    return "", None


class RootResolver:
    """
    Maps (Host header, URI) to a RootDecision using routing settings.

    The settings object needs these attributes:
        default_root, hostname, subdomain_roots, redirect_to_matched_subdomain
    (see easywww.config.RoutingConfig).

    Example:
        decision = RootResolver(routing).resolve(request)
        if decision.apply(response):
            static.serve(response.website_root, request.uri, response)
    """

    def __init__(self, routing):
        self.routing = routing

    def resolve(self, request: Request) -> RootDecision:
        return self.resolve_host(request.host, request.uri)

    def resolve_host(self, host: str, uri: str) -> RootDecision:
        routing = self.routing
        hostname = routing.hostname
        default_root = routing.default_root

        if not hostname:
            return RootDecision(root=default_root)

        if host == hostname:
            return RootDecision(root=default_root)

        if not host.endswith(hostname):
            # Reached by IP or some other name
            return RootDecision(root=default_root)

        label, root = match_subdomain(host, hostname, routing.subdomain_roots)
        if not label:
            root = default_root

        if not routing.redirect_to_matched_subdomain or label + hostname == host:
            return RootDecision(root=root, subdomain=label)

        location = f"//{label}{hostname}{uri}"
        logger.debug("Redirecting %s%s to %s", host, uri, location)
        return RootDecision(root=root, subdomain=label, redirect_location=location)
