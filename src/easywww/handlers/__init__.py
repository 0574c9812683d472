"""
=============================================================================
RESOLVERS
=============================================================================

What happens to a request no handler fully answered:

    virtual_host.py   Host header → website root, or a 303 to the
                      canonical subdomain
    static.py         website root + URI → file contents or an error page

=============================================================================
"""

from .virtual_host import RootDecision, RootResolver, match_subdomain
from .static import StaticResolver

__all__ = [
    "RootDecision",
    "RootResolver",
    "match_subdomain",
    "StaticResolver",
]
