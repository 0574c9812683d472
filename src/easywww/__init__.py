"""
=============================================================================
EASY-WWW
=============================================================================

A minimal HTTP/1.1 static site server with URI-prefix handlers and
subdomain-based website roots.

    from easywww import WebServer, ServerConfig, RoutingConfig

    server = WebServer(ServerConfig(port=8866), RoutingConfig(default_root="./site"))
    server.serve_forever()

Or from a shell:

    python -m easywww --root ./site

=============================================================================
"""

__version__ = "1.0.0"

from .server import WebServer
from .config import ConfigStore, RoutingConfig, ServerConfig

__all__ = ["WebServer", "ConfigStore", "RoutingConfig", "ServerConfig", "__version__"]
