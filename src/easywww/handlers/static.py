"""
=============================================================================
STATIC FILE RESOLVER
=============================================================================

Fills a Response from a file under a website root.

=============================================================================
FLOW
=============================================================================

    serve(root="./site", uri="/docs/", response)

    1. No root            → response untouched
    2. Join + normalize   → /abs/site/docs
    3. Content-Type       → from the last path segment's extension
    4. Outside the root?  → 403
    5. Missing?           → 404
    6. Directory?         → has index.html: serve "/docs/index.html"
                            otherwise:      501 (no directory listings)
    7. File               → 200, raw bytes, Content-Length
                            read error:     500

=============================================================================
PATHS
=============================================================================

The URI is used as-is: no percent-decoding and no query stripping, so
"/a%20b.html" looks for a file literally named "a%20b.html". A leading "/"
is relative to the root, never to the filesystem root.

Relative roots ("./", "../site") are resolved against the process working
directory.

=============================================================================
"""

import html
import logging
from pathlib import Path
from typing import Optional

from ..http.mime_types import get_mime_type
from ..http.response import Response
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class StaticResolver:
    """
    Serves files from whatever root the response carries.

    Stateless; one instance is shared by all connections.

    Example:
        static = StaticResolver()
        static.serve("./site", "/index.html", response)
        response.status_code   # 200
    """

    def __init__(self, index_file: str = "index.html"):
        self.index_file = index_file

    def serve(self, root: Optional[str], uri: str, response: Response) -> Response:
        if root is None:
            return response

        if uri == "":
            uri = "."

        root_dir = Path(root).resolve()
        try:
            full_path = (root_dir / uri.lstrip("/")).resolve()
        except (OSError, ValueError, RuntimeError):
            # Embedded NUL bytes, symlink loops
            logger.debug("Unresolvable path %r under %s", uri, root_dir)
            response.set_status(HTTPStatus.NOT_FOUND)
            response.set_html(f"Resource at <b>{_escape(uri)}</b> doesn't exist")
            return response

        response.set_content_type(get_mime_type(full_path.name))

        # ─────────────────────────────────────────────────────────────────
        # PATH TRAVERSAL CHECK
        # ─────────────────────────────────────────────────────────────────
        try:
            full_path.relative_to(root_dir)
        except ValueError:
            logger.warning("Path traversal attempt: %s (root %s)", uri, root_dir)
            response.set_status(HTTPStatus.FORBIDDEN)
            response.set_html(f"Access to resource <b>{_escape(uri)}</b> is forbidden")
            return response

        if not full_path.exists():
            response.set_status(HTTPStatus.NOT_FOUND)
            response.set_html(f"Resource at <b>{_escape(uri)}</b> doesn't exist")
            return response

        if full_path.is_dir():
            if (full_path / self.index_file).exists():
                index_uri = uri + self.index_file if uri.endswith("/") else f"{uri}/{self.index_file}"
                return self.serve(root, index_uri, response)

            response.set_status(HTTPStatus.NOT_IMPLEMENTED)
            response.set_html(
                f"Resource <b>{_escape(uri)}</b> is a directory. "
                f"Directory listing is not supported"
            )
            return response

        try:
            payload = full_path.read_bytes()
        except OSError:
            logger.exception("Error reading %s", full_path)
            response.set_status(HTTPStatus.INTERNAL_SERVER_ERROR)
            response.set_html(f"There was an error while fetching resource <b>{_escape(uri)}</b>")
            return response

        response.set_binary(payload)
        response.set_status(HTTPStatus.OK)
        return response

    def __call__(self, response: Response, uri: str) -> Response:
        """Serve from the root already chosen for this response."""
        return self.serve(response.website_root, uri, response)


def _escape(text: str) -> str:
    return html.escape(text, quote=False)
