"""
Unit tests for the static file resolver.
"""

from pathlib import Path

import pytest

from easywww.handlers.static import StaticResolver
from easywww.http.response import Response


@pytest.fixture
def static() -> StaticResolver:
    return StaticResolver()


def serve(static: StaticResolver, site: Path, uri: str) -> Response:
    return static.serve(str(site), uri, Response())


class TestFiles:

    def test_serves_file_bytes(self, static, site):
        response = serve(static, site, "/img/logo.png")

        assert response.status_code == 200
        assert response.binary == (site / "img" / "logo.png").read_bytes()
        assert response.get_header("Content-Type") == "image/png; charset=utf-8"
        assert response.binary_headers() == {"Content-Length": str(len(response.binary))}

    def test_text_file_is_also_binary(self, static, site):
        response = serve(static, site, "/about.txt")

        assert response.is_binary
        assert response.binary == b"about us"
        assert response.get_header("Content-Type") == "text/plain; charset=utf-8"

    def test_unknown_extension_default_type(self, static, site):
        (site / "data.weird").write_bytes(b"?")

        response = serve(static, site, "/data.weird")

        assert response.status_code == 200
        assert response.get_header("Content-Type") == "application/octet-stream; charset=utf-8"

    def test_uri_without_leading_slash(self, static, site):
        assert serve(static, site, "about.txt").status_code == 200


class TestDirectories:

    def test_root_serves_index(self, static, site):
        response = serve(static, site, "/")

        assert response.status_code == 200
        assert response.binary == b"<h1>home</h1>"
        assert response.get_header("Content-Type") == "text/html; charset=utf-8"

    def test_empty_uri_is_root(self, static, site):
        response = serve(static, site, "")

        assert response.status_code == 200
        assert response.binary == b"<h1>home</h1>"

    @pytest.mark.parametrize("uri", ["/docs", "/docs/"])
    def test_directory_with_index(self, static, site, uri):
        response = serve(static, site, uri)

        assert response.status_code == 200
        assert response.binary == b"<h1>docs</h1>"

    def test_directory_without_index(self, static, site):
        response = serve(static, site, "/empty")

        assert response.status_code == 501
        assert "is a directory" in response.text
        assert response.binary is None


class TestErrors:

    def test_missing_file(self, static, site):
        response = serve(static, site, "/nope.html")

        assert response.status_code == 404
        assert response.text == "Resource at <b>/nope.html</b> doesn't exist"
        assert response.get_header("Content-Type") == "text/html; charset=utf-8"

    def test_uri_is_not_decoded(self, static, site):
        (site / "a b.txt").write_text("spaced", encoding="utf-8")

        assert serve(static, site, "/a%20b.txt").status_code == 404

    def test_error_body_escapes_uri(self, static, site):
        response = serve(static, site, "/<script>.html")

        assert "<script>" not in response.text
        assert "&lt;script&gt;" in response.text

    def test_read_failure(self, static, site, monkeypatch):
        (site / "a&b.txt").write_text("unreadable", encoding="utf-8")

        def fail(path):
            raise OSError("disk on fire")

        monkeypatch.setattr(Path, "read_bytes", fail)

        response = serve(static, site, "/a&b.txt")

        assert response.status_code == 500
        assert response.text == "There was an error while fetching resource <b>/a&amp;b.txt</b>"
        assert response.get_header("Content-Type") == "text/html; charset=utf-8"
        assert response.binary is None
        assert b"unreadable" not in response.to_bytes()

    @pytest.mark.parametrize("uri", ["/../secret.txt", "/docs/../../secret.txt"])
    def test_traversal_forbidden(self, static, site, uri):
        response = serve(static, site, uri)

        assert response.status_code == 403
        assert response.binary is None

    def test_dot_dot_inside_root_allowed(self, static, site):
        response = serve(static, site, "/docs/../about.txt")

        assert response.status_code == 200
        assert response.binary == b"about us"


class TestRootSelection:

    def test_no_root_leaves_response_untouched(self, static):
        response = static.serve(None, "/index.html", Response())

        assert response.status_code == 501
        assert response.headers == {}

    def test_call_uses_response_root(self, static, site):
        response = Response()
        response.website_root = str(site / "img")

        static(response, "/logo.png")

        assert response.status_code == 200

    def test_relative_root_against_working_directory(self, static, site, monkeypatch):
        monkeypatch.chdir(site.parent)

        response = static.serve("./site", "/about.txt", Response())

        assert response.status_code == 200
