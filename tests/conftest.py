"""
pytest configuration and fixtures.
"""

import socket
import time
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from easywww import RoutingConfig, ServerConfig, WebServer
from easywww.http import HTTPStatus, Request, Response


@pytest.fixture
def sample_get_request() -> str:
    """Sample HTTP GET request."""
    return (
        "GET /img/logo.png HTTP/1.1\r\n"
        "Host: images.localhost\r\n"
        "User-Agent: pytest\r\n"
        "Accept: */*\r\n"
        "\r\n"
    )


@pytest.fixture
def sample_post_request() -> str:
    """Sample HTTP POST request with a multi-line body."""
    return (
        "POST /api/notes HTTP/1.1\r\n"
        "Host: localhost\r\n"
        "Content-Type: text/plain\r\n"
        "\r\n"
        "first line   \r\n"
        "second line\r\n"
        "\r\n"
    )


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """
    A small website tree:

        site/
          index.html
          about.txt
          docs/index.html
          empty/
          img/logo.png
          img/sub/
    """
    root = tmp_path / "site"
    (root / "docs").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "img" / "sub").mkdir(parents=True)

    (root / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (root / "about.txt").write_text("about us", encoding="utf-8")
    (root / "docs" / "index.html").write_text("<h1>docs</h1>", encoding="utf-8")
    (root / "img" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x01\x02")

    (tmp_path / "secret.txt").write_text("outside the root", encoding="utf-8")
    return root


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration: any free port, short read wait."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        max_workers=2,
        queue_size=8,
        read_wait_limit=0.5,
        log_level="WARNING",
        open_in_browser=False,
    )


@pytest.fixture
def routing(site: Path) -> RoutingConfig:
    return RoutingConfig(
        default_root=str(site),
        hostname="localhost",
        subdomain_roots={"images": str(site / "img")},
        redirect_to_matched_subdomain=True,
    )


@pytest.fixture
def web_server(config: ServerConfig, routing: RoutingConfig) -> Generator[WebServer, None, None]:
    """A running server with one handler on /hello."""
    server = WebServer(config, routing)

    @server.handler("/hello")
    def hello(request: Request, response: Response) -> bool:
        response.set_status(HTTPStatus.OK)
        response.set_html("<h1>hello</h1>")
        return True

    server.start()
    yield server
    server.stop()


def http_exchange(port: int, payload: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes and read until the server closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        if payload:
            sock.sendall(payload)

        chunks = []
        deadline = time.time() + timeout
        while time.time() < deadline:
            try:
                chunk = sock.recv(65536)
            except ConnectionResetError:
                break
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def exchange():
    return http_exchange
