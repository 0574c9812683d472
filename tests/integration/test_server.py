"""
End-to-end tests over real sockets.
"""

import json
import logging
import socket
import time

import pytest

from easywww import RoutingConfig, ServerConfig, WebServer
from easywww.__main__ import build_parser, load_settings, main
from easywww.core import BindError
from easywww.http import HTTPStatus, Request


def get(uri: str, host: str = "localhost") -> bytes:
    return f"GET {uri} HTTP/1.1\r\nHost: {host}\r\nUser-Agent: pytest\r\n\r\n".encode("ascii")


def split(raw: bytes):
    """(status line, headers, body) of a raw response."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = dict(line.split(": ", 1) for line in lines[1:])
    return lines[0], headers, body


class TestStaticSite:

    def test_index(self, web_server, exchange):
        status, headers, body = split(exchange(web_server.port, get("/")))

        assert status == "HTTP/1.1 200 OK"
        assert body == b"<h1>home</h1>"
        assert headers["Content-Type"] == "text/html; charset=utf-8"
        assert headers["Content-Length"] == str(len(body))
        assert headers["Requested-URI"] == "/"
        assert headers["Server"] == "Easy-WWW"

    def test_subdomain_root(self, web_server, exchange, site):
        status, headers, body = split(exchange(web_server.port, get("/logo.png", host="images.localhost")))

        assert status == "HTTP/1.1 200 OK"
        assert body == (site / "img" / "logo.png").read_bytes()
        assert headers["Content-Type"] == "image/png; charset=utf-8"

    def test_redirect_to_matched_subdomain(self, web_server, exchange):
        status, headers, body = split(exchange(web_server.port, get("/logo.png?v=2", host="aaa.images.localhost")))

        assert status == "HTTP/1.1 303 See Other"
        assert headers["Location"] == "//images.localhost/logo.png?v=2"
        assert body == b""

    def test_missing_file(self, web_server, exchange):
        status, _, body = split(exchange(web_server.port, get("/missing.css")))

        assert status == "HTTP/1.1 404 Not Found"
        assert b"/missing.css" in body

    def test_traversal(self, web_server, exchange):
        status, _, body = split(exchange(web_server.port, get("/../secret.txt")))

        assert status == "HTTP/1.1 403 Forbidden"
        assert b"outside the root" not in body


class TestHandlers:

    def test_handler_answers(self, web_server, exchange):
        status, headers, body = split(exchange(web_server.port, get("/hello/world")))

        assert status == "HTTP/1.1 200 OK"
        assert body == b"<h1>hello</h1>"
        assert headers["Requested-URI"] == "/hello/world"

    def test_registration_closed_while_running(self, web_server):
        assert web_server.add_handler("/late", lambda req, res: True) is False
        assert web_server.remove_handler("/hello") is False
        assert web_server.handlers.prefixes == ["/hello"]

    def test_handler_may_pass_through_to_static(self, config, routing, exchange):
        server = WebServer(config, routing)

        @server.handler("/")
        def tag(request, response):
            response.set_header("X-Seen", "yes")
            return False

        with server:
            status, headers, body = split(exchange(server.port, get("/about.txt")))

        assert status == "HTTP/1.1 200 OK"
        assert headers["X-Seen"] == "yes"
        assert body == b"about us"

    def test_failing_handler_gives_500(self, config, routing, exchange):
        server = WebServer(config, routing)

        @server.handler("/boom")
        def boom(request, response):
            raise RuntimeError("secret detail")

        with server:
            status, _, body = split(exchange(server.port, get("/boom")))

        assert status == "HTTP/1.1 500 Internal Server Error"
        assert body == b"<h1>INTERNAL SERVER ERROR</h1>"

    def test_handle_request_without_sockets(self, config, routing):
        server = WebServer(config, routing)
        server.add_handler("/api", lambda req, res: bool(res.set_status(HTTPStatus.NO_CONTENT)))

        response = server.handle_request(Request.parse("GET /api/x HTTP/1.1\r\nHost: localhost\r\n\r\n"))

        assert response.status_code == 204
        assert response.get_header("Requested-URI") == "/api/x"


class TestBadClients:

    def test_garbage_request(self, web_server, exchange):
        status, headers, body = split(exchange(web_server.port, b"THIS IS NOT HTTP\r\n\r\n"))

        assert status == "HTTP/1.1 400 Bad Request"
        assert body == b"<h1>BAD REQUEST</h1>"
        assert "Requested-URI" not in headers

    def test_silent_client_gets_nothing(self, web_server, exchange):
        started = time.time()
        raw = exchange(web_server.port, b"", timeout=5.0)

        assert raw == b""
        assert time.time() - started < 4.0

    def test_saturated_pool_gets_503(self, routing, exchange):
        config = ServerConfig(
            host="127.0.0.1",
            port=0,
            max_workers=1,
            queue_size=1,
            read_wait_limit=2.0,
            log_level="WARNING",
            open_in_browser=False,
        )

        with WebServer(config, routing) as server:
            # One silent client holds the worker, a second fills the queue
            first = socket.create_connection(("127.0.0.1", server.port))
            time.sleep(0.3)
            second = socket.create_connection(("127.0.0.1", server.port))
            time.sleep(0.3)
            try:
                status, _, body = split(exchange(server.port, get("/")))
            finally:
                first.close()
                second.close()

        assert status == "HTTP/1.1 503 Service Unavailable"
        assert body == b"<h1>SERVICE UNAVAILABLE</h1>"


class TestLifecycle:

    def test_bind_error(self, config, routing):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        try:
            config.port = blocker.getsockname()[1]
            server = WebServer(config, routing)

            with pytest.raises(BindError):
                server.start()
            assert server.is_running is False
        finally:
            blocker.close()

    def test_reconfigure_applies_to_next_request(self, web_server, exchange, site):
        web_server.reconfigure(RoutingConfig(default_root=str(site / "docs")))

        status, _, body = split(exchange(web_server.port, get("/")))

        assert status == "HTTP/1.1 200 OK"
        assert body == b"<h1>docs</h1>"

    def test_stop_and_restart(self, config, routing, exchange):
        server = WebServer(config, routing)
        server.start()
        server.stop()

        assert server.is_running is False

        server.start()
        try:
            status, _, _ = split(exchange(server.port, get("/")))
        finally:
            server.stop()

        assert status == "HTTP/1.1 200 OK"

    def test_access_log(self, config, routing, exchange, caplog):
        config.log_format = "json"
        caplog.set_level(logging.INFO, logger="easywww.access")

        with WebServer(config, routing) as server:
            exchange(server.port, get("/about.txt"))

        records = [r for r in caplog.records if r.name == "easywww.access"]
        assert len(records) == 1
        entry = json.loads(records[0].getMessage())
        assert entry["uri"] == "/about.txt"
        assert entry["status_code"] == 200
        assert entry["host"] == "localhost"


class TestCommandLine:

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert "Easy-WWW" in capsys.readouterr().out

    def test_options_override_file_without_saving(self, tmp_path, monkeypatch):
        for name in ("EASYWWW_PORT", "EASYWWW_DEFAULT_ROOT", "EASYWWW_OPEN_IN_BROWSER"):
            monkeypatch.delenv(name, raising=False)
        cfg = tmp_path / "Easy-WWW.cfg"
        cfg.write_text("port = 9000\nhostname = example.test\n", encoding="utf-8")

        args = build_parser().parse_args([
            "--config", str(cfg), "--port", "0", "--root", "./public", "--no-browser", "-w", "3",
        ])
        config, routing = load_settings(args)

        assert config.port == 0
        assert config.max_workers == 3
        assert config.open_in_browser is False
        assert routing.default_root == "./public"
        assert routing.hostname == "example.test"
        assert cfg.read_text(encoding="utf-8") == "port = 9000\nhostname = example.test\n"

    def test_subkey_on_port_does_not_crash(self, tmp_path, monkeypatch):
        monkeypatch.delenv("EASYWWW_PORT", raising=False)
        cfg = tmp_path / "Easy-WWW.cfg"
        cfg.write_text("port:extra = 1\nport = 9000\n", encoding="utf-8")

        config, _ = load_settings(build_parser().parse_args(["--config", str(cfg)]))

        assert config.port == 9000

    def test_invalid_port_in_file(self, tmp_path, monkeypatch, capsys):
        monkeypatch.delenv("EASYWWW_PORT", raising=False)
        cfg = tmp_path / "Easy-WWW.cfg"
        cfg.write_text("port = eighty\n", encoding="utf-8")

        assert main(["--config", str(cfg), "--no-browser"]) == 1
        assert "Invalid port" in capsys.readouterr().err
