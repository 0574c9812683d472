"""
=============================================================================
COMMAND LINE ENTRY POINT
=============================================================================

    python -m easywww                       # settings from ./Easy-WWW.cfg
    python -m easywww --root ./site         # override the default root
    python -m easywww --port 0 --no-browser # any free port, no browser
    easy-www --config /etc/easy-www.cfg     # installed console script

Command line options override the config file for this run only; they
are not written back.

=============================================================================
"""

import argparse
import logging
import sys
import webbrowser
from typing import List, Optional

from . import __version__
from .config import DEFAULT_CONFIG_PATH, ConfigStore, RoutingConfig, ServerConfig
from .core import BindError
from .server import WebServer


logger = logging.getLogger("easywww")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="easy-www",
        description="Minimal HTTP/1.1 server for static sites with subdomain roots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m easywww                          # Run with Easy-WWW.cfg
  python -m easywww --root ./public          # Serve ./public
  python -m easywww --hostname example.test  # Subdomain matching under example.test
  python -m easywww --host 0.0.0.0 -p 80     # Listen on all interfaces
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONFIG FILE
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--config", "-c",
        default=DEFAULT_CONFIG_PATH,
        help=f"Configuration file, created with defaults if missing (default: {DEFAULT_CONFIG_PATH})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", help="Address to bind to (config: address)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on, 0 for any (config: port)")

    # ─────────────────────────────────────────────────────────────────────
    # SITE
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--root", "-r", help="Default website root (config: defaultRoot)")
    parser.add_argument("--hostname", help="Canonical domain for subdomain matching (config: hostname)")

    # ─────────────────────────────────────────────────────────────────────
    # RUNTIME
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--workers", "-w", type=int, help="Worker threads (default: 16)")
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Access log format (default: text)"
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Do not open the site in a browser on start (config: openInBrowser)"
    )
    parser.add_argument("--version", "-v", action="version", version=f"Easy-WWW {__version__}")

    return parser


def load_settings(args: argparse.Namespace):
    """Config file + environment, then command line overrides."""
    store = ConfigStore(args.config).load()

    if args.host:
        store.set_string("address", args.host)
    if args.port is not None:
        store.set_int("port", args.port)
    if args.root:
        store.set_string("defaultRoot", args.root)
    if args.hostname:
        store.set_string("hostname", args.hostname)
    if args.no_browser:
        store.set_bool("openInBrowser", False)

    config = ServerConfig.from_store(store)
    config.log_level = args.log_level
    config.log_format = args.log_format
    if args.workers:
        config.max_workers = args.workers

    return config, RoutingConfig.from_store(store)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config, routing = load_settings(args)
        server = WebServer(config, routing)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    server.setup_logging()

    try:
        server.start()
    except BindError as e:
        logger.error(f"Couldn't start the server: {e}")
        return 1

    host, port = server.address
    url = f"http://{host}:{port}"
    print(f"Started server at {host}:{port}")

    if config.open_in_browser:
        try:
            if not webbrowser.open(url):
                logger.info("'openInBrowser' is enabled, but no browser is available")
        except webbrowser.Error as e:
            logger.warning(f"Could not open a browser: {e}")

    server.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
