"""
=============================================================================
EASY-WWW SERVER
=============================================================================

Ties the listener, the worker pool, the handler chain and the resolvers
together.

=============================================================================
REQUEST PIPELINE
=============================================================================

    accept thread                         worker thread
    ─────────────                         ─────────────
    accept()
      │
      ├─ pool full? ──► 503, close
      │
      └─ submit ───────────────────────►  wait_for_data()
                                            │ nothing for 10 s → close (no bytes)
                                            ▼
                                          read_available()
                                            │
                                          Request.parse()
                                            │ MalformedMessage → 400, close
                                            ▼
                                          HandlerChain.dispatch()
                                            │ True → skip to headers
                                            ▼
                                          RootResolver.resolve()
                                            │ redirect → 303 + Location
                                            ▼
                                          StaticResolver.serve()
                                            │
                                          Requested-URI, Server headers
                                            │
                                          send, close

=============================================================================
USAGE
=============================================================================

    server = WebServer(ServerConfig(port=8866), RoutingConfig(default_root="./site"))

    @server.handler("/hello")
    def hello(request, response):
        response.set_status(HTTPStatus.OK)
        response.set_html("<h1>Hello</h1>")
        return True                      # fully answered, no static lookup

    server.serve_forever()               # Ctrl+C to stop

Handlers must be registered before start(); afterwards add_handler() and
remove_handler() return False. Routing settings can be swapped at any
time with reconfigure().

=============================================================================
"""

import logging
import signal
import threading
import time
from typing import Callable, Optional, Tuple

from . import access_log
from .config import RoutingConfig, ServerConfig
from .core import Connection, ConnectionState, SocketServer, ThreadPool
from .handlers import RootResolver, StaticResolver
from .http import (
    Handler,
    HandlerChain,
    HandlerChainBuilder,
    HTTPStatus,
    MalformedMessage,
    Request,
    Response,
)


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class WebServer:
    """
    Minimal HTTP/1.1 server: one request per connection.

    Attributes:
        config: Listener, pool and logging settings.
        routing: Current virtual-host settings (see reconfigure()).
    """

    def __init__(self, config: Optional[ServerConfig] = None, routing: Optional[RoutingConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._routing = routing or RoutingConfig()

        # ─────────────────────────────────────────────────────────────────
        # CORE COMPONENTS
        # ─────────────────────────────────────────────────────────────────

        self._socket_server = SocketServer(
            self.config.host,
            self.config.port,
            backlog=self.config.backlog,
            connection_options=self.config.connection_options(),
        )
        self._thread_pool = ThreadPool(
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._static = StaticResolver()

        # ─────────────────────────────────────────────────────────────────
        # HANDLERS
        # ─────────────────────────────────────────────────────────────────

        # Mutable until start(); the running server only reads _chain
        self._builder = HandlerChainBuilder()
        self._chain: HandlerChain = HandlerChain()

        self._running = False
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._stopped.set()

    # =========================================================================
    # HANDLER REGISTRATION
    # =========================================================================

    def add_handler(self, prefix: str, handler: Handler) -> bool:
        """
        Register a handler for a URI prefix.

        Returns:
            False if the server is running or the prefix is taken.
        """
        with self._lock:
            if self._running:
                logger.warning(f"Cannot add handler {prefix!r} while the server is running")
                return False
            return self._builder.register(prefix, handler)

    def remove_handler(self, prefix: str) -> bool:
        """
        Unregister a prefix.

        Returns:
            False if the server is running or the prefix is unknown.
        """
        with self._lock:
            if self._running:
                logger.warning(f"Cannot remove handler {prefix!r} while the server is running")
                return False
            return self._builder.unregister(prefix)

    def handler(self, prefix: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of add_handler().

            @server.handler("/api")
            def api(request, response):
                ...
        """
        def decorator(func: Handler) -> Handler:
            self.add_handler(prefix, func)
            return func
        return decorator

    @property
    def handlers(self) -> HandlerChain:
        """The chain in effect: the running snapshot, or a preview before start()."""
        if self._running:
            return self._chain
        return self._builder.build()

    # =========================================================================
    # ROUTING
    # =========================================================================

    @property
    def routing(self) -> RoutingConfig:
        return self._routing

    def reconfigure(self, routing: RoutingConfig):
        """Swap the virtual-host settings; applies from the next request."""
        self._routing = routing
        logger.info(
            f"Routing updated: root={routing.default_root!r} hostname={routing.hostname!r} "
            f"subdomains={sorted(routing.subdomain_roots)}"
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def port(self) -> int:
        return self.address[1]

    def setup_logging(self):
        """Configure root logging from config.log_level."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("easywww").setLevel(level)

    def start(self):
        """
        Bind and start serving in the background. Returns immediately.

        Raises:
            BindError: the address could not be bound.
        """
        with self._lock:
            if self._running:
                return

            self._chain = self._builder.build()
            self._thread_pool.start()

            try:
                self._socket_server.start(self._handle_connection)
            except OSError:
                self._thread_pool.shutdown(wait=False)
                raise

            self._running = True
            self._stopped.clear()

        host, port = self.address
        logger.info(f"{self.config.server_name} serving http://{host}:{port} with handlers {self._chain.prefixes}")

    def stop(self):
        """
        Stop accepting connections.

        Connections already handed to workers finish (or time out) on
        their own; the pool is not joined.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False

        self._socket_server.stop()
        self._thread_pool.shutdown(wait=False)
        self._stopped.set()
        logger.info("Server stopped")

    def serve_forever(self):
        """Start if needed and block until stop(), SIGINT or SIGTERM."""
        self.start()
        original_handlers = self._setup_signals()

        try:
            while not self._stopped.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._restore_signals(original_handlers)
            self.stop()

    def _setup_signals(self) -> dict:
        # signal.signal() only works on the main thread
        if threading.current_thread() is not threading.main_thread():
            return {}

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self._stopped.set()

        return {
            signal.SIGINT: signal.signal(signal.SIGINT, shutdown_handler),
            signal.SIGTERM: signal.signal(signal.SIGTERM, shutdown_handler),
        }

    @staticmethod
    def _restore_signals(original_handlers: dict):
        for sig, handler in original_handlers.items():
            signal.signal(sig, handler)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_request(self, request: Request) -> Response:
        """
        Produce the response for a parsed request.

        Runs the handler chain, then (if no handler fully answered) root
        resolution and static serving. No socket involved, so it is also
        the entry point for tests.
        """
        response = Response()
        chain = self._chain if self._running else self._builder.build()
        routing = self._routing

        try:
            handled = chain.dispatch(request, response)
        except Exception:
            logger.exception(f"Handler failed for {request.method} {request.uri}")
            response = Response()
            response.set_status(HTTPStatus.INTERNAL_SERVER_ERROR)
            response.set_html("<h1>INTERNAL SERVER ERROR</h1>")
            handled = True

        if not handled:
            decision = RootResolver(routing).resolve(request)
            if decision.apply(response):
                self._static.serve(response.website_root, request.uri, response)

        response.set_header("Requested-URI", request.uri)
        response.set_header("Server", self.config.server_name)
        return response

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread: hand off to a worker or refuse."""
        if self._thread_pool.submit(self._process_connection, conn):
            return

        logger.warning(f"[{conn.id}] Worker pool saturated, rejecting {conn.client_ip}")
        response = Response()
        response.set_status(HTTPStatus.SERVICE_UNAVAILABLE)
        response.set_html("<h1>SERVICE UNAVAILABLE</h1>")
        response.set_header("Server", self.config.server_name)
        with conn:
            # Unread input at close() would turn into a reset and could
            # discard the 503 before the client reads it
            conn.read_available()
            conn.send(response.to_bytes())
            conn.read_available()

    def _process_connection(self, conn: Connection):
        """One full exchange on a worker thread."""
        started_at = time.time()

        with conn:
            if not conn.wait_for_data():
                return

            raw = conn.read_available()
            if not raw:
                logger.debug(f"[{conn.id}] Peer closed without sending a request")
                return

            try:
                request = Request.parse(raw.decode("utf-8", errors="replace"))
            except MalformedMessage as e:
                logger.info(f"[{conn.id}] Bad request from {conn.client_ip} ({e.stage.value}): {e}")
                response = Response()
                response.set_status(HTTPStatus.BAD_REQUEST)
                response.set_html("<h1>BAD REQUEST</h1>")
                response.set_header("Server", self.config.server_name)
                conn.send(response.to_bytes())
                self._log_access(conn, None, response, started_at)
                return

            conn.state = ConnectionState.DISPATCHING
            response = self.handle_request(request)

            conn.send(response.to_bytes())
            self._log_access(conn, request, response, started_at)

    def _log_access(self, conn: Connection, request: Optional[Request], response: Response, started_at: float):
        entry = access_log.build_entry(conn.id, conn.client_ip, request, response, started_at)
        access_log.emit(entry, self.config.log_format)
