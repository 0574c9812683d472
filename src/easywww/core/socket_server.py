"""
=============================================================================
TCP LISTENER
=============================================================================

Owns the listening socket and the thread that accepts on it.

=============================================================================
THREADS
=============================================================================

    caller thread                 accept thread (daemon)
    ─────────────                 ──────────────────────
    start()
      ├── socket() / bind() / listen()
      └── spawn ────────────────► while running:
                                      accept()
                                      Connection(...)
                                      on_connection(conn)   ← must not block
    stop()
      ├── running = False
      └── shutdown() / close() ──► accept() raises OSError → loop exits

on_connection() is expected to hand the connection off (to the worker
pool) and return immediately; the accept thread never reads from a
client.

The accept call has a 1 second timeout so the loop also notices a stop()
on platforms where closing a socket does not interrupt a blocked accept().

=============================================================================
"""

import logging
import socket
import threading
from typing import Callable, Optional, Tuple

from .connection import Connection


logger = logging.getLogger(__name__)


class BindError(OSError):
    """The listening socket could not be bound (port in use, no permission, ...)."""


class SocketServer:
    """
    Accepts TCP connections on a background thread.

    Usage:
        server = SocketServer("127.0.0.1", 8866, backlog=16)
        server.start(lambda conn: pool.submit(handle, conn))
        ...
        server.stop()
    """

    def __init__(
        self,
        host: str,
        port: int,
        backlog: int = 16,
        connection_options: Optional[dict] = None,
    ):
        self.host = host
        self.port = port
        self.backlog = backlog

        # Extra keyword arguments for every Connection (buffer size, waits)
        self.connection_options = connection_options or {}

        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); reflects the real port when 0 was requested."""
        if self._socket is not None:
            try:
                host, port = self._socket.getsockname()[:2]
                return host, port
            except OSError:
                pass
        return self.host, self.port

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting right after a stop must not fail with "Address already in use"
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.settimeout(1.0)
        return sock

    def start(self, on_connection: Callable[[Connection], None]):
        """
        Bind, listen and start the accept thread. Returns immediately.

        Raises:
            BindError: if the address cannot be bound.
        """
        if self._running:
            return

        sock = self._create_socket()
        try:
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self.host}:{self.port}: {e}")
            raise BindError(e.errno, f"Cannot bind {self.host}:{self.port}: {e.strerror or e}") from e

        self._socket = sock
        self._running = True

        self._thread = threading.Thread(
            target=self._accept_loop,
            args=(on_connection,),
            name="easywww-accept",
            daemon=True,
        )
        self._thread.start()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

    def _accept_loop(self, on_connection: Callable[[Connection], None]):
        while self._running:
            sock = self._socket
            if sock is None:
                break

            try:
                client_socket, client_address = sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                # Closing the listener from stop() lands here
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                **self.connection_options,
            )

            try:
                on_connection(conn)
            except Exception:
                logger.exception("Connection hand-off failed")
                conn.close()

        logger.debug("Accept loop finished")

    def stop(self, timeout: Optional[float] = 2.0):
        """Close the listener and let the accept thread exit. Idempotent."""
        if not self._running and self._socket is None:
            return

        self._running = False

        sock, self._socket = self._socket, None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Listening sockets are not connected on every platform
            try:
                sock.close()
            except OSError:
                pass

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

        logger.info("Listener stopped")
