"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket for exactly one request/response
exchange.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    ┌──────────┐     ┌─────────┐  readable  ┌─────────┐     ┌─────────────┐
    │ ACCEPTED │ ──► │ WAITING │ ─────────► │ PARSING │ ──► │ DISPATCHING │
    └──────────┘     └─────────┘            └─────────┘     └─────────────┘
                          │                      │                 │
                          │ nothing within       │ malformed       │
                          │ the wait limit       │ (400)           │
                          ▼                      ▼                 ▼
                     ┌───────────┐          ┌────────────┐◄────────┘
                     │ TIMED_OUT │          │ RESPONDING │
                     └───────────┘          └────────────┘
                          │                      │
                          └──────►┌────────┐◄────┘
                                  │ CLOSED │
                                  └────────┘

No keep-alive: after the response is written both directions are shut
down and the socket is closed.

=============================================================================
ADAPTIVE WAIT
=============================================================================

A browser may open a connection well before it sends anything. Instead
of blocking on recv() the connection polls with a growing interval:

    check   interval   waited so far
      1      20 ms        20 ms
      2      30 ms        50 ms
      3      45 ms        95 ms
      4      67 ms       162 ms
      ...
     ~17     ...         >= 10 s   → TIMED_OUT, close without a byte

Fast clients are picked up within a few milliseconds; idle sockets cost
a handful of selector polls before they are dropped.

Once the socket is readable everything currently available is drained
into one buffer and treated as the complete request. There is no
Content-Length framing on input.

=============================================================================
"""

import logging
import selectors
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its single exchange."""
    ACCEPTED = "accepted"        # Just accepted, nothing read yet
    WAITING = "waiting"          # Polling for the first bytes
    PARSING = "parsing"          # Bytes received, turning them into a Request
    DISPATCHING = "dispatching"  # Handlers and resolvers are running
    RESPONDING = "responding"    # Writing the response
    TIMED_OUT = "timed_out"      # Client never sent anything
    CLOSED = "closed"            # Socket released


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier for log lines.
        state: Current lifecycle state.
        read_wait_initial: First poll interval in seconds.
        read_wait_factor: Interval growth per unsuccessful poll.
        read_wait_limit: Total time to wait for the first bytes.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.ACCEPTED
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    read_wait_initial: float = 0.02
    read_wait_factor: float = 1.5
    read_wait_limit: float = 10.0

    bytes_received: int = 0
    bytes_sent: int = 0

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def wait_for_data(self) -> bool:
        """
        Poll until the socket is readable or the wait limit is used up.

        Returns:
            True if data (or EOF) is ready to read, False on timeout
        """
        self.state = ConnectionState.WAITING

        interval = self.read_wait_initial
        waited = 0.0

        with selectors.DefaultSelector() as selector:
            try:
                selector.register(self.socket, selectors.EVENT_READ)
            except (OSError, ValueError):
                # Socket closed underneath us
                return False

            while waited < self.read_wait_limit:
                # Never overshoot the cap
                interval = min(interval, self.read_wait_limit - waited)
                try:
                    events = selector.select(timeout=interval)
                except OSError:
                    return False

                if events:
                    return True

                waited += interval
                interval *= self.read_wait_factor

        self.state = ConnectionState.TIMED_OUT
        logger.debug(f"[{self.id}] No data from {self.client_ip} after {waited:.2f}s")
        return False

    def read_available(self) -> bytes:
        """
        Drain everything currently buffered on the socket without blocking.

        Returns:
            The received bytes; b"" if nothing is pending or the peer
            closed without sending.
        """
        chunks = []

        with selectors.DefaultSelector() as selector:
            try:
                selector.register(self.socket, selectors.EVENT_READ)
            except (OSError, ValueError):
                return b""

            # Only recv() while more is already waiting
            while True:
                try:
                    if not selector.select(timeout=0):
                        break
                    chunk = self.socket.recv(self.buffer_size)
                except OSError:
                    # Peer reset or socket already closed
                    break

                if not chunk:
                    break
                chunks.append(chunk)

        data = b"".join(chunks)
        self.bytes_received += len(data)
        if data:
            self.state = ConnectionState.PARSING
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> bool:
        """
        Write the whole response.

        Returns:
            True if sent, False if the client went away.
        """
        self.state = ConnectionState.RESPONDING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

        self.bytes_sent += len(data)
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """Shut down both directions and release the socket. Idempotent."""
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
