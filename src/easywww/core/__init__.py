"""
=============================================================================
CONNECTION ENGINE
=============================================================================

Networking below the HTTP layer.

    socket_server.py   Listening socket and the accept thread
    connection.py      One client socket: adaptive wait, drain, send, close
    thread_pool.py     Fixed workers behind a bounded queue

=============================================================================
"""

from .socket_server import BindError, SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "BindError",        # Listening socket could not be bound
    "SocketServer",     # Accepts connections on a daemon thread
    "Connection",       # One request/response exchange
    "ConnectionState",  # Connection lifecycle states
    "ThreadPool",       # Bounded worker pool
]
