"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the negotiating handler.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Binds the listening socket, runs the accept() loop               │
    │  • SIGINT / SIGTERM trigger a graceful shutdown                     │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ new connections
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          THREAD POOL                                 │
    │  • Worker threads pull connections off a bounded queue              │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ one worker per connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Buffered request reading, keep-alive timeouts                    │
    │  • Response heads via send_response(), files via send_stream()      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool, Worker, Task

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
    "Worker",
    "Task",
]
