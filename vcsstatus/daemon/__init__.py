"""Daemon architecture for vcsstatus.

A long-running background process removes the per-prompt cost of starting
Python and loading vcsstatus; each request still runs the VCS commands.

Architecture:
- DaemonServer: Async Unix socket server, one task per connection
- ConnectionHandler: One request in, one response out, then close
- DaemonClient: Thin client that connects to the daemon via socket
"""

from vcsstatus.daemon.client import DaemonClient
from vcsstatus.daemon.protocol import (
    serialize_request,
    deserialize_request,
    serialize_response,
    deserialize_response,
)

__all__ = [
    "DaemonClient",
    "serialize_request",
    "deserialize_request",
    "serialize_response",
    "deserialize_response",
]
