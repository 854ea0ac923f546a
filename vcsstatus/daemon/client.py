"""Lightweight client for daemon communication.

This module provides a thin client that connects to the daemon via Unix
socket. It only imports the protocol module so prompt rendering stays fast.

Usage:
    client = DaemonClient(socket_path)
    response = client.send(request)
"""

import socket
from pathlib import Path
from typing import Optional

from vcsstatus.core.configs import get_default_socket_path
from vcsstatus.core.errors import ClientProtocolError, DaemonUnavailableError, ProtocolError
from vcsstatus.core.models import EXIT_OK, Request, Response
from vcsstatus.daemon.protocol import deserialize_response, serialize_request


class DaemonClient:
    """
    Lightweight client for daemon communication.

    Designed for minimal overhead:
    - Uses stdlib socket
    - One request and one response per connection
    """

    def __init__(
        self,
        socket_path: Optional[Path] = None,
        timeout: float = 15.0,
    ):
        """
        Initialize client.

        Args:
            socket_path: Path to Unix socket
            timeout: Socket timeout in seconds
        """
        self.socket_path = Path(socket_path) if socket_path else get_default_socket_path()
        self.timeout = timeout

    def send(self, request: Request, timeout: Optional[float] = None) -> Response:
        """
        Send one request and return the daemon's response.

        Raises:
            DaemonUnavailableError: If the daemon cannot be reached
            ClientProtocolError: If sending or reading the response fails
        """
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(timeout or self.timeout)

        try:
            try:
                sock.connect(str(self.socket_path))
            except OSError as e:
                raise DaemonUnavailableError(
                    f"Error connecting to '{self.socket_path}': {e}"
                ) from e

            try:
                sock.sendall(serialize_request(request))
                data = self._read_all(sock)
            except OSError as e:
                raise ClientProtocolError(f"Error talking to daemon: {e}") from e

            if not data:
                raise ClientProtocolError("Empty response from daemon")
            try:
                return deserialize_response(data)
            except ProtocolError as e:
                raise ClientProtocolError(f"Error decoding response: {e}") from e
        finally:
            sock.close()

    def is_daemon_running(self) -> bool:
        """
        Check if daemon is running and healthy.

        Costs the daemon no VCS work: the probe bypasses inspection.
        """
        try:
            response = self.send(Request.status_probe(), timeout=2.0)
        except (DaemonUnavailableError, ClientProtocolError):
            return False
        return response.exit_code == EXIT_OK

    @staticmethod
    def _read_all(sock: socket.socket) -> bytes:
        # The daemon closes the connection after its single response
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)
