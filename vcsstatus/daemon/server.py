"""Async Unix socket server for the vcsstatus daemon.

This module implements the long-running daemon process that:
1. Owns the listening Unix socket
2. Accepts connections and hands each one to its own task
3. Shuts down cleanly on SIGINT/SIGTERM

Usage:
    vcsstatus --exec daemon [--socketpath PATH] [--overwritesocket]
"""

import asyncio
import logging
import os
import shutil
import signal
import socket
from pathlib import Path
from typing import Optional

from vcsstatus.core.configs import DaemonSettings, get_daemon_settings
from vcsstatus.core.errors import DaemonStartupError, SocketInUseError
from vcsstatus.daemon.handler import ConnectionHandler
from vcsstatus.daemon.protocol import MAX_REQUEST_BYTES
from vcsstatus.daemon.state import ConnectionTracker, ServiceState

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 128

# Pause after a failed accept so a persistent error (e.g. EMFILE) cannot spin
ACCEPT_RETRY_DELAY = 0.05


class DaemonServer:
    """
    Async Unix socket server for daemon.

    Handles concurrent client connections using asyncio.
    Each request is processed independently.
    """

    def __init__(
        self,
        socket_path: Path,
        overwrite_socket: bool = False,
        handler: Optional[ConnectionHandler] = None,
        drain_timeout: float = 2.0,
        install_signal_handlers: bool = True,
    ):
        """
        Initialize daemon server.

        Args:
            socket_path: Path to Unix socket
            overwrite_socket: Remove a stale file at socket_path on startup
            handler: Connection handler (default: one backed by real inspectors)
            drain_timeout: Grace period for in-flight connections on shutdown
            install_signal_handlers: Stop on SIGINT/SIGTERM
        """
        self.socket_path = Path(socket_path)
        self.overwrite_socket = overwrite_socket
        self.handler = handler or ConnectionHandler()
        self.drain_timeout = drain_timeout
        self.install_signal_handlers = install_signal_handlers

        self.tracker = ConnectionTracker()
        self._state = ServiceState.INITIALIZING
        self._listener: Optional[socket.socket] = None
        self._accept_task: Optional[asyncio.Task] = None
        self._signals_installed = False
        self.listening = asyncio.Event()

    @property
    def state(self) -> ServiceState:
        return self._state

    async def start(self) -> None:
        """Start the daemon server and serve until shutdown."""
        logger.info("Starting vcsstatus daemon...")

        try:
            self._listener = self._bind()
        except DaemonStartupError:
            self._state = ServiceState.STOPPED
            raise

        self._state = ServiceState.LISTENING
        self._add_signal_handlers()
        self.listening.set()
        logger.info(f"Daemon listening on {self.socket_path}")

        try:
            await self._accept_loop()
        finally:
            self._remove_signal_handlers()
            await self._cleanup()

    def request_shutdown(self) -> None:
        """
        Begin graceful shutdown. Must run on the event loop thread.

        The pending accept is aborted and fails; the accept loop sees that
        failure while SHUTTING_DOWN and exits quietly, then the listener is
        closed during cleanup.
        """
        if self._state is not ServiceState.LISTENING:
            return

        logger.info("Shutting down...")
        self._state = ServiceState.SHUTTING_DOWN
        if self._accept_task is not None:
            self._accept_task.cancel()

    def request_shutdown_threadsafe(self, loop: asyncio.AbstractEventLoop) -> None:
        """Begin graceful shutdown from a thread other than the loop's."""
        loop.call_soon_threadsafe(self.request_shutdown)

    # ------------------------------------------------------------------
    # Initializing
    # ------------------------------------------------------------------

    def _bind(self) -> socket.socket:
        self._clear_stale_socket()
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(str(self.socket_path))
            # Owner only
            os.chmod(self.socket_path, 0o600)
            sock.listen(LISTEN_BACKLOG)
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            raise DaemonStartupError(f"Cannot listen on '{self.socket_path}': {e}") from e

        return sock

    def _clear_stale_socket(self) -> None:
        try:
            exists = os.path.lexists(self.socket_path)
        except OSError as e:
            raise DaemonStartupError(f"Error reading socket path '{self.socket_path}': {e}") from e
        if not exists:
            return

        if not self.overwrite_socket:
            raise SocketInUseError(
                f"'{self.socket_path}' already exists; pass --overwritesocket to replace it"
            )

        logger.info(f"Removing existing file at {self.socket_path}")
        try:
            if self.socket_path.is_dir() and not self.socket_path.is_symlink():
                shutil.rmtree(self.socket_path)
            else:
                self.socket_path.unlink()
        except OSError as e:
            raise DaemonStartupError(
                f"Could not remove existing file at '{self.socket_path}': {e}"
            ) from e

    # ------------------------------------------------------------------
    # Listening
    # ------------------------------------------------------------------

    async def _accept_loop(self) -> None:
        loop = asyncio.get_running_loop()

        while self._state is ServiceState.LISTENING:
            self._accept_task = asyncio.ensure_future(loop.sock_accept(self._listener))
            try:
                connection, _ = await self._accept_task
            except asyncio.CancelledError:
                if self._state is ServiceState.SHUTTING_DOWN:
                    break
                raise
            except OSError as e:
                if self._state is ServiceState.SHUTTING_DOWN:
                    break
                logger.error(f"Error accepting: {e}")
                await asyncio.sleep(ACCEPT_RETRY_DELAY)
                continue
            finally:
                self._accept_task = None

            self._dispatch(connection)

        logger.debug("Accept loop finished")

    def _dispatch(self, connection: socket.socket) -> None:
        """Schedule a handler task; never blocks the accept loop."""
        connection.setblocking(False)
        task = asyncio.create_task(self._serve_connection(connection))
        self.tracker.track(task)

    async def _serve_connection(self, connection: socket.socket) -> None:
        try:
            reader, writer = await asyncio.open_unix_connection(
                sock=connection,
                limit=MAX_REQUEST_BYTES,
            )
        except OSError as e:
            logger.warning(f"Could not set up connection: {e}")
            connection.close()
            return

        await self.handler.handle(reader, writer)

    # ------------------------------------------------------------------
    # Shutting down
    # ------------------------------------------------------------------

    def _add_signal_handlers(self) -> None:
        if not self.install_signal_handlers:
            return
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler, sig)
        self._signals_installed = True

    def _remove_signal_handlers(self) -> None:
        if not self._signals_installed:
            return
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
        self._signals_installed = False

    def _signal_handler(self, sig: signal.Signals) -> None:
        """Handle SIGTERM/SIGINT for graceful shutdown."""
        logger.info(f"Received signal: {sig.name}")
        self.request_shutdown()

    def _close_listener(self) -> None:
        if self._listener is not None:
            self._listener.close()
            self._listener = None

    async def _cleanup(self) -> None:
        """Cleanup on shutdown."""
        if self._state is ServiceState.LISTENING:
            # The accept loop ended without a shutdown request (cancelled)
            self._state = ServiceState.SHUTTING_DOWN
        self._close_listener()

        cancelled = await self.tracker.drain(self.drain_timeout)
        if cancelled:
            logger.warning(f"Cancelled {cancelled} connection(s) still running after shutdown grace period")

        if os.path.lexists(self.socket_path):
            try:
                self.socket_path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove socket {self.socket_path}: {e}")

        stats = self.tracker.get_stats()
        self._state = ServiceState.STOPPED
        logger.info(
            f"Daemon stopped after {stats['uptime_seconds']:.0f}s, "
            f"{stats['connections_accepted']} connection(s) served"
        )


def run_daemon(
    socket_path: Optional[Path] = None,
    overwrite_socket: Optional[bool] = None,
    settings: Optional[DaemonSettings] = None,
) -> int:
    """
    Run the daemon server until it is told to stop.

    Args:
        socket_path: Path to Unix socket (default: from settings)
        overwrite_socket: Remove a stale socket file (default: from settings)
        settings: Loaded DaemonSettings (default: read the config file)

    Returns:
        Process exit code: 0 after a clean shutdown, 1 on startup failure
    """
    settings = settings or get_daemon_settings()

    handler = ConnectionHandler(
        request_timeout=settings.request_timeout,
        inspect_timeout=settings.inspect_timeout,
    )
    server = DaemonServer(
        socket_path=socket_path or settings.socket_path,
        overwrite_socket=settings.overwrite_socket if overwrite_socket is None else overwrite_socket,
        handler=handler,
        drain_timeout=settings.drain_timeout,
    )

    try:
        asyncio.run(server.start())
    except DaemonStartupError as e:
        logger.error(f"Daemon failed to start: {e}")
        return 1
    return 0
