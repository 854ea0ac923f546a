"""Main CLI entry point."""

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from vcsstatus.core.configs import get_daemon_settings
from vcsstatus.core.errors import ClientProtocolError, DaemonUnavailableError
from vcsstatus.core.models import (
    EXIT_CLIENT_PROTOCOL_FAILURE,
    EXIT_CONNECTION_FAILURE,
    OutputFormat,
    Request,
    Response,
    VcsPreference,
)

app = typer.Typer(
    add_completion=False,
    help="vcsstatus - repository status for shell prompts and status lines.",
)


err_console = Console(stderr=True)


class ExecutionMode(str, Enum):
    SINGLE_USE = "singleuse"
    DAEMON = "daemon"
    CLIENT = "client"
    DAEMON_CHECK = "daemoncheck"
    CLIENT_FALLBACK = "clientfallback"


# ============================================================================
# Shared helpers
# ============================================================================

def _emit(response: Response) -> None:
    """Print the response body and exit with its code."""
    if response.content:
        typer.echo(response.content, nl=not response.content.endswith("\n"))
    raise typer.Exit(response.exit_code)


def _answer_locally(request: Request) -> Response:
    """Single-use path: resolve and render in this process."""
    from vcsstatus.core.status_service import StatusService

    # Without --color, colors follow whether stdout is a terminal
    color_enabled = request.force_color or sys.stdout.isatty()
    return StatusService().respond(request, color_enabled=color_enabled)


def _resolve_directory(directory: Optional[str]) -> str:
    # The daemon runs in its own working directory
    if not directory:
        return os.getcwd()
    return os.path.abspath(os.path.expanduser(directory))


# ============================================================================
# Command
# ============================================================================

@app.command()
def main(
    color: bool = typer.Option(False, "--color", "-c", help="Force colored output."),
    directory: Optional[str] = typer.Option(
        None, "--dir", "-d", help="The working directory to pretend we're in."
    ),
    output: OutputFormat = typer.Option(OutputFormat.FULL, "--output", "-o", help="Output format."),
    vcs: VcsPreference = typer.Option(
        VcsPreference.DETECT, "--vcs", "-r", help="Version control system."
    ),
    execution: ExecutionMode = typer.Option(
        ExecutionMode.SINGLE_USE,
        "--exec",
        "-X",
        help="Run single-use, listen as a daemon, or talk to a daemon as a client.",
    ),
    socket_path: Optional[Path] = typer.Option(
        None, "--socketpath", "-S", help="Socket to listen/connect on. Defaults to ~/.vcsstatus-sock."
    ),
    overwrite_socket: bool = typer.Option(
        False, "--overwritesocket", "-O", help="If the socket path exists, overwrite it."
    ),
) -> None:
    """
    Print version control status for a directory.

    Example: vcsstatus -X clientfallback -o prompt
    """
    try:
        settings = get_daemon_settings()
    except ValueError as e:
        err_console.print(f"Error loading configuration: {e}", style="red", markup=False)
        raise typer.Exit(1)

    socket_path = socket_path.expanduser() if socket_path else settings.socket_path

    if execution is ExecutionMode.DAEMON:
        # Lazy import: keeps the client path free of asyncio and logging setup
        from vcsstatus.daemon.server import run_daemon

        raise typer.Exit(run_daemon(
            socket_path=socket_path,
            overwrite_socket=overwrite_socket or settings.overwrite_socket,
            settings=settings,
        ))

    request = Request(
        directory=_resolve_directory(directory),
        force_color=color,
        output_format=output,
        vcs=vcs,
    )

    if execution is ExecutionMode.SINGLE_USE:
        _emit(_answer_locally(request))

    from vcsstatus.daemon.client import DaemonClient

    client = DaemonClient(socket_path, timeout=settings.client_timeout)

    if execution is ExecutionMode.DAEMON_CHECK:
        request = Request.status_probe()

    try:
        response = client.send(request)
    except DaemonUnavailableError as e:
        if execution is ExecutionMode.CLIENT_FALLBACK:
            _emit(_answer_locally(request))
        err_console.print(str(e), style="red", markup=False)
        raise typer.Exit(EXIT_CONNECTION_FAILURE)
    except ClientProtocolError as e:
        err_console.print(str(e), style="red", markup=False)
        raise typer.Exit(EXIT_CLIENT_PROTOCOL_FAILURE)

    if execution is ExecutionMode.DAEMON_CHECK:
        # Probe only: the exit code is the answer
        raise typer.Exit(response.exit_code)

    _emit(response)


def run() -> None:
    """Entry point for console script mapping."""
    app()


if __name__ == "__main__":
    run()
