"""Subprocess execution for the VCS inspectors.

This is the only place vcsstatus spawns processes. Commands always run with
an argument list (no shell) and a timeout, so a hung VCS tool cannot block a
connection forever.
"""

import logging
import os
import subprocess
from typing import Optional, Sequence, Tuple

from vcsstatus.core.errors import CommandError

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 5.0


def command_timeout() -> float:
    """Per-command timeout, overridable with VCSSTATUS_COMMAND_TIMEOUT_S."""
    value = os.environ.get("VCSSTATUS_COMMAND_TIMEOUT_S")
    if value is None or str(value).strip() == "":
        return DEFAULT_COMMAND_TIMEOUT
    try:
        return float(value)
    except ValueError as e:
        raise CommandError(f"invalid VCSSTATUS_COMMAND_TIMEOUT_S: {value!r}") from e


def run_command(
    args: Sequence[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Tuple[int, str]:
    """
    Run a command and capture its standard output.

    A non-zero exit status is not an error here; callers interpret it.

    Args:
        args: Program and arguments
        cwd: Working directory for the command
        timeout: Seconds before the process is killed

    Returns:
        (exit_code, stdout)

    Raises:
        CommandError: If the program cannot be started, times out, or the
            configured timeout is not a number
    """
    timeout = command_timeout() if timeout is None else timeout

    try:
        result = subprocess.run(
            list(args),
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise CommandError(f"{args[0]} timed out after {timeout:g}s") from e
    except OSError as e:
        # Missing binary or unusable working directory
        raise CommandError(f"could not run {args[0]}: {e}") from e

    logger.debug("%s exited with %d", " ".join(args), result.returncode)
    return result.returncode, result.stdout
