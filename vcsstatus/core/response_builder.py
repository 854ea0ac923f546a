"""Render a repository status into one of the output formats."""

import json
from typing import Optional

from vcsstatus.core.models import (
    EXIT_EMPTY_DIRECTORY,
    EXIT_OK,
    EXIT_REPOSITORY_ERROR,
    OutputFormat,
    RepositoryStatus,
    Request,
    Response,
)

EMPTY_DIRECTORY_MESSAGE = "Directory must be non-empty."
REPOSITORY_ERROR_MESSAGE = "Error loading repository information."


def render(
    request: Request,
    status: Optional[RepositoryStatus],
    color_enabled: Optional[bool] = None,
) -> Response:
    """
    Build the response for a request.

    Args:
        request: The request being answered
        status: Resolved status, or None if resolution produced nothing
        color_enabled: Whether colored variants keep their escapes. Defaults
            to `request.force_color`. Applies to the whole response.

    Returns:
        Response with exit code and rendered content
    """
    if request.directory == "":
        return Response(EXIT_EMPTY_DIRECTORY, EMPTY_DIRECTORY_MESSAGE)
    if status is None:
        return Response(EXIT_REPOSITORY_ERROR, REPOSITORY_ERROR_MESSAGE)

    if color_enabled is None:
        color_enabled = request.force_color
    if not color_enabled:
        status = status.without_color()

    if request.output_format is OutputFormat.PROMPT:
        return Response(EXIT_OK, render_prompt(status, color_enabled))
    if request.output_format is OutputFormat.STATUS_LINE:
        return Response(EXIT_OK, render_status_line(status))
    return Response(EXIT_OK, render_full(status))


def render_full(status: RepositoryStatus) -> str:
    return json.dumps(status.to_dict(), indent=1, ensure_ascii=False) + "\n"


def render_prompt(status: RepositoryStatus, color_enabled: bool = False) -> str:
    """`vcs:<branch> {other, branches}` then the status summary."""
    parts = [
        status.vcs.colored,
        status.accent(":<", color_enabled),
        status.current_branch.colored,
        status.accent(">", color_enabled),
    ]
    if status.branches:
        names = ", ".join(branch.colored for branch in status.branches)
        parts.append(f" {{{names}}}")

    return "".join(parts) + "\n" + status.status.colored + "\n"


def render_status_line(status: RepositoryStatus) -> str:
    lines = [
        status.vcs.colored,
        status.repo_name,
        status.tracking.colored,
        status.status.colored,
        status.repo_path,
    ]
    return "".join(line + "\n" for line in lines)
