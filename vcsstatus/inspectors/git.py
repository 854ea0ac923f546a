"""Git repository inspector."""

import logging
import os
from typing import Callable, List, Optional, Tuple

from vcsstatus.core.aggregator import aggregate
from vcsstatus.core.errors import CommandError
from vcsstatus.core.models import (
    AnsiString,
    InspectionFailed,
    InspectionOutcome,
    RepositoryFound,
    RepositoryStatus,
    VcsPreference,
)
from vcsstatus.core.schema import GIT_SCHEMA
from vcsstatus.inspectors.base import RepositoryInspector
from vcsstatus.tools.exec_shell import run_command
from vcsstatus.ui.output import strip_ansi

logger = logging.getLogger(__name__)

NO_COLOR = ("-c", "color.status=never", "-c", "color.ui=never")
ALWAYS_COLOR = ("-c", "color.status=always", "-c", "color.ui=always")

# git exits with 128 outside of a work tree
NOT_A_REPOSITORY_EXIT = 128

MAIN_BRANCHES = frozenset({"master", "main", "mainline"})

# First match wins, most urgent state first
BRANCH_COLOR_RULES = (
    ("still merging", "bright_magenta"),
    ("Unmerged paths", "bright_magenta"),
    ("Untracked files", "bright_red"),
    ("Changes not staged for commit", "bright_yellow"),
    ("Changes to be committed", "yellow"),
    ("Your branch is ahead of", "magenta"),
)

Runner = Callable[..., Tuple[int, str]]


class GitInspector(RepositoryInspector):
    """Builds a RepositoryStatus from git's porcelain and human output."""

    vcs = VcsPreference.GIT
    schema = GIT_SCHEMA

    def __init__(self, runner: Runner = run_command, timeout: Optional[float] = None):
        self._run = runner
        self._timeout = timeout

    def inspect(self, directory: str) -> InspectionOutcome:
        try:
            exit_code, output = self._git(directory, *NO_COLOR, "status")
        except CommandError as e:
            return InspectionFailed(self.vcs, str(e))

        if exit_code == NOT_A_REPOSITORY_EXIT:
            return self.not_a_repository()
        if exit_code != 0:
            return InspectionFailed(self.vcs, f"git status exited with {exit_code}")

        accent = "bright_cyan"
        branch_color = self._branch_color(output)
        repo_path = self._toplevel(directory)
        current, others = self._branches(directory)

        if current in MAIN_BRANCHES:
            accent = "bright_green"

        tracking, status_counts, status = self._short_status(directory)

        status_record = RepositoryStatus(
            is_repository=True,
            vcs=AnsiString.with_color(self.schema.vcs, accent),
            vcs_color=accent,
            repo_name=os.path.basename(repo_path) if repo_path else "unknown",
            repo_path=repo_path,
            current_branch=AnsiString.with_color(current, branch_color),
            tracking=tracking,
            branches=tuple(AnsiString.with_color(name, "white") for name in others),
            status_counts=status_counts,
            status=status,
        )
        return RepositoryFound(status_record)

    def _git(self, directory: str, *args: str) -> Tuple[int, str]:
        return self._run(["git", *args], cwd=directory, timeout=self._timeout)

    @staticmethod
    def _branch_color(long_status: str) -> str:
        for needle, color in BRANCH_COLOR_RULES:
            if needle in long_status:
                return color
        return "green"

    def _toplevel(self, directory: str) -> str:
        try:
            exit_code, output = self._git(directory, "rev-parse", "--show-toplevel")
        except CommandError as e:
            logger.debug("git rev-parse failed in %s: %s", directory, e)
            return ""
        return output.strip() if exit_code == 0 else ""

    def _branches(self, directory: str) -> Tuple[str, List[str]]:
        """Current branch name and the other local branches, in git's order."""
        current = "!branch!"
        others: List[str] = []

        try:
            exit_code, output = self._git(directory, *NO_COLOR, "branch")
        except CommandError as e:
            logger.debug("git branch failed in %s: %s", directory, e)
            return current, others
        if exit_code != 0:
            return current, others

        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            if line.startswith("* "):
                current = line[2:]
            else:
                # "+ name" marks a branch checked out in another worktree
                others.append(line[2:] if line.startswith("+ ") else line)

        return current, others

    def _short_status(self, directory: str):
        """Tracking info, status counts and summary from `git status -s -b`."""
        try:
            exit_code, output = self._git(directory, *ALWAYS_COLOR, "status", "-s", "-b")
        except CommandError as e:
            logger.debug("git short status failed in %s: %s", directory, e)
            exit_code, output = -1, ""

        if exit_code != 0:
            counts = {code: 0 for code in self.schema.order}
            return AnsiString(), counts, AnsiString.with_color("!status!", "bright_red")

        tracking = AnsiString()
        file_lines = []
        for line in output.splitlines():
            if strip_ansi(line).startswith("##"):
                colored = line[3:] if line.startswith("## ") else strip_ansi(line)[3:]
                tracking = AnsiString.from_colored(colored)
            else:
                file_lines.append(line)

        counts, status = aggregate(file_lines, self.schema)
        return tracking, counts, status
