"""Mercurial repository inspector."""

import logging
import os
import re
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
from vcsstatus.core.schema import HG_SCHEMA
from vcsstatus.inspectors.base import RepositoryInspector
from vcsstatus.tools.exec_shell import run_command

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "default"

# "   name    12:0123abcd" with a leading "*" on the active bookmark
BOOKMARK_RE = re.compile(r"^\s*(\*)?\s*(\S+)\s+-?\d+:[0-9a-f]+\s*$")

Runner = Callable[..., Tuple[int, str]]


def find_root(directory: str) -> Optional[str]:
    """Nearest directory at or above `directory` that holds a .hg directory."""
    current = os.path.abspath(directory)
    while True:
        if os.path.isdir(os.path.join(current, ".hg")):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


class MercurialInspector(RepositoryInspector):
    """Builds a RepositoryStatus for a Mercurial working copy."""

    vcs = VcsPreference.MERCURIAL
    schema = HG_SCHEMA

    def __init__(self, runner: Runner = run_command, timeout: Optional[float] = None):
        self._run = runner
        self._timeout = timeout

    def inspect(self, directory: str) -> InspectionOutcome:
        root = find_root(directory)
        if root is None:
            return self.not_a_repository()

        # A .hg directory exists, so any hg failure from here on is an error
        try:
            exit_code, _ = self._hg(directory, "root")
        except CommandError as e:
            return InspectionFailed(self.vcs, str(e))
        if exit_code != 0:
            return InspectionFailed(self.vcs, f"hg root exited with {exit_code}")

        accent = "bright_cyan"
        branch = self._read_branch(root)
        bookmarks = self._other_bookmarks(directory)
        counts, status = self._status(directory)

        return RepositoryFound(RepositoryStatus(
            is_repository=True,
            vcs=AnsiString.with_color(self.schema.vcs, accent),
            vcs_color=accent,
            repo_name=os.path.basename(root),
            repo_path=root,
            current_branch=AnsiString.with_color(branch, "green"),
            branches=tuple(AnsiString.with_color(name, "white") for name in bookmarks),
            status_counts=counts,
            status=status,
        ))

    def _hg(self, directory: str, *args: str) -> Tuple[int, str]:
        return self._run(["hg", *args], cwd=directory, timeout=self._timeout)

    @staticmethod
    def _read_branch(root: str) -> str:
        # No .hg/branch file means the working copy is on "default"
        try:
            with open(os.path.join(root, ".hg", "branch"), encoding="utf-8") as f:
                return f.read().strip() or DEFAULT_BRANCH
        except FileNotFoundError:
            return DEFAULT_BRANCH
        except OSError as e:
            logger.debug("could not read branch file under %s: %s", root, e)
            return "!branch!"

    def _other_bookmarks(self, directory: str) -> List[str]:
        """Bookmark names except the active one."""
        try:
            exit_code, output = self._hg(directory, "bookmarks")
        except CommandError as e:
            logger.debug("hg bookmarks failed in %s: %s", directory, e)
            return []
        if exit_code != 0:
            return []

        names = []
        for line in output.splitlines():
            match = BOOKMARK_RE.match(line)
            if match and not match.group(1):
                names.append(match.group(2))
        return names

    def _status(self, directory: str):
        try:
            exit_code, output = self._hg(directory, "status")
        except CommandError as e:
            logger.debug("hg status failed in %s: %s", directory, e)
            exit_code, output = -1, ""

        if exit_code != 0:
            counts = {code: 0 for code in self.schema.order}
            return counts, AnsiString.with_color("!status!", "bright_red")

        return aggregate(output.splitlines(), self.schema)
