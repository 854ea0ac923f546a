"""Data model shared by the inspectors, resolver, response builder and daemon."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from vcsstatus.ui.output import get_colored_text, strip_ansi

EXIT_OK = 0
EXIT_REPOSITORY_ERROR = 1
EXIT_EMPTY_DIRECTORY = 2
EXIT_MALFORMED_REQUEST = 100
EXIT_REQUEST_TIMEOUT = 101

# Client-side failures, never sent by the daemon
EXIT_CONNECTION_FAILURE = 110
EXIT_CLIENT_PROTOCOL_FAILURE = 111


class OutputFormat(str, Enum):
    """Rendering mode for a response."""
    FULL = "full"
    PROMPT = "prompt"
    STATUS_LINE = "statusline"


class VcsPreference(str, Enum):
    """Which inspector a request asks for."""
    DETECT = "detect"
    GIT = "git"
    MERCURIAL = "hg"


@dataclass(frozen=True)
class Request:
    directory: str = ""
    force_color: bool = False
    output_format: OutputFormat = OutputFormat.FULL
    vcs: VcsPreference = VcsPreference.DETECT
    status_check: bool = False

    @classmethod
    def status_probe(cls) -> "Request":
        """Build a liveness probe; every other field is ignored by the daemon."""
        return cls(status_check=True)


@dataclass(frozen=True)
class Response:
    exit_code: int
    content: str


@dataclass(frozen=True)
class AnsiString:
    """A display string in plain and colored form."""
    plain: str = ""
    colored: str = ""

    @classmethod
    def from_colored(cls, colored: str) -> "AnsiString":
        return cls(plain=strip_ansi(colored), colored=colored)

    @classmethod
    def with_color(cls, text: str, color: str) -> "AnsiString":
        return cls(plain=text, colored=get_colored_text(text, color))

    def uncolored(self) -> "AnsiString":
        return AnsiString(plain=self.plain, colored=self.plain)

    def to_dict(self) -> Dict[str, str]:
        return {"plain": self.plain, "colored": self.colored}


@dataclass(frozen=True)
class RepositoryStatus:
    """
    Snapshot of one repository, built fresh by an inspector.

    Never mutated after construction; a connection task owns the instance it
    got from its own inspection.
    """
    is_repository: bool
    vcs: AnsiString
    vcs_color: Optional[str] = None
    repo_name: str = ""
    repo_path: str = ""
    current_branch: AnsiString = field(default_factory=AnsiString)
    tracking: AnsiString = field(default_factory=AnsiString)
    branches: Tuple[AnsiString, ...] = ()
    status_counts: Dict[str, int] = field(default_factory=dict)
    status: AnsiString = field(default_factory=AnsiString)

    def accent(self, text: str, enabled: bool = True) -> str:
        """Color text with the VCS accent color, if the status has one."""
        if not enabled or self.vcs_color is None:
            return text
        return get_colored_text(text, self.vcs_color)

    def without_color(self) -> "RepositoryStatus":
        """Copy whose colored variants equal the plain ones."""
        return replace(
            self,
            vcs=self.vcs.uncolored(),
            current_branch=self.current_branch.uncolored(),
            tracking=self.tracking.uncolored(),
            branches=tuple(branch.uncolored() for branch in self.branches),
            status=self.status.uncolored(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_repo": self.is_repository,
            "vcs": self.vcs.to_dict(),
            "vcs_color": self.vcs_color,
            "repo_name": self.repo_name,
            "repo_path": self.repo_path,
            "current_branch": self.current_branch.to_dict(),
            "tracking": self.tracking.to_dict(),
            "branches": [branch.to_dict() for branch in self.branches],
            "status_counts": dict(self.status_counts),
            "status": self.status.to_dict(),
        }


# ----------------------------------------------------------------------------
# Inspection outcome: exactly one of these comes back from an inspector
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class RepositoryFound:
    status: RepositoryStatus


@dataclass(frozen=True)
class NotARepository:
    """The directory is not under this VCS; `status` carries only the label."""
    status: RepositoryStatus


@dataclass(frozen=True)
class InspectionFailed:
    """The VCS tool itself failed (missing binary, error exit, timeout)."""
    vcs: VcsPreference
    reason: str


InspectionOutcome = Union[RepositoryFound, NotARepository, InspectionFailed]
