"""
Base inspector interface.

An inspector queries one VCS about a working directory and reports back one
of three outcomes: the repository status, "not a repository", or a failure of
the VCS tool itself.
"""

from abc import ABC, abstractmethod

from vcsstatus.core.models import (
    AnsiString,
    InspectionOutcome,
    NotARepository,
    RepositoryStatus,
    VcsPreference,
)
from vcsstatus.core.schema import StatusSchema


class RepositoryInspector(ABC):
    """Abstract base class for VCS inspectors."""

    vcs: VcsPreference
    schema: StatusSchema

    @abstractmethod
    def inspect(self, directory: str) -> InspectionOutcome:
        """
        Inspect `directory`. Must be implemented by subclasses.

        Args:
            directory: Working directory to inspect

        Returns:
            RepositoryFound, NotARepository or InspectionFailed
        """
        pass

    def not_a_repository(self) -> NotARepository:
        label = AnsiString(plain=self.schema.vcs, colored=self.schema.vcs)
        return NotARepository(RepositoryStatus(is_repository=False, vcs=label))
