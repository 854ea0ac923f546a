"""Pick the right inspector for a request and run it."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from vcsstatus.core.models import (
    InspectionFailed,
    NotARepository,
    RepositoryFound,
    RepositoryStatus,
    VcsPreference,
)
from vcsstatus.inspectors.base import RepositoryInspector

logger = logging.getLogger(__name__)

# Detection order; Git must be tried before Mercurial
DETECTION_ORDER: Tuple[VcsPreference, ...] = (VcsPreference.GIT, VcsPreference.MERCURIAL)


@dataclass(frozen=True)
class Resolution:
    """
    Result of resolving a directory.

    `status` is None when no usable status was produced. `errors` keeps every
    inspector failure met on the way, including ones that detection moved
    past.
    """
    status: Optional[RepositoryStatus] = None
    errors: Tuple[InspectionFailed, ...] = ()

    @property
    def found(self) -> bool:
        return self.status is not None


class RepositoryResolver:
    """Maps a VCS preference to inspector calls."""

    def __init__(self, inspectors: Optional[Dict[VcsPreference, RepositoryInspector]] = None):
        if inspectors is None:
            from vcsstatus.inspectors import GitInspector, MercurialInspector

            inspectors = {
                VcsPreference.GIT: GitInspector(),
                VcsPreference.MERCURIAL: MercurialInspector(),
            }
        self.inspectors = inspectors

    def resolve(self, directory: str, preference: VcsPreference = VcsPreference.DETECT) -> Resolution:
        """
        Resolve `directory` to a repository status.

        An explicit preference runs only that inspector and returns its status
        as-is, "not a repository" included. Detection tries each VCS in
        DETECTION_ORDER and returns the first actual repository.
        """
        if preference is not VcsPreference.DETECT:
            return self._resolve_explicit(directory, preference)
        return self._detect(directory, DETECTION_ORDER)

    def _resolve_explicit(self, directory: str, preference: VcsPreference) -> Resolution:
        outcome = self.inspectors[preference].inspect(directory)

        if isinstance(outcome, (RepositoryFound, NotARepository)):
            return Resolution(status=outcome.status)
        logger.warning("%s inspection failed in %s: %s", outcome.vcs.value, directory, outcome.reason)
        return Resolution(errors=(outcome,))

    def _detect(self, directory: str, order: Sequence[VcsPreference]) -> Resolution:
        errors = []

        for vcs in order:
            outcome = self.inspectors[vcs].inspect(directory)

            if isinstance(outcome, RepositoryFound):
                return Resolution(status=outcome.status, errors=tuple(errors))
            if isinstance(outcome, InspectionFailed):
                # Keep trying the next VCS, but do not lose the failure
                logger.info("%s inspection failed in %s: %s", vcs.value, directory, outcome.reason)
                errors.append(outcome)

        return Resolution(errors=tuple(errors))
