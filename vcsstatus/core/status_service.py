"""
Answer a status request in-process.

Shared by the single-use CLI path, the client's fallback mode and the
daemon's connection handler, so all three render identically.
"""

import logging
from typing import Optional

from vcsstatus.core import response_builder
from vcsstatus.core.models import Request, Response
from vcsstatus.core.resolver import RepositoryResolver

logger = logging.getLogger(__name__)


class StatusService:
    """Resolve a request's directory and render the result."""

    def __init__(self, resolver: Optional[RepositoryResolver] = None):
        self.resolver = resolver or RepositoryResolver()

    def respond(self, request: Request, color_enabled: Optional[bool] = None) -> Response:
        """
        Build the response for a non-probe request.

        Blocking: may run several VCS subprocesses. The daemon calls this from
        a worker thread.
        """
        if request.directory == "":
            # Nothing to inspect; skip the subprocesses entirely
            return response_builder.render(request, None, color_enabled)

        resolution = self.resolver.resolve(request.directory, request.vcs)
        if not resolution.found and resolution.errors:
            reasons = "; ".join(f"{e.vcs.value}: {e.reason}" for e in resolution.errors)
            logger.warning("No repository status for %s (%s)", request.directory, reasons)

        return response_builder.render(request, resolution.status, color_enabled)
