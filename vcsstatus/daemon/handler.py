"""Per-connection request handling for the daemon."""

import asyncio
import logging
from typing import Optional

from vcsstatus.core import response_builder
from vcsstatus.core.errors import ProtocolError
from vcsstatus.core.models import (
    EXIT_MALFORMED_REQUEST,
    EXIT_OK,
    EXIT_REPOSITORY_ERROR,
    EXIT_REQUEST_TIMEOUT,
    Request,
    Response,
)
from vcsstatus.core.status_service import StatusService
from vcsstatus.daemon.protocol import deserialize_request, serialize_response

logger = logging.getLogger(__name__)

STATUS_OK_RESPONSE = Response(EXIT_OK, "OK")
REQUEST_TIMEOUT_RESPONSE = Response(EXIT_REQUEST_TIMEOUT, "Timed out waiting for request.")


class ConnectionHandler:
    """
    Handles one connection: one request in, one response out, then close.

    Socket I/O runs on the event loop; the blocking VCS work runs in a worker
    thread so a slow inspection only holds up its own connection.
    """

    def __init__(
        self,
        service: Optional[StatusService] = None,
        request_timeout: float = 5.0,
        inspect_timeout: float = 10.0,
    ):
        self.service = service or StatusService()
        self.request_timeout = request_timeout
        self.inspect_timeout = inspect_timeout

    async def handle(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Handle a single client connection."""
        try:
            response = await self._respond(reader)
            writer.write(serialize_response(response))
            await writer.drain()
        except OSError as e:
            logger.warning(f"Error writing response: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _respond(self, reader: asyncio.StreamReader) -> Response:
        try:
            data = await asyncio.wait_for(reader.readline(), timeout=self.request_timeout)
        except asyncio.TimeoutError:
            logger.warning("Client connection timed out before sending a request")
            return REQUEST_TIMEOUT_RESPONSE
        except ValueError as e:
            # StreamReader raises ValueError when the line exceeds its limit
            return self._malformed(f"request too large: {e}")
        except OSError as e:
            # Best effort: the peer may already be gone
            logger.warning(f"Error reading request: {e}")
            return self._malformed(f"error reading request: {e}")

        try:
            request = deserialize_request(data)
        except ProtocolError as e:
            return self._malformed(str(e))

        if request.status_check:
            return STATUS_OK_RESPONSE

        logger.debug("Got request: %s", request)
        return await self._resolve(request)

    async def _resolve(self, request: Request) -> Response:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.service.respond, request),
                timeout=self.inspect_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Inspection of {request.directory} exceeded {self.inspect_timeout:g}s"
            )
        except Exception as e:
            logger.exception(f"Error resolving {request.directory}: {e}")

        return Response(EXIT_REPOSITORY_ERROR, response_builder.REPOSITORY_ERROR_MESSAGE)

    @staticmethod
    def _malformed(reason: str) -> Response:
        logger.info(f"Malformed request: {reason}")
        return Response(EXIT_MALFORMED_REQUEST, f"Error decoding request: {reason}")
