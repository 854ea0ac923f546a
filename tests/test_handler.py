"""
Tests for daemon/handler.py - one request in, one response out.
"""

import asyncio
import socket
import unittest

from vcsstatus.core.models import (
    OutputFormat,
    Request,
    Response,
    RepositoryFound,
    VcsPreference,
)
from vcsstatus.core.resolver import RepositoryResolver
from vcsstatus.core.status_service import StatusService
from vcsstatus.daemon.handler import ConnectionHandler
from vcsstatus.daemon.protocol import deserialize_response, serialize_request

from tests.stubs import ForbiddenInspector, StubInspector, make_status

GIT = VcsPreference.GIT
HG = VcsPreference.MERCURIAL


def forbidden_service() -> StatusService:
    return StatusService(RepositoryResolver({GIT: ForbiddenInspector(GIT), HG: ForbiddenInspector(HG)}))


async def exchange(handler: ConnectionHandler, payload: bytes) -> Response:
    """Run the handler against one end of a socket pair and read the reply."""
    server_sock, client_sock = socket.socketpair()
    reader, writer = await asyncio.open_unix_connection(sock=server_sock)
    client_reader, client_writer = await asyncio.open_unix_connection(sock=client_sock)

    client_writer.write(payload)
    await client_writer.drain()
    await handler.handle(reader, writer)

    data = await client_reader.read()
    client_writer.close()
    await client_writer.wait_closed()

    assert writer.is_closing()
    return deserialize_response(data)


class TestConnectionHandler(unittest.IsolatedAsyncioTestCase):
    """Test cases for ConnectionHandler."""

    async def test_status_check_never_inspects(self):
        handler = ConnectionHandler(forbidden_service())

        response = await exchange(handler, serialize_request(Request.status_probe()))

        self.assertEqual(response, Response(0, "OK"))

    async def test_status_check_ignores_other_fields(self):
        handler = ConnectionHandler(forbidden_service())
        probe = Request(directory="", output_format=OutputFormat.PROMPT, vcs=GIT, status_check=True)

        response = await exchange(handler, serialize_request(probe))

        self.assertEqual(response, Response(0, "OK"))

    async def test_malformed_request(self):
        handler = ConnectionHandler(forbidden_service())

        response = await exchange(handler, b"{this is not json}\n")

        self.assertEqual(response.exit_code, 100)
        self.assertTrue(response.content.startswith("Error decoding request: "))
        self.assertIn("invalid JSON", response.content)

    async def test_unknown_enum_is_malformed(self):
        handler = ConnectionHandler(forbidden_service())

        response = await exchange(handler, b'{"directory": "/w", "vcs": "svn"}\n')

        self.assertEqual(response.exit_code, 100)
        self.assertIn("vcs", response.content)

    async def test_request_without_newline_is_read_to_eof(self):
        status = make_status(repo_name="alpha")
        git = StubInspector(GIT, outcome=RepositoryFound(status))
        handler = ConnectionHandler(StatusService(RepositoryResolver({GIT: git, HG: StubInspector(HG)})))
        request = Request(directory="/w/alpha", output_format=OutputFormat.STATUS_LINE)

        server_sock, client_sock = socket.socketpair()
        reader, writer = await asyncio.open_unix_connection(sock=server_sock)
        client_sock.sendall(serialize_request(request).rstrip(b"\n"))
        client_sock.shutdown(socket.SHUT_WR)
        client_sock.setblocking(False)

        await handler.handle(reader, writer)
        data = await asyncio.get_running_loop().sock_recv(client_sock, 65536)
        client_sock.close()

        self.assertEqual(deserialize_response(data).content.splitlines()[1], "alpha")

    async def test_resolved_request(self):
        status = make_status(branch="main", branches=["dev", "fix"], counts={"M": 2})
        git = StubInspector(GIT, outcome=RepositoryFound(status))
        handler = ConnectionHandler(StatusService(RepositoryResolver({GIT: git, HG: ForbiddenInspector(HG)})))
        request = Request(directory="/w/project", output_format=OutputFormat.PROMPT)

        response = await exchange(handler, serialize_request(request))

        self.assertEqual(response, Response(0, "git:<main> {dev, fix}\nM:2\n"))
        self.assertEqual(git.calls, ["/w/project"])

    async def test_no_repository(self):
        handler = ConnectionHandler(
            StatusService(RepositoryResolver({GIT: StubInspector(GIT), HG: StubInspector(HG)}))
        )

        response = await exchange(handler, serialize_request(Request(directory="/tmp")))

        self.assertEqual(response, Response(1, "Error loading repository information."))

    async def test_empty_directory(self):
        handler = ConnectionHandler(forbidden_service())

        response = await exchange(handler, serialize_request(Request(directory="")))

        self.assertEqual(response, Response(2, "Directory must be non-empty."))

    async def test_request_timeout(self):
        handler = ConnectionHandler(forbidden_service(), request_timeout=0.05)

        response = await exchange(handler, b'{"directory": ')

        self.assertEqual(response.exit_code, 101)

    async def test_slow_inspection_times_out(self):
        git = StubInspector(GIT, outcome=RepositoryFound(make_status()), delay=0.5)
        handler = ConnectionHandler(
            StatusService(RepositoryResolver({GIT: git, HG: StubInspector(HG)})),
            inspect_timeout=0.05,
        )

        response = await exchange(handler, serialize_request(Request(directory="/w")))

        self.assertEqual(response, Response(1, "Error loading repository information."))

    async def test_inspector_crash_becomes_repository_error(self):
        def explode(directory):
            raise RuntimeError("parser bug")

        git = StubInspector(GIT, factory=explode)
        handler = ConnectionHandler(StatusService(RepositoryResolver({GIT: git, HG: StubInspector(HG)})))

        with self.assertLogs("vcsstatus.daemon.handler", level="ERROR"):
            response = await exchange(handler, serialize_request(Request(directory="/w")))

        self.assertEqual(response.exit_code, 1)

    async def test_read_error_still_gets_a_response(self):
        class BrokenReader:
            async def readline(self):
                raise ConnectionResetError("connection reset by peer")

        server_sock, client_sock = socket.socketpair()
        _, writer = await asyncio.open_unix_connection(sock=server_sock)
        client_reader, client_writer = await asyncio.open_unix_connection(sock=client_sock)

        with self.assertLogs("vcsstatus.daemon.handler", level="WARNING"):
            await ConnectionHandler(forbidden_service()).handle(BrokenReader(), writer)

        data = await client_reader.read()
        client_writer.close()
        await client_writer.wait_closed()

        response = deserialize_response(data)
        self.assertEqual(response.exit_code, 100)
        self.assertIn("error reading request", response.content)


if __name__ == "__main__":
    unittest.main()
