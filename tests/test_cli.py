"""
Tests for ui/cli.py - execution modes and exit codes.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from vcsstatus.core.errors import ClientProtocolError
from vcsstatus.core.models import (
    OutputFormat,
    RepositoryFound,
    Request,
    Response,
    VcsPreference,
)
from vcsstatus.core.resolver import RepositoryResolver
from vcsstatus.core.status_service import StatusService
from vcsstatus.daemon.client import DaemonClient
from vcsstatus.ui.cli import app

from tests.stubs import StubInspector, ThreadedDaemon, make_status

GIT = VcsPreference.GIT
HG = VcsPreference.MERCURIAL


class TestCli(unittest.TestCase):
    """Test cases for the vcsstatus command."""

    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp(prefix="vcs")
        self.missing_socket = str(Path(self.temp_dir) / "none.sock")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_single_use_prints_content_and_exits_with_code(self):
        reply = Response(0, "git:<main>\nM:1\n")
        with patch.object(StatusService, "respond", return_value=reply) as respond:
            result = self.runner.invoke(app, ["-d", "/w/project", "-o", "prompt", "-r", "git"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output, "git:<main>\nM:1\n")
        request = respond.call_args.args[0]
        self.assertEqual(
            request,
            Request(directory="/w/project", output_format=OutputFormat.PROMPT, vcs=VcsPreference.GIT),
        )

    def test_single_use_repository_error(self):
        reply = Response(1, "Error loading repository information.")
        with patch.object(StatusService, "respond", return_value=reply):
            result = self.runner.invoke(app, ["-d", "/tmp"])

        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.output, "Error loading repository information.\n")

    def test_force_color_enables_color(self):
        with patch.object(StatusService, "respond", return_value=Response(0, "x\n")) as respond:
            self.runner.invoke(app, ["-c", "-d", "/w"])

        self.assertTrue(respond.call_args.args[0].force_color)
        self.assertTrue(respond.call_args.kwargs["color_enabled"])

    def test_client_without_daemon_fails_to_connect(self):
        result = self.runner.invoke(app, ["-X", "client", "-S", self.missing_socket, "-d", "/w"])
        self.assertEqual(result.exit_code, 110)

    def test_daemoncheck_without_daemon_fails_to_connect(self):
        result = self.runner.invoke(app, ["-X", "daemoncheck", "-S", self.missing_socket])
        self.assertEqual(result.exit_code, 110)

    def test_client_fallback_answers_locally(self):
        reply = Response(0, "hg:<default>\n\n")
        with patch.object(StatusService, "respond", return_value=reply) as respond:
            result = self.runner.invoke(
                app, ["-X", "clientfallback", "-S", self.missing_socket, "-d", "/w", "-o", "prompt"]
            )

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output, "hg:<default>\n\n")
        self.assertEqual(respond.call_count, 1)

    def test_invalid_output_is_rejected(self):
        result = self.runner.invoke(app, ["-o", "html"])
        self.assertNotEqual(result.exit_code, 0)

    def test_daemon_with_occupied_socket_exits_1(self):
        occupied = Path(self.temp_dir) / "busy.sock"
        occupied.write_text("stale")

        result = self.runner.invoke(app, ["-X", "daemon", "-S", str(occupied)])

        self.assertEqual(result.exit_code, 1)
        self.assertTrue(occupied.exists())


def project_only(directory: str):
    """Git stub answer: only directories named 'project' are repositories."""
    if os.path.basename(directory) == "project":
        status = make_status(branch="main", branches=["dev"], counts={"M": 1})
        return RepositoryFound(status)
    return StubInspector(GIT).not_a_repository()


class TestCliAgainstDaemon(unittest.TestCase):
    """Test cases for the client modes talking to a live daemon."""

    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp(prefix="vcs")
        self.socket_path = str(Path(self.temp_dir) / "d.sock")

        self.git = StubInspector(GIT, factory=project_only)
        resolver = RepositoryResolver({GIT: self.git, HG: StubInspector(HG)})
        self.daemon = ThreadedDaemon(Path(self.socket_path), resolver)
        self.daemon.start()

    def tearDown(self):
        self.daemon.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_client_prints_daemon_content(self):
        result = self.runner.invoke(
            app, ["-X", "client", "-S", self.socket_path, "-d", "/w/project", "-o", "prompt"]
        )

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output, "git:<main> {dev}\nM:1\n")
        self.assertEqual(self.git.calls, ["/w/project"])

    def test_client_exits_with_daemon_error_code(self):
        result = self.runner.invoke(app, ["-X", "client", "-S", self.socket_path, "-d", "/w/other"])

        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.output, "Error loading repository information.\n")

    def test_client_sends_absolute_directory(self):
        result = self.runner.invoke(app, ["-X", "client", "-S", self.socket_path, "-d", "sub"])

        self.assertEqual(result.exit_code, 1)
        sent = self.git.calls[0]
        self.assertTrue(os.path.isabs(sent))
        self.assertEqual(sent, os.path.join(os.getcwd(), "sub"))

    def test_daemoncheck_with_running_daemon(self):
        result = self.runner.invoke(app, ["-X", "daemoncheck", "-S", self.socket_path])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output, "")
        self.assertEqual(self.git.calls, [])

    def test_client_relays_any_exit_code(self):
        reply = Response(2, "Directory must be non-empty.")
        with patch.object(DaemonClient, "send", return_value=reply):
            result = self.runner.invoke(app, ["-X", "client", "-S", self.socket_path, "-d", "/w"])

        self.assertEqual(result.exit_code, 2)
        self.assertEqual(result.output, "Directory must be non-empty.\n")

    def test_client_protocol_error_exits_111(self):
        failure = ClientProtocolError("Empty response from daemon")
        with patch.object(DaemonClient, "send", side_effect=failure):
            result = self.runner.invoke(app, ["-X", "client", "-S", self.socket_path, "-d", "/w"])

        self.assertEqual(result.exit_code, 111)


if __name__ == "__main__":
    unittest.main()
