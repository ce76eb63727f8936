"""Tests for the one-shot runner and the persistent gnuplot session.

Stub programs from ``stubs.py`` stand in for gnuplot, so the pipe
protocol is exercised with a real child process.
"""

from __future__ import annotations

import subprocess
import sys
from unittest.mock import MagicMock, patch

import pytest

from gnuplotter.core.models import TerminalKind
from gnuplotter.core.terminals import Terminal
from gnuplotter.errors import GnuplotError, GnuplotNotFoundError
from gnuplotter.session import (
    GnuplotSession,
    close_shared_session,
    run_once,
    shared_session,
)

from stubs import (
    CRASHING_STUB,
    FAILING_STUB,
    ONESHOT_SVG_STUB,
    PERSISTENT_PNG_STUB,
    PERSISTENT_SVG_STUB,
    SLOW_STUB,
    stub_config,
)

SCRIPT = "reset\nset term svg\nplot $data\nunset output\n"


# ---------------------------------------------------------------------------
# One-shot
# ---------------------------------------------------------------------------

class TestRunOnce:
    def test_returns_stdout(self):
        out = run_once("plot 1\nexit\n", config=stub_config(ONESHOT_SVG_STUB), kind=TerminalKind.SVG)
        assert out == b"<svg><n>12</n></svg>\n"

    def test_missing_executable(self):
        with pytest.raises(GnuplotNotFoundError):
            run_once("exit\n")

    def test_explicit_executable_and_args(self):
        out = run_once("abc", executable=sys.executable, args=["-c", ONESHOT_SVG_STUB])
        assert out == b"<svg><n>3</n></svg>\n"

    def test_failure_carries_stderr(self):
        with pytest.raises(GnuplotError) as excinfo:
            run_once("set term nope\n", config=stub_config(FAILING_STUB))
        assert "unknown or ambiguous terminal type" in excinfo.value.stderr
        assert "status 1" in str(excinfo.value)

    def test_timeout(self):
        with pytest.raises(GnuplotError, match="did not finish"):
            run_once("exit\n", config=stub_config(SLOW_STUB, timeout=0.2))

    def test_missing_trailer_warns(self, caplog):
        with patch("gnuplotter.session.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=b"<svg>", stderr=b"")
            assert run_once("exit\n", kind=TerminalKind.SVG) == b"<svg>"
        assert "trailer" in caplog.text

    def test_stderr_logged_on_success(self, caplog):
        with patch("gnuplotter.session.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(
                returncode=0, stdout=b"<svg></svg>", stderr=b"warning: empty x range\n",
            )
            run_once("exit\n", kind=TerminalKind.SVG)
        assert "empty x range" in caplog.text

    def test_command_uses_config(self):
        with patch("gnuplotter.session.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=b"", stderr=b"")
            run_once("exit\n")
        cmd = mock_run.call_args.args[0]
        assert cmd == ["/nonexistent/gnuplot"]
        assert mock_run.call_args.kwargs["input"] == b"exit\n"


# ---------------------------------------------------------------------------
# Persistent session
# ---------------------------------------------------------------------------

class TestGnuplotSession:
    def test_reads_past_decoy_trailer(self):
        with GnuplotSession(config=stub_config(PERSISTENT_SVG_STUB)) as session:
            out = session.execute(SCRIPT, Terminal.svg())
        assert out == b"<svg><text>decoy </svg> inside</text><n>1</n>\n</svg>\n\n"

    def test_process_reused_between_renders(self):
        with GnuplotSession(config=stub_config(PERSISTENT_SVG_STUB)) as session:
            pid = session.pid
            first = session.execute(SCRIPT, Terminal.svg())
            second = session.execute(SCRIPT, Terminal.svg())
            assert session.pid == pid
        assert b"<n>1</n>" in first
        assert b"<n>2</n>" in second

    def test_close_stops_process(self):
        session = GnuplotSession(config=stub_config(PERSISTENT_SVG_STUB))
        session.start()
        assert session.running
        session.close()
        assert not session.running
        assert session.pid is None

    def test_close_without_start(self):
        GnuplotSession(config=stub_config(PERSISTENT_SVG_STUB)).close()

    def test_png_preamble_stripped(self):
        with GnuplotSession(config=stub_config(PERSISTENT_PNG_STUB)) as session:
            out = session.execute(SCRIPT, Terminal.png())
        assert out.startswith(b"\x89PNG\r\n\x1a\n")
        assert out.endswith(b"IEND\xaeB`\x82")

    def test_crash_raises_with_stderr(self):
        session = GnuplotSession(config=stub_config(CRASHING_STUB))
        with pytest.raises(GnuplotError) as excinfo:
            session.execute(SCRIPT, Terminal.svg())
        assert "undefined variable: foo" in excinfo.value.stderr
        assert "trailer" in str(excinfo.value)
        assert not session.running
        session.close()

    def test_restarts_after_crash(self):
        session = GnuplotSession(config=stub_config(CRASHING_STUB))
        with pytest.raises(GnuplotError):
            session.execute(SCRIPT, Terminal.svg())
        with pytest.raises(GnuplotError) as excinfo:
            session.execute(SCRIPT, Terminal.svg())
        assert "undefined variable" in excinfo.value.stderr
        session.close()

    def test_missing_executable(self):
        session = GnuplotSession()
        with pytest.raises(GnuplotNotFoundError):
            session.start()
        assert not session.running

    def test_file_terminal_returns_empty(self):
        with GnuplotSession(config=stub_config(PERSISTENT_SVG_STUB)) as session:
            assert session.execute("set output 'x.svg'\nplot 1\n", Terminal.svg("x.svg")) == b""
            assert session.running

    def test_command(self):
        session = GnuplotSession("/opt/gnuplot", ["-d"])
        assert session.command == ["/opt/gnuplot", "-d"]

    def test_hung_process_killed_on_close(self):
        process = MagicMock()
        process.pid = 4242
        process.poll.return_value = None
        process.wait.side_effect = [subprocess.TimeoutExpired("gnuplot", 1), 0]
        session = GnuplotSession(config=stub_config(PERSISTENT_SVG_STUB, timeout=1))
        session._process = process
        session.close()
        process.kill.assert_called_once()
        assert session.pid is None


class TestSharedSession:
    def test_same_instance(self):
        config = stub_config(PERSISTENT_SVG_STUB)
        assert shared_session(config) is shared_session(config)

    def test_close_forgets_instance(self):
        config = stub_config(PERSISTENT_SVG_STUB)
        first = shared_session(config)
        first.start()
        close_shared_session()
        assert not first.running
        assert shared_session(config) is not first

    def test_equal_config_reuses_session(self):
        first = shared_session(stub_config(PERSISTENT_SVG_STUB))
        assert shared_session(stub_config(PERSISTENT_SVG_STUB)) is first

    def test_changed_config_replaces_session(self):
        first = shared_session(stub_config(PERSISTENT_SVG_STUB))
        first.start()
        other = stub_config(PERSISTENT_PNG_STUB)
        second = shared_session(other)
        assert second is not first
        assert second.config is other
        assert not first.running

    def test_no_config_keeps_session(self):
        first = shared_session(stub_config(PERSISTENT_SVG_STUB))
        assert shared_session() is first


class TestGnuplotError:
    def test_str_includes_stderr(self):
        err = GnuplotError("gnuplot exited with status 1", "  line 3: bad\n")
        assert str(err) == "gnuplot exited with status 1\nline 3: bad"

    def test_str_without_stderr(self):
        assert str(GnuplotError("boom")) == "boom"

    def test_long_stderr_truncated(self):
        assert len(str(GnuplotError("x", "e" * 2000))) == len("x\n") + 500

    def test_not_found_is_gnuplot_error(self):
        assert issubclass(GnuplotNotFoundError, GnuplotError)
