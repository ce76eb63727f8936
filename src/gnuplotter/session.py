"""Drive gnuplot as a child process and collect its output.

Two modes are supported:

1. **One-shot** (default): spawn gnuplot, feed the whole script
   (ending in ``exit``) on stdin, and read stdout to EOF.

2. **Persistent**: keep one gnuplot process alive across renders.
   Each script ends with ``unset output`` so gnuplot flushes the
   image, and the reader appends stdout chunks to a buffer until it
   ends with the terminal's trailer bytes (``</svg>``, ``%%EOF`` or
   the PNG ``IEND`` chunk).  A trailer seen mid-stream does not stop
   the read; only a buffer that *ends* with it does.

stderr is redirected to an anonymous temporary file so a chatty
gnuplot can never fill a pipe and stall, and whatever it wrote is
attached to the :class:`GnuplotError` raised on failure.
"""

from __future__ import annotations

import atexit
import logging
import subprocess
import tempfile
from collections.abc import Sequence
from typing import IO

from .config import GnuplotConfig, get_config
from .core.models import TerminalKind
from .core.terminals import Terminal, payload_complete, strip_preamble
from .errors import GnuplotError, GnuplotNotFoundError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CHUNK_SIZE = 64 * 1024
_CLOSE_TIMEOUT = 5.0


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# One-shot rendering
# ---------------------------------------------------------------------------

def run_once(
    script: str,
    *,
    executable: str | None = None,
    args: Sequence[str] = (),
    config: GnuplotConfig | None = None,
    kind: TerminalKind | None = None,
) -> bytes:
    """Run *script* in a fresh gnuplot process and return its stdout.

    The script must end with ``exit`` (or simply end; gnuplot stops at
    EOF).  Raises :class:`GnuplotNotFoundError` if the executable cannot
    be launched and :class:`GnuplotError` on timeout or a failed run
    that produced no output.
    """
    config = config or get_config()
    cmd = [executable or config.resolved_executable, *(args or config.args)]
    logger.debug("Running %s (%d byte script)", cmd[0], len(script))

    try:
        result = subprocess.run(
            cmd,
            input=script.encode("utf-8"),
            capture_output=True,
            timeout=config.timeout,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise GnuplotNotFoundError(f"Could not launch gnuplot at {cmd[0]!r}: {exc}") from exc
    except subprocess.TimeoutExpired as exc:
        raise GnuplotError(
            f"gnuplot did not finish within {config.timeout}s",
            _decode(exc.stderr or b""),
        ) from exc

    stderr = _decode(result.stderr)
    if result.returncode != 0 and not result.stdout:
        raise GnuplotError(f"gnuplot exited with status {result.returncode}", stderr)
    if stderr.strip():
        logger.warning("gnuplot: %s", stderr.strip()[:500])

    if kind is not None and result.stdout and not payload_complete(result.stdout, kind):
        logger.warning(
            "gnuplot output (%d bytes) does not end with the %s trailer",
            len(result.stdout), kind.value,
        )
    return result.stdout


# ---------------------------------------------------------------------------
# Persistent session
# ---------------------------------------------------------------------------

class GnuplotSession:
    """A long-lived gnuplot process that renders one script at a time.

    Parameters
    ----------
    executable
        Path to gnuplot.  Defaults to the configured executable.
    args
        Extra command-line arguments passed to the executable.
    config
        Configuration; defaults to :func:`~gnuplotter.config.get_config`.

    Usage::

        with GnuplotSession() as session:
            svg = plot(Terminal.svg(), session=session)
    """

    def __init__(
        self,
        executable: str | None = None,
        args: Sequence[str] = (),
        config: GnuplotConfig | None = None,
    ) -> None:
        self.config = config or get_config()
        self.executable = executable or self.config.resolved_executable
        self.args = list(args) if args else list(self.config.args)
        self._process: subprocess.Popen | None = None
        self._stderr: IO[bytes] | None = None
        self._stderr_offset = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def command(self) -> list[str]:
        return [self.executable, *self.args]

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def start(self) -> None:
        """Launch the child process unless it is already running.

        A child that died since the last call is reaped and replaced.
        """
        if self.running:
            return
        if self._process is not None:
            logger.info("gnuplot (pid %d) exited with %s; restarting", self._process.pid, self._process.returncode)
            self._release()

        self._stderr = tempfile.TemporaryFile()
        self._stderr_offset = 0
        try:
            self._process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=self._stderr,
            )
        except (FileNotFoundError, PermissionError) as exc:
            self._stderr.close()
            self._stderr = None
            raise GnuplotNotFoundError(
                f"Could not launch gnuplot at {self.executable!r}: {exc}"
            ) from exc
        logger.info("Started gnuplot (pid %d): %s", self._process.pid, " ".join(self.command))

    def close(self) -> None:
        """Ask gnuplot to exit, then reap it (killing it if it hangs)."""
        if self._process is None:
            return
        process = self._process
        if process.poll() is None:
            try:
                process.stdin.write(b"exit\n")
                process.stdin.flush()
            except OSError as exc:
                logger.debug("Could not send exit to gnuplot: %s", exc)
        try:
            process.stdin.close()
        except OSError as exc:
            logger.debug("Closing gnuplot stdin failed: %s", exc)
        try:
            process.wait(timeout=self.config.timeout or _CLOSE_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("gnuplot (pid %d) did not exit; killing it", process.pid)
            process.kill()
            process.wait()
        logger.info("Closed gnuplot (pid %d)", process.pid)
        self._release()

    def _release(self) -> None:
        if self._process is not None and self._process.stdout is not None:
            self._process.stdout.close()
        if self._stderr is not None:
            self._stderr.close()
        self._process = None
        self._stderr = None
        self._stderr_offset = 0

    def __enter__(self) -> GnuplotSession:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def execute(self, script: str, terminal: Terminal) -> bytes:
        """Send *script* and return the rendered payload.

        For a terminal writing to a file nothing is read back and
        ``b""`` is returned.  Raises :class:`GnuplotError` if gnuplot
        closes its pipes before the trailer arrives.
        """
        self.start()
        process = self._process
        try:
            process.stdin.write(script.encode("utf-8"))
            process.stdin.flush()
        except OSError as exc:
            stderr = self._fail()
            raise GnuplotError("gnuplot closed its input pipe", stderr) from exc

        if not terminal.streams:
            self._log_stderr()
            return b""

        payload = self._read_payload(terminal.kind)
        self._log_stderr()
        return strip_preamble(payload, terminal.kind)

    def _read_payload(self, kind: TerminalKind) -> bytes:
        """Read stdout until the buffer ends with the trailer for *kind*."""
        buffer = bytearray()
        reads = 0
        while not payload_complete(buffer, kind):
            chunk = self._process.stdout.read1(_CHUNK_SIZE)
            if not chunk:
                stderr = self._fail()
                raise GnuplotError(
                    f"gnuplot exited before the {kind.value} trailer "
                    f"({len(buffer)} bytes read)",
                    stderr,
                )
            buffer.extend(chunk)
            reads += 1
        logger.debug("Read %d bytes of %s in %d chunk(s)", len(buffer), kind.value, reads)
        return bytes(buffer)

    # ------------------------------------------------------------------
    # stderr bookkeeping
    # ------------------------------------------------------------------

    def _new_stderr(self) -> str:
        """stderr written since the last call."""
        if self._stderr is None:
            return ""
        self._stderr.seek(self._stderr_offset)
        data = self._stderr.read()
        self._stderr_offset += len(data)
        return _decode(data)

    def _log_stderr(self) -> None:
        text = self._new_stderr().strip()
        if text:
            logger.warning("gnuplot: %s", text[:500])

    def _fail(self) -> str:
        """Reap a broken child and return its last stderr output."""
        process = self._process
        if process is not None and process.poll() is None:
            process.kill()
        if process is not None:
            process.wait()
        stderr = self._new_stderr()
        self._release()
        return stderr


# ---------------------------------------------------------------------------
# Shared session
# ---------------------------------------------------------------------------

_shared: GnuplotSession | None = None


def shared_session(config: GnuplotConfig | None = None) -> GnuplotSession:
    """Return the process-wide session, creating it on first use.

    A *config* that differs from the running session's replaces it.
    The session is closed automatically at interpreter exit.
    """
    global _shared
    if _shared is not None and config is not None and config != _shared.config:
        logger.info("gnuplot configuration changed; replacing the shared session")
        close_shared_session()
    if _shared is None:
        _shared = GnuplotSession(config=config)
    return _shared


def close_shared_session() -> None:
    """Close and forget the process-wide session, if any."""
    global _shared
    if _shared is not None:
        _shared.close()
        _shared = None


atexit.register(close_shared_session)
