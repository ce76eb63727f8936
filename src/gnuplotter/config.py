"""Runtime configuration: where gnuplot lives and how it is driven.

Values come from explicit arguments, then environment variables, then
platform defaults::

    GNUPLOT_EXECUTABLE   path to the gnuplot binary
    GNUPLOT_REUSE        1/true/yes to keep one gnuplot process alive
    GNUPLOT_TIMEOUT      seconds to wait for a one-shot render
    GNUPLOT_PALETTE      default colour palette name
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass, field, replace

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Platform defaults
# ---------------------------------------------------------------------------

_DEFAULT_EXECUTABLES: dict[str, str] = {
    "win32": "gnuplot.exe",
    "linux": "/usr/bin/gnuplot",
    "darwin": "/opt/homebrew/bin/gnuplot",
}

_SVG_HEIGHTS: dict[str, int] = {
    "win32": 600,
    "linux": 750,
    "darwin": 710,
}

_TRUTHY = {"1", "true", "yes", "on"}


def _platform_key(platform: str) -> str:
    """Collapse ``sys.platform`` values (``linux2``, ``cygwin``...) to a key."""
    if platform.startswith("linux"):
        return "linux"
    if platform.startswith(("win", "cygwin")):
        return "win32"
    return "darwin"


def default_font(platform: str | None = None) -> str:
    """Font family used by the cairo terminals."""
    key = _platform_key(platform or sys.platform)
    return "Times" if key == "linux" else "Arial"


def default_svg_height(platform: str | None = None) -> int:
    return _SVG_HEIGHTS[_platform_key(platform or sys.platform)]


def resolve_executable(explicit: str | None = None, platform: str | None = None) -> str:
    """Locate gnuplot: explicit path, then ``$PATH``, then the platform default."""
    if explicit:
        return explicit
    found = shutil.which("gnuplot")
    if found:
        return found
    fallback = _DEFAULT_EXECUTABLES[_platform_key(platform or sys.platform)]
    logger.debug("gnuplot not on PATH, falling back to %s", fallback)
    return fallback


# ---------------------------------------------------------------------------
# Config object
# ---------------------------------------------------------------------------

@dataclass
class GnuplotConfig:
    """Settings shared by every plot and session.

    Parameters
    ----------
    executable
        Path to gnuplot.  ``None`` resolves lazily via
        :func:`resolve_executable`.
    args
        Extra command-line arguments, e.g. ``["-d"]`` to skip the
        user's gnuplot init file.
    reuse_process
        Send every render to one long-lived gnuplot process instead of
        spawning a new one per call.
    timeout
        Seconds a one-shot render may take.  ``None`` waits forever.
        The persistent session never times out.
    font
        Font family for the cairo terminals (``Times`` on Linux,
        ``Arial`` elsewhere).
    svg_height
        Height of the SVG canvas; width is fixed at 1000.
    palette
        Name of the colour palette used for new plots.
    """

    executable: str | None = None
    args: list[str] = field(default_factory=list)
    reuse_process: bool = False
    timeout: float | None = None
    font: str = ""
    svg_height: int = 0
    palette: str = "matlab"
    platform: str = field(default_factory=lambda: sys.platform)

    def __post_init__(self) -> None:
        if not self.font:
            self.font = default_font(self.platform)
        if not self.svg_height:
            self.svg_height = default_svg_height(self.platform)

    @property
    def resolved_executable(self) -> str:
        return resolve_executable(self.executable, self.platform)

    @classmethod
    def from_env(cls, **overrides) -> GnuplotConfig:
        """Build a config from ``GNUPLOT_*`` environment variables."""
        config = cls()
        executable = os.environ.get("GNUPLOT_EXECUTABLE")
        if executable:
            config.executable = executable
        reuse = os.environ.get("GNUPLOT_REUSE")
        if reuse is not None:
            config.reuse_process = reuse.strip().lower() in _TRUTHY
        timeout = os.environ.get("GNUPLOT_TIMEOUT")
        if timeout:
            try:
                config.timeout = float(timeout)
            except ValueError:
                logger.warning("Ignoring non-numeric GNUPLOT_TIMEOUT=%r", timeout)
        palette = os.environ.get("GNUPLOT_PALETTE")
        if palette:
            config.palette = palette
        return replace(config, **overrides) if overrides else config


_active: GnuplotConfig | None = None


def get_config() -> GnuplotConfig:
    """Return the active configuration, reading the environment on first use."""
    global _active
    if _active is None:
        _active = GnuplotConfig.from_env()
    return _active


def set_config(config: GnuplotConfig | None) -> None:
    """Replace the active configuration (``None`` re-reads the environment)."""
    global _active
    _active = config
