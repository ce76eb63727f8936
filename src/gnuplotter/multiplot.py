"""Several plots on one page, arranged in a rows x cols grid."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from pathlib import Path

from .config import GnuplotConfig
from .core.models import RenderResult, TerminalKind
from .core.terminals import Terminal
from .errors import GnuplotError
from .gnuplot import DATA_NAME, Gnuplot, quote, render_script, save_rendered
from .session import GnuplotSession

logger = logging.getLogger(__name__)

# Lines that restore a directive a previous panel changed. Directives
# not listed here are restored with ``unset <key>``.
PANEL_RESETS = {
    "ytics": "set ytics mirror",
    "xrange": "set xrange [*:*]",
    "yrange": "set yrange [*:*]",
    "y2range": "set y2range [*:*]",
    "xtics": "set xtics norotate autofreq",
    "format x": "set format x",
    "format y": "set format y",
}

_DATA_TOKEN = re.compile(re.escape(DATA_NAME) + r"\b")


def grid_shape(count: int, rows: int | None = None, cols: int | None = None) -> tuple[int, int]:
    """Pick a ``(rows, cols)`` grid with room for *count* panels.

    With neither dimension fixed the grid is as square as possible,
    favouring an extra column.
    """
    if count < 1:
        raise ValueError("A multiplot needs at least one plot")
    if (rows is not None and rows < 1) or (cols is not None and cols < 1):
        raise ValueError(f"Grid dimensions must be positive, got rows={rows} cols={cols}")
    if rows is None and cols is None:
        cols = math.ceil(math.sqrt(count))
        rows = math.ceil(count / cols)
    elif rows is None:
        rows = math.ceil(count / cols)
    elif cols is None:
        cols = math.ceil(count / rows)
    if rows * cols < count:
        raise ValueError(f"A {rows}x{cols} grid cannot hold {count} plots")
    return rows, cols


class Multiplot:
    """Render several :class:`Gnuplot` objects into one image.

    The first plot's style table, the terminal settings and the frame
    are emitted once for the page.  Every other directive belongs to a
    panel: each panel emits its own settings before its plot command and
    restores whatever the previous panel changed.  Datablocks are renamed
    ``$data0``, ``$data1``... so the panels do not overwrite each other;
    ``$data`` in a panel's :attr:`~Gnuplot.user_command` is renamed too.
    """

    def __init__(
        self,
        plots: Sequence[Gnuplot],
        rows: int | None = None,
        cols: int | None = None,
        title: str = "",
    ) -> None:
        self.plots = list(plots)
        self.rows, self.cols = grid_shape(len(self.plots), rows, cols)
        self.title = title

    @property
    def config(self) -> GnuplotConfig:
        return self.plots[0].config

    def layout_command(self) -> str:
        command = f"set multiplot layout {self.rows},{self.cols}"
        if self.title:
            command += f" title {quote(self.title)}"
        return command

    def page_lines(self, terminal: Terminal) -> dict[str, str]:
        """Page-wide ``set`` lines keyed by option name."""
        lines = {
            key: f"set {key} {value}"
            for key, value in self.plots[0].settings.items()
            if key.startswith("style line")
        }
        for key, value in terminal.output_settings(self.config).items():
            lines[key] = f"set {key} {value}".rstrip()
        for directive in terminal.frame():
            lines[directive.split(" ", 1)[0]] = f"set {directive}"
        return lines

    @staticmethod
    def _plot_command(index: int, plot: Gnuplot) -> str:
        name = f"{DATA_NAME}{index}"
        if plot.user_command:
            return _DATA_TOKEN.sub(name, plot.user_command)
        return plot.plot_command(name)

    def _panel(self, index: int, page: dict[str, str]) -> str:
        plot = self.plots[index]
        lines = []
        if index > 0:
            previous = self.plots[index - 1]
            touched = set(plot.settings) | set(plot.unsets)
            for key in previous.settings:
                if key not in touched and key not in page:
                    lines.append(PANEL_RESETS.get(key, f"unset {key}"))
        lines += [
            f"set {key} {value}".rstrip()
            for key, value in plot.settings.items() if key not in page
        ]
        lines += [f"unset {key}" for key in plot.unsets if key not in page]
        lines.append(self._plot_command(index, plot))
        return "\n".join(lines)

    def commands(self, terminal: Terminal | None = None, *, persistent: bool = False) -> str:
        terminal = terminal or Terminal.svg()
        page = self.page_lines(terminal)
        parts = ["reset\n" if persistent else ""]
        parts += [plot.datablock(f"{DATA_NAME}{i}") for i, plot in enumerate(self.plots)]
        parts.append("\n".join(page.values()) + "\n")
        parts.append(self.layout_command() + "\n")
        parts.append("\n".join(self._panel(i, page) for i in range(len(self.plots))))
        parts.append("\nunset multiplot\n")
        parts.append("unset output\n" if persistent else "exit\n\n")
        return "".join(parts)

    def __call__(self, terminal: Terminal | None = None, session: GnuplotSession | None = None) -> bytes:
        return render_script(self, terminal or Terminal.svg(), session)

    @property
    def svg(self) -> str | None:
        try:
            return self(Terminal.svg()).decode("utf-8", errors="replace")
        except GnuplotError as exc:
            logger.warning("SVG multiplot render failed: %s", exc)
            return None

    @property
    def png(self) -> bytes | None:
        try:
            return self(Terminal.png_small())
        except GnuplotError as exc:
            logger.warning("PNG multiplot render failed: %s", exc)
            return None

    def save(
        self,
        path: str | Path,
        kind: TerminalKind | None = None,
        session: GnuplotSession | None = None,
    ) -> RenderResult:
        return save_rendered(self, path, kind, session)
