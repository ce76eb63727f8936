"""The plot object: data, settings and a plot command, rendered by gnuplot.

Usage::

    from gnuplotter import Gnuplot, Terminal

    plot = Gnuplot.from_columns([0, 1, 2, 3], ys=[[0, 1, 4, 9]], titles=["x²"])
    plot.set_title("Squares").set_xlabel("x")
    svg_text = plot.svg
    plot.save("squares.pdf")
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from .config import GnuplotConfig, get_config
from .core.datablock import (
    build_datablock,
    make_series,
    pad_titles,
    rows_from_columns,
    series_from_vectors,
    wrap_datablock,
)
from .core.models import Axes, RenderResult, Series, TerminalKind
from .core.terminals import Terminal, kind_for_path
from .errors import GnuplotError
from .session import GnuplotSession, run_once, shared_session
from .styles.palettes import Palette, Style, get_palette, style_settings

logger = logging.getLogger(__name__)

DATA_NAME = "$data"


def quote(text: str) -> str:
    """Single-quote *text* for gnuplot (embedded quotes are doubled)."""
    return "'" + str(text).replace("'", "''") + "'"


def _titles(titles: Sequence[str] | str) -> list[str]:
    return [titles] if isinstance(titles, str) else list(titles)


def _range(lower: float | None, upper: float | None) -> str:
    lo = "*" if lower is None else repr(lower)
    hi = "*" if upper is None else repr(upper)
    return f"[{lo}:{hi}]"


class Gnuplot:
    """Accumulated settings plus a datablock and plot command.

    Parameters
    ----------
    data
        Pre-formatted data for the ``$data`` block.  With raw data the
        default plot command is just ``$data``; set :attr:`user_command`
        to something meaningful.  The ``from_*`` constructors build the
        data and the plot command from numeric containers instead.
    style
        Draw style (lines, line points, points).
    palette
        A :class:`Palette` or palette name; defaults to the configured one.
    rng
        Random source for the shuffled point types.
    config
        Configuration; defaults to :func:`~gnuplotter.config.get_config`.
    """

    def __init__(
        self,
        data: str = "",
        style: Style | None = None,
        *,
        palette: Palette | str | None = None,
        rng: random.Random | None = None,
        config: GnuplotConfig | None = None,
    ) -> None:
        self.config = config or get_config()
        self.style = style or Style()
        if palette is None:
            palette = self.config.palette
        self.palette = get_palette(palette) if isinstance(palette, str) else palette
        self.settings: dict[str, str] = style_settings(self.style, self.palette, rng)
        self.unsets: list[str] = []
        #: Replaces the generated plot command when set.
        self.user_command: str | None = None
        self.series: list[Series] = []
        self.dual_axis = False
        self._raw_data = data

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_series(cls, series: Sequence[Series], style: Style | None = None, **kwargs: Any) -> Gnuplot:
        """Plot ready-made :class:`Series` objects."""
        plot = cls(style=style, **kwargs)
        plot.series = list(series)
        if any(s.axes is Axes.X1Y2 for s in plot.series):
            plot._enable_dual_axis()
        return plot

    @classmethod
    def from_xys(
        cls,
        xys: Sequence[Iterable[Any]],
        titles: Sequence[str] | str = (),
        style: Style | None = None,
        **kwargs: Any,
    ) -> Gnuplot:
        """One series per element of *xys*; each element is a list of rows.

        Rows with several columns plot column 1 against every other
        column; single-column rows plot against the row number.
        """
        return cls.from_series(make_series(xys, _titles(titles)), style, **kwargs)

    @classmethod
    def from_dual_axis(
        cls,
        xy1s: Sequence[Iterable[Any]],
        xy2s: Sequence[Iterable[Any]] = (),
        titles: Sequence[str] | str = (),
        style: Style | None = None,
        **kwargs: Any,
    ) -> Gnuplot:
        """Series in *xy1s* use the left y axis, those in *xy2s* the right.

        *titles* covers the primary series first, then the secondary ones.
        """
        titles = pad_titles(_titles(titles), len(xy1s) + len(xy2s))
        primary = make_series(xy1s, titles[: len(xy1s)], Axes.X1Y1)
        secondary = make_series(xy2s, titles[len(xy1s):], Axes.X1Y2)
        plot = cls.from_series(primary + secondary, style, **kwargs)
        plot._enable_dual_axis()
        return plot

    @classmethod
    def from_pairs(
        cls,
        *series: Iterable[Any],
        titles: Sequence[str] | str = (),
        style: Style | None = None,
        **kwargs: Any,
    ) -> Gnuplot:
        """Each positional argument is an iterable of ``(x, y)`` points."""
        return cls.from_xys(series, titles, style, **kwargs)

    @classmethod
    def from_columns(
        cls,
        *xs: Iterable[Any],
        ys: Sequence[Iterable[Any]] = (),
        titles: Sequence[str] | str = (),
        style: Style | None = None,
        **kwargs: Any,
    ) -> Gnuplot:
        """Build series from separate coordinate columns.

        * no *ys*: every x column is plotted against its row number;
        * one x column and several *ys* of the same length: a single
          multi-column series sharing that x;
        * otherwise x and y columns are paired up one-to-one.
        """
        xcols = [list(x) for x in xs]
        ycols = [list(y) for y in ys]
        if not ycols:
            groups = [[[v] for v in x] for x in xcols]
        elif len(xcols) == 1 and len(ycols) > 1 and all(len(y) == len(xcols[0]) for y in ycols):
            groups = [rows_from_columns(xcols[0], *ycols)]
        else:
            if len(xcols) != len(ycols):
                raise ValueError(f"Got {len(xcols)} x columns but {len(ycols)} y columns")
            groups = [rows_from_columns(x, y) for x, y in zip(xcols, ycols)]
        return cls.from_xys(groups, titles, style, **kwargs)

    @classmethod
    def from_vectors(
        cls,
        xs: Iterable[Any],
        ys: Iterable[Iterable[Any]],
        titles: Sequence[str] | str = (),
        style: Style | None = None,
        **kwargs: Any,
    ) -> Gnuplot:
        """One x column against a column of vectors; one series per component."""
        return cls.from_xys(series_from_vectors(xs, ys), titles, style, **kwargs)

    def _enable_dual_axis(self) -> None:
        self.dual_axis = True
        self.settings["ytics"] = "nomirror"
        self.settings["y2tics"] = ""

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set(self, key: str, value: str = "") -> Gnuplot:
        """Add or replace a raw ``set <key> <value>`` directive."""
        self.settings[key] = value
        if key in self.unsets:
            self.unsets.remove(key)
        return self

    def unset(self, key: str) -> Gnuplot:
        """Drop a directive and emit ``unset <key>`` instead."""
        self.settings.pop(key, None)
        if key not in self.unsets:
            self.unsets.append(key)
        return self

    def set_title(self, title: str) -> Gnuplot:
        return self.set("title", quote(title))

    def set_xlabel(self, label: str) -> Gnuplot:
        return self.set("xlabel", quote(label))

    def set_ylabel(self, label: str) -> Gnuplot:
        return self.set("ylabel", quote(label))

    def set_y2label(self, label: str) -> Gnuplot:
        return self.set("y2label", quote(label))

    def set_xrange(self, lower: float | None = None, upper: float | None = None) -> Gnuplot:
        return self.set("xrange", _range(lower, upper))

    def set_yrange(self, lower: float | None = None, upper: float | None = None) -> Gnuplot:
        return self.set("yrange", _range(lower, upper))

    def set_logscale(self, axes: str = "y", base: int | None = None) -> Gnuplot:
        return self.set("logscale", f"{axes} {base}" if base else axes)

    def set_date_axis(
        self,
        fmt: str = "%d.%m.%y",
        *,
        axis: str = "x",
        timefmt: str = "%s",
        rotate: bool = False,
    ) -> Gnuplot:
        """Treat *axis* as time and label its ticks with strftime-style *fmt*.

        Data cells holding ``datetime``/``date`` objects are written as
        POSIX seconds, which the default ``timefmt`` of ``%s`` reads.
        """
        self.set(f"{axis}data", "time")
        self.set("timefmt", quote(timefmt))
        self.set(f"format {axis}", quote(fmt))
        if rotate:
            self.set(f"{axis}tics", "rotate by -45")
        return self

    # ------------------------------------------------------------------
    # Script generation
    # ------------------------------------------------------------------

    def datablock(self, name: str = DATA_NAME) -> str:
        if self.series:
            return build_datablock(self.series, name)
        return wrap_datablock(self._raw_data, name)

    def plot_clauses(self, name: str = DATA_NAME) -> list[str]:
        """One ``<name> i <index> u ...`` clause per plotted column."""
        smooth, with_ = self.style.raw
        clauses: list[str] = []
        position = {Axes.X1Y1: 0, Axes.X1Y2: 0}
        for index, series in enumerate(self.series):
            offset = position[series.axes]
            position[series.axes] += 1
            base = 19 if series.axes is Axes.X1Y2 else 9
            axes = f"axes {series.axes.value}" if self.dual_axis else ""
            if series.columns > 1:
                usings = [(f"1:{c}", offset + c + base) for c in range(2, series.columns + 1)]
            else:
                usings = [("0:1", offset + 2 + base)]
            for using, line_style in usings:
                parts = [
                    f"{name} i {index} u {using}", smooth, axes,
                    f"w {with_}", f"ls {line_style}", "title columnheader(1)",
                ]
                clauses.append(" ".join(p for p in parts if p))
        return clauses

    def plot_command(self, name: str = DATA_NAME) -> str:
        if self.user_command:
            return self.user_command
        if not self.series:
            return name
        return "plot " + ", \\\n".join(self.plot_clauses(name))

    def setting_lines(self, terminal: Terminal | None = None) -> list[str]:
        """``set``/``unset`` lines, with terminal output and frame when given."""
        merged = dict(self.settings)
        if terminal is not None:
            merged.update(terminal.output_settings(self.config))
        lines = [f"set {key} {value}".rstrip() for key, value in merged.items()]
        lines += [f"unset {key}" for key in self.unsets]
        if terminal is not None:
            lines += [f"set {directive}" for directive in terminal.frame()]
        return lines

    def commands(self, terminal: Terminal | None = None, *, persistent: bool = False) -> str:
        """Return the complete script for *terminal*.

        A one-shot script ends with ``exit``.  A *persistent* script
        starts with ``reset`` and ends with ``unset output`` so that a
        reused gnuplot process flushes the image and keeps running.
        """
        terminal = terminal or Terminal.svg()
        head = "reset\n" if persistent else ""
        tail = "\nunset output\n" if persistent else "\nexit\n\n"
        config = "\n".join(self.setting_lines(terminal)) + "\n"
        return head + self.datablock() + config + self.plot_command() + tail

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def __call__(self, terminal: Terminal | None = None, session: GnuplotSession | None = None) -> bytes:
        """Render with gnuplot and return the output bytes.

        Uses *session* if given, the shared session when the config
        enables process reuse, and a one-shot process otherwise.
        Terminals that write to a file return ``b""``.
        """
        terminal = terminal or Terminal.svg()
        return render_script(self, terminal, session)

    @property
    def svg(self) -> str | None:
        """The plot as SVG text, or *None* if rendering failed."""
        try:
            data = self(Terminal.svg())
        except GnuplotError as exc:
            logger.warning("SVG render failed: %s", exc)
            return None
        return data.decode("utf-8", errors="replace")

    @property
    def png(self) -> bytes | None:
        """The plot as a 1024x720 PNG, or *None* if rendering failed."""
        try:
            return self(Terminal.png_small())
        except GnuplotError as exc:
            logger.warning("PNG render failed: %s", exc)
            return None

    def save(
        self,
        path: str | Path,
        kind: TerminalKind | None = None,
        session: GnuplotSession | None = None,
    ) -> RenderResult:
        return save_rendered(self, path, kind, session)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(series={len(self.series)}, "
            f"style={self.style.kind.value}, palette={self.palette.name!r})"
        )


# ---------------------------------------------------------------------------
# Shared rendering helpers (also used by Multiplot)
# ---------------------------------------------------------------------------

def render_script(plot: Any, terminal: Terminal, session: GnuplotSession | None = None) -> bytes:
    """Render any object exposing ``commands(terminal, persistent=...)``."""
    config = plot.config
    if session is None and config.reuse_process:
        session = shared_session(config)
    if session is not None:
        return session.execute(plot.commands(terminal, persistent=True), terminal)
    kind = terminal.kind if terminal.streams else None
    return run_once(plot.commands(terminal), config=config, kind=kind)


def save_rendered(
    plot: Any,
    path: str | Path,
    kind: TerminalKind | None = None,
    session: GnuplotSession | None = None,
) -> RenderResult:
    """Render *plot* and write the bytes to *path*.

    The format is inferred from the suffix unless *kind* is given.
    Failures are reported in the result rather than raised.
    """
    path = Path(path)
    kind = kind or kind_for_path(str(path))
    try:
        data = render_script(plot, Terminal(kind), session)
        if not data:
            raise GnuplotError(f"gnuplot produced no {kind.value} output")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except (GnuplotError, OSError) as exc:
        logger.warning("Failed to save %s: %s", path, exc)
        return RenderResult(kind=kind, output_path=path, success=False, error=str(exc))
    logger.info("Rendered %s (%d bytes)", path, len(data))
    return RenderResult(kind=kind, output_path=path, size_bytes=len(data))
