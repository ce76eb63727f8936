"""Format numeric data into a gnuplot here-document.

The caller's containers (lists, tuples, numpy arrays, generators of
points) are normalised into :class:`~gnuplotter.core.models.Series`
objects, then serialised as::

    $data <<EOD
    title
    x y
    ...


    next-title
    ...
    EOD

Two blank lines between blocks make each series its own gnuplot
``index``; ``columnheader(1)`` picks the title line up as the legend
entry.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timezone
from typing import Any

from .models import Axes, Series

_BLOCK_SEPARATOR = "\n\n\n"
MISSING_TITLE = "-"


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def _scalar(value: Any) -> Any:
    """Unwrap numpy scalars (anything with ``.item()``) to Python values."""
    if isinstance(value, (int, float, str, date)):
        return value
    item = getattr(value, "item", None)
    if callable(item):
        return item()
    return float(value)


def format_value(value: Any) -> str:
    """Render one cell the way gnuplot expects to read it back.

    Floats use the shortest round-trip repr, non-finite values become
    ``NaN`` (gnuplot treats it as missing), and dates become POSIX
    seconds so ``set timefmt '%s'`` can parse them.
    """
    value = _scalar(value)
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value) if math.isfinite(value) else "NaN"
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return format_value(value.timestamp())
    if isinstance(value, date):
        midnight = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return format_value(midnight.timestamp())
    return str(value)


def separated(rows: Iterable[Iterable[Any]]) -> str:
    """Columns joined by a space, rows by a newline."""
    return "\n".join(" ".join(format_value(v) for v in row) for row in rows)


def format_title(title: str) -> str:
    """Quote a title that ``columnheader(1)`` would otherwise split."""
    title = title.replace("\n", " ").strip() or MISSING_TITLE
    if any(c.isspace() for c in title) or '"' in title or "'" in title:
        escaped = title.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return title


def pad_titles(titles: Sequence[str], count: int) -> list[str]:
    """Extend *titles* with ``"-"`` until there is one per series."""
    titles = list(titles)
    missing = count - len(titles)
    if missing > 0:
        titles.extend([MISSING_TITLE] * missing)
    return titles


# ---------------------------------------------------------------------------
# Container normalisation
# ---------------------------------------------------------------------------

def _row(point: Any) -> list[Any]:
    if isinstance(point, (str, bytes)):
        raise TypeError(f"Expected a number or a sequence of numbers, got {point!r}")
    if isinstance(point, Iterable):
        return [_scalar(v) for v in point]
    return [_scalar(point)]


def rows_from_pairs(points: Iterable[Any]) -> list[list[Any]]:
    """Rows from an iterable of points.

    A point may be a bare number (one column), a pair such as ``(x, y)``
    or a numpy row of any width.
    """
    return [_row(p) for p in points]


def rows_from_columns(xs: Iterable[Any], *ys: Iterable[Any]) -> list[list[Any]]:
    """Zip one x column with one or more y columns into rows."""
    columns = [[_scalar(v) for v in xs]] + [[_scalar(v) for v in y] for y in ys]
    lengths = {len(c) for c in columns}
    if len(lengths) > 1:
        raise ValueError(
            f"All columns must have the same length, got {[len(c) for c in columns]}"
        )
    return [list(row) for row in zip(*columns)]


def series_from_vectors(xs: Iterable[Any], ys: Iterable[Iterable[Any]]) -> list[list[list[Any]]]:
    """One series per vector component.

    ``ys[k]`` is a vector (e.g. a numpy row or a tuple) giving every
    component's value at ``xs[k]``; component ``i`` becomes series ``i``
    with rows ``[x, y[i]]``.
    """
    xs = [_scalar(x) for x in xs]
    vectors = [_row(y) for y in ys]
    if len(xs) != len(vectors):
        raise ValueError(f"Got {len(xs)} x values but {len(vectors)} y vectors")
    if not vectors:
        return []
    width = len(vectors[0])
    if any(len(v) != width for v in vectors):
        raise ValueError("All y vectors must have the same number of components")
    return [[[x, v[i]] for x, v in zip(xs, vectors)] for i in range(width)]


def make_series(
    groups: Sequence[Iterable[Any]],
    titles: Sequence[str] = (),
    axes: Axes = Axes.X1Y1,
) -> list[Series]:
    """Wrap each group of points in a titled :class:`Series`."""
    groups = [rows_from_pairs(g) for g in groups]
    titles = pad_titles(titles, len(groups))
    return [Series(title=t, rows=g, axes=axes) for t, g in zip(titles, groups)]


# ---------------------------------------------------------------------------
# Datablock
# ---------------------------------------------------------------------------

def format_block(series: Series) -> str:
    return format_title(series.title) + "\n" + separated(series.rows)


def build_datablock(series: Sequence[Series], name: str = "$data") -> str:
    """Serialise *series* as a named gnuplot here-document."""
    body = _BLOCK_SEPARATOR.join(format_block(s) for s in series)
    return wrap_datablock(body, name)


def wrap_datablock(body: str, name: str = "$data") -> str:
    """Wrap pre-formatted data in the ``<<EOD`` here-document markers."""
    return f"\n{name} <<EOD\n{body}{_BLOCK_SEPARATOR}EOD\n\n"


# ---------------------------------------------------------------------------
# Function sampling
# ---------------------------------------------------------------------------

def solve(
    domain: tuple[float, float],
    step: float,
    f: Callable[[float], float],
) -> list[list[float]]:
    """Sample *f* over the closed interval *domain* every *step*.

    Returns ``[[x, f(x)], ...]`` ready for :meth:`Gnuplot.from_xys`.
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    lower, upper = domain
    count = int(math.floor((upper - lower) / step + 1e-9)) + 1
    return [[lower + i * step, f(lower + i * step)] for i in range(max(count, 0))]
