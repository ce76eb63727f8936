"""Read whitespace- or comma-separated numeric tables from disk.

Blocks separated by one or more blank lines become separate series.
A ``#`` comment as the first line of a block names that series::

    # temperature
    0 21.5
    1 22.0

    # humidity
    0 40
    1 42
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .models import Series

logger = logging.getLogger(__name__)

_SPLIT_RE = re.compile(r"[,\s]+")


def _parse_cell(cell: str, lineno: int) -> float | int:
    try:
        return int(cell)
    except ValueError:
        pass
    try:
        return float(cell)
    except ValueError:
        raise ValueError(f"line {lineno}: not a number: {cell!r}") from None


def parse_series(text: str) -> list[Series]:
    """Parse table text into a list of series."""
    series: list[Series] = []
    current: Series | None = None

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            current = None
            continue
        if line.startswith("#"):
            if current is None or not current.rows:
                current = Series(title=line.lstrip("#").strip() or "-")
                series.append(current)
            continue
        if current is None:
            current = Series()
            series.append(current)
        cells = [c for c in _SPLIT_RE.split(line) if c]
        current.rows.append([_parse_cell(c, lineno) for c in cells])

    series = [s for s in series if s.rows]
    logger.debug("Parsed %d series from %d lines", len(series), text.count("\n") + 1)
    return series


def read_series(path: str | Path) -> list[Series]:
    """Read *path* and parse it with :func:`parse_series`."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    return parse_series(path.read_text(encoding="utf-8"))
