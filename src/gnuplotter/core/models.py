"""Pydantic models and enums shared by the plot builders.

A :class:`Series` is one gnuplot data index: a title followed by rows
of numbers.  Builders turn the caller's containers into a list of
series, the datablock formatter serialises them, and the plot command
refers to them by position.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TerminalKind(str, Enum):
    """Supported gnuplot output terminals."""
    SVG = "svg"
    PDF = "pdf"
    PNG = "png"
    PNG_SMALL = "png_small"
    PNG_LARGE = "png_large"

    @property
    def is_png(self) -> bool:
        return self in (TerminalKind.PNG, TerminalKind.PNG_SMALL, TerminalKind.PNG_LARGE)


class StyleKind(str, Enum):
    """How series are drawn."""
    LINES = "lines"
    LINE_POINTS = "line_points"
    POINTS = "points"


class Axes(str, Enum):
    """Which y axis a series is plotted against."""
    X1Y1 = "x1y1"
    X1Y2 = "x1y2"


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

Cell = Union[int, float, datetime, date, str]


class Series(BaseModel):
    """A titled block of rows, written as one gnuplot data index."""
    title: str = "-"
    rows: list[list[Cell]] = Field(default_factory=list)
    axes: Axes = Axes.X1Y1

    @property
    def columns(self) -> int:
        """Column count of the first row (0 for an empty series)."""
        return len(self.rows[0]) if self.rows else 0


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class RenderResult(BaseModel):
    """Result of rendering a plot to a file."""
    kind: TerminalKind
    output_path: Path
    success: bool = True
    error: Optional[str] = None
    size_bytes: int = 0
