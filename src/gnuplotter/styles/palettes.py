"""Colour palettes and the gnuplot line-style table.

Every plot starts from a style table: line styles 11-17 carry the
palette colours for primary-axis series, 21-27 the same colours drawn
heavier for the secondary axis, and 18/19 are the black dashed and
dotted helper lines used by the key and the grid.

Usage::

    from gnuplotter.styles.palettes import get_palette, list_palettes

    palette = get_palette("okabe_ito")
    plot = Gnuplot.from_xys(data, palette=palette)
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from ..core.models import StyleKind


# ---------------------------------------------------------------------------
# Draw style
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Style:
    """How series are drawn: lines (optionally smoothed), lines with
    point markers, or markers only."""

    kind: StyleKind = StyleKind.LINE_POINTS
    smooth: bool = False

    @classmethod
    def lines(cls, smooth: bool = False) -> Style:
        return cls(StyleKind.LINES, smooth)

    @classmethod
    def line_points(cls) -> Style:
        return cls(StyleKind.LINE_POINTS)

    @classmethod
    def points(cls) -> Style:
        return cls(StyleKind.POINTS)

    @property
    def raw(self) -> tuple[str, str]:
        """``(smooth clause, with clause)`` for the plot command."""
        if self.kind is StyleKind.LINES:
            return ("smooth csplines" if self.smooth else "", "l")
        if self.kind is StyleKind.POINTS:
            return ("", "points")
        return ("", "lp")


# ---------------------------------------------------------------------------
# Palette dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Palette:
    """Seven series colours as ``#rrggbb`` strings."""

    name: str = "matlab"
    display_name: str = "MATLAB"
    description: str = "The MATLAB R2014b default line colours."
    colors: tuple[str, ...] = field(
        default=(
            "#0072bd", "#d95319", "#edb120", "#7e2f8e",
            "#77ac30", "#4dbeee", "#a2142f",
        )
    )

    def color(self, index: int) -> str:
        """Colour for series *index*, cycling through the palette."""
        return self.colors[index % len(self.colors)]


# ---------------------------------------------------------------------------
# Built-in palettes
# ---------------------------------------------------------------------------

MATLAB_PALETTE = Palette()

TABLEAU_PALETTE = Palette(
    name="tableau",
    display_name="Tableau 10",
    description="Tableau's categorical palette, also matplotlib's default cycle.",
    colors=(
        "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728",
        "#9467bd", "#8c564b", "#e377c2",
    ),
)

OKABE_ITO_PALETTE = Palette(
    name="okabe_ito",
    display_name="Okabe-Ito",
    description="Colour-blind safe palette from Okabe & Ito (2008).",
    colors=(
        "#0072b2", "#e69f00", "#009e73", "#cc79a7",
        "#56b4e9", "#d55e00", "#f0e442",
    ),
)

DARK2_PALETTE = Palette(
    name="dark2",
    display_name="ColorBrewer Dark2",
    description="Saturated qualitative palette that stays legible on the grey PNG background.",
    colors=(
        "#1b9e77", "#d95f02", "#7570b3", "#e7298a",
        "#66a61e", "#e6ab02", "#a6761d",
    ),
)

GRAYSCALE_PALETTE = Palette(
    name="grayscale",
    display_name="Grayscale",
    description="Print-friendly shades of grey, darkest first.",
    colors=(
        "#000000", "#404040", "#606060", "#808080",
        "#2a2a2a", "#505050", "#707070",
    ),
)

DEFAULT_PALETTE = MATLAB_PALETTE


def _key(name: str) -> str:
    return name.lower().strip().replace("-", "_")


_REGISTRY: dict[str, Palette] = {
    _key(p.name): p
    for p in (
        MATLAB_PALETTE,
        TABLEAU_PALETTE,
        OKABE_ITO_PALETTE,
        DARK2_PALETTE,
        GRAYSCALE_PALETTE,
    )
}


def get_palette(name: str) -> Palette:
    """Look up a palette by name (case-insensitive, ``-`` and ``_`` alike).

    Raises ``KeyError`` if the palette is not registered.
    """
    key = _key(name)
    if key not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown palette '{name}'. Available: {available}")
    return _REGISTRY[key]


def list_palettes() -> list[Palette]:
    """Return all registered palettes."""
    return list(_REGISTRY.values())


def register_palette(palette: Palette) -> None:
    """Register a custom palette, replacing any with the same name."""
    if not palette.colors:
        raise ValueError(f"Palette '{palette.name}' has no colours")
    _REGISTRY[_key(palette.name)] = palette


# ---------------------------------------------------------------------------
# Style table
# ---------------------------------------------------------------------------

def style_settings(
    style: Style | None = None,
    palette: Palette | None = None,
    rng: random.Random | None = None,
) -> dict[str, str]:
    """Build the ``set style line`` table plus label/key defaults.

    Point types 1-7 are shuffled so neighbouring series get distinct
    markers; pass a seeded *rng* for a reproducible script.
    """
    style = style or Style()
    palette = palette or DEFAULT_PALETTE
    rng = rng or random.Random()

    if style.kind is StyleKind.POINTS:
        lw, ps = "lw 2", "ps 1.0"
    else:
        lw, ps = "lw 1.5", "ps 1.2"
    points = rng.sample(range(1, 8), 7)

    settings: dict[str, str] = {}
    for i in range(7):
        settings[f"style line {11 + i}"] = (
            f"lt 1 {lw} pt {points[i]} {ps} lc rgb '{palette.color(i)}'"
        )
    settings["style line 18"] = "lt 1 lw 1 dashtype 3 lc rgb 'black'"
    settings["style line 19"] = "lt 0 lw 0.5 lc rgb 'black'"
    for i in range(7):
        settings[f"style line {21 + i}"] = (
            f"lt 1 lw 3 pt 9 ps 0.8 lc rgb '{palette.color(i)}'"
        )
    settings["label"] = "textcolor rgb 'black'"
    settings["key"] = "above tc ls 18"
    return settings
