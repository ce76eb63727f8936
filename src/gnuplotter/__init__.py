"""gnuplotter: build gnuplot scripts from numeric data and render them.

The library formats data and styling directives into gnuplot's
command language, pipes the script to a ``gnuplot`` child process and
returns the SVG, PDF or PNG bytes it writes back.

Modules
-------
gnuplot     : the :class:`Gnuplot` plot object and its constructors
multiplot   : several plots in one rows x cols grid
session     : one-shot and persistent gnuplot processes
config      : executable discovery and runtime settings
core/       : data model, datablock formatting, terminals and trailers
styles/     : draw styles and colour palettes
"""

from .config import GnuplotConfig, get_config, set_config
from .core.datablock import solve
from .core.models import Axes, RenderResult, Series, StyleKind, TerminalKind
from .core.terminals import Terminal
from .errors import GnuplotError, GnuplotNotFoundError
from .gnuplot import Gnuplot
from .multiplot import Multiplot, grid_shape
from .session import GnuplotSession, close_shared_session, run_once, shared_session
from .styles.palettes import Palette, Style, get_palette, list_palettes, register_palette

__version__ = "0.1.0"

__all__ = [
    "Axes",
    "Gnuplot",
    "GnuplotConfig",
    "GnuplotError",
    "GnuplotNotFoundError",
    "GnuplotSession",
    "Multiplot",
    "Palette",
    "RenderResult",
    "Series",
    "Style",
    "StyleKind",
    "Terminal",
    "TerminalKind",
    "close_shared_session",
    "get_config",
    "get_palette",
    "grid_shape",
    "list_palettes",
    "register_palette",
    "run_once",
    "set_config",
    "shared_session",
    "solve",
]
