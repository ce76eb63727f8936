"""Draw styles, colour palettes and the line-style table."""

from .palettes import (  # noqa: F401
    DEFAULT_PALETTE,
    Palette,
    Style,
    get_palette,
    list_palettes,
    register_palette,
    style_settings,
)
