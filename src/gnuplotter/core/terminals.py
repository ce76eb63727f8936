"""Output terminals and the trailer bytes that end a streamed payload.

When gnuplot writes to stdout there is no length prefix, so a reader
decides the payload is complete once the buffer ends with the
format's closing byte sequence:

* SVG: the closing ``</svg>`` tag
* PDF: the ``%%EOF`` marker
* PNG: the ``IEND`` chunk type plus its fixed CRC

Text trailers may be followed by newlines; binary ones must be exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..config import GnuplotConfig, get_config
from .models import TerminalKind


# ---------------------------------------------------------------------------
# Trailers
# ---------------------------------------------------------------------------

TRAILERS: dict[TerminalKind, bytes] = {
    TerminalKind.SVG: b"</svg>",
    TerminalKind.PDF: b"%%EOF",
    TerminalKind.PNG: b"IEND\xaeB`\x82",
    TerminalKind.PNG_SMALL: b"IEND\xaeB`\x82",
    TerminalKind.PNG_LARGE: b"IEND\xaeB`\x82",
}

_TEXT_TRAILERS = {TerminalKind.SVG, TerminalKind.PDF}


def payload_complete(buffer: bytes | bytearray, kind: TerminalKind) -> bool:
    """Return *True* once *buffer* ends with the trailer for *kind*."""
    if kind in _TEXT_TRAILERS:
        buffer = buffer.rstrip()
    return buffer.endswith(TRAILERS[kind])


# Leading signature of the binary formats. Anything before it is
# leftover output from an earlier command on a reused process.
_SIGNATURES: dict[TerminalKind, bytes] = {
    TerminalKind.PDF: b"%PDF",
    TerminalKind.PNG: b"\x89PNG",
    TerminalKind.PNG_SMALL: b"\x89PNG",
    TerminalKind.PNG_LARGE: b"\x89PNG",
}


def strip_preamble(payload: bytes, kind: TerminalKind) -> bytes:
    """Drop bytes preceding the format signature (or leading whitespace for SVG)."""
    signature = _SIGNATURES.get(kind)
    if signature is None:
        return payload.lstrip()
    start = payload.find(signature)
    return payload[start:] if start > 0 else payload


# ---------------------------------------------------------------------------
# Frame directives (appended after the settings table)
# ---------------------------------------------------------------------------

SVG_FRAME = ["border 31 lw 0.5 lc rgb 'black'", "grid ls 19"]
PDF_FRAME = ["border 31 lw 1 lc rgb 'black'", "grid ls 18"]
PNG_BACKGROUND = [
    "object rectangle from graph 0,0 to graph 1,1 behind "
    "fillcolor rgb '#EBEBEB' fillstyle solid noborder",
]


# ---------------------------------------------------------------------------
# Terminal
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Terminal:
    """A rendering target.

    An empty ``path`` streams the output back over stdout; otherwise
    gnuplot writes the file itself and nothing is returned.
    """

    kind: TerminalKind = TerminalKind.SVG
    path: str = ""

    @classmethod
    def svg(cls, path: str = "") -> Terminal:
        return cls(TerminalKind.SVG, str(path))

    @classmethod
    def pdf(cls, path: str = "") -> Terminal:
        return cls(TerminalKind.PDF, str(path))

    @classmethod
    def png(cls, path: str = "") -> Terminal:
        return cls(TerminalKind.PNG, str(path))

    @classmethod
    def png_small(cls, path: str = "") -> Terminal:
        return cls(TerminalKind.PNG_SMALL, str(path))

    @classmethod
    def png_large(cls, path: str = "") -> Terminal:
        return cls(TerminalKind.PNG_LARGE, str(path))

    @property
    def streams(self) -> bool:
        return not self.path

    def output_settings(self, config: GnuplotConfig | None = None) -> dict[str, str]:
        """``set term`` / ``set output`` values for this terminal."""
        config = config or get_config()
        font = config.font
        if self.kind is TerminalKind.SVG:
            term = f"svg size 1000,{config.svg_height}"
        elif self.kind is TerminalKind.PDF:
            term = f"pdfcairo size 10,7.1 enhanced font '{font},14'"
        elif self.kind is TerminalKind.PNG:
            term = f"pngcairo size 1440, 900 enhanced font '{font},12'"
        elif self.kind is TerminalKind.PNG_SMALL:
            term = f"pngcairo size 1024, 720 enhanced font '{font},12'"
        else:
            term = f"pngcairo size 1920, 1200 enhanced font '{font},14'"
        output = "'" + self.path.replace("'", "''") + "'" if self.path else ""
        return {"term": term, "output": output}

    def frame(self) -> list[str]:
        """Border, grid and background directives for this terminal."""
        if self.kind.is_png:
            return PNG_BACKGROUND + SVG_FRAME
        if self.kind is TerminalKind.PDF:
            return list(PDF_FRAME)
        return list(SVG_FRAME)


_SUFFIXES: dict[str, TerminalKind] = {
    ".svg": TerminalKind.SVG,
    ".pdf": TerminalKind.PDF,
    ".png": TerminalKind.PNG,
}


def kind_for_path(path: str) -> TerminalKind:
    """Infer the terminal kind from a file suffix."""
    suffix = Path(path).suffix.lower()
    try:
        return _SUFFIXES[suffix]
    except KeyError:
        raise ValueError(
            f"Cannot infer output format from {path!r}; "
            f"expected one of {', '.join(sorted(_SUFFIXES))}"
        ) from None
