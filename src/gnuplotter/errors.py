"""Exceptions raised when talking to the gnuplot process."""

from __future__ import annotations


class GnuplotError(RuntimeError):
    """gnuplot failed to start, died, or produced no usable output.

    ``stderr`` holds whatever the child wrote to its error stream
    (decoded, possibly empty).
    """

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}\n{self.stderr.strip()[:500]}"
        return base


class GnuplotNotFoundError(GnuplotError):
    """The gnuplot executable could not be launched."""
