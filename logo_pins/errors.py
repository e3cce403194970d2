"""Per-file failure types raised by the conversion pipeline."""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for failures that abort the conversion of a single logo."""

    kind = "conversion"

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class DecodeError(ConversionError):
    """Raised when the input file cannot be read as a raster image."""

    kind = "decode"


class EmptyForegroundError(ConversionError):
    """Raised when classification leaves no foreground pixels.

    The pipeline recovers from this by falling back to a default fill colour;
    it is raised only by callers that ask for strict extraction.
    """

    kind = "empty-foreground"


class TracerError(ConversionError):
    """Raised when the external tracer fails or returns no path data."""

    kind = "tracer"


class WriteError(ConversionError):
    """Raised when an output artifact cannot be written."""

    kind = "write"
