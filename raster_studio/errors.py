"""Exception hierarchy shared across the engine."""
from __future__ import annotations


class RasterStudioError(Exception):
    """Base class for errors raised by :mod:`raster_studio`."""


class InvalidLutAtlasError(RasterStudioError, ValueError):
    """Raised when a LUT atlas image does not follow the 8x8 tile layout."""


class UnknownTemplateError(RasterStudioError, KeyError):
    """Raised when a collage template identifier is not in the catalogue."""


class SettingsError(RasterStudioError, ValueError):
    """Raised when an engine settings file cannot be used."""


__all__ = [
    "InvalidLutAtlasError",
    "RasterStudioError",
    "SettingsError",
    "UnknownTemplateError",
]
