"""Radial darkening towards the image corners."""
from __future__ import annotations

import logging

import numpy as np

from .raster import RasterBuffer, clamp_unit, pack_channels, to_channel_bytes

LOGGER = logging.getLogger("raster_studio")

DEFAULT_RADIUS = 0.7
MIN_FACTOR = 0.2


def vignette_factors(width: int, height: int, intensity: float, radius: float = DEFAULT_RADIUS) -> np.ndarray:
    """Return the ``(height, width)`` multiplicative factor map.

    Pixels closer to the centre than ``max_distance * radius`` keep a factor
    of 1; beyond that the factor falls off quadratically and never drops
    below :data:`MIN_FACTOR`.
    """

    center_x = width / 2.0
    center_y = height / 2.0
    max_distance = float(np.hypot(center_x, center_y))
    vignette_radius = max_distance * radius
    falloff = max_distance - vignette_radius
    if falloff <= 0:
        return np.ones((height, width), dtype=np.float64)

    dx = np.arange(width, dtype=np.float64) - center_x
    dy = np.arange(height, dtype=np.float64) - center_y
    distance = np.hypot(dx[None, :], dy[:, None])
    normalized = (distance - vignette_radius) / falloff
    factors = np.maximum(MIN_FACTOR, 1.0 - normalized**2 * intensity)
    return np.where(distance <= vignette_radius, 1.0, factors)


def vignette(buffer: RasterBuffer, intensity: float, radius: float = DEFAULT_RADIUS) -> RasterBuffer:
    """Darken the edges of ``buffer``; alpha is left untouched."""

    if intensity <= 0 or buffer.is_empty():
        return buffer
    intensity = clamp_unit(intensity)
    factors = vignette_factors(buffer.width, buffer.height, intensity, radius)
    rgba = buffer.to_channels()
    shaded = rgba[..., :3].astype(np.float64) * factors[..., None]
    rgba[..., :3] = to_channel_bytes(shaded)
    LOGGER.debug("Vignette intensity=%.2f radius=%.2f on %sx%s", intensity, radius, buffer.width, buffer.height)
    return RasterBuffer(pack_channels(rgba), copy=False)


__all__ = ["DEFAULT_RADIUS", "MIN_FACTOR", "vignette", "vignette_factors"]
