"""Global image statistics and the automatic tone correction derived from them.

The analysis looks at three numbers: mean perceptual luminance, the standard
deviation of that luminance (a contrast proxy) and mean HSV-style saturation.
Each one is pushed toward a target band with piecewise rules that correct
strongly when far from the band and gently when close to it.  The resulting
parameters are fed through :func:`~raster_studio.color_matrix.adjustment_matrix`
so the correction is a single matrix pass.
"""
from __future__ import annotations

import dataclasses
import logging

import numpy as np

from .color_matrix import adjustment_matrix, apply_color_matrix
from .raster import RasterBuffer, clamp_unit

LOGGER = logging.getLogger("raster_studio")

MAX_CONTRAST_FACTOR = 1.3
MAX_SATURATION_FACTOR = 1.2


@dataclasses.dataclass(frozen=True)
class ImageStatistics:
    """Whole-image measurements used by :func:`derive_params`.

    Attributes:
        mean_luminance: Average of ``int(0.299 r + 0.587 g + 0.114 b)``.
        luminance_std: Population standard deviation of the same values.
        mean_saturation: Average of ``(max - min) / max`` per pixel (0 for black).
    """

    mean_luminance: float
    luminance_std: float
    mean_saturation: float


@dataclasses.dataclass(frozen=True)
class EnhanceParams:
    """Correction parameters in the units :func:`adjustment_matrix` expects."""

    brightness_delta: int = 0
    contrast_factor: float = 1.0
    saturation_factor: float = 1.0

    def scaled(self, intensity: float) -> "EnhanceParams":
        """Interpolate between no correction and the full correction."""

        return EnhanceParams(
            brightness_delta=int(self.brightness_delta * intensity),
            contrast_factor=1.0 + (self.contrast_factor - 1.0) * intensity,
            saturation_factor=1.0 + (self.saturation_factor - 1.0) * intensity,
        )


def compute_statistics(buffer: RasterBuffer) -> ImageStatistics:
    if buffer.is_empty():
        return ImageStatistics(0.0, 0.0, 0.0)
    rgb = buffer.to_channels()[..., :3].astype(np.float64)
    luminance = np.floor(rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114)
    mean_luminance = float(luminance.mean())
    luminance_std = float(np.sqrt(np.mean((luminance - mean_luminance) ** 2)))

    high = rgb.max(axis=-1)
    low = rgb.min(axis=-1)
    saturation = np.divide(high - low, high, out=np.zeros_like(high), where=high > 0)
    return ImageStatistics(mean_luminance, luminance_std, float(saturation.mean()))


def derive_params(stats: ImageStatistics) -> EnhanceParams:
    """Map statistics to bounded correction parameters."""

    luminance = stats.mean_luminance
    if luminance < 100:
        brightness = int((120 - luminance) * 0.5)
    elif luminance < 120:
        brightness = int((128 - luminance) * 0.3)
    elif luminance > 150:
        brightness = int((135 - luminance) * 0.2)
    else:
        brightness = 0

    sigma = stats.luminance_std
    if sigma < 40:
        contrast = 1.0 + (45 - sigma) / 100.0
    elif sigma < 50:
        contrast = 1.0 + (50 - sigma) / 200.0
    else:
        contrast = 1.0
    contrast = min(MAX_CONTRAST_FACTOR, contrast)

    saturation_mean = stats.mean_saturation
    if saturation_mean < 0.35:
        saturation = 1.0 + (0.45 - saturation_mean) * 0.5
    elif saturation_mean < 0.4:
        saturation = 1.0 + (0.45 - saturation_mean) * 0.3
    else:
        saturation = 1.0
    saturation = min(MAX_SATURATION_FACTOR, saturation)

    return EnhanceParams(brightness, contrast, saturation)


def analyze(buffer: RasterBuffer) -> EnhanceParams:
    stats = compute_statistics(buffer)
    params = derive_params(stats)
    LOGGER.debug("Auto-enhance analysis %s -> %s", stats, params)
    return params


def apply_auto_enhance(buffer: RasterBuffer, intensity: float) -> RasterBuffer:
    """Analyse ``buffer`` and apply the correction scaled by ``intensity``."""

    if intensity <= 0 or buffer.is_empty():
        return buffer
    params = analyze(buffer).scaled(clamp_unit(intensity))
    matrix = adjustment_matrix(params.brightness_delta, params.contrast_factor, params.saturation_factor)
    return apply_color_matrix(buffer, matrix)


__all__ = [
    "EnhanceParams",
    "ImageStatistics",
    "MAX_CONTRAST_FACTOR",
    "MAX_SATURATION_FACTOR",
    "analyze",
    "apply_auto_enhance",
    "compute_statistics",
    "derive_params",
]
