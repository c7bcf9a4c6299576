"""3x3 convolution with border replication and the two-tier sharpen filter."""
from __future__ import annotations

import logging

import numpy as np

from .raster import RasterBuffer, blend_channels, clamp_unit, pack_channels, to_channel_bytes

LOGGER = logging.getLogger("raster_studio")

WEAK_SHARPEN_KERNEL = np.array(
    [
        [0.0, -1.0, 0.0],
        [-1.0, 5.0, -1.0],
        [0.0, -1.0, 0.0],
    ],
    dtype=np.float32,
)
STRONG_SHARPEN_KERNEL = np.array(
    [
        [-1.0, -1.0, -1.0],
        [-1.0, 9.0, -1.0],
        [-1.0, -1.0, -1.0],
    ],
    dtype=np.float32,
)
STRONG_KERNEL_THRESHOLD = 0.5


def convolve3x3(channels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Correlate each channel of an ``(h, w, c)`` array with ``kernel``.

    Out-of-bounds neighbours replicate the nearest edge sample, so the output
    has exactly the input shape.  Returns unclamped ``float32`` values.
    """

    kernel = np.asarray(kernel, dtype=np.float32)
    if kernel.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 kernel, got shape {kernel.shape}")
    data = np.asarray(channels, dtype=np.float32)
    height, width = data.shape[:2]
    padded = np.pad(data, ((1, 1), (1, 1), (0, 0)), mode="edge")
    result = np.zeros_like(data)
    for dy in range(3):
        for dx in range(3):
            weight = kernel[dy, dx]
            if weight:
                result += weight * padded[dy : dy + height, dx : dx + width]
    return result


def select_sharpen_kernel(intensity: float) -> np.ndarray:
    # Step function: the strong kernel takes over at the threshold.
    if intensity < STRONG_KERNEL_THRESHOLD:
        return WEAK_SHARPEN_KERNEL
    return STRONG_SHARPEN_KERNEL


def sharpen(buffer: RasterBuffer, intensity: float) -> RasterBuffer:
    """Sharpen ``buffer`` and mix the result with the source by ``intensity``.

    Args:
        buffer: Source pixels; never modified.
        intensity: Strength in ``[0, 1]``.  Below 0.5 the four-neighbour
            kernel is used, from 0.5 up the eight-neighbour kernel.

    Returns:
        A new buffer with the same dimensions.  Alpha is copied unchanged.
    """

    if intensity <= 0 or buffer.is_empty():
        return buffer
    intensity = clamp_unit(intensity)
    kernel = select_sharpen_kernel(intensity)
    rgba = buffer.to_channels()
    source = rgba[..., :3].astype(np.float32)
    convolved = np.clip(convolve3x3(source, kernel), 0.0, 255.0)
    rgba[..., :3] = to_channel_bytes(blend_channels(source, convolved, intensity))
    LOGGER.debug(
        "Sharpened %sx%s buffer with %s kernel at %.2f",
        buffer.width,
        buffer.height,
        "strong" if kernel is STRONG_SHARPEN_KERNEL else "weak",
        intensity,
    )
    return RasterBuffer(pack_channels(rgba), copy=False)


__all__ = [
    "STRONG_KERNEL_THRESHOLD",
    "STRONG_SHARPEN_KERNEL",
    "WEAK_SHARPEN_KERNEL",
    "convolve3x3",
    "select_sharpen_kernel",
    "sharpen",
]
