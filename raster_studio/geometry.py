"""Lossless geometric edits: quarter-turn rotation, mirroring and cropping."""
from __future__ import annotations

import enum
import logging
from typing import Dict, Optional, Tuple

import numpy as np

from .raster import RasterBuffer

LOGGER = logging.getLogger("raster_studio")


class FlipAxis(enum.Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


# (width, height) ratio; None leaves the crop unconstrained.
CROP_PRESETS: Dict[str, Optional[Tuple[int, int]]] = {
    "free": None,
    "1:1": (1, 1),
    "4:3": (4, 3),
    "16:9": (16, 9),
    "3:2": (3, 2),
}


def rotate(buffer: RasterBuffer, degrees: int) -> RasterBuffer:
    """Rotate clockwise by 90, 180 or 270 degrees.

    Raises:
        ValueError: For any other angle.
    """

    turns = {90: -1, 180: 2, 270: 1}.get(int(degrees) % 360)
    if turns is None or int(degrees) != degrees:
        raise ValueError(f"Rotation must be 90, 180 or 270 degrees, got {degrees}")
    return RasterBuffer(np.rot90(buffer.pixels, k=turns), copy=True)


def flip(buffer: RasterBuffer, axis: FlipAxis | str) -> RasterBuffer:
    """Mirror left-right (``HORIZONTAL``) or top-bottom (``VERTICAL``)."""

    axis = FlipAxis(axis.lower()) if isinstance(axis, str) else axis
    if axis is FlipAxis.HORIZONTAL:
        flipped = buffer.pixels[:, ::-1]
    else:
        flipped = buffer.pixels[::-1, :]
    return RasterBuffer(flipped, copy=True)


def clamp_crop_rect(
    buffer_width: int, buffer_height: int, x: int, y: int, width: int, height: int
) -> Tuple[int, int, int, int]:
    """Clamp a crop request to the buffer; the result may have zero area."""

    x = min(max(0, int(x)), buffer_width)
    y = min(max(0, int(y)), buffer_height)
    width = min(max(0, int(width)), buffer_width - x)
    height = min(max(0, int(height)), buffer_height - y)
    return x, y, width, height


def crop(buffer: RasterBuffer, x: int, y: int, width: int, height: int) -> RasterBuffer:
    """Cut out a rectangle, clamping it to the buffer bounds.

    A request that clamps to nothing returns ``buffer`` unchanged.
    """

    x, y, width, height = clamp_crop_rect(buffer.width, buffer.height, x, y, width, height)
    if width == 0 or height == 0:
        LOGGER.debug("Crop rectangle is empty after clamping; keeping source")
        return buffer
    return RasterBuffer(buffer.pixels[y : y + height, x : x + width], copy=True)


def aspect_crop_rect(width: int, height: int, ratio: Optional[Tuple[int, int]] | str) -> Tuple[int, int, int, int]:
    """Largest centred ``(x, y, w, h)`` rectangle with the requested aspect.

    ``ratio`` is a ``(w, h)`` pair or a key of :data:`CROP_PRESETS`; ``None``
    (the ``free`` preset) selects the whole image.
    """

    if isinstance(ratio, str):
        try:
            ratio = CROP_PRESETS[ratio]
        except KeyError:
            raise ValueError(f"Unknown crop preset '{ratio}'. Choose from: {', '.join(CROP_PRESETS)}") from None
    if ratio is None:
        return 0, 0, width, height
    ratio_w, ratio_h = ratio
    if ratio_w <= 0 or ratio_h <= 0:
        raise ValueError(f"Aspect ratio terms must be positive, got {ratio_w}:{ratio_h}")
    crop_w = width
    crop_h = width * ratio_h // ratio_w
    if crop_h > height:
        crop_h = height
        crop_w = height * ratio_w // ratio_h
    return (width - crop_w) // 2, (height - crop_h) // 2, crop_w, crop_h


__all__ = [
    "CROP_PRESETS",
    "FlipAxis",
    "aspect_crop_rect",
    "clamp_crop_rect",
    "crop",
    "flip",
    "rotate",
]
