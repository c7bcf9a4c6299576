"""3D colour lookup tables stored as 8x8 tile atlases.

A cube sampled at ``LUT_SIZE`` levels per axis is serialised into a square
RGB image: blue selects one of the 64 tiles (row ``blue // 8``, column
``blue % 8``), red is the x offset inside the tile and green the y offset.
Lookup is nearest-neighbour; there is no trilinear interpolation.

The module also builds the stock looks (warm, cool, vintage, ...) as atlases
so they can be written to disk or used straight from memory.
"""
from __future__ import annotations

import dataclasses
import functools
import logging
from pathlib import Path
from typing import Callable, Dict, Optional

import numpy as np
from PIL import Image

from .errors import InvalidLutAtlasError
from .raster import (
    RasterBuffer,
    blend_channels,
    clamp_unit,
    pack_channels,
    to_channel_bytes,
)

LOGGER = logging.getLogger("raster_studio")

LUT_SIZE = 64
TILES_PER_SIDE = 8
ATLAS_SIDE = LUT_SIZE * TILES_PER_SIDE


@dataclasses.dataclass(frozen=True, eq=False)
class LutCube:
    """A colour cube encoded as an atlas image.

    Attributes:
        atlas: Read-only ``(S, S, 3)`` ``uint8`` array with ``S % 8 == 0``.
    """

    atlas: np.ndarray

    def __post_init__(self) -> None:
        atlas = np.array(self.atlas, dtype=np.uint8)
        if atlas.ndim == 3 and atlas.shape[2] == 4:
            atlas = atlas[..., :3].copy()
        if atlas.ndim != 3 or atlas.shape[2] != 3:
            raise InvalidLutAtlasError(f"LUT atlas must be an RGB image, got array of shape {atlas.shape}")
        height, width = atlas.shape[:2]
        if width != height or width == 0 or width % TILES_PER_SIDE:
            raise InvalidLutAtlasError(
                f"LUT atlas must be square with a side divisible by {TILES_PER_SIDE}, got {width}x{height}"
            )
        atlas.setflags(write=False)
        object.__setattr__(self, "atlas", atlas)

    @property
    def side(self) -> int:
        return int(self.atlas.shape[0])

    @property
    def tile_size(self) -> int:
        return self.side // TILES_PER_SIDE

    @classmethod
    def from_image(cls, image: Image.Image) -> "LutCube":
        return cls(np.asarray(image.convert("RGB"), dtype=np.uint8))

    def lookup(self, rgb: np.ndarray) -> np.ndarray:
        """Map an ``(..., 3)`` array of 0-255 values through the cube."""

        channels = np.asarray(rgb, dtype=np.float32)
        indices = np.floor(channels * (LUT_SIZE - 1) / 255.0 + 0.5).astype(np.intp)
        indices = np.clip(indices, 0, LUT_SIZE - 1)
        red, green, blue = indices[..., 0], indices[..., 1], indices[..., 2]
        tile = self.tile_size
        x = (blue % TILES_PER_SIDE) * tile + np.minimum(red, tile - 1)
        y = (blue // TILES_PER_SIDE) * tile + np.minimum(green, tile - 1)
        return self.atlas[y, x]


def load_lut_cube(path: Path) -> LutCube:
    """Decode a LUT atlas from ``path``.

    Raises:
        OSError: If the file is missing or is not a readable image.
        InvalidLutAtlasError: If the image does not follow the atlas layout.
    """

    with Image.open(path) as image:
        image.load()
        cube = LutCube.from_image(image)
    LOGGER.debug("Loaded LUT atlas %s (%spx tiles)", path, cube.tile_size)
    return cube


def apply_lut(buffer: RasterBuffer, cube: Optional[LutCube], intensity: float) -> RasterBuffer:
    """Grade ``buffer`` through ``cube`` and mix the result by ``intensity``.

    A missing cube yields the source unchanged.  Alpha is never modified.
    """

    if cube is None:
        LOGGER.debug("No LUT cube available; returning source unchanged")
        return buffer
    if buffer.is_empty():
        return buffer
    intensity = clamp_unit(intensity)
    rgba = buffer.to_channels()
    source = rgba[..., :3].astype(np.float32)
    graded = cube.lookup(source).astype(np.float32)
    rgba[..., :3] = to_channel_bytes(blend_channels(source, graded, intensity))
    LOGGER.debug("Applied LUT (tile=%s) at intensity %.2f", cube.tile_size, intensity)
    return RasterBuffer(pack_channels(rgba), copy=False)


# ---------------------------------------------------------------------------
# Stock looks
# ---------------------------------------------------------------------------

Grade = Callable[[np.ndarray], np.ndarray]


def _grayscale(rgb: np.ndarray) -> np.ndarray:
    gray = np.floor(rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114)
    return np.repeat(gray[..., None], 3, axis=-1)


def _scale(red: float, green: float, blue: float, offsets=(0.0, 0.0, 0.0)) -> Grade:
    factors = np.array([red, green, blue], dtype=np.float32)
    shift = np.array(offsets, dtype=np.float32)

    def grade(rgb: np.ndarray) -> np.ndarray:
        return np.floor(rgb * factors + shift)

    return grade


def _vintage(rgb: np.ndarray) -> np.ndarray:
    sepia = np.array(
        [
            [0.393, 0.769, 0.189],
            [0.349, 0.686, 0.168],
            [0.272, 0.534, 0.131],
        ],
        dtype=np.float32,
    )
    return np.floor(rgb @ sepia.T)


def _vivid(rgb: np.ndarray) -> np.ndarray:
    average = rgb.mean(axis=-1, keepdims=True)
    return np.trunc(average + (rgb - average) * 1.5)


def _cinematic(rgb: np.ndarray) -> np.ndarray:
    brightness = rgb.mean(axis=-1, keepdims=True) / 255.0
    shadows = np.array([0.9, 0.95, 1.1], dtype=np.float32)
    highlights = np.array([1.05, 1.02, 0.95], dtype=np.float32)
    toned = np.floor(rgb * np.where(brightness < 0.5, shadows, highlights))
    return np.trunc((toned - 128.0) * 1.2 + 128.0)


LUT_GRADES: Dict[str, Grade] = {
    "identity": lambda rgb: rgb,
    "grayscale": _grayscale,
    "warm": _scale(1.15, 1.05, 0.85),
    "cool": _scale(0.85, 1.0, 1.15),
    "vintage": _vintage,
    "vivid": _vivid,
    "romantic": _scale(1.1, 0.95, 1.05, offsets=(10.0, 5.0, 8.0)),
    "cinematic": _cinematic,
}


@functools.lru_cache(maxsize=1)
def _identity_cube_values() -> np.ndarray:
    levels = np.floor(np.arange(LUT_SIZE) * 255.0 / (LUT_SIZE - 1) + 0.5).astype(np.float32)
    blue, green, red = np.meshgrid(levels, levels, levels, indexing="ij")
    cube = np.stack([red, green, blue], axis=-1)
    cube.setflags(write=False)
    return cube


def cube_to_atlas(cube: np.ndarray) -> np.ndarray:
    """Lay a ``(blue, green, red, 3)`` cube out as an 8x8 tile atlas."""

    size = cube.shape[0]
    tiles = cube.reshape(TILES_PER_SIDE, TILES_PER_SIDE, size, size, 3)
    return tiles.transpose(0, 2, 1, 3, 4).reshape(TILES_PER_SIDE * size, TILES_PER_SIDE * size, 3)


def generate_lut_atlas(style: str) -> np.ndarray:
    """Return the 512x512 RGB atlas for one of :data:`LUT_GRADES`."""

    try:
        grade = LUT_GRADES[style]
    except KeyError:
        raise KeyError(f"Unknown LUT style '{style}'. Available: {', '.join(sorted(LUT_GRADES))}") from None
    graded = grade(_identity_cube_values())
    return cube_to_atlas(to_channel_bytes(np.asarray(graded, dtype=np.float32)))


def build_lut_cube(style: str) -> LutCube:
    return LutCube(generate_lut_atlas(style))


def save_lut_atlas(atlas: np.ndarray, path: Path) -> Path:
    """Write ``atlas`` as a lossless PNG."""

    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.asarray(atlas, dtype=np.uint8)).save(path, format="PNG")
    return path


__all__ = [
    "ATLAS_SIDE",
    "LUT_GRADES",
    "LUT_SIZE",
    "LutCube",
    "TILES_PER_SIDE",
    "apply_lut",
    "build_lut_cube",
    "cube_to_atlas",
    "generate_lut_atlas",
    "load_lut_cube",
    "save_lut_atlas",
]
