"""Packed ARGB pixel storage shared by every transform.

A :class:`RasterBuffer` owns a ``(height, width)`` array of ``uint32`` samples
laid out as ``0xAARRGGBB``.  The backing array is always read-only: transforms
unpack it with :meth:`RasterBuffer.to_channels`, compute on a fresh array and
wrap the result in a new buffer.  Nothing in the engine mutates a buffer in
place, so a buffer can be handed to a worker thread and to the history stack
at the same time without copying.
"""
from __future__ import annotations

from typing import Any, Tuple

import numpy as np
from PIL import Image

CHANNEL_SHIFTS = (16, 8, 0, 24)  # R, G, B, A


def pack_channels(rgba: np.ndarray) -> np.ndarray:
    """Pack an ``(h, w, 4)`` RGBA ``uint8`` array into ``0xAARRGGBB`` words."""

    channels = np.asarray(rgba, dtype=np.uint32)
    packed = np.zeros(channels.shape[:2], dtype=np.uint32)
    for index, shift in enumerate(CHANNEL_SHIFTS):
        packed |= channels[..., index] << np.uint32(shift)
    return packed


def unpack_channels(pixels: np.ndarray) -> np.ndarray:
    """Inverse of :func:`pack_channels`; returns a writable RGBA ``uint8`` array."""

    words = np.asarray(pixels, dtype=np.uint32)
    rgba = np.empty(words.shape + (4,), dtype=np.uint8)
    for index, shift in enumerate(CHANNEL_SHIFTS):
        rgba[..., index] = (words >> np.uint32(shift)) & np.uint32(0xFF)
    return rgba


def pack_color(red: int, green: int, blue: int, alpha: int = 255) -> int:
    """Return a single ``0xAARRGGBB`` integer."""

    return ((alpha & 0xFF) << 24) | ((red & 0xFF) << 16) | ((green & 0xFF) << 8) | (blue & 0xFF)


def unpack_color(color: int) -> Tuple[int, int, int, int]:
    """Split ``0xAARRGGBB`` into an ``(r, g, b, a)`` tuple."""

    color = int(color) & 0xFFFFFFFF
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF, (color >> 24) & 0xFF


def parse_hex_color(text: str) -> int:
    """Parse ``RRGGBB`` or ``AARRGGBB`` (optionally ``#``/``0x`` prefixed).

    Six-digit colours are opaque.

    Raises:
        ValueError: If ``text`` is not hexadecimal.
    """

    digits = text.strip().lstrip("#")
    if digits.lower().startswith("0x"):
        digits = digits[2:]
    if not digits or len(digits) > 8:
        raise ValueError(f"'{text}' is not a hex colour")
    color = int(digits, 16)
    return color | 0xFF000000 if len(digits) <= 6 else color


def to_channel_bytes(values: np.ndarray) -> np.ndarray:
    """Round half up and clamp float channel values into ``uint8``."""

    return np.clip(np.floor(values + 0.5), 0.0, 255.0).astype(np.uint8)


def blend_channels(original: np.ndarray, processed: np.ndarray, intensity: float) -> np.ndarray:
    """Linear mix ``original * (1 - intensity) + processed * intensity``."""

    return original * (1.0 - intensity) + processed * intensity


def clamp_unit(value: float) -> float:
    """Clamp an intensity-style parameter to ``[0, 1]``."""

    return float(min(1.0, max(0.0, value)))


class RasterBuffer:
    """Immutable grid of packed ARGB pixels.

    Args:
        pixels: Anything convertible to a 2-D ``uint32`` array.
        copy: When ``False`` the array is adopted as-is (after being marked
            read-only).  Only pass ``False`` for arrays nobody else holds.
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: Any, *, copy: bool = True) -> None:
        if copy:
            arr = np.array(pixels, dtype=np.uint32, copy=True)
        else:
            arr = np.ascontiguousarray(pixels, dtype=np.uint32)
        if arr.ndim != 2:
            raise ValueError(f"RasterBuffer expects a 2-D array of packed pixels, got shape {arr.shape}")
        arr.setflags(write=False)
        self._pixels = arr

    @classmethod
    def blank(cls, width: int, height: int, color: int = 0x00000000) -> "RasterBuffer":
        """Return a ``width`` x ``height`` buffer filled with ``color``."""

        if width < 0 or height < 0:
            raise ValueError(f"Buffer dimensions must be non-negative, got {width}x{height}")
        return cls(np.full((height, width), int(color) & 0xFFFFFFFF, dtype=np.uint32), copy=False)

    @classmethod
    def from_channels(cls, channels: np.ndarray) -> "RasterBuffer":
        """Build a buffer from an ``(h, w, 3)`` RGB or ``(h, w, 4)`` RGBA array."""

        arr = np.asarray(channels)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (h, w, 3|4) channel array, got shape {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=2)
        return cls(pack_channels(arr.astype(np.uint8)), copy=False)

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterBuffer":
        """Convert a Pillow image of any mode into a buffer."""

        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls.from_channels(np.asarray(image, dtype=np.uint8))

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def is_empty(self) -> bool:
        return self._pixels.size == 0

    def pixel(self, x: int, y: int) -> int:
        return int(self._pixels[y, x])

    def to_channels(self) -> np.ndarray:
        """Return a fresh writable ``(h, w, 4)`` RGBA ``uint8`` array."""

        return unpack_channels(self._pixels)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.to_channels())

    def copy(self) -> "RasterBuffer":
        """Deep copy with a new backing array."""

        return RasterBuffer(self._pixels, copy=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and bool(np.array_equal(self._pixels, other._pixels))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"RasterBuffer(width={self.width}, height={self.height})"


__all__ = [
    "RasterBuffer",
    "blend_channels",
    "clamp_unit",
    "pack_channels",
    "pack_color",
    "parse_hex_color",
    "to_channel_bytes",
    "unpack_channels",
    "unpack_color",
]
