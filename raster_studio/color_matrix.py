"""Affine 4x5 colour matrices for brightness, contrast and saturation.

Each :class:`ColorMatrix` maps ``[r, g, b, a, 1]`` to ``[r', g', b', a']``.
The alpha row is fixed to ``[0, 0, 0, 1, 0]`` so every matrix built here
leaves transparency alone.  Matrices are combined in homogeneous 5x5 form,
which lets a full brightness/contrast/saturation adjustment run as one pass
over the pixels.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Iterable

import numpy as np

from .raster import RasterBuffer, pack_channels, to_channel_bytes

LOGGER = logging.getLogger("raster_studio")

LUMA_WEIGHTS = (0.299, 0.587, 0.114)
ALPHA_ROW = np.array([0.0, 0.0, 0.0, 1.0, 0.0])
CONTRAST_PIVOT = 128.0


@dataclasses.dataclass(frozen=True, eq=False)
class ColorMatrix:
    """Row-major 4x5 colour transform.

    Attributes:
        coefficients: Read-only ``(4, 5)`` float64 array.  Columns 0-3 weight
            the input R, G, B, A channels, column 4 is a constant offset in
            0-255 units.
    """

    coefficients: np.ndarray

    def __post_init__(self) -> None:
        coeffs = np.array(self.coefficients, dtype=np.float64)
        if coeffs.size != 20:
            raise ValueError(f"A colour matrix needs 20 coefficients, got {coeffs.size}")
        coeffs = coeffs.reshape(4, 5)
        if not np.array_equal(coeffs[3], ALPHA_ROW):
            raise ValueError(f"Colour matrix alpha row must be [0, 0, 0, 1, 0], got {coeffs[3].tolist()}")
        coeffs.setflags(write=False)
        object.__setattr__(self, "coefficients", coeffs)

    @classmethod
    def identity(cls) -> "ColorMatrix":
        return cls(np.eye(4, 5))

    @classmethod
    def from_homogeneous(cls, matrix: np.ndarray) -> "ColorMatrix":
        return cls(np.asarray(matrix)[:4, :5])

    def homogeneous(self) -> np.ndarray:
        """Return the 5x5 form with ``[0, 0, 0, 0, 1]`` as the last row."""

        full = np.eye(5)
        full[:4, :] = self.coefficients
        return full

    def then(self, outer: "ColorMatrix") -> "ColorMatrix":
        """Return the transform that applies ``self`` first and ``outer`` second."""

        return ColorMatrix.from_homogeneous(outer.homogeneous() @ self.homogeneous())

    def is_identity(self) -> bool:
        return bool(np.array_equal(self.coefficients, np.eye(4, 5)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColorMatrix):
            return NotImplemented
        return bool(np.array_equal(self.coefficients, other.coefficients))

    __hash__ = None  # type: ignore[assignment]


def brightness_matrix(delta: int) -> ColorMatrix:
    """Offset R, G and B by ``delta`` (clamped to ``[-255, 255]``)."""

    offset = float(max(-255, min(255, int(delta))))
    coeffs = np.eye(4, 5)
    coeffs[:3, 4] = offset
    return ColorMatrix(coeffs)


def contrast_matrix(factor: float) -> ColorMatrix:
    """Scale R, G and B by ``factor`` around mid-gray.

    Callers clamp ``factor`` to ``[0.5, 2.0]``; the matrix itself accepts any
    value so analysis code can build gentler corrections.
    """

    factor = float(factor)
    offset = (1.0 - factor) * CONTRAST_PIVOT
    coeffs = np.eye(4, 5)
    for channel in range(3):
        coeffs[channel, channel] = factor
        coeffs[channel, 4] = offset
    return ColorMatrix(coeffs)


def saturation_matrix(factor: float) -> ColorMatrix:
    """Luminance-preserving saturation; ``0`` is grayscale, ``1`` is identity."""

    factor = float(factor)
    weights = np.array(LUMA_WEIGHTS) * (1.0 - factor)
    coeffs = np.eye(4, 5)
    coeffs[:3, :3] = np.tile(weights, (3, 1)) + np.eye(3) * factor
    return ColorMatrix(coeffs)


def compose(matrices: Iterable[ColorMatrix]) -> ColorMatrix:
    """Combine ``matrices`` listed in application order into one transform.

    ``compose([a, b, c])`` applies ``a`` first, then ``b``, then ``c``; in
    homogeneous form the product is ``c @ b @ a``.
    """

    combined = np.eye(5)
    for matrix in matrices:
        combined = matrix.homogeneous() @ combined
    return ColorMatrix.from_homogeneous(combined)


def adjustment_matrix(brightness: int, contrast: float, saturation: float) -> ColorMatrix:
    """Brightness, then contrast, then saturation, as a single matrix."""

    return compose(
        [
            brightness_matrix(brightness),
            contrast_matrix(contrast),
            saturation_matrix(saturation),
        ]
    )


def apply_color_matrix(buffer: RasterBuffer, matrix: ColorMatrix) -> RasterBuffer:
    """Apply ``matrix`` to every pixel of ``buffer``.

    Each output channel is ``[r, g, b, a, 1] . row``, clamped to ``[0, 255]``
    and rounded to the nearest integer.  The identity matrix reproduces the
    input exactly.
    """

    if buffer.is_empty():
        return buffer.copy()
    rgba = buffer.to_channels().astype(np.float32)
    coeffs = matrix.coefficients.astype(np.float32)
    transformed = rgba @ coeffs[:, :4].T + coeffs[:, 4]
    LOGGER.debug("Applying colour matrix to %sx%s buffer", buffer.width, buffer.height)
    return RasterBuffer(pack_channels(to_channel_bytes(transformed)), copy=False)


__all__ = [
    "ColorMatrix",
    "LUMA_WEIGHTS",
    "adjustment_matrix",
    "apply_color_matrix",
    "brightness_matrix",
    "compose",
    "contrast_matrix",
    "saturation_matrix",
]
