from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

try:
    from .documentation import documents
except ImportError:  # pragma: no cover - fallback for direct execution
    from tests.documentation import documents

np = pytest.importorskip("numpy")
from hypothesis import given, strategies as st  # noqa: E402  # pylint: disable=wrong-import-position

from raster_studio.color_matrix import (  # noqa: E402  # pylint: disable=wrong-import-position
    ColorMatrix,
    adjustment_matrix,
    apply_color_matrix,
    brightness_matrix,
    compose,
    contrast_matrix,
    saturation_matrix,
)
from raster_studio.raster import RasterBuffer, pack_color, unpack_color  # noqa: E402


def _random_buffer(seed: int = 11, width: int = 9, height: int = 7) -> RasterBuffer:
    rng = np.random.default_rng(seed)
    return RasterBuffer.from_channels(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


@documents("The neutral adjustment reproduces the input byte for byte")
def test_identity_adjustment_is_exact():
    buffer = _random_buffer()

    result = apply_color_matrix(buffer, adjustment_matrix(0, 1.0, 1.0))

    assert adjustment_matrix(0, 1.0, 1.0).is_identity()
    assert result == buffer


def test_identity_matrix_is_exact():
    buffer = _random_buffer(3)

    assert apply_color_matrix(buffer, ColorMatrix.identity()) == buffer


@documents("Grayscale is a fixed point of full desaturation")
def test_desaturation_is_idempotent():
    buffer = _random_buffer(5)
    gray = saturation_matrix(0.0)

    once = apply_color_matrix(buffer, gray)
    twice = apply_color_matrix(once, gray)

    assert twice == once
    channels = once.to_channels()
    assert np.array_equal(channels[..., 0], channels[..., 1])
    assert np.array_equal(channels[..., 1], channels[..., 2])


@given(
    st.integers(0, 255),
    st.integers(0, 255),
    st.integers(0, 255),
    st.integers(0, 255),
)
def test_double_contrast_clamps_to_byte_range(red: int, green: int, blue: int, alpha: int):
    buffer = RasterBuffer.blank(1, 1, pack_color(red, green, blue, alpha))

    result = apply_color_matrix(buffer, contrast_matrix(2.0))

    out = unpack_color(result.pixel(0, 0))
    expected = [min(255, max(0, 2 * value - 128)) for value in (red, green, blue)]
    assert list(out[:3]) == expected
    assert out[3] == alpha


def test_brightness_applies_before_contrast():
    buffer = RasterBuffer.blank(1, 1, pack_color(100, 100, 100))

    result = apply_color_matrix(buffer, adjustment_matrix(10, 2.0, 1.0))

    # (100 + 10 - 128) * 2 + 128; contrast first would give 82.
    assert unpack_color(result.pixel(0, 0))[:3] == (92, 92, 92)


def test_compose_order_matches_then():
    first = brightness_matrix(20)
    second = contrast_matrix(1.5)

    assert compose([first, second]) == first.then(second)
    assert compose([first, second]) != compose([second, first])


def test_brightness_is_clamped_to_byte_offsets():
    assert brightness_matrix(400).coefficients[0, 4] == 255
    assert brightness_matrix(-400).coefficients[2, 4] == -255


def test_saturation_one_is_identity():
    assert saturation_matrix(1.0).is_identity()


def test_adjustments_leave_alpha_untouched():
    buffer = RasterBuffer.blank(2, 2, pack_color(40, 80, 120, 77))

    result = apply_color_matrix(buffer, adjustment_matrix(50, 1.8, 0.2))

    assert unpack_color(result.pixel(1, 1))[3] == 77


def test_matrix_rejects_bad_alpha_row():
    coefficients = np.eye(4, 5)
    coefficients[3, 4] = 10.0

    with pytest.raises(ValueError):
        ColorMatrix(coefficients)


def test_matrix_requires_twenty_coefficients():
    with pytest.raises(ValueError):
        ColorMatrix(np.zeros(12))


def test_matrix_coefficients_are_frozen():
    matrix = ColorMatrix.identity()

    with pytest.raises(ValueError):
        matrix.coefficients[0, 0] = 2.0


def test_empty_buffer_passes_through():
    buffer = RasterBuffer.blank(0, 0)

    assert apply_color_matrix(buffer, contrast_matrix(1.5)).is_empty()
