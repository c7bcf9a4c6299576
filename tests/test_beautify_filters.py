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

from raster_studio.auto_enhance import (  # noqa: E402  # pylint: disable=wrong-import-position
    EnhanceParams,
    ImageStatistics,
    analyze,
    apply_auto_enhance,
    compute_statistics,
    derive_params,
)
from raster_studio.beautify import EFFECT_INFO, BeautifyEffect, apply_beautify  # noqa: E402
from raster_studio.convolution import (  # noqa: E402
    STRONG_SHARPEN_KERNEL,
    WEAK_SHARPEN_KERNEL,
    convolve3x3,
    select_sharpen_kernel,
    sharpen,
)
from raster_studio.raster import RasterBuffer, pack_color, unpack_color  # noqa: E402
from raster_studio.vignette import MIN_FACTOR, vignette, vignette_factors  # noqa: E402


def _dot_buffer(value: int = 100, alpha: int = 255) -> RasterBuffer:
    rgba = np.zeros((5, 5, 4), dtype=np.uint8)
    rgba[..., 3] = alpha
    rgba[2, 2, :3] = value
    return RasterBuffer.from_channels(rgba)


# Sharpen ------------------------------------------------------------------


def test_kernel_selection_is_a_step_at_half():
    assert select_sharpen_kernel(0.49) is WEAK_SHARPEN_KERNEL
    assert select_sharpen_kernel(0.5) is STRONG_SHARPEN_KERNEL
    assert select_sharpen_kernel(1.0) is STRONG_SHARPEN_KERNEL


def test_convolution_replicates_edges():
    single = np.full((1, 1, 3), 80.0, dtype=np.float32)

    assert np.allclose(convolve3x3(single, WEAK_SHARPEN_KERNEL), 80.0)
    assert np.allclose(convolve3x3(single, STRONG_SHARPEN_KERNEL), 80.0)


def test_convolution_rejects_non_3x3_kernels():
    with pytest.raises(ValueError):
        convolve3x3(np.zeros((2, 2, 3)), np.ones((5, 5)))


@pytest.mark.parametrize("intensity", [0.2, 0.7, 1.0])
def test_sharpen_keeps_flat_regions(intensity: float):
    buffer = RasterBuffer.blank(6, 4, pack_color(120, 60, 30))

    assert sharpen(buffer, intensity) == buffer


def test_weak_sharpen_blends_with_source():
    result = sharpen(_dot_buffer(), 0.4)
    channels = result.to_channels()

    # centre: 5 * 100 clamps to 255, then 100 * 0.6 + 255 * 0.4
    assert channels[2, 2, 0] == 162
    assert channels[2, 1, 0] == 0
    assert channels[0, 0, 0] == 0


def test_strong_sharpen_uses_diagonals():
    result = sharpen(_dot_buffer(alpha=90), 1.0)
    channels = result.to_channels()

    assert channels[2, 2, 0] == 255
    assert channels[1, 1, 0] == 0
    assert np.all(channels[..., 3] == 90)
    assert result.size == (5, 5)


def test_sharpen_zero_intensity_is_noop():
    buffer = _dot_buffer()

    assert sharpen(buffer, 0.0) is buffer
    assert sharpen(RasterBuffer.blank(0, 3), 0.8).is_empty()


# Vignette -----------------------------------------------------------------


@documents("Vignette darkens by at most 80 percent")
def test_vignette_floor_is_exact():
    factors = vignette_factors(40, 30, 1.0)

    assert factors.min() == MIN_FACTOR == 0.2
    assert factors[15, 20] == 1.0


def test_vignette_darkens_corners_only():
    buffer = RasterBuffer.blank(40, 30, pack_color(255, 255, 255, 128))

    result = vignette(buffer, 1.0)

    assert unpack_color(result.pixel(0, 0)) == (51, 51, 51, 128)
    assert unpack_color(result.pixel(20, 15)) == (255, 255, 255, 128)


def test_vignette_factor_grows_with_intensity():
    soft = vignette_factors(20, 20, 0.3)
    hard = vignette_factors(20, 20, 0.9)

    assert np.all(hard <= soft)
    assert soft.min() > hard.min()


def test_vignette_full_radius_leaves_image_alone():
    assert np.all(vignette_factors(10, 8, 1.0, radius=1.0) == 1.0)


# Auto enhance -------------------------------------------------------------


def test_statistics_of_pure_red():
    buffer = RasterBuffer.blank(4, 3, pack_color(255, 0, 0))

    stats = compute_statistics(buffer)

    assert stats.mean_luminance == 76
    assert stats.luminance_std == 0
    assert stats.mean_saturation == pytest.approx(1.0)


def test_black_pixels_have_zero_saturation():
    stats = compute_statistics(RasterBuffer.blank(2, 2, pack_color(0, 0, 0)))

    assert stats.mean_saturation == 0.0


@pytest.mark.parametrize(
    "luminance, expected",
    [(80.0, 20), (110.0, 5), (130.0, 0), (200.0, -13)],
)
def test_brightness_bands(luminance: float, expected: int):
    params = derive_params(ImageStatistics(luminance, 60.0, 0.5))

    assert params.brightness_delta == expected


@pytest.mark.parametrize(
    "sigma, expected",
    [(10.0, 1.3), (30.0, 1.15), (45.0, 1.025), (60.0, 1.0)],
)
def test_contrast_bands(sigma: float, expected: float):
    assert derive_params(ImageStatistics(128.0, sigma, 0.5)).contrast_factor == pytest.approx(expected)


@pytest.mark.parametrize(
    "saturation, expected",
    [(0.0, 1.2), (0.2, 1.125), (0.38, 1.021), (0.5, 1.0)],
)
def test_saturation_bands(saturation: float, expected: float):
    assert derive_params(ImageStatistics(128.0, 60.0, saturation)).saturation_factor == pytest.approx(expected)


def test_params_scale_with_intensity():
    scaled = EnhanceParams(20, 1.2, 1.1).scaled(0.5)

    assert scaled.brightness_delta == 10
    assert scaled.contrast_factor == pytest.approx(1.1)
    assert scaled.saturation_factor == pytest.approx(1.05)


def test_auto_enhance_lifts_dark_images():
    rng = np.random.default_rng(3)
    rgb = rng.integers(10, 70, size=(16, 16, 3), dtype=np.uint8)
    buffer = RasterBuffer.from_channels(rgb)

    params = analyze(buffer)
    result = apply_auto_enhance(buffer, 1.0)

    assert params.brightness_delta > 0
    assert result.to_channels()[..., :3].mean() > buffer.to_channels()[..., :3].mean()
    assert apply_auto_enhance(buffer, 0.0) is buffer


# Dispatch -----------------------------------------------------------------


def test_dispatch_matches_direct_calls():
    rng = np.random.default_rng(8)
    buffer = RasterBuffer.from_channels(rng.integers(0, 256, size=(8, 8, 3), dtype=np.uint8))

    assert apply_beautify(buffer, BeautifyEffect.SHARPEN, 0.6) == sharpen(buffer, 0.6)
    assert apply_beautify(buffer, "vignette", 0.7) == vignette(buffer, 0.7)
    assert apply_beautify(buffer, "Auto-Enhance", 0.8) == apply_auto_enhance(buffer, 0.8)


def test_unknown_effect_is_rejected():
    with pytest.raises(ValueError):
        apply_beautify(RasterBuffer.blank(1, 1), "blur", 0.5)


def test_effect_metadata_covers_every_effect():
    assert set(EFFECT_INFO) == set(BeautifyEffect)
    assert EFFECT_INFO[BeautifyEffect.SHARPEN].default_intensity_percent == 60
    assert EFFECT_INFO[BeautifyEffect.AUTO_ENHANCE].default_intensity == pytest.approx(0.8)
