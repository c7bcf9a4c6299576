from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

np = pytest.importorskip("numpy")

from raster_studio.geometry import (  # noqa: E402  # pylint: disable=wrong-import-position
    FlipAxis,
    aspect_crop_rect,
    clamp_crop_rect,
    crop,
    flip,
    rotate,
)
from raster_studio.raster import RasterBuffer  # noqa: E402


@pytest.fixture()
def grid() -> RasterBuffer:
    return RasterBuffer(np.array([[1, 2, 3], [4, 5, 6]], dtype=np.uint32))


@pytest.mark.parametrize(
    "degrees, expected",
    [
        (90, [[4, 1], [5, 2], [6, 3]]),
        (180, [[6, 5, 4], [3, 2, 1]]),
        (270, [[3, 6], [2, 5], [1, 4]]),
        (-90, [[3, 6], [2, 5], [1, 4]]),
    ],
)
def test_rotate_is_clockwise(grid: RasterBuffer, degrees: int, expected):
    assert rotate(grid, degrees).pixels.tolist() == expected


@pytest.mark.parametrize("degrees", [0, 45, 360, 91])
def test_rotate_rejects_other_angles(grid: RasterBuffer, degrees: int):
    with pytest.raises(ValueError):
        rotate(grid, degrees)


def test_four_quarter_turns_restore_the_image(grid: RasterBuffer):
    result = grid
    for _ in range(4):
        result = rotate(result, 90)

    assert result == grid


def test_flip_axes(grid: RasterBuffer):
    assert flip(grid, FlipAxis.HORIZONTAL).pixels.tolist() == [[3, 2, 1], [6, 5, 4]]
    assert flip(grid, "vertical").pixels.tolist() == [[4, 5, 6], [1, 2, 3]]


def test_transforms_do_not_alias_the_source(grid: RasterBuffer):
    flipped = flip(grid, FlipAxis.VERTICAL)

    assert not np.shares_memory(flipped.pixels, grid.pixels)
    assert grid.pixels.tolist() == [[1, 2, 3], [4, 5, 6]]


def test_crop_clamps_to_bounds():
    buffer = RasterBuffer(np.arange(16, dtype=np.uint32).reshape(4, 4))

    result = crop(buffer, -2, 1, 10, 2)

    assert clamp_crop_rect(4, 4, -2, 1, 10, 2) == (0, 1, 4, 2)
    assert result.pixels.tolist() == [[4, 5, 6, 7], [8, 9, 10, 11]]


def test_crop_with_nothing_left_returns_source(grid: RasterBuffer):
    assert crop(grid, 10, 0, 5, 5) is grid
    assert crop(grid, 0, 0, -3, 2) is grid


@pytest.mark.parametrize(
    "size, ratio, expected",
    [
        ((400, 200), "1:1", (100, 0, 200, 200)),
        ((1920, 1440), "16:9", (0, 180, 1920, 1080)),
        ((300, 400), (3, 2), (0, 100, 300, 200)),
        ((640, 480), "free", (0, 0, 640, 480)),
    ],
)
def test_aspect_crop_rect(size, ratio, expected):
    assert aspect_crop_rect(*size, ratio) == expected


def test_aspect_crop_rejects_unknown_presets():
    with pytest.raises(ValueError):
        aspect_crop_rect(100, 100, "5:4")
