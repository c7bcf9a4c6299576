from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

np = pytest.importorskip("numpy")
pytest.importorskip("PIL.Image")
from PIL import Image  # noqa: E402  # pylint: disable=wrong-import-position

from raster_studio.raster import (  # noqa: E402  # pylint: disable=wrong-import-position
    RasterBuffer,
    pack_channels,
    pack_color,
    parse_hex_color,
    unpack_channels,
    unpack_color,
)


def test_pack_color_layout_is_argb():
    assert pack_color(0x11, 0x22, 0x33, 0x44) == 0x44112233
    assert pack_color(1, 2, 3) == 0xFF010203
    assert unpack_color(0x44112233) == (0x11, 0x22, 0x33, 0x44)


def test_channel_packing_round_trip():
    rng = np.random.default_rng(7)
    rgba = rng.integers(0, 256, size=(5, 3, 4), dtype=np.uint8)

    packed = pack_channels(rgba)

    assert packed.dtype == np.uint32
    assert int(packed[0, 0]) == pack_color(*[int(v) for v in rgba[0, 0, :3]], int(rgba[0, 0, 3]))
    assert np.array_equal(unpack_channels(packed), rgba)


def test_from_channels_rgb_is_opaque():
    rgb = np.zeros((2, 2, 3), dtype=np.uint8)
    rgb[..., 0] = 200

    buffer = RasterBuffer.from_channels(rgb)

    assert buffer.size == (2, 2)
    assert buffer.pixel(1, 1) == 0xFFC80000


def test_buffer_pixels_are_read_only():
    buffer = RasterBuffer.blank(3, 2, 0xFF000000)

    with pytest.raises(ValueError):
        buffer.pixels[0, 0] = 0


def test_copy_is_deep_and_equal():
    buffer = RasterBuffer.blank(4, 4, 0xFF102030)

    duplicate = buffer.copy()

    assert duplicate == buffer
    assert duplicate is not buffer
    assert not np.shares_memory(duplicate.pixels, buffer.pixels)


def test_constructor_rejects_non_2d_arrays():
    with pytest.raises(ValueError):
        RasterBuffer(np.zeros(3, dtype=np.uint32))
    with pytest.raises(ValueError):
        RasterBuffer.blank(-1, 2)


def test_zero_area_buffers_are_allowed():
    buffer = RasterBuffer.blank(0, 5)

    assert buffer.is_empty()
    assert buffer.width == 0
    assert buffer.height == 5


def test_pillow_bridge_preserves_alpha():
    image = Image.new("RGBA", (3, 2), (10, 20, 30, 40))

    buffer = RasterBuffer.from_image(image)
    restored = buffer.to_image()

    assert buffer.pixel(2, 1) == pack_color(10, 20, 30, 40)
    assert restored.mode == "RGBA"
    assert restored.getpixel((0, 0)) == (10, 20, 30, 40)


def test_from_image_converts_grayscale():
    image = Image.new("L", (2, 2), 90)

    buffer = RasterBuffer.from_image(image)

    assert buffer.pixel(0, 0) == pack_color(90, 90, 90)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("#336699", 0xFF336699),
        ("0x80FFFFFF", 0x80FFFFFF),
        ("000000", 0xFF000000),
    ],
)
def test_parse_hex_color(text: str, expected: int):
    assert parse_hex_color(text) == expected


@pytest.mark.parametrize("text", ["", "xyz", "123456789"])
def test_parse_hex_color_rejects_garbage(text: str):
    with pytest.raises(ValueError):
        parse_hex_color(text)
