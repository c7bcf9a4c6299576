"""Multi-image collage layout and compositing.

Key Components
--------------

CollageTemplate
    A named list of :class:`NormalizedRect` frames, one per image.

TEMPLATE_CATALOG
    Hand-designed layouts for two, three and four images.  Other counts use
    a generated grid (:func:`grid_template`).

compose_collage
    Fills each frame with the centre crop of its source image, resampled
    bilinearly, on top of a solid background.
"""
from __future__ import annotations

import dataclasses
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .errors import UnknownTemplateError
from .raster import RasterBuffer, pack_channels, to_channel_bytes, unpack_color

LOGGER = logging.getLogger("raster_studio")

DEFAULT_SPACING = 4
DEFAULT_BACKGROUND = 0xFFFFFFFF
PREVIEW_SPACING = 2


@dataclasses.dataclass(frozen=True)
class NormalizedRect:
    """Frame edges as fractions of the canvas, each in ``[0, 1]``."""

    left: float
    top: float
    right: float
    bottom: float

    def __post_init__(self) -> None:
        for name in ("left", "top", "right", "bottom"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Frame {name} must be within [0, 1], got {value}")
        if self.left > self.right or self.top > self.bottom:
            raise ValueError(f"Frame edges are inverted: {self}")

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.right, self.bottom


@dataclasses.dataclass(frozen=True)
class PixelRect:
    """Half-open pixel rectangle ``[left, right) x [top, bottom)``."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclasses.dataclass(frozen=True)
class CollageTemplate:
    """A layout for exactly ``image_count`` images.

    Raises:
        ValueError: If the number of frames differs from ``image_count``.
    """

    template_id: str
    name: str
    image_count: int
    frames: Tuple[NormalizedRect, ...]

    def __post_init__(self) -> None:
        frames = tuple(
            frame if isinstance(frame, NormalizedRect) else NormalizedRect(*frame) for frame in self.frames
        )
        if len(frames) != self.image_count:
            raise ValueError(
                f"Template '{self.template_id}' declares {self.image_count} images but has {len(frames)} frames"
            )
        object.__setattr__(self, "frames", frames)


def _template(template_id: str, name: str, *frames: Tuple[float, float, float, float]) -> CollageTemplate:
    return CollageTemplate(template_id, name, len(frames), tuple(NormalizedRect(*frame) for frame in frames))


TEMPLATE_CATALOG: Dict[int, Tuple[CollageTemplate, ...]] = {
    2: (
        _template("two_horizontal", "Side by side", (0, 0, 0.5, 1.0), (0.5, 0, 1.0, 1.0)),
        _template("two_vertical", "Stacked", (0, 0, 1.0, 0.5), (0, 0.5, 1.0, 1.0)),
    ),
    3: (
        _template("three_left", "One left, two right", (0, 0, 0.5, 1.0), (0.5, 0, 1.0, 0.5), (0.5, 0.5, 1.0, 1.0)),
        _template("three_right", "Two left, one right", (0, 0, 0.5, 0.5), (0, 0.5, 0.5, 1.0), (0.5, 0, 1.0, 1.0)),
        _template("three_top", "One top, two bottom", (0, 0, 1.0, 0.5), (0, 0.5, 0.5, 1.0), (0.5, 0.5, 1.0, 1.0)),
    ),
    4: (
        _template(
            "four_grid",
            "2x2 grid",
            (0, 0, 0.5, 0.5),
            (0.5, 0, 1.0, 0.5),
            (0, 0.5, 0.5, 1.0),
            (0.5, 0.5, 1.0, 1.0),
        ),
        _template(
            "four_top_one",
            "One top, three bottom",
            (0, 0, 1.0, 0.5),
            (0, 0.5, 0.333, 1.0),
            (0.333, 0.5, 0.666, 1.0),
            (0.666, 0.5, 1.0, 1.0),
        ),
    ),
}


def grid_template(count: int) -> CollageTemplate:
    """Uniform grid with ``ceil(sqrt(count))`` columns, filled row by row."""

    if count < 1:
        raise ValueError(f"A grid needs at least one cell, got {count}")
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    cell_width = 1.0 / cols
    cell_height = 1.0 / rows
    frames = []
    for index in range(count):
        row, col = index // cols, index % cols
        left = col * cell_width
        top = row * cell_height
        frames.append(NormalizedRect(left, top, min(1.0, left + cell_width), min(1.0, top + cell_height)))
    return CollageTemplate(f"grid_{count}", "Grid", count, tuple(frames))


def templates_for_count(count: int) -> List[CollageTemplate]:
    """Every layout available for ``count`` images, preferred first."""

    catalogued = TEMPLATE_CATALOG.get(count)
    if catalogued:
        return list(catalogued)
    return [grid_template(count)]


def get_template(template_id: str) -> CollageTemplate:
    """Look up a catalogue template or a ``grid_<n>`` layout by identifier."""

    for templates in TEMPLATE_CATALOG.values():
        for template in templates:
            if template.template_id == template_id:
                return template
    prefix, _, count = template_id.partition("_")
    if prefix == "grid" and count.isdigit() and int(count) > 0:
        return grid_template(int(count))
    raise UnknownTemplateError(template_id)


def frame_to_pixels(frame: NormalizedRect, out_width: int, out_height: int, spacing: int) -> PixelRect:
    """Scale ``frame`` to the canvas, inset by half the spacing on every side."""

    inset = spacing / 2.0
    left = max(0.0, frame.left * out_width + inset)
    top = max(0.0, frame.top * out_height + inset)
    right = min(float(out_width), frame.right * out_width - inset)
    bottom = min(float(out_height), frame.bottom * out_height - inset)
    return PixelRect(
        int(math.floor(left + 0.5)),
        int(math.floor(top + 0.5)),
        int(math.floor(right + 0.5)),
        int(math.floor(bottom + 0.5)),
    )


def center_crop_rect(src_width: int, src_height: int, dest_width: int, dest_height: int) -> PixelRect:
    """Largest centred source region with the destination's aspect ratio.

    For a 400x200 source and a 100x100 destination the scale is 2 and the
    crop is ``(100, 0)``-``(300, 200)``.
    """

    # Integer cross-multiplication keeps the limiting axis at its full extent.
    if src_width * dest_height <= src_height * dest_width:
        crop_width = src_width
        crop_height = max(1, src_width * dest_height // dest_width)
    else:
        crop_height = src_height
        crop_width = max(1, src_height * dest_width // dest_height)
    left = (src_width - crop_width) // 2
    top = (src_height - crop_height) // 2
    return PixelRect(
        max(0, left),
        max(0, top),
        min(src_width, left + crop_width),
        min(src_height, top + crop_height),
    )


def resize_bilinear(arr: np.ndarray, new_width: int, new_height: int) -> np.ndarray:
    """Resample an ``(h, w, c)`` array with corner-aligned bilinear weights."""

    height, width = arr.shape[:2]
    if width == new_width and height == new_height:
        return arr.astype(np.float32)
    x = np.linspace(0, width - 1, new_width, dtype=np.float32)
    y = np.linspace(0, height - 1, new_height, dtype=np.float32)
    x0 = np.floor(x).astype(int)
    x1 = np.clip(x0 + 1, 0, width - 1)
    y0 = np.floor(y).astype(int)
    y1 = np.clip(y0 + 1, 0, height - 1)
    x_weight = (x - x0).reshape(1, -1, 1)
    y_weight = (y - y0).reshape(-1, 1, 1)

    data = arr.astype(np.float32)
    top = data[np.ix_(y0, x0)] * (1.0 - x_weight) + data[np.ix_(y0, x1)] * x_weight
    bottom = data[np.ix_(y1, x0)] * (1.0 - x_weight) + data[np.ix_(y1, x1)] * x_weight
    return top * (1.0 - y_weight) + bottom * y_weight


def _composite_over(dest: np.ndarray, src: np.ndarray) -> np.ndarray:
    """Source-over blend of straight-alpha ``src`` onto ``dest`` (both float)."""

    src_alpha = src[..., 3:4] / 255.0
    dest_alpha = dest[..., 3:4] / 255.0
    out_alpha = src_alpha + dest_alpha * (1.0 - src_alpha)
    weighted = src[..., :3] * src_alpha + dest[..., :3] * dest_alpha * (1.0 - src_alpha)
    out_rgb = np.divide(weighted, out_alpha, out=np.zeros_like(weighted), where=out_alpha > 0)
    return np.concatenate([out_rgb, out_alpha * 255.0], axis=-1)


def compose_collage(
    images: Sequence[Optional[RasterBuffer]],
    template: CollageTemplate,
    out_width: int,
    out_height: int,
    spacing: int = DEFAULT_SPACING,
    background_color: int = DEFAULT_BACKGROUND,
) -> RasterBuffer:
    """Lay ``images`` out on a new canvas following ``template``.

    Args:
        images: Sources in frame order.  ``None`` entries leave their frame
            showing the background.  Extra images or frames are ignored.
        template: Layout to fill.
        out_width: Canvas width in pixels.
        out_height: Canvas height in pixels.
        spacing: Gap between neighbouring frames; half of it insets every
            frame edge.
        background_color: ``0xAARRGGBB`` canvas fill.

    Returns:
        The composited canvas.
    """

    red, green, blue, alpha = unpack_color(background_color)
    canvas = np.empty((out_height, out_width, 4), dtype=np.float32)
    canvas[...] = (red, green, blue, alpha)

    for index, (image, frame) in enumerate(zip(images, template.frames)):
        if image is None or image.is_empty():
            continue
        dest = frame_to_pixels(frame, out_width, out_height, spacing)
        if dest.is_empty():
            LOGGER.debug("Frame %s of '%s' collapses to nothing; skipping", index, template.template_id)
            continue
        src = center_crop_rect(image.width, image.height, dest.width, dest.height)
        if src.is_empty():
            continue
        region = image.to_channels()[src.top : src.bottom, src.left : src.right]
        tile = resize_bilinear(region, dest.width, dest.height)
        target = canvas[dest.top : dest.bottom, dest.left : dest.right]
        canvas[dest.top : dest.bottom, dest.left : dest.right] = _composite_over(target, tile)

    LOGGER.debug(
        "Composed %s image(s) into '%s' at %sx%s",
        min(len(images), len(template.frames)),
        template.template_id,
        out_width,
        out_height,
    )
    return RasterBuffer(pack_channels(to_channel_bytes(canvas)), copy=False)


def create_preview(images: Sequence[Optional[RasterBuffer]], template: CollageTemplate, size: int) -> RasterBuffer:
    """Small square rendering for template pickers."""

    return compose_collage(images, template, size, size, PREVIEW_SPACING, DEFAULT_BACKGROUND)


__all__ = [
    "CollageTemplate",
    "DEFAULT_BACKGROUND",
    "DEFAULT_SPACING",
    "NormalizedRect",
    "PixelRect",
    "TEMPLATE_CATALOG",
    "center_crop_rect",
    "compose_collage",
    "create_preview",
    "frame_to_pixels",
    "get_template",
    "grid_template",
    "resize_bilinear",
    "templates_for_count",
]
