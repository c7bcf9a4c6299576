"""CPU pixel-processing and compositing engine for photo editing.

Every transform takes an immutable packed-ARGB :class:`RasterBuffer` and
returns a new one, so edits can run on worker threads while a bounded
history keeps earlier states for undo/redo.

Module Organization
-------------------

raster
    Packed ``0xAARRGGBB`` pixel storage and channel packing helpers.

color_matrix
    Affine 4x5 colour matrices for brightness, contrast and saturation,
    composed into a single pass.

lut / lut_registry
    3D colour cubes stored as 8x8 tile atlases, the stock looks, and the
    registry that loads and caches them by filter id.

convolution / vignette / auto_enhance / beautify
    Sharpening, radial darkening, statistics-driven auto correction and the
    one-tap effect dispatch built on them.

geometry
    Quarter-turn rotation, mirroring and clamped cropping.

collage
    Template catalogue, centre-crop layout math and bilinear compositing.

history / scheduler / editor
    Undo/redo snapshots, debounced background previews and the
    :class:`PhotoEditor` session that ties them together.

io_utils / settings / cli
    File decode/encode with atomic writes, engine settings, and the
    ``raster-studio`` command line.

Example Usage
-------------

    from raster_studio import PhotoEditor, load_raster

    editor = PhotoEditor(load_raster(Path("input.jpg")))
    editor.apply_adjustments(brightness=15, contrast=1.1, saturation=1.2)
    editor.apply_lut_filter("warm", 0.75)
    editor.apply_beautify("vignette", 0.7)
    editor.undo()
    editor.export(Path("output.jpg"))
"""
from __future__ import annotations

import logging

from .auto_enhance import EnhanceParams, ImageStatistics, analyze, apply_auto_enhance
from .beautify import EFFECT_INFO, BeautifyEffect, EffectInfo
from .cli import main, parse_args
from .collage import (
    TEMPLATE_CATALOG,
    CollageTemplate,
    NormalizedRect,
    compose_collage,
    create_preview,
    get_template,
    grid_template,
    templates_for_count,
)
from .color_matrix import (
    ColorMatrix,
    adjustment_matrix,
    apply_color_matrix,
    brightness_matrix,
    compose,
    contrast_matrix,
    saturation_matrix,
)
from .convolution import sharpen
from .editor import (
    PhotoEditor,
    apply_adjustments,
    apply_beautify,
    apply_lut_filter,
    compose_collage_by_id,
    crop,
    flip,
    rotate,
)
from .errors import InvalidLutAtlasError, RasterStudioError, SettingsError, UnknownTemplateError
from .geometry import CROP_PRESETS, FlipAxis, aspect_crop_rect
from .history import HistoryStack
from .io_utils import ProcessingContext, decode_raster, encode_raster, load_raster, save_raster
from .lut import LutCube, apply_lut, generate_lut_atlas, load_lut_cube, save_lut_atlas
from .lut_registry import LUT_FILTERS, LutFilter, LutRegistry
from .raster import RasterBuffer, pack_color, unpack_color
from .scheduler import PreviewScheduler
from .settings import EngineSettings, load_settings
from .vignette import vignette, vignette_factors

LOGGER = logging.getLogger("raster_studio")

__all__ = [
    "BeautifyEffect",
    "CROP_PRESETS",
    "CollageTemplate",
    "ColorMatrix",
    "EFFECT_INFO",
    "EffectInfo",
    "EngineSettings",
    "EnhanceParams",
    "FlipAxis",
    "HistoryStack",
    "ImageStatistics",
    "InvalidLutAtlasError",
    "LUT_FILTERS",
    "LutCube",
    "LutFilter",
    "LutRegistry",
    "NormalizedRect",
    "PhotoEditor",
    "PreviewScheduler",
    "ProcessingContext",
    "RasterBuffer",
    "RasterStudioError",
    "SettingsError",
    "TEMPLATE_CATALOG",
    "UnknownTemplateError",
    "adjustment_matrix",
    "analyze",
    "apply_adjustments",
    "apply_auto_enhance",
    "apply_beautify",
    "apply_color_matrix",
    "apply_lut",
    "apply_lut_filter",
    "aspect_crop_rect",
    "brightness_matrix",
    "compose",
    "compose_collage",
    "compose_collage_by_id",
    "contrast_matrix",
    "create_preview",
    "crop",
    "decode_raster",
    "encode_raster",
    "flip",
    "generate_lut_atlas",
    "get_template",
    "grid_template",
    "load_lut_cube",
    "load_raster",
    "load_settings",
    "main",
    "pack_color",
    "parse_args",
    "rotate",
    "saturation_matrix",
    "save_lut_atlas",
    "save_raster",
    "sharpen",
    "templates_for_count",
    "unpack_color",
    "vignette",
    "vignette_factors",
]
