"""Decode and encode at the engine boundary.

Key Components
--------------

ProcessingContext
    Stages each export in a hidden sibling file and renames it into place.

load_raster / save_raster
    File paths to :class:`~raster_studio.raster.RasterBuffer` and back.
    Exports are JPEG (quality 95 by default) for ``.jpg``/``.jpeg`` and
    lossless PNG for everything else.

decode_raster / encode_raster
    The same conversions on in-memory bytes.
"""
from __future__ import annotations

import contextlib
import dataclasses
import io
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from PIL import Image

from .raster import RasterBuffer, unpack_color

LOGGER = logging.getLogger("raster_studio")

DEFAULT_JPEG_QUALITY = 95
JPEG_SUFFIXES = {".jpg", ".jpeg"}


@dataclasses.dataclass
class ProcessingContext:
    """Stage an export beside its destination and publish it in one rename.

    ``save_raster`` encodes into the path yielded by this context.  When the
    encoder finishes, the staged file replaces ``destination`` via
    :func:`os.replace`, so a reader never sees a half-written JPEG or PNG and
    a failed export leaves any previous file untouched.

    Attributes:
        destination: Final image path; missing parent folders are created.
        suffix: Marker placed after the file name of the hidden staged file.
    """

    destination: Path
    suffix: str = ".tmp"
    staged: Optional[Path] = dataclasses.field(default=None, init=False, repr=False)

    def __enter__(self) -> Path:
        folder = self.destination.parent
        folder.mkdir(parents=True, exist_ok=True)
        self.staged = folder / f".{self.destination.name}{self.suffix}-{uuid.uuid4().hex}"
        return self.staged

    def __exit__(self, exc_type, exc, tb) -> bool:
        staged, self.staged = self.staged, None
        if staged is None:
            return False
        if exc_type is not None:
            with contextlib.suppress(FileNotFoundError):
                staged.unlink()
            return False
        try:
            os.replace(staged, self.destination)
        except OSError:
            LOGGER.error("Could not publish %s to %s", staged, self.destination)
            with contextlib.suppress(OSError):
                staged.unlink()
            raise
        return False


def format_for_path(path: Path) -> str:
    return "JPEG" if path.suffix.lower() in JPEG_SUFFIXES else "PNG"


def _flatten(image: Image.Image, matte: int) -> Image.Image:
    """Composite RGBA onto an opaque matte; JPEG has no alpha channel."""

    red, green, blue, _ = unpack_color(matte)
    background = Image.new("RGBA", image.size, (red, green, blue, 255))
    return Image.alpha_composite(background, image).convert("RGB")


def _encode(buffer: RasterBuffer, stream, image_format: str, quality: int, matte: int) -> None:
    image = buffer.to_image()
    if image_format == "JPEG":
        _flatten(image, matte).save(stream, format="JPEG", quality=quality)
    else:
        image.save(stream, format=image_format)


def load_raster(path: Path) -> RasterBuffer:
    """Decode any Pillow-readable file into a buffer.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        OSError: If the file cannot be decoded.
    """

    path = Path(path)
    with Image.open(path) as image:
        image.load()
        buffer = RasterBuffer.from_image(image)
    LOGGER.debug("Loaded %s (%sx%s)", path, buffer.width, buffer.height)
    return buffer


def save_raster(
    path: Path,
    buffer: RasterBuffer,
    quality: int = DEFAULT_JPEG_QUALITY,
    *,
    matte: int = 0xFFFFFFFF,
) -> Path:
    """Write ``buffer`` to ``path`` atomically.

    Args:
        path: Destination; the suffix picks JPEG or PNG.
        buffer: Pixels to encode.
        quality: JPEG quality (ignored for PNG).
        matte: Colour transparent pixels are flattened onto for JPEG.

    Returns:
        The destination path.
    """

    path = Path(path)
    image_format = format_for_path(path)
    with ProcessingContext(path) as staged:
        with staged.open("wb") as stream:
            _encode(buffer, stream, image_format, quality, matte)
    LOGGER.debug("Wrote %s as %s", path, image_format)
    return path


def decode_raster(data: bytes) -> RasterBuffer:
    with Image.open(io.BytesIO(data)) as image:
        image.load()
        return RasterBuffer.from_image(image)


def encode_raster(
    buffer: RasterBuffer,
    image_format: str = "JPEG",
    quality: int = DEFAULT_JPEG_QUALITY,
    *,
    matte: int = 0xFFFFFFFF,
) -> bytes:
    stream = io.BytesIO()
    _encode(buffer, stream, image_format.upper(), quality, matte)
    return stream.getvalue()


__all__ = [
    "DEFAULT_JPEG_QUALITY",
    "ProcessingContext",
    "decode_raster",
    "encode_raster",
    "format_for_path",
    "load_raster",
    "save_raster",
]
