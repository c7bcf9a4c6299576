"""Public editing operations and the :class:`PhotoEditor` session.

The module-level functions are pure: they take a
:class:`~raster_studio.raster.RasterBuffer` and return a new one, so they can
be run on any worker.  :class:`PhotoEditor` layers a current image, an undo
history and optional debounced previews on top of them.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from .beautify import BeautifyEffect
from .beautify import apply_beautify as _apply_beautify
from .collage import (
    DEFAULT_BACKGROUND,
    DEFAULT_SPACING,
    compose_collage,
    get_template,
    templates_for_count,
)
from .color_matrix import adjustment_matrix, apply_color_matrix
from .errors import UnknownTemplateError
from .geometry import FlipAxis
from .geometry import crop as _crop
from .geometry import flip as _flip
from .geometry import rotate as _rotate
from .history import HistoryStack
from .io_utils import save_raster
from .lut_registry import LutRegistry
from .raster import RasterBuffer
from .scheduler import PreviewScheduler
from .settings import EngineSettings

LOGGER = logging.getLogger("raster_studio")


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def apply_adjustments(buffer: RasterBuffer, brightness: int, contrast: float, saturation: float) -> RasterBuffer:
    """Brightness ``[-100, 100]``, contrast ``[0.5, 2]``, saturation ``[0, 2]``.

    Out-of-range values are clamped.  ``(0, 1.0, 1.0)`` returns an identical
    copy of ``buffer``.
    """

    brightness = int(_clamp(int(brightness), -100, 100))
    contrast = _clamp(float(contrast), 0.5, 2.0)
    saturation = _clamp(float(saturation), 0.0, 2.0)
    LOGGER.debug("Adjusting brightness=%s contrast=%.2f saturation=%.2f", brightness, contrast, saturation)
    return apply_color_matrix(buffer, adjustment_matrix(brightness, contrast, saturation))


def apply_lut_filter(buffer: RasterBuffer, lut_id: str, intensity: float, registry: LutRegistry) -> RasterBuffer:
    return registry.apply_filter(buffer, lut_id, intensity)


def apply_beautify(buffer: RasterBuffer, effect: BeautifyEffect | str, intensity: float) -> RasterBuffer:
    return _apply_beautify(buffer, effect, intensity)


def rotate(buffer: RasterBuffer, degrees: int) -> RasterBuffer:
    return _rotate(buffer, degrees)


def flip(buffer: RasterBuffer, axis: FlipAxis | str) -> RasterBuffer:
    return _flip(buffer, axis)


def crop(buffer: RasterBuffer, x: int, y: int, width: int, height: int) -> RasterBuffer:
    return _crop(buffer, x, y, width, height)


def compose_collage_by_id(
    images: Sequence[Optional[RasterBuffer]],
    template_id: str,
    out_width: int,
    out_height: int,
    spacing: int = DEFAULT_SPACING,
    background_color: int = DEFAULT_BACKGROUND,
) -> RasterBuffer:
    """Compose with a template chosen by identifier.

    An unknown identifier falls back to the first layout offered for
    ``len(images)`` images.
    """

    try:
        template = get_template(template_id)
    except UnknownTemplateError:
        template = templates_for_count(max(1, len(images)))[0]
        LOGGER.warning("Unknown collage template '%s'; using '%s'", template_id, template.template_id)
    return compose_collage(images, template, out_width, out_height, spacing, background_color)


class PhotoEditor:
    """A single image editing session.

    Every destructive edit records the previous image in :attr:`history`
    before replacing :attr:`current`.

    Args:
        image: Starting image.
        settings: Engine settings; defaults are used when omitted.
        registry: LUT registry to grade with.  One is built from
            ``settings.lut_dir`` when omitted.
    """

    def __init__(
        self,
        image: RasterBuffer,
        settings: Optional[EngineSettings] = None,
        registry: Optional[LutRegistry] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.registry = registry or LutRegistry(self.settings.lut_dir)
        self.history = HistoryStack(self.settings.history_depth)
        self._original = image
        self._current = image

    @property
    def current(self) -> RasterBuffer:
        return self._current

    @property
    def original(self) -> RasterBuffer:
        return self._original

    def commit(self, result: RasterBuffer) -> RasterBuffer:
        """Make ``result`` current, recording the previous image for undo.

        Results with the same pixels as the current image are not recorded.
        """

        if result is self._current or result == self._current:
            return result
        self.history.push_state(self._current)
        self._current = result
        return result

    def apply_adjustments(self, brightness: int, contrast: float, saturation: float) -> RasterBuffer:
        return self.commit(apply_adjustments(self._current, brightness, contrast, saturation))

    def apply_lut_filter(self, lut_id: str, intensity: float) -> RasterBuffer:
        return self.commit(apply_lut_filter(self._current, lut_id, intensity, self.registry))

    def apply_beautify(self, effect: BeautifyEffect | str, intensity: float) -> RasterBuffer:
        return self.commit(apply_beautify(self._current, effect, intensity))

    def rotate(self, degrees: int) -> RasterBuffer:
        return self.commit(rotate(self._current, degrees))

    def flip(self, axis: FlipAxis | str) -> RasterBuffer:
        return self.commit(flip(self._current, axis))

    def crop(self, x: int, y: int, width: int, height: int) -> RasterBuffer:
        return self.commit(crop(self._current, x, y, width, height))

    def undo(self) -> bool:
        previous = self.history.undo(self._current)
        if previous is None:
            return False
        self._current = previous
        return True

    def redo(self) -> bool:
        following = self.history.redo(self._current)
        if following is None:
            return False
        self._current = following
        return True

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def reset(self) -> RasterBuffer:
        """Return to the starting image; the reset itself can be undone."""

        return self.commit(self._original)

    def export(self, path: Path) -> Path:
        return save_raster(Path(path), self._current, quality=self.settings.jpeg_quality)

    # Previews -----------------------------------------------------------

    def render_operation(self, operation: str, base: RasterBuffer, *args: Any) -> RasterBuffer:
        """Run one named operation on ``base`` without touching the session."""

        operations: Dict[str, Callable[..., RasterBuffer]] = {
            "adjust": apply_adjustments,
            "lut": lambda buffer, lut_id, intensity: apply_lut_filter(buffer, lut_id, intensity, self.registry),
            "beautify": apply_beautify,
            "rotate": rotate,
            "flip": flip,
            "crop": crop,
        }
        try:
            handler = operations[operation]
        except KeyError:
            raise ValueError(f"Unknown preview operation '{operation}'. Choose from: {', '.join(operations)}") from None
        return handler(base, *args)

    def preview_scheduler(
        self,
        on_result: Callable[[RasterBuffer], None],
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> PreviewScheduler:
        """Build a scheduler whose requests are ``(operation, base, *args)``."""

        return PreviewScheduler(
            self.render_operation,
            on_result,
            workers=self.settings.preview_workers,
            debounce_ms=self.settings.debounce_ms,
            on_error=on_error,
        )


__all__ = [
    "PhotoEditor",
    "apply_adjustments",
    "apply_beautify",
    "apply_lut_filter",
    "compose_collage_by_id",
    "crop",
    "flip",
    "rotate",
]
