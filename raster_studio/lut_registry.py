"""Catalogue of named LUT filters and the cache of their decoded atlases.

Example Usage
-------------

    from raster_studio.lut_registry import LutRegistry

    registry = LutRegistry()                 # stock looks generated in memory
    graded = registry.apply_filter(buffer, "warm", 0.75)

    registry = LutRegistry(Path("luts"))     # atlases read from luts/<id>.png
    registry.preload()

A registry is an ordinary object owned by whoever constructs it; there is no
process-wide instance.  Missing or corrupt atlases never fail a caller: the
problem is logged once per lookup and the source buffer is returned as-is.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import InvalidLutAtlasError
from .lut import LUT_GRADES, LutCube, apply_lut, build_lut_cube, load_lut_cube
from .raster import RasterBuffer

LOGGER = logging.getLogger("raster_studio")

IDENTITY_LUT_ID = "identity"


@dataclass(frozen=True)
class LutFilter:
    """Metadata for one selectable filter.

    Attributes:
        lut_id: Stable identifier, also the stem of the atlas file.
        name: Display name.
        file_name: Atlas file name relative to the registry directory.
        category: Grouping used by pickers (basic, color, artistic, professional).
        default_intensity: Suggested strength in percent.
    """

    lut_id: str
    name: str
    file_name: str
    category: str
    default_intensity: int

    @property
    def default_strength(self) -> float:
        return self.default_intensity / 100.0


LUT_FILTERS: Tuple[LutFilter, ...] = (
    LutFilter("identity", "Original", "identity.png", "basic", 100),
    LutFilter("grayscale", "Monochrome", "grayscale.png", "basic", 80),
    LutFilter("warm", "Warm Sun", "warm.png", "color", 75),
    LutFilter("cool", "Cool", "cool.png", "color", 75),
    LutFilter("vintage", "Vintage", "vintage.png", "artistic", 70),
    LutFilter("vivid", "Vivid", "vivid.png", "artistic", 80),
    LutFilter("romantic", "Romantic", "romantic.png", "artistic", 75),
    LutFilter("cinematic", "Cinematic", "cinematic.png", "professional", 85),
)


class LutRegistry:
    """Owns the filter catalogue and lazily decoded :class:`LutCube` objects.

    Args:
        lut_dir: Directory holding ``<lut_id>.png`` atlases.  When ``None`` the
            stock looks are generated procedurally on first use.
        filters: Catalogue override, mostly useful in tests.
    """

    def __init__(self, lut_dir: Optional[Path] = None, filters: Tuple[LutFilter, ...] = LUT_FILTERS) -> None:
        self.lut_dir = Path(lut_dir) if lut_dir is not None else None
        self._filters: Dict[str, LutFilter] = {entry.lut_id: entry for entry in filters}
        self._cache: Dict[str, LutCube] = {}
        self._lock = threading.Lock()

    def filters(self, category: Optional[str] = None) -> List[LutFilter]:
        """Return catalogue entries in display order, optionally by category."""

        entries = list(self._filters.values())
        if category is None:
            return entries
        return [entry for entry in entries if entry.category == category]

    def get(self, lut_id: str) -> Optional[LutFilter]:
        return self._filters.get(lut_id)

    def __contains__(self, lut_id: object) -> bool:
        return lut_id in self._filters

    def cube_for(self, lut_id: str) -> Optional[LutCube]:
        """Return the decoded cube for ``lut_id`` or ``None`` when unavailable.

        Successful loads are cached; failures are not, so a repaired file is
        picked up on the next call.
        """

        entry = self._filters.get(lut_id)
        if entry is None:
            LOGGER.warning("Unknown LUT filter '%s'", lut_id)
            return None
        with self._lock:
            cube = self._cache.get(lut_id)
        if cube is not None:
            return cube
        cube = self._load(entry)
        if cube is None:
            return None
        with self._lock:
            return self._cache.setdefault(lut_id, cube)

    def _load(self, entry: LutFilter) -> Optional[LutCube]:
        if self.lut_dir is None:
            if entry.lut_id not in LUT_GRADES:
                LOGGER.warning("No stock look for LUT '%s', using identity", entry.lut_id)
                return None
            LOGGER.debug("Generating LUT atlas for '%s'", entry.lut_id)
            return build_lut_cube(entry.lut_id)
        path = self.lut_dir / entry.file_name
        try:
            return load_lut_cube(path)
        except (OSError, InvalidLutAtlasError) as exc:
            LOGGER.warning("LUT atlas %s unavailable, using identity: %s", path, exc)
            return None

    def apply_filter(self, buffer: RasterBuffer, lut_id: str, intensity: float) -> RasterBuffer:
        """Grade ``buffer`` with the filter ``lut_id`` at ``intensity`` (0-1).

        The identity filter, a non-positive intensity, an unknown id and an
        unreadable atlas all return ``buffer`` itself.
        """

        if lut_id == IDENTITY_LUT_ID or intensity <= 0:
            return buffer
        cube = self.cube_for(lut_id)
        if cube is None:
            return buffer
        return apply_lut(buffer, cube, intensity)

    def preload(self) -> int:
        """Decode every non-identity atlas now; returns how many are cached."""

        for lut_id in self._filters:
            if lut_id != IDENTITY_LUT_ID:
                self.cube_for(lut_id)
        with self._lock:
            return len(self._cache)

    def release(self) -> None:
        """Drop every cached atlas."""

        with self._lock:
            self._cache.clear()

    def cached_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._cache)


__all__ = [
    "IDENTITY_LUT_ID",
    "LUT_FILTERS",
    "LutFilter",
    "LutRegistry",
]
