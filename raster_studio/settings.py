"""Engine-wide tunables and their JSON/YAML loader."""
from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

try:  # pragma: no cover - optional dependency
    import yaml
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None

from .errors import SettingsError
from .raster import parse_hex_color

LOGGER = logging.getLogger("raster_studio")


@dataclasses.dataclass(frozen=True)
class EngineSettings:
    """Knobs shared by the editor session, the scheduler and the CLI.

    Attributes:
        history_depth: Maximum number of undo snapshots.
        debounce_ms: Quiet period before a preview render starts.
        preview_workers: Threads in the preview pool.
        lut_dir: Directory with LUT atlases; ``None`` generates them in memory.
        jpeg_quality: Quality used when exporting JPEG files.
        collage_spacing: Default gap between collage frames, in pixels.
        collage_background: Default collage canvas colour as ``0xAARRGGBB``.
    """

    history_depth: int = 10
    debounce_ms: int = 50
    preview_workers: int = 2
    lut_dir: Optional[Path] = None
    jpeg_quality: int = 95
    collage_spacing: int = 4
    collage_background: int = 0xFFFFFFFF

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        def ensure_range(name: str, value: Any, minimum: int, maximum: int) -> None:
            if isinstance(value, bool) or not isinstance(value, int):
                raise SettingsError(f"{name} must be an integer, got {value!r}")
            if not (minimum <= value <= maximum):
                raise SettingsError(f"{name} must be between {minimum} and {maximum}, got {value}")

        ensure_range("history_depth", self.history_depth, 1, 1000)
        ensure_range("debounce_ms", self.debounce_ms, 0, 10_000)
        ensure_range("preview_workers", self.preview_workers, 1, 64)
        ensure_range("jpeg_quality", self.jpeg_quality, 1, 100)
        ensure_range("collage_spacing", self.collage_spacing, 0, 10_000)
        ensure_range("collage_background", self.collage_background, 0, 0xFFFFFFFF)
        if self.lut_dir is not None and not isinstance(self.lut_dir, Path):
            object.__setattr__(self, "lut_dir", Path(self.lut_dir))


def _parse_color(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return parse_hex_color(value)
        except ValueError:
            raise SettingsError(f"collage_background is not a hex colour: {value!r}") from None
    return value


def _read_mapping(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise SettingsError(f"Settings file not found: {path}")
    suffix = path.suffix.lower()
    try:
        if suffix in {".yaml", ".yml"}:
            if yaml is None:
                raise SettingsError("YAML settings files require the optional 'pyyaml' dependency")
            data = yaml.safe_load(path.read_text())
        else:
            data = json.loads(path.read_text())
    except SettingsError:
        raise
    except Exception as exc:  # pragma: no cover - exact exception varies by backend
        raise SettingsError(f"Unable to parse settings file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise SettingsError(f"Settings file {path} must contain a mapping of option names to values")
    return data


def settings_from_mapping(raw: Mapping[str, Any], base: Optional[EngineSettings] = None) -> EngineSettings:
    """Overlay ``raw`` (hyphen or underscore keys) on ``base`` or the defaults."""

    known = {field.name for field in dataclasses.fields(EngineSettings)}
    values: dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            raise SettingsError("Settings keys must be strings")
        name = key.replace("-", "_")
        if name not in known:
            raise SettingsError(f"Unknown setting '{key}'. Known settings: {', '.join(sorted(known))}")
        values[name] = value
    if "collage_background" in values:
        values["collage_background"] = _parse_color(values["collage_background"])
    if values.get("lut_dir") is not None:
        values["lut_dir"] = Path(values["lut_dir"])
    return dataclasses.replace(base or EngineSettings(), **values)


def load_settings(path: Optional[Path]) -> EngineSettings:
    """Read settings from a ``.json``, ``.yaml`` or ``.yml`` file.

    ``None`` returns the defaults.  Relative ``lut_dir`` values resolve
    against the settings file's directory.

    Raises:
        SettingsError: If the file is missing, unparsable or invalid.
    """

    if path is None:
        return EngineSettings()
    path = Path(path)
    settings = settings_from_mapping(_read_mapping(path))
    if settings.lut_dir is not None and not settings.lut_dir.is_absolute():
        settings = dataclasses.replace(settings, lut_dir=path.parent / settings.lut_dir)
    LOGGER.debug("Loaded settings from %s: %s", path, settings)
    return settings


__all__ = ["EngineSettings", "load_settings", "settings_from_mapping"]
