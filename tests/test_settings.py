from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from raster_studio.errors import SettingsError  # noqa: E402  # pylint: disable=wrong-import-position
from raster_studio.settings import EngineSettings, load_settings, settings_from_mapping  # noqa: E402


def test_defaults():
    settings = load_settings(None)

    assert settings == EngineSettings()
    assert settings.history_depth == 10
    assert settings.debounce_ms == 50
    assert settings.jpeg_quality == 95
    assert settings.lut_dir is None


def test_json_settings_with_hyphenated_keys(tmp_path: Path):
    path = tmp_path / "studio.json"
    path.write_text(
        json.dumps({"history-depth": 5, "collage_background": "#000000", "lut-dir": "luts"})
    )

    settings = load_settings(path)

    assert settings.history_depth == 5
    assert settings.collage_background == 0xFF000000
    assert settings.lut_dir == tmp_path / "luts"


def test_yaml_settings(tmp_path: Path):
    pytest.importorskip("yaml")
    path = tmp_path / "studio.yaml"
    path.write_text("preview_workers: 4\njpeg-quality: 80\n")

    settings = load_settings(path)

    assert settings.preview_workers == 4
    assert settings.jpeg_quality == 80


def test_empty_yaml_is_defaults(tmp_path: Path):
    pytest.importorskip("yaml")
    path = tmp_path / "empty.yml"
    path.write_text("")

    assert load_settings(path) == EngineSettings()


@pytest.mark.parametrize(
    "raw",
    [
        {"history_depth": 0},
        {"jpeg_quality": 101},
        {"debounce_ms": "fast"},
        {"preview_workers": True},
        {"collage_background": "not-a-colour"},
        {"undo_levels": 3},
    ],
)
def test_invalid_values_are_rejected(raw):
    with pytest.raises(SettingsError):
        settings_from_mapping(raw)


def test_missing_file(tmp_path: Path):
    with pytest.raises(SettingsError):
        load_settings(tmp_path / "absent.json")


def test_non_mapping_file(tmp_path: Path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]")

    with pytest.raises(SettingsError):
        load_settings(path)


def test_absolute_lut_dir_is_kept(tmp_path: Path):
    path = tmp_path / "studio.json"
    path.write_text(json.dumps({"lut_dir": str(tmp_path / "elsewhere")}))

    assert load_settings(path).lut_dir == tmp_path / "elsewhere"
