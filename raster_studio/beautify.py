"""One-tap beautify effects and their display metadata."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict

from .auto_enhance import apply_auto_enhance
from .convolution import sharpen
from .raster import RasterBuffer
from .vignette import vignette


class BeautifyEffect(enum.Enum):
    AUTO_ENHANCE = "auto_enhance"
    SHARPEN = "sharpen"
    VIGNETTE = "vignette"

    @classmethod
    def parse(cls, value: "BeautifyEffect | str") -> "BeautifyEffect":
        """Accept an effect, its value or its name in any case."""

        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown beautify effect '{value}'. Choose from: {', '.join(e.value for e in cls)}"
            ) from None


@dataclass(frozen=True)
class EffectInfo:
    icon: str
    name: str
    default_intensity: float

    @property
    def default_intensity_percent(self) -> int:
        return int(self.default_intensity * 100)


EFFECT_INFO: Dict[BeautifyEffect, EffectInfo] = {
    BeautifyEffect.AUTO_ENHANCE: EffectInfo("⚡", "Auto Enhance", 0.8),
    BeautifyEffect.SHARPEN: EffectInfo("\U0001f50d", "Sharpen", 0.6),
    BeautifyEffect.VIGNETTE: EffectInfo("\U0001f3ad", "Vignette", 0.7),
}


def apply_beautify(buffer: RasterBuffer, effect: BeautifyEffect | str, intensity: float) -> RasterBuffer:
    """Run ``effect`` on ``buffer`` at ``intensity`` (0-1)."""

    effect = BeautifyEffect.parse(effect)
    if effect is BeautifyEffect.AUTO_ENHANCE:
        return apply_auto_enhance(buffer, intensity)
    if effect is BeautifyEffect.SHARPEN:
        return sharpen(buffer, intensity)
    if effect is BeautifyEffect.VIGNETTE:
        return vignette(buffer, intensity)
    raise AssertionError(f"Unhandled beautify effect {effect!r}")


__all__ = ["BeautifyEffect", "EFFECT_INFO", "EffectInfo", "apply_beautify"]
