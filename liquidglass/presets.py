"""Glass configuration catalog served to hosts."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

from .backdrop import GlassConfiguration


class GlassPreset(TypedDict):
    id: str
    name: str
    description: str
    configuration: Dict[str, Any]


GLASS_PRESETS: List[GlassPreset] = [
    {
        "id": "panel",
        "name": "Glass Panel",
        "description": "Blurred panel with a pronounced lens rim, used for floating containers.",
        "configuration": {
            "cornerRadius": 30.0,
            "blurIntensity": 8.0,
            "lensDistortionStrength": 0.5,
            "cornerSegments": 18,
            "distortionPadding": 2.2,
            "distortionMultiplier": 4.5,
            "distortionExponent": 5.0,
        },
    },
    {
        "id": "tab-caret",
        "name": "Tab Bar Caret",
        "description": "Unblurred pill that magnifies the selected tab; corner radius is half the caret height.",
        "configuration": {
            "cornerRadius": 20.0,
            "blurIntensity": 0.0,
            "lensDistortionStrength": 0.06,
            "cornerSegments": 18,
            "distortionPadding": 2.2,
            "distortionMultiplier": 4.5,
            "distortionExponent": 3.0,
        },
    },
    {
        "id": "slider-knob",
        "name": "Slider Knob",
        "description": "Small rounded knob with a tight, steep edge falloff.",
        "configuration": {
            "cornerRadius": 12.0,
            "blurIntensity": 0.0,
            "lensDistortionStrength": 0.05,
            "cornerSegments": 18,
            "distortionPadding": 2.2,
            "distortionMultiplier": 4.5,
            "distortionExponent": 5.0,
        },
    },
]


def find_preset(preset_id: str) -> Optional[GlassConfiguration]:
    """Return the configuration of a catalog entry, or ``None`` if unknown."""

    for preset in GLASS_PRESETS:
        if preset["id"] == preset_id:
            return GlassConfiguration.model_validate(preset["configuration"])
    return None


__all__ = ["GLASS_PRESETS", "GlassPreset", "find_preset"]
