"""Backdrop filter descriptions and the glass view configuration.

Nothing here blurs anything: a host adapter reads the filter chain and builds
its own backdrop layer from it.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .params import DEFAULT_CORNER_SEGMENTS, DEFAULT_DISTORTION_PADDING, DistortionParams, coerce_params


class BackdropFilters(BaseModel):
    """Blur and colour adjustment applied to the sampled backdrop."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False, alias_generator=to_camel, populate_by_name=True)

    blur_radius: float = Field(8.0, ge=0)
    saturation: float = 1.0
    brightness: float = 0.0
    bleed_amount: float = Field(10.0, ge=0)

    def filter_chain(self) -> List[Dict[str, Any]]:
        """Filters in application order; neutral colour filters are omitted."""

        chain: List[Dict[str, Any]] = [
            {"type": "gaussianBlur", "name": "gaussianBlur", "inputRadius": self.blur_radius},
        ]
        if self.saturation != 1.0:
            chain.append({"type": "colorSaturate", "name": "colorSaturate", "inputAmount": self.saturation})
        if self.brightness != 0.0:
            chain.append({"type": "colorBrightness", "name": "colorBrightness", "inputAmount": self.brightness})
        return chain


class GlassConfiguration(BaseModel):
    """Appearance of one glass surface: backdrop filters plus lens parameters."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False, alias_generator=to_camel, populate_by_name=True)

    corner_radius: float = Field(..., ge=0)
    blur_intensity: float = Field(8.0, ge=0)
    lens_distortion_strength: float = 0.5
    saturation: Optional[float] = 1.0
    brightness: Optional[float] = 0.0
    corner_segments: int = Field(DEFAULT_CORNER_SEGMENTS, ge=1)
    visual_zoom: float = 1.0
    bleed_amount: Optional[float] = 10.0
    distortion_padding: float = DEFAULT_DISTORTION_PADDING
    distortion_multiplier: float = 4.5
    distortion_exponent: float = Field(5.0, gt=0)

    def backdrop_filters(self) -> BackdropFilters:
        return BackdropFilters(
            blur_radius=self.blur_intensity,
            saturation=1.0 if self.saturation is None else self.saturation,
            brightness=0.0 if self.brightness is None else self.brightness,
            bleed_amount=0.0 if self.bleed_amount is None else self.bleed_amount,
        )

    def distortion_params(self, width: float, height: float) -> DistortionParams:
        """Lens mesh parameters for a surface of the given size.

        Raises :class:`~liquidglass.errors.InvalidParameters` for empty bounds.
        """
        return coerce_params(
            width=width,
            height=height,
            corner_radius=self.corner_radius,
            distortion_strength=self.lens_distortion_strength,
            corner_segments=self.corner_segments,
            backdrop_scale=self.visual_zoom,
            distortion_padding=self.distortion_padding,
            distortion_multiplier=self.distortion_multiplier,
            distortion_exponent=self.distortion_exponent,
        )


__all__ = ["BackdropFilters", "GlassConfiguration"]
