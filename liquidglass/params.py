"""Geometry parameters accepted by the mesh builders."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import InvalidParameters
from .geometry import effective_corner_radius

DEFAULT_DISTORTION_STRENGTH = 0.5
DEFAULT_CORNER_SEGMENTS = 18
DEFAULT_DISTORTION_PADDING = 2.2
DEFAULT_GRID_SIZE = 20


class DistortionParams(BaseModel):
    """Every input of the lens mesh. All fields enter the cache key."""

    model_config = ConfigDict(
        frozen=True,
        allow_inf_nan=False,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    corner_radius: float = 0.0
    distortion_strength: float = DEFAULT_DISTORTION_STRENGTH
    center_x: float = 0.5
    center_y: float = 0.5
    corner_segments: int = Field(DEFAULT_CORNER_SEGMENTS, ge=1)
    backdrop_scale: float = 1.0
    distortion_padding: float = DEFAULT_DISTORTION_PADDING
    distortion_multiplier: float = 1.0
    distortion_exponent: float = Field(2.0, gt=0)
    grid_size: int = Field(DEFAULT_GRID_SIZE, ge=2)

    @field_validator("distortion_strength")
    @classmethod
    def _clamp_strength(cls, value: float) -> float:
        return max(value, 0.0)

    @property
    def radius(self) -> float:
        """Corner radius clamped to half the shorter side."""
        return effective_corner_radius(self.width, self.height, self.corner_radius)


ParamsLike = Union[DistortionParams, Mapping[str, Any]]


def coerce_params(params: Optional[ParamsLike] = None, **fields: Any) -> DistortionParams:
    """Build a validated :class:`DistortionParams` from a model, a mapping or keywords.

    Keyword fields override values taken from *params*. Any validation
    failure is reported as :class:`InvalidParameters`.
    """

    if isinstance(params, DistortionParams) and not fields:
        return params
    if isinstance(params, DistortionParams):
        data = params.model_dump()
    elif params is None:
        data = {}
    elif isinstance(params, Mapping):
        data = dict(params)
    else:
        raise InvalidParameters(f"Unsupported parameter container: {type(params).__name__}")
    data.update(fields)
    try:
        return DistortionParams.model_validate(data)
    except ValidationError as exc:
        raise InvalidParameters(str(exc)) from exc


__all__ = [
    "DEFAULT_CORNER_SEGMENTS",
    "DEFAULT_DISTORTION_PADDING",
    "DEFAULT_DISTORTION_STRENGTH",
    "DEFAULT_GRID_SIZE",
    "DistortionParams",
    "ParamsLike",
    "coerce_params",
]
