"""Lens distortion field: where each undistorted sample lands on the backdrop."""
from __future__ import annotations

import numpy as np

from .geometry import FloatArray, clamp, sd_rounded_rect, sd_rounded_rect_normal
from .params import DistortionParams


def falloff(distance: FloatArray, padding: float) -> FloatArray:
    """Map signed distance to ``[0, 1]``: 0 at ``-padding`` and deeper, 1 on the boundary and beyond.

    A non-positive *padding* collapses the ramp into a step at the boundary.
    """
    distance = np.asarray(distance, dtype=np.float64)
    if padding <= 0.0:
        return np.where(distance >= 0.0, 1.0, 0.0)
    return clamp((distance + padding) / padding, 0.0, 1.0)


def displacement(points: FloatArray, params: DistortionParams) -> FloatArray:
    """Normalised displacement of each point in *points* (shape ``(n, 2)``)."""

    size = np.array([params.width, params.height], dtype=np.float64)
    center = np.array([params.center_x, params.center_y], dtype=np.float64)
    half_extent = size / 2.0
    radius = params.radius

    local = (np.asarray(points, dtype=np.float64) - center) * size
    distance = sd_rounded_rect(local, half_extent, radius)
    t = falloff(distance, params.distortion_padding)
    gain = np.power(t, params.distortion_exponent) * params.distortion_multiplier * params.distortion_strength
    normal = sd_rounded_rect_normal(local, half_extent, radius)
    return (gain[..., np.newaxis] * normal) / size * params.backdrop_scale


def distort_points(points: FloatArray, params: DistortionParams) -> FloatArray:
    """Return ``to = from + displacement(from)`` for every point."""
    points = np.asarray(points, dtype=np.float64)
    return points + displacement(points, params)


__all__ = ["displacement", "distort_points", "falloff"]
