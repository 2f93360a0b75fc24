"""2-D vector helpers and the rounded-rectangle signed distance field.

Point arrays have shape ``(..., 2)``; scalar results have shape ``(...,)``.
Everything broadcasts over leading batch dimensions so a whole vertex lattice
is evaluated in one call.
"""
from __future__ import annotations

from typing import Sequence, Union

import numpy as np
import numpy.typing as npt

FloatArray = npt.NDArray[np.float64]
Vector = Union[FloatArray, Sequence[float]]

# Central-difference step, in bounds units (points).
NORMAL_EPSILON = 1e-3


def vec2(x: Vector, y: Vector) -> FloatArray:
    """Stack *x* and *y* into a ``(..., 2)`` array."""
    x, y = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
    return np.stack([x, y], axis=-1)


def length(v: FloatArray) -> FloatArray:
    """Euclidean length along the last axis."""
    return np.linalg.norm(v, axis=-1)


def clamp(x: FloatArray, lo: float, hi: float) -> FloatArray:
    return np.minimum(np.maximum(x, lo), hi)


def effective_corner_radius(width: float, height: float, radius: float) -> float:
    """Clamp a corner radius into ``[0, min(width, height) / 2]``."""
    return float(min(max(radius, 0.0), min(width, height) / 2.0))


def sd_rounded_rect(p: Vector, half_extent: Vector, radius: float) -> FloatArray:
    """Signed distance from *p* to a rounded rectangle centred at the origin.

    Negative inside, zero on the boundary, positive outside::

        q  = |p| - (half_extent - r)
        sd = min(max(q.x, q.y), 0) + length(max(q, 0)) - r
    """
    p = np.asarray(p, dtype=np.float64)
    q = np.abs(p) - (np.asarray(half_extent, dtype=np.float64) - radius)
    inside = np.minimum(np.max(q, axis=-1), 0.0)
    outside = length(np.maximum(q, 0.0))
    return inside + outside - radius


def sd_rounded_rect_normal(
    p: Vector,
    half_extent: Vector,
    radius: float,
    eps: float = NORMAL_EPSILON,
) -> FloatArray:
    """Outward unit normal of the rounded rectangle field at *p*.

    The gradient is taken by central differences. Where it vanishes (the
    centre of a square, for instance) the normal is the zero vector.
    """
    p = np.asarray(p, dtype=np.float64)
    dx = np.array([eps, 0.0])
    dy = np.array([0.0, eps])
    gx = sd_rounded_rect(p + dx, half_extent, radius) - sd_rounded_rect(p - dx, half_extent, radius)
    gy = sd_rounded_rect(p + dy, half_extent, radius) - sd_rounded_rect(p - dy, half_extent, radius)
    gradient = np.stack([gx, gy], axis=-1)
    norm = length(gradient)[..., np.newaxis]
    return np.divide(gradient, norm, out=np.zeros_like(gradient), where=norm > 1e-12)


__all__ = [
    "FloatArray",
    "NORMAL_EPSILON",
    "clamp",
    "effective_corner_radius",
    "length",
    "sd_rounded_rect",
    "sd_rounded_rect_normal",
    "vec2",
]
