"""Vertex lattices and triangle connectivity for the lens mesh.

Two schemes are provided:

* :func:`uniform_topology` - a regular ``N x N`` grid.
* :func:`adaptive_topology` - concentric rectangular rings that are dense at
  the outer frame and around the rounded corners and get sparser toward the
  centre, where the lens field is flat.

Both return points in normalised ``[0, 1]`` coordinates and faces whose
``from``-space signed area is positive (``cross(b - a, c - a) > 0`` with y
pointing down), so the winding is the same for every triangle of either
scheme.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import numpy.typing as npt

from .params import DistortionParams

# Adaptive ring schedule. Ring 0 is the unit-square frame. Inner ring k >= 1
# is inset by ``band * 2 ** (k - 2)`` bounds units (band/2, band, 2*band, ...)
# where ``band = max(distortion_padding, min(w, h) / MIN_BAND_DIVISOR)``.
# Rings stop once the inset would reach ``CENTER_PATCH_RATIO * min(w, h) / 2``
# or MAX_RINGS rings exist; the innermost ring is closed by a fan to the
# centre vertex. Ring k samples each corner zone with
# ``max(1, corner_segments >> k)`` points and the straight part of each side
# with spacing ``min(w, h) / EDGE_STEP_DIVISOR * 2 ** k``.
MIN_BAND_DIVISOR = 64.0
CENTER_PATCH_RATIO = 0.8
MAX_RINGS = 16
EDGE_STEP_DIVISOR = 8.0

# Corner zones shorter than this fraction of their side are dropped.
_ZONE_EPSILON = 1e-6


@dataclass(frozen=True, eq=False)
class Topology:
    """Undistorted sampling lattice plus the triangles over it."""

    points: npt.NDArray[np.float64]
    faces: npt.NDArray[np.uint32]

    @property
    def vertex_count(self) -> int:
        return int(self.points.shape[0])

    @property
    def face_count(self) -> int:
        return int(self.faces.shape[0])


def uniform_topology(grid_size: int) -> Topology:
    """Regular lattice of ``(N + 1) ** 2`` vertices, row-major ``j * (N + 1) + i``."""

    n = int(grid_size)
    cols = n + 1
    steps = np.arange(cols, dtype=np.float64) / n
    ys, xs = np.meshgrid(steps, steps, indexing="ij")
    points = np.stack([xs.ravel(), ys.ravel()], axis=-1)

    j, i = np.meshgrid(np.arange(n), np.arange(n), indexing="ij")
    v00 = (j * cols + i).ravel()
    v10 = v00 + 1
    v01 = v00 + cols
    v11 = v01 + 1
    cells = np.stack(
        [np.stack([v00, v10, v11], axis=-1), np.stack([v00, v11, v01], axis=-1)],
        axis=1,
    )
    faces = cells.reshape(-1, 3).astype(np.uint32)
    return Topology(points=points, faces=faces)


def _side_offsets(side_length: float, corner_zone: float, corner_segments: int, edge_step: float) -> List[float]:
    """Sample positions along one side, from its start corner up to (not including) its end corner."""

    if corner_zone < _ZONE_EPSILON * side_length:
        corner_zone = 0.0
    offsets: List[float] = []
    if corner_zone > 0.0:
        offsets.extend(corner_zone * k / corner_segments for k in range(corner_segments))
    middle = side_length - 2.0 * corner_zone
    if middle > _ZONE_EPSILON * side_length:
        count = max(1, int(math.ceil(middle / edge_step)))
        offsets.extend(corner_zone + middle * k / count for k in range(count))
    if corner_zone > 0.0:
        start = side_length - corner_zone
        offsets.extend(start + corner_zone * k / corner_segments for k in range(corner_segments))
    return offsets


def _ring(
    width: float,
    height: float,
    inset: float,
    radius: float,
    corner_segments: int,
    edge_step: float,
) -> Tuple[List[Tuple[float, float]], List[float]]:
    """Points of one rectangular ring (bounds units) and their loop parameters.

    The loop starts at the top-left corner and walks top, right, bottom, left.
    The parameter of a point is ``side + offset / side_length`` so corners of
    every ring sit on integer parameters.
    """

    x0, y0 = inset, inset
    x1, y1 = width - inset, height - inset
    horizontal = x1 - x0
    vertical = y1 - y0
    zone = max(radius - inset, 0.0)

    points: List[Tuple[float, float]] = []
    params: List[float] = []
    sides = (
        (horizontal, lambda o: (x0 + o, y0)),
        (vertical, lambda o: (x1, y0 + o)),
        (horizontal, lambda o: (x1 - o, y1)),
        (vertical, lambda o: (x0, y1 - o)),
    )
    for index, (side_length, place) in enumerate(sides):
        for offset in _side_offsets(side_length, min(zone, side_length / 2.0), corner_segments, edge_step):
            points.append(place(offset))
            params.append(index + offset / side_length)
    return points, params


def _ring_insets(width: float, height: float, padding: float) -> List[float]:
    short = min(width, height)
    band = max(padding, short / MIN_BAND_DIVISOR)
    limit = CENTER_PATCH_RATIO * short / 2.0
    insets = [0.0]
    inset = band / 2.0
    while inset < limit and len(insets) < MAX_RINGS:
        insets.append(inset)
        inset *= 2.0
    return insets


def _stitch(
    outer: range,
    outer_params: List[float],
    inner: range,
    inner_params: List[float],
) -> List[Tuple[int, int, int]]:
    """Triangulate the band between two closed rings.

    Walks both loops by parameter, always advancing the ring whose next
    vertex comes first (the outer ring on ties). Extra outer vertices thus
    fan onto a shared inner vertex and vice versa.
    """

    n, m = len(outer), len(inner)
    pa = outer_params + [4.0]
    pb = inner_params + [4.0]
    faces: List[Tuple[int, int, int]] = []
    i = j = 0
    while i < n or j < m:
        a, b = outer[i % n], inner[j % m]
        if i < n and (j >= m or pa[i + 1] <= pb[j + 1]):
            faces.append((a, outer[(i + 1) % n], b))
            i += 1
        else:
            faces.append((a, inner[(j + 1) % m], b))
            j += 1
    return faces


def adaptive_topology(params: DistortionParams) -> Topology:
    """Ring topology that is dense at the frame and corners, sparse at the centre.

    Vertex order is ring 0 (the frame), ring 1, ..., then the centre vertex.
    Face order is ring 0/1 band, ring 1/2 band, ..., then the centre fan.
    Both orders depend only on *params*.
    """

    width, height = params.width, params.height
    radius = params.radius
    base_step = min(width, height) / EDGE_STEP_DIVISOR

    points: List[Tuple[float, float]] = []
    faces: List[Tuple[int, int, int]] = []
    previous = None
    for k, inset in enumerate(_ring_insets(width, height, params.distortion_padding)):
        ring_points, ring_params = _ring(
            width,
            height,
            inset,
            radius,
            max(1, params.corner_segments >> k),
            base_step * (2 ** k),
        )
        indices = range(len(points), len(points) + len(ring_points))
        points.extend(ring_points)
        if previous is not None:
            faces.extend(_stitch(previous[0], previous[1], indices, ring_params))
        previous = (indices, ring_params)

    center = len(points)
    points.append((width / 2.0, height / 2.0))
    ring = previous[0]
    faces.extend((ring[k], ring[(k + 1) % len(ring)], center) for k in range(len(ring)))

    normalized = np.asarray(points, dtype=np.float64) / np.array([width, height])
    return Topology(points=normalized, faces=np.asarray(faces, dtype=np.uint32))


__all__ = ["Topology", "adaptive_topology", "uniform_topology"]
