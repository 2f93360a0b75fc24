"""Public entry points for building lens distortion meshes.

Parameters are validated here, once; everything below assumes well-formed
input. Invalid input raises :class:`~liquidglass.errors.InvalidParameters`
and never reaches the cache.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple

from .cache import MeshCache, get_mesh_cache
from .errors import InvalidParameters
from .mesh import Mesh, assemble_mesh
from .params import DistortionParams, ParamsLike, coerce_params
from .topology import adaptive_topology, uniform_topology

Point = Tuple[float, float]
Polyline = Tuple[Point, ...]


@dataclass(frozen=True)
class PolylineSet:
    """Distorted grid lines in bounds-space points: rows first, then columns."""

    polylines: Tuple[Polyline, ...]

    def __len__(self) -> int:
        return len(self.polylines)

    def __iter__(self) -> Iterator[Polyline]:
        return iter(self.polylines)

    def segments(self) -> Iterator[Tuple[Point, Point]]:
        for line in self.polylines:
            yield from zip(line, line[1:])


def _uniform_params(
    grid_size: int,
    strength: float,
    bounds: Tuple[float, float],
    center: Tuple[float, float],
    corner_radius: float,
) -> DistortionParams:
    try:
        width, height = bounds
        center_x, center_y = center
    except (TypeError, ValueError) as exc:
        raise InvalidParameters("bounds and center must be (x, y) pairs") from exc
    return coerce_params(
        grid_size=grid_size,
        distortion_strength=strength,
        width=width,
        height=height,
        center_x=center_x,
        center_y=center_y,
        corner_radius=corner_radius,
    )


def build_uniform_mesh_centered(
    grid_size: int,
    strength: float,
    bounds: Tuple[float, float],
    center: Tuple[float, float],
    corner_radius: float,
) -> Mesh:
    """Uncached ``N x N`` lens mesh with an explicit distortion centre."""

    params = _uniform_params(grid_size, strength, bounds, center, corner_radius)
    return assemble_mesh(uniform_topology(params.grid_size), params)


def build_uniform_mesh(
    grid_size: int,
    strength: float,
    bounds: Tuple[float, float],
    corner_radius: float,
) -> Mesh:
    """Uncached ``N x N`` lens mesh centred on the bounds."""

    return build_uniform_mesh_centered(grid_size, strength, bounds, (0.5, 0.5), corner_radius)


def build_optimized_mesh(
    params: Optional[ParamsLike] = None,
    *,
    cache: Optional[MeshCache] = None,
    **fields: Any,
) -> Mesh:
    """Adaptive-topology lens mesh, memoised by quantised parameters.

    Repeated calls with equivalent parameters return the same :class:`Mesh`
    object until it is evicted.
    """

    params = coerce_params(params, **fields)
    cache = cache if cache is not None else get_mesh_cache()
    key = cache.key_for(params)
    return cache.get_or_build(key, lambda: assemble_mesh(adaptive_topology(params), params))


def debug_grid_path(
    grid_size: int,
    strength: float,
    bounds: Tuple[float, float],
    corner_radius: float,
) -> PolylineSet:
    """Grid lines of the uniform mesh after distortion, for drawing over the view."""

    mesh = build_uniform_mesh(grid_size, strength, bounds, corner_radius)
    cols = math.isqrt(mesh.vertex_count)
    width, height = float(bounds[0]), float(bounds[1])
    grid = (mesh.to_points * (width, height)).reshape(cols, cols, 2).tolist()

    rows = tuple(tuple((x, y) for x, y in grid[j]) for j in range(cols))
    columns = tuple(tuple((grid[j][i][0], grid[j][i][1]) for j in range(cols)) for i in range(cols))
    return PolylineSet(polylines=rows + columns)


__all__ = [
    "PolylineSet",
    "build_optimized_mesh",
    "build_uniform_mesh",
    "build_uniform_mesh_centered",
    "debug_grid_path",
]
