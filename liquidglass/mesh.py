"""Immutable mesh produced from a topology and the lens field."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, NamedTuple, Tuple

import numpy as np
import numpy.typing as npt

from .distortion import distort_points
from .params import DistortionParams
from .topology import Topology


class DepthNormalization(str, Enum):
    VERTEX = "vertex"
    FACE = "face"
    NONE = "none"


class Vertex(NamedTuple):
    from_point: Tuple[float, float]
    to_point: Tuple[float, float]
    z: float


@dataclass(frozen=True, eq=False)
class Mesh:
    """Vertex buffer (columns ``fromX, fromY, toX, toY, z``) and triangle index buffer.

    Both buffers are read-only once the mesh exists; a published mesh is
    shared between every consumer that asks for the same parameters.
    """

    vertices: npt.NDArray[np.float64]
    faces: npt.NDArray[np.uint32]
    depth_normalization: DepthNormalization = DepthNormalization.VERTEX

    def __post_init__(self) -> None:
        self.vertices.setflags(write=False)
        self.faces.setflags(write=False)

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def face_count(self) -> int:
        return int(self.faces.shape[0])

    @property
    def from_points(self) -> npt.NDArray[np.float64]:
        return self.vertices[:, 0:2]

    @property
    def to_points(self) -> npt.NDArray[np.float64]:
        return self.vertices[:, 2:4]

    def vertex(self, index: int) -> Vertex:
        fx, fy, tx, ty, z = (float(value) for value in self.vertices[index])
        return Vertex(from_point=(fx, fy), to_point=(tx, ty), z=z)

    def to_buffers(self) -> Dict[str, Any]:
        """Plain-data buffer layout handed to a host adapter."""

        return {
            "vertexCount": self.vertex_count,
            "vertices": [
                {"fromX": fx, "fromY": fy, "toX": tx, "toY": ty, "z": z}
                for fx, fy, tx, ty, z in self.vertices.tolist()
            ],
            "faceCount": self.face_count,
            "faces": self.faces.tolist(),
            "depthNormalization": self.depth_normalization.value,
        }


def assemble_mesh(topology: Topology, params: DistortionParams) -> Mesh:
    """Run every lattice point through the lens field; faces pass through unchanged."""

    source = np.array(topology.points, dtype=np.float64)
    target = distort_points(source, params)
    depth = np.zeros((source.shape[0], 1), dtype=np.float64)
    vertices = np.hstack([source, target, depth])
    return Mesh(vertices=vertices, faces=np.array(topology.faces, dtype=np.uint32))


__all__ = ["DepthNormalization", "Mesh", "Vertex", "assemble_mesh"]
