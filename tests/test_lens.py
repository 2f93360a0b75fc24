import math

import numpy as np
import pytest

from liquidglass.cache import get_mesh_cache, release_mesh_cache
from liquidglass.config import get_settings
from liquidglass.errors import InvalidParameters
from liquidglass.lens import (
    build_optimized_mesh,
    build_uniform_mesh,
    build_uniform_mesh_centered,
    debug_grid_path,
)
from liquidglass.mesh import DepthNormalization
from liquidglass.params import DistortionParams

OPTIMIZED = dict(
    distortion_strength=0.5,
    width=300.0,
    height=80.0,
    corner_radius=40.0,
    corner_segments=6,
    backdrop_scale=1.0,
    distortion_padding=8.0,
    distortion_multiplier=1.0,
    distortion_exponent=2.0,
)


@pytest.fixture(autouse=True)
def fresh_cache():
    get_settings.cache_clear()
    release_mesh_cache()
    yield
    release_mesh_cache()
    get_settings.cache_clear()


def test_uniform_zero_strength_is_identity_grid():
    mesh = build_uniform_mesh(2, 0.0, (100.0, 100.0), 10.0)
    assert mesh.vertex_count == 9
    assert mesh.face_count == 8
    assert np.array_equal(mesh.to_points, mesh.from_points)
    assert set(mesh.from_points.ravel().tolist()) == {0.0, 0.5, 1.0}
    assert (mesh.vertices[:, 4] == 0.0).all()
    assert mesh.depth_normalization is DepthNormalization.VERTEX


def test_centered_mesh_pushes_left_edge_outward():
    mesh = build_uniform_mesh_centered(4, 0.5, (200.0, 100.0), (0.5, 0.5), 20.0)
    centre = mesh.vertex(2 * 5 + 2)
    assert centre.from_point == (0.5, 0.5)
    assert centre.to_point == centre.from_point

    left = mesh.vertex(2 * 5 + 0)
    assert left.from_point == (0.0, 0.5)
    assert left.to_point[0] < 0.0
    assert left.to_point[1] == 0.5


def test_centered_mesh_zero_strength_is_identity():
    mesh = build_uniform_mesh_centered(6, 0.0, (120.0, 60.0), (0.3, 0.7), 12.0)
    assert np.array_equal(mesh.to_points, mesh.from_points)


def test_negative_strength_is_clamped_to_zero():
    mesh = build_uniform_mesh(4, -1.0, (100.0, 50.0), 10.0)
    assert np.array_equal(mesh.to_points, mesh.from_points)


def test_optimized_mesh_is_cached_once():
    first = build_optimized_mesh(**OPTIMIZED)
    assert len(get_mesh_cache()) == 1
    second = build_optimized_mesh(**OPTIMIZED)
    assert second is first
    assert len(get_mesh_cache()) == 1


def test_optimized_mesh_accepts_model_and_mapping():
    params = DistortionParams(**OPTIMIZED)
    from_model = build_optimized_mesh(params)
    camel = {
        "distortionStrength": 0.5,
        "width": 300.0,
        "height": 80.0,
        "cornerRadius": 40.0,
        "cornerSegments": 6,
        "backdropScale": 1.0,
        "distortionPadding": 8.0,
        "distortionMultiplier": 1.0,
        "distortionExponent": 2.0,
    }
    assert build_optimized_mesh(camel) is from_model


def test_optimized_mesh_is_reproducible_across_builds():
    first = build_optimized_mesh(**OPTIMIZED)
    release_mesh_cache()
    second = build_optimized_mesh(**OPTIMIZED)
    assert second is not first
    assert first.vertices.tobytes() == second.vertices.tobytes()
    assert first.faces.tobytes() == second.faces.tobytes()


def test_nearby_parameters_share_a_cache_entry():
    first = build_optimized_mesh(**OPTIMIZED)
    nudged = dict(OPTIMIZED, distortion_strength=0.5 + 1e-9, width=300.0 - 1e-10)
    assert build_optimized_mesh(**nudged) is first
    assert len(get_mesh_cache()) == 1


def test_orientation_gives_distinct_entries():
    build_optimized_mesh(**OPTIMIZED)
    build_optimized_mesh(**dict(OPTIMIZED, width=80.0, height=300.0))
    assert len(get_mesh_cache()) == 2


def test_optimized_faces_reference_valid_vertices():
    mesh = build_optimized_mesh(**OPTIMIZED)
    assert mesh.faces.max() < mesh.vertex_count
    points = mesh.from_points
    a, b, c = (points[mesh.faces[:, k]] for k in range(3))
    areas = (b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0])
    assert (areas > 0).all()


@pytest.mark.parametrize(
    "overrides",
    [
        {"width": 0.0},
        {"height": -3.0},
        {"grid_size": 1},
        {"corner_segments": 0},
        {"distortion_exponent": 0.0},
        {"distortion_strength": math.nan},
        {"width": math.inf},
        {"unknown_field": 1.0},
    ],
)
def test_invalid_parameters_are_rejected_and_not_cached(overrides):
    with pytest.raises(InvalidParameters):
        build_optimized_mesh(**dict(OPTIMIZED, **overrides))
    assert len(get_mesh_cache()) == 0


def test_invalid_uniform_parameters():
    with pytest.raises(InvalidParameters):
        build_uniform_mesh(1, 0.5, (100.0, 100.0), 10.0)
    with pytest.raises(InvalidParameters):
        build_uniform_mesh(4, 0.5, (100.0, 0.0), 10.0)
    with pytest.raises(InvalidParameters):
        build_uniform_mesh(4, 0.5, (100.0,), 10.0)


def test_uniform_mesh_is_point_symmetric():
    n = 10
    mesh = build_uniform_mesh_centered(n, 0.5, (200.0, 100.0), (0.5, 0.5), 30.0)
    count = mesh.vertex_count
    to_points = mesh.to_points
    for index in range(count):
        mirror = count - 1 - index
        assert np.allclose(mesh.from_points[index] + mesh.from_points[mirror], 1.0, atol=1e-12)
        assert np.allclose(to_points[index] + to_points[mirror], 1.0, atol=1e-9)


def test_optimized_mesh_is_point_symmetric():
    mesh = build_optimized_mesh(**OPTIMIZED)
    source = mesh.from_points
    target = mesh.to_points
    gap = np.abs(source[np.newaxis, :, :] - (1.0 - source)[:, np.newaxis, :]).max(axis=-1)
    mirror = gap.argmin(axis=1)
    assert (gap[np.arange(len(source)), mirror] < 1e-9).all()
    assert np.allclose(target + target[mirror], 1.0, atol=1e-9)


def test_doubling_strength_doubles_displacement():
    weak = build_optimized_mesh(**dict(OPTIMIZED, distortion_strength=0.25))
    strong = build_optimized_mesh(**dict(OPTIMIZED, distortion_strength=0.5))
    weak_delta = weak.to_points - weak.from_points
    strong_delta = strong.to_points - strong.from_points
    assert np.abs(strong_delta).max() > 0
    assert np.allclose(strong_delta, 2.0 * weak_delta, atol=1e-12)

    uniform_weak = build_uniform_mesh(8, 0.3, (160.0, 90.0), 25.0)
    uniform_strong = build_uniform_mesh(8, 0.6, (160.0, 90.0), 25.0)
    assert np.allclose(
        uniform_strong.to_points - uniform_strong.from_points,
        2.0 * (uniform_weak.to_points - uniform_weak.from_points),
        atol=1e-12,
    )


def test_mesh_buffers_are_read_only():
    mesh = build_optimized_mesh(**OPTIMIZED)
    with pytest.raises(ValueError):
        mesh.vertices[0, 2] = 5.0
    with pytest.raises(ValueError):
        mesh.faces[0, 0] = 1


def test_buffer_layout():
    mesh = build_uniform_mesh(2, 0.0, (100.0, 100.0), 10.0)
    buffers = mesh.to_buffers()
    assert buffers["vertexCount"] == 9
    assert buffers["faceCount"] == 8
    assert buffers["depthNormalization"] == "vertex"
    assert buffers["vertices"][4] == {"fromX": 0.5, "fromY": 0.5, "toX": 0.5, "toY": 0.5, "z": 0.0}
    assert buffers["faces"][0] == [0, 1, 4]


def test_debug_grid_path_traces_undistorted_grid():
    path = debug_grid_path(3, 0.0, (100.0, 100.0), 0.0)
    assert len(path) == 8
    rows, columns = path.polylines[:4], path.polylines[4:]
    for j, row in enumerate(rows):
        assert len(row) == 4
        for i, point in enumerate(row):
            assert point == pytest.approx((i * 100.0 / 3.0, j * 100.0 / 3.0))
    for i, column in enumerate(columns):
        for j, point in enumerate(column):
            assert point == pytest.approx((i * 100.0 / 3.0, j * 100.0 / 3.0))
    assert len(list(path.segments())) == 24


def test_debug_grid_path_is_pure():
    first = debug_grid_path(6, 0.5, (180.0, 60.0), 30.0)
    second = debug_grid_path(6, 0.5, (180.0, 60.0), 30.0)
    assert first == second
    assert len(get_mesh_cache()) == 0
