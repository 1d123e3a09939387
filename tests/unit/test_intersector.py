import numpy as np
import pytest

from spherescan.core.intersector import MeshIntersector, RayHit
from spherescan.core.scene import MeshScene
from spherescan.examples.synthetic import build_scene


def _triangle_scene(z: float = 2.0, colored: bool = True) -> MeshScene:
    vertices = np.array([[-10.0, -10.0, z], [10.0, -10.0, z], [0.0, 10.0, z]], dtype=np.float32)
    faces = np.array([[0, 1, 2]], dtype=np.int64)
    colors = np.array([[255, 0, 0], [0, 255, 0], [0, 0, 255]], dtype=np.uint8) if colored else None
    return MeshScene(vertices, faces, colors)


def test_hit_point_distance_and_barycentric_color() -> None:
    inter = MeshIntersector(_triangle_scene())
    hit = inter.intersect(np.zeros(3), np.array([0.0, 0.0, 1.0]), 10.0)
    assert hit is not None
    np.testing.assert_allclose(hit.point, [0.0, 0.0, 2.0], atol=1e-9)
    assert hit.distance == pytest.approx(2.0)
    assert hit.face_index == 0
    assert hit.has_surface_color

    color = inter.sample_surface_color(hit)
    assert color is not None
    # (0, 0) sits at u=0.25, v=0.5 inside the triangle
    np.testing.assert_allclose(color, (0.25, 0.25, 0.5), atol=1e-9)


def test_ray_beyond_max_range_misses() -> None:
    inter = MeshIntersector(_triangle_scene())
    assert inter.intersect(np.zeros(3), np.array([0.0, 0.0, 1.0]), 1.5) is None


def test_ray_pointing_away_misses() -> None:
    inter = MeshIntersector(_triangle_scene())
    assert inter.intersect(np.zeros(3), np.array([0.0, 0.0, -1.0]), 100.0) is None


def test_scene_without_colors_yields_no_surface_color() -> None:
    inter = MeshIntersector(_triangle_scene(colored=False))
    hit = inter.intersect(np.zeros(3), np.array([0.0, 0.0, 1.0]), 10.0)
    assert hit is not None
    assert not hit.has_surface_color
    assert inter.sample_surface_color(hit) is None


def test_nearest_of_two_surfaces_wins() -> None:
    near = _triangle_scene(z=3.0)
    far = _triangle_scene(z=6.0)
    scene = MeshScene(
        np.vstack([far.vertices, near.vertices]),
        np.array([[0, 1, 2], [3, 4, 5]], dtype=np.int64),
        np.vstack([far.vertex_colors, near.vertex_colors]),
    )
    hit = MeshIntersector(scene).intersect(np.zeros(3), np.array([0.0, 0.0, 1.0]), 100.0)
    assert hit is not None
    assert hit.face_index == 1
    assert hit.distance == pytest.approx(3.0)


def test_closed_room_is_hit_in_every_direction() -> None:
    inter = MeshIntersector(build_scene("room", size=10.0))
    for direction in ([1, 0, 0], [0, -1, 0], [0, 0, 1], [1, 1, 1], [-1, 0, 1]):
        d = np.asarray(direction, dtype=np.float64)
        d /= np.linalg.norm(d)
        hit = inter.intersect(np.zeros(3), d, 15.0)
        assert hit is not None, direction
        assert np.max(np.abs(hit.point)) == pytest.approx(5.0, abs=1e-6)
        assert inter.sample_surface_color(hit) is not None


def test_mesh_scene_validates_inputs() -> None:
    verts = np.zeros((3, 3), dtype=np.float32)
    with pytest.raises(ValueError):
        MeshScene(verts, np.array([[0, 1, 3]]))
    with pytest.raises(ValueError):
        MeshScene(verts, np.array([[0, 1, 2]]), vertex_colors=np.zeros((2, 3), dtype=np.uint8))


def test_mesh_scene_bounds() -> None:
    scene = build_scene("room", size=4.0)
    assert scene.bounds() == pytest.approx((-2.0, 2.0, -2.0, 2.0, -2.0, 2.0))
    assert scene.has_colors()


def test_empty_scene_never_hits() -> None:
    scene = MeshScene(np.zeros((0, 3)), np.zeros((0, 3), dtype=np.int64))
    hit = MeshIntersector(scene).intersect(np.zeros(3), np.array([1.0, 0.0, 0.0]), 10.0)
    assert hit is None


def test_rayhit_defaults() -> None:
    hit = RayHit(point=np.zeros(3), distance=1.0)
    assert hit.face_index == -1
    assert not hit.has_surface_color
