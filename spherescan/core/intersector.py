from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Optional, Tuple
import numpy as np
from .scene import MeshScene
from .utils import get_logger, as_vec3

_log = get_logger()

RGB = Tuple[float, float, float]


@dataclass(frozen=True)
class RayHit:
    point: np.ndarray                  # (3,) world-space hit position
    distance: float
    face_index: int = -1               # triangle id (or -1 if unknown)
    barycentric: Tuple[float, float] = (0.0, 0.0)
    has_surface_color: bool = False


class SceneIntersector(Protocol):
    def intersect(self, origin: np.ndarray, direction: np.ndarray, max_range: float) -> Optional[RayHit]: ...

    def sample_surface_color(self, hit: RayHit) -> Optional[RGB]: ...


class MeshIntersector:
    """Brute-force Möller–Trumbore intersector over a :class:`MeshScene`.

    One ray at a time, vectorized over all triangles. Returns the nearest hit
    with ``0 < t <= max_range``. Surface color is the barycentric blend of
    the hit triangle's vertex colors, normalized to ``[0, 1]``.
    """

    def __init__(self, scene: MeshScene, epsilon: float = 1e-8, edge_tolerance: float = 1e-9) -> None:
        self.scene = scene
        self.epsilon = float(epsilon)
        # rays through a shared edge must hit one of its triangles
        self.edge_tolerance = float(edge_tolerance)
        verts, faces = scene.triangle_arrays()
        tris = verts[faces].astype(np.float64)
        self._v0 = tris[:, 0] if len(tris) else np.zeros((0, 3))
        self._edge1 = (tris[:, 1] - tris[:, 0]) if len(tris) else np.zeros((0, 3))
        self._edge2 = (tris[:, 2] - tris[:, 0]) if len(tris) else np.zeros((0, 3))

    def intersect(self, origin: np.ndarray, direction: np.ndarray, max_range: float) -> Optional[RayHit]:
        if len(self._v0) == 0:
            return None
        o = as_vec3(origin)
        d = as_vec3(direction)

        pvec = np.cross(d, self._edge2)
        det = np.einsum("ij,ij->i", self._edge1, pvec)
        valid = np.abs(det) >= self.epsilon
        inv_det = np.zeros_like(det)
        inv_det[valid] = 1.0 / det[valid]

        tvec = o - self._v0
        u = np.einsum("ij,ij->i", tvec, pvec) * inv_det
        qvec = np.cross(tvec, self._edge1)
        v = (qvec @ d) * inv_det
        t = np.einsum("ij,ij->i", self._edge2, qvec) * inv_det

        tol = self.edge_tolerance
        valid &= (u >= -tol) & (u <= 1.0 + tol) & (v >= -tol) & ((u + v) <= 1.0 + tol)
        valid &= (t > self.epsilon) & (t <= float(max_range))
        if not np.any(valid):
            return None

        candidates = np.flatnonzero(valid)
        best = int(candidates[np.argmin(t[candidates])])
        dist = float(t[best])
        point = o + d * dist
        return RayHit(
            point=point,
            distance=dist,
            face_index=best,
            barycentric=(float(u[best]), float(v[best])),
            has_surface_color=self.scene.has_colors(),
        )

    def sample_surface_color(self, hit: RayHit) -> Optional[RGB]:
        colors = self.scene.vertex_colors
        if colors is None or not hit.has_surface_color or hit.face_index < 0:
            return None
        u, v = hit.barycentric
        tri = self.scene.faces[hit.face_index]
        c = colors[tri].astype(np.float64) / 255.0
        rgb = (1.0 - u - v) * c[0] + u * c[1] + v * c[2]
        rgb = np.clip(rgb, 0.0, 1.0)
        return (float(rgb[0]), float(rgb[1]), float(rgb[2]))
