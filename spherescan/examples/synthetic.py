from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence, Tuple

import numpy as np

from ..core.scene import MeshScene

Part = Tuple[np.ndarray, np.ndarray, np.ndarray]

WALL_COLORS = {
    "floor": (150, 120, 90),
    "ceiling": (235, 235, 230),
    "north": (200, 60, 60),
    "south": (60, 160, 70),
    "east": (60, 90, 200),
    "west": (220, 200, 70),
}


def _grid_plane(size: float, divisions: int, z: float, color: Tuple[int, int, int]) -> Part:
    lin = np.linspace(-size / 2.0, size / 2.0, divisions + 1, dtype=np.float32)
    xv, yv = np.meshgrid(lin, lin, indexing="ij")
    vertices = np.column_stack([xv.ravel(), yv.ravel(), np.full_like(xv.ravel(), z)])

    faces = []
    for i in range(divisions):
        for j in range(divisions):
            idx0 = i * (divisions + 1) + j
            idx1 = idx0 + 1
            idx2 = idx0 + (divisions + 1)
            idx3 = idx2 + 1
            faces.append([idx0, idx1, idx3])
            faces.append([idx0, idx3, idx2])
    faces_arr = np.asarray(faces, dtype=np.int64)
    colors = np.tile(np.asarray(color, dtype=np.uint8), (vertices.shape[0], 1))
    return vertices.astype(np.float32), faces_arr, colors


def _quad(corners: Sequence[Sequence[float]], color: Tuple[int, int, int]) -> Part:
    vertices = np.asarray(corners, dtype=np.float32).reshape(4, 3)
    faces = np.array([[0, 1, 2], [0, 2, 3]], dtype=np.int64)
    colors = np.tile(np.asarray(color, dtype=np.uint8), (4, 1))
    return vertices, faces, colors


def _box(center: Tuple[float, float, float], size: Tuple[float, float, float], color: Tuple[int, int, int]) -> Part:
    cx, cy, cz = center
    sx, sy, sz = size
    hx, hy, hz = sx / 2.0, sy / 2.0, sz / 2.0
    vertices = np.array([
        [cx - hx, cy - hy, cz - hz],
        [cx + hx, cy - hy, cz - hz],
        [cx + hx, cy + hy, cz - hz],
        [cx - hx, cy + hy, cz - hz],
        [cx - hx, cy - hy, cz + hz],
        [cx + hx, cy - hy, cz + hz],
        [cx + hx, cy + hy, cz + hz],
        [cx - hx, cy + hy, cz + hz],
    ], dtype=np.float32)

    faces = np.array([
        [0, 1, 2], [0, 2, 3],  # bottom
        [4, 7, 6], [4, 6, 5],  # top
        [0, 4, 5], [0, 5, 1],  # front
        [1, 5, 6], [1, 6, 2],  # right
        [2, 6, 7], [2, 7, 3],  # back
        [3, 7, 4], [3, 4, 0],  # left
    ], dtype=np.int64)
    colors = np.tile(np.asarray(color, dtype=np.uint8), (vertices.shape[0], 1))
    return vertices, faces, colors


def _room(size: float) -> list[Part]:
    """Six separately colored walls of a closed cube centred on the origin."""
    h = size / 2.0
    return [
        _quad([(-h, -h, -h), (h, -h, -h), (h, h, -h), (-h, h, -h)], WALL_COLORS["floor"]),
        _quad([(-h, -h, h), (-h, h, h), (h, h, h), (h, -h, h)], WALL_COLORS["ceiling"]),
        _quad([(-h, h, -h), (h, h, -h), (h, h, h), (-h, h, h)], WALL_COLORS["north"]),
        _quad([(-h, -h, -h), (-h, -h, h), (h, -h, h), (h, -h, -h)], WALL_COLORS["south"]),
        _quad([(h, -h, -h), (h, -h, h), (h, h, h), (h, h, -h)], WALL_COLORS["east"]),
        _quad([(-h, -h, -h), (-h, h, -h), (-h, h, h), (-h, -h, h)], WALL_COLORS["west"]),
    ]


def _merge_parts(parts: Iterable[Part]) -> Part:
    vertices: list[np.ndarray] = []
    faces: list[np.ndarray] = []
    colors: list[np.ndarray] = []
    offset = 0
    for verts, tri, col in parts:
        vertices.append(verts)
        colors.append(col)
        faces.append(tri + offset)
        offset += verts.shape[0]
    all_vertices = np.vstack(vertices).astype(np.float32, copy=False)
    all_faces = np.vstack(faces).astype(np.int64, copy=False)
    all_colors = np.vstack(colors).astype(np.uint8, copy=False)
    return all_vertices, all_faces, all_colors


def _write_ascii_ply(path: Path, vertices: np.ndarray, faces: np.ndarray, colors: np.ndarray) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("ply\n")
        f.write("format ascii 1.0\n")
        f.write(f"element vertex {len(vertices)}\n")
        f.write("property float x\nproperty float y\nproperty float z\n")
        f.write("property uchar red\nproperty uchar green\nproperty uchar blue\n")
        f.write(f"element face {len(faces)}\n")
        f.write("property list uchar int vertex_indices\n")
        f.write("end_header\n")
        for (x, y, z), (r, g, b) in zip(vertices, colors):
            f.write(f"{x:.6f} {y:.6f} {z:.6f} {int(r)} {int(g)} {int(b)}\n")
        for tri in faces:
            f.write(f"3 {tri[0]} {tri[1]} {tri[2]}\n")


def build_parts(preset: str, size: float) -> Part:
    preset = preset.lower()
    if size <= 0.0:
        raise ValueError("size must be positive.")
    if preset == "plane":
        return _grid_plane(size=size, divisions=10, z=-size * 0.2, color=(180, 200, 180))
    if preset == "room":
        return _merge_parts(_room(size))
    if preset == "demo":
        parts = _room(size)
        parts.append(_box(center=(size * 0.25, size * 0.2, -size * 0.35), size=(size * 0.2, size * 0.2, size * 0.3), color=(180, 180, 240)))
        parts.append(_box(center=(-size * 0.3, -size * 0.1, -size * 0.4), size=(size * 0.15, size * 0.3, size * 0.2), color=(240, 150, 40)))
        return _merge_parts(parts)
    raise ValueError(f"Unknown synthetic mesh preset '{preset}'.")


def build_scene(preset: str, size: float = 10.0) -> MeshScene:
    vertices, faces, colors = build_parts(preset, size)
    return MeshScene(vertices, faces, colors, name=preset.lower())


def generate_mesh(preset: str, size: float, path: Path) -> None:
    vertices, faces, colors = build_parts(preset, size)
    _write_ascii_ply(path, vertices, faces, colors)
