from __future__ import annotations
from pathlib import Path
from typing import Optional
import numpy as np
from .utils import get_logger

_log = get_logger()


class MeshScene:
    """Triangle mesh the sensor sweeps over.

    Holds vertices, triangular faces and (optionally) per-vertex RGB colors.
    Colors are what the sensor samples at each hit; a scene without them
    still produces intersections but no samples.
    """
    def __init__(
        self,
        vertices: np.ndarray,
        faces: np.ndarray,
        vertex_colors: Optional[np.ndarray] = None,
        name: str = "scene",
    ) -> None:
        self._vertices = np.asarray(vertices, dtype=np.float32).reshape(-1, 3)
        self._faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
        self.name = name
        if len(self._faces) and (self._faces.min() < 0 or self._faces.max() >= len(self._vertices)):
            raise ValueError("Face indices reference missing vertices.")
        self._vertex_colors: Optional[np.ndarray] = None
        if vertex_colors is not None:
            colors = np.asarray(vertex_colors)
            if colors.ndim != 2 or colors.shape[0] != len(self._vertices) or colors.shape[1] < 3:
                raise ValueError(
                    f"vertex_colors shape {colors.shape} does not match {len(self._vertices)} vertices"
                )
            self._vertex_colors = np.clip(colors[:, :3], 0, 255).astype(np.uint8)

    @classmethod
    def from_path(cls, path: str | Path) -> "MeshScene":
        """Load any mesh format trimesh understands, keeping vertex colors."""
        import trimesh  # type: ignore

        path = Path(path)
        mesh = trimesh.load_mesh(str(path), process=False)
        if isinstance(mesh, trimesh.Scene):
            mesh = mesh.to_geometry() if hasattr(mesh, "to_geometry") else mesh.dump(concatenate=True)
        colors = None
        if mesh.visual is not None and mesh.visual.kind == "vertex":
            colors = np.asarray(mesh.visual.vertex_colors[:, :3], dtype=np.uint8)
        else:
            _log.warning("Mesh '%s' has no vertex colors; hits will not produce samples.", path.name)
        _log.info("Loaded %s (%d vertices, %d faces)", path.name, len(mesh.vertices), len(mesh.faces))
        return cls(mesh.vertices, mesh.faces, colors, name=path.stem)

    # -- API --
    @property
    def vertices(self) -> np.ndarray:
        return self._vertices

    @property
    def faces(self) -> np.ndarray:
        return self._faces

    @property
    def vertex_colors(self) -> Optional[np.ndarray]:
        return self._vertex_colors

    def has_colors(self) -> bool:
        return self._vertex_colors is not None

    def triangle_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        return self._vertices, self._faces

    def bounds(self) -> tuple[float, float, float, float, float, float]:
        if len(self._vertices) == 0:
            raise RuntimeError("Scene has no vertices.")
        mn = self._vertices.min(axis=0)
        mx = self._vertices.max(axis=0)
        return (float(mn[0]), float(mx[0]), float(mn[1]), float(mx[1]), float(mn[2]), float(mx[2]))

    def __len__(self) -> int:
        return len(self._faces)
