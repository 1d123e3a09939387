"""Stand-in intersector and exporter shared by the engine and session tests."""
from pathlib import Path
from typing import Optional

import numpy as np

from spherescan.core.intersector import RayHit


class DummyIntersector:
    """Hits at ``origin + direction * 10`` (or a fixed point) with a fixed color."""

    def __init__(
        self,
        point: Optional[tuple] = None,
        color: Optional[tuple] = (1.0, 0.0, 0.0),
        hit: bool = True,
        colored: bool = True,
    ) -> None:
        self.point = point
        self.color = color
        self.hit = hit
        self.colored = colored
        self.directions: list[np.ndarray] = []

    def intersect(self, origin: np.ndarray, direction: np.ndarray, max_range: float) -> Optional[RayHit]:
        self.directions.append(np.asarray(direction, dtype=np.float64).copy())
        if not self.hit:
            return None
        point = np.asarray(self.point, dtype=np.float64) if self.point is not None else origin + direction * 10.0
        return RayHit(point=point, distance=10.0, has_surface_color=self.colored)

    def sample_surface_color(self, hit: RayHit):
        return self.color


class RecordingExporter:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def __call__(self, samples, path: Path) -> None:
        self.calls.append((tuple(samples), Path(path)))

