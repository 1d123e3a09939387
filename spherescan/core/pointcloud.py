from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Tuple
import numpy as np

Vec3 = Tuple[float, float, float]
RGB = Tuple[float, float, float]


@dataclass(frozen=True)
class Sample:
    """One recorded surface point.

    ``position`` holds float32-rounded coordinates, ``color`` normalized
    channels in ``[0, 1]``. ``session_id`` tags the sweep that produced it.
    """
    position: Vec3
    color: RGB
    session_id: int = 0

    @staticmethod
    def from_arrays(position, color, session_id: int = 0) -> "Sample":
        p = np.asarray(position, dtype=np.float32).reshape(3)
        c = np.asarray(color, dtype=np.float64).reshape(3)
        return Sample(
            position=(float(p[0]), float(p[1]), float(p[2])),
            color=(float(c[0]), float(c[1]), float(c[2])),
            session_id=int(session_id),
        )


class PointCloud:
    """Append-only, insertion-ordered collection of samples for one sweep."""

    def __init__(self) -> None:
        self._samples: List[Sample] = []

    def append(self, sample: Sample) -> None:
        self._samples.append(sample)

    def snapshot_and_clear(self) -> Tuple[Sample, ...]:
        snapshot = tuple(self._samples)
        self._samples = []
        return snapshot

    def clear(self) -> None:
        self._samples = []

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        return samples_to_arrays(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(list(self._samples))

    def __getitem__(self, idx: int) -> Sample:
        return self._samples[idx]


def samples_to_arrays(samples) -> Tuple[np.ndarray, np.ndarray]:
    """Stack samples into ``(xyz float32 (N,3), rgb float32 (N,3))``."""
    samples = list(samples)
    if not samples:
        return np.zeros((0, 3), dtype=np.float32), np.zeros((0, 3), dtype=np.float32)
    xyz = np.asarray([s.position for s in samples], dtype=np.float32)
    rgb = np.asarray([s.color for s in samples], dtype=np.float32)
    return xyz, rgb
