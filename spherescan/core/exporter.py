from __future__ import annotations
from typing import Iterable, List, Sequence
import numpy as np
import pathlib

from .pointcloud import Sample, samples_to_arrays
from .utils import get_logger

_log = get_logger()

PCD_VERSION = "0.7"
VIEWPOINT = "0 0 0 1 0 0 0"


class ExportError(OSError):
    """Writing a point-cloud file failed. Not retried."""


def pack_rgb(rgb: np.ndarray) -> np.ndarray:
    """Pack normalized (N,3) colors into 24-bit ints, truncating each channel.

    Channels are scaled in single precision and truncated, not rounded:
    ``0.999 -> 254``. NaN channels pack as 0.
    """
    rgb = np.asarray(rgb, dtype=np.float32).reshape(-1, 3)
    scaled = np.nan_to_num(rgb * np.float32(255.0), nan=0.0)
    channels = np.clip(np.trunc(scaled), 0, 255).astype(np.int64)
    return (channels[:, 0] << 16) | (channels[:, 1] << 8) | channels[:, 2]


def format_coordinate(value: float) -> str:
    """Shortest round-trip decimal of the float32 value, dot separator, no exponent."""
    return np.format_float_positional(np.float32(value), trim="-")


def pcd_header(n_points: int) -> List[str]:
    return [
        f"# .PCD v{PCD_VERSION} - Point Cloud Data file format",
        f"VERSION {PCD_VERSION}",
        "FIELDS x y z rgb",
        "SIZE 4 4 4 4",
        "TYPE F F F F",
        "COUNT 1 1 1 1",
        f"WIDTH {n_points}",
        "HEIGHT 1",
        f"VIEWPOINT {VIEWPOINT}",
        f"POINTS {n_points}",
        "DATA ascii",
    ]


class PcdWriter:
    """ASCII PCD writer (buffered, written once on close).

    The destination directory must already exist.
    """
    def __init__(self, path: str | pathlib.Path) -> None:
        self.path = pathlib.Path(path)
        self._samples: List[Sample] = []

    def write_samples(self, samples: Iterable[Sample]) -> "PcdWriter":
        self._samples.extend(samples)
        return self

    def close(self) -> None:
        xyz, rgb = samples_to_arrays(self._samples)
        packed = pack_rgb(rgb)
        try:
            with open(self.path, "w", encoding="utf-8", newline="\n") as f:
                for line in pcd_header(len(xyz)):
                    f.write(line + "\n")
                for (x, y, z), c in zip(xyz, packed):
                    f.write(f"{format_coordinate(x)} {format_coordinate(y)} {format_coordinate(z)} {int(c)}\n")
        except OSError as exc:
            raise ExportError(f"Could not write point cloud to {self.path}: {exc}") from exc
        finally:
            self._samples.clear()
        _log.info("PCD file written to: %s (%d points)", self.path, len(xyz))


def export_pcd(samples: Sequence[Sample], path: str | pathlib.Path) -> pathlib.Path:
    writer = PcdWriter(path)
    writer.write_samples(samples)
    writer.close()
    return writer.path
