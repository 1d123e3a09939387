from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Tuple
import numpy as np

from .utils import radians


class InvalidResolutionError(ValueError):
    """Raised for a grid resolution below one ray per axis."""


class AngleConvention(str, Enum):
    """How grid indices map to spherical angles.

    INCREMENTAL centres phi on the horizon and sweeps theta from +180 down to
    -180 degrees. FINISH starts phi at the pole and sweeps theta upwards from
    0. The two are not equivalent; a sweep completed with
    ``finish_synchronously`` uses FINISH for its remaining cells.
    """
    INCREMENTAL = "incremental"
    FINISH = "finish"


@dataclass(frozen=True)
class GridResolution:
    rays_per_axis: int

    def __post_init__(self) -> None:
        if int(self.rays_per_axis) != self.rays_per_axis or self.rays_per_axis < 1:
            raise InvalidResolutionError(f"rays_per_axis must be an integer >= 1, got {self.rays_per_axis!r}")
        object.__setattr__(self, "rays_per_axis", int(self.rays_per_axis))

    @property
    def phi_step_deg(self) -> float:
        return 180.0 / self.rays_per_axis

    @property
    def theta_step_deg(self) -> float:
        return 360.0 / self.rays_per_axis

    @property
    def cell_count(self) -> int:
        return self.rays_per_axis * self.rays_per_axis


@dataclass(frozen=True)
class ScanCursor:
    """Resumable position within a sweep: the next cell to process."""
    phi_index: int = 0
    theta_index: int = 0

    def advance(self, rays_per_axis: int) -> "ScanCursor":
        j = self.theta_index + 1
        i = self.phi_index
        if j == rays_per_axis:
            j = 0
            i += 1
        return ScanCursor(i, j)

    def is_exhausted(self, rays_per_axis: int) -> bool:
        return self.phi_index >= rays_per_axis

    def linear_index(self, rays_per_axis: int) -> int:
        return self.phi_index * rays_per_axis + self.theta_index


def angles_for(
    phi_index: int,
    theta_index: int,
    resolution: GridResolution,
    convention: AngleConvention = AngleConvention.INCREMENTAL,
) -> Tuple[float, float]:
    """Return ``(phi_deg, theta_deg)`` for a grid cell."""
    if convention is AngleConvention.INCREMENTAL:
        phi = phi_index * resolution.phi_step_deg - 90.0
        theta = 180.0 - theta_index * resolution.theta_step_deg
    else:
        phi = phi_index * resolution.phi_step_deg
        theta = theta_index * resolution.theta_step_deg
    return phi, theta


def spherical_to_cartesian(phi_deg: float, theta_deg: float) -> np.ndarray:
    phi = radians(phi_deg)
    theta = radians(theta_deg)
    # sin/cos parametrisation is already unit length; no renormalisation
    return np.array([
        np.sin(phi) * np.cos(theta),
        np.sin(phi) * np.sin(theta),
        np.cos(phi),
    ], dtype=np.float64)


def direction_for(
    phi_index: int,
    theta_index: int,
    resolution: GridResolution,
    convention: AngleConvention = AngleConvention.INCREMENTAL,
) -> np.ndarray:
    phi, theta = angles_for(phi_index, theta_index, resolution, convention)
    return spherical_to_cartesian(phi, theta)


def iter_cells(resolution: GridResolution, start: ScanCursor = ScanCursor()) -> Iterator[ScanCursor]:
    """Yield cursors in row-major order from ``start`` to the end of the grid."""
    cursor = start
    while not cursor.is_exhausted(resolution.rays_per_axis):
        yield cursor
        cursor = cursor.advance(resolution.rays_per_axis)
