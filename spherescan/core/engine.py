from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple
import math
import numpy as np

from .grid import AngleConvention, GridResolution, ScanCursor, direction_for, iter_cells
from .intersector import SceneIntersector
from .pointcloud import PointCloud, Sample
from .exporter import export_pcd
from .utils import get_logger, as_vec3

_log = get_logger()

# Hit points are shifted down by this much before they are recorded, to line
# the cloud up with the scene's ground level.
DEFAULT_VERTICAL_OFFSET = 70.0
DEFAULT_FILE_PATTERN = "scan_{id}.pcd"


class ScanStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ScanParameters:
    range: float
    resolution: GridResolution

    def __post_init__(self) -> None:
        if not isinstance(self.resolution, GridResolution):
            raise TypeError("resolution must be a GridResolution")
        if not math.isfinite(self.range) or self.range <= 0.0:
            raise ValueError(f"range must be a positive number, got {self.range!r}")

    @classmethod
    def of(cls, range: float, rays_per_axis: int) -> "ScanParameters":
        return cls(range=float(range), resolution=GridResolution(rays_per_axis))

    @property
    def rays_per_axis(self) -> int:
        return self.resolution.rays_per_axis


@dataclass
class ScanSession:
    id: int
    parameters: ScanParameters
    cursor: ScanCursor = field(default_factory=ScanCursor)
    status: ScanStatus = ScanStatus.RUNNING
    cells_visited: int = 0


@dataclass(frozen=True)
class SweepResult:
    """Everything a completed sweep produced."""
    session_id: int
    samples: Tuple[Sample, ...]
    path: Path
    cells_visited: int
    finished_synchronously: bool = False

    @property
    def points(self) -> int:
        return len(self.samples)


class ScanObserver(Protocol):
    def on_ray(self, origin: np.ndarray, direction: np.ndarray, max_range: float) -> None: ...

    def on_sample(self, sample: Sample) -> None: ...

    def on_sweep_complete(self, result: SweepResult) -> None: ...


class NullObserver:
    def on_ray(self, origin: np.ndarray, direction: np.ndarray, max_range: float) -> None:
        pass

    def on_sample(self, sample: Sample) -> None:
        pass

    def on_sweep_complete(self, result: SweepResult) -> None:
        pass


class RecordingObserver:
    """Keeps every beam, marker and completed sweep it is told about."""

    def __init__(self) -> None:
        self.rays: List[Tuple[np.ndarray, np.ndarray, float]] = []
        self.samples: List[Sample] = []
        self.results: List[SweepResult] = []

    def on_ray(self, origin: np.ndarray, direction: np.ndarray, max_range: float) -> None:
        self.rays.append((origin.copy(), direction.copy(), float(max_range)))

    def on_sample(self, sample: Sample) -> None:
        self.samples.append(sample)

    def on_sweep_complete(self, result: SweepResult) -> None:
        self.results.append(result)


Exporter = Callable[[Sequence[Sample], Path], Any]


class ScanEngine:
    """Resumable sweep over the angular grid.

    ``step()`` processes exactly one cell and returns control to the caller;
    all resumable state lives in the cursor. ``finish_synchronously()`` runs
    the rest of the grid in one burst. Completion exports the cloud and
    resets the engine to IDLE. Calls that are not valid in the current state
    are ignored and return False.
    """

    def __init__(
        self,
        intersector: SceneIntersector,
        output_dir: str | Path = ".",
        exporter: Exporter = export_pcd,
        origin: Sequence[float] = (0.0, 0.0, 0.0),
        vertical_offset: float = DEFAULT_VERTICAL_OFFSET,
        file_pattern: str = DEFAULT_FILE_PATTERN,
        observer: Optional[ScanObserver] = None,
        first_session_id: int = 1,
    ) -> None:
        if first_session_id < 1:
            raise ValueError("first_session_id must be >= 1")
        self.intersector = intersector
        self.output_dir = Path(output_dir)
        self.exporter = exporter
        self.origin = as_vec3(origin)
        self.vertical_offset = float(vertical_offset)
        self.file_pattern = file_pattern
        self.observer: ScanObserver = observer if observer is not None else NullObserver()

        self._cloud = PointCloud()
        self._cursor = ScanCursor()
        self._status = ScanStatus.IDLE
        self._session: Optional[ScanSession] = None
        self._next_session_id = int(first_session_id)
        self._listeners: List[Callable[[SweepResult], None]] = []
        self._finalize_listeners: List[Callable[[ScanSession], None]] = []

    # -- state --
    @property
    def status(self) -> ScanStatus:
        return self._status

    @property
    def cursor(self) -> ScanCursor:
        return self._cursor

    @property
    def cloud(self) -> PointCloud:
        return self._cloud

    @property
    def session(self) -> Optional[ScanSession]:
        return self._session

    @property
    def next_session_id(self) -> int:
        return self._next_session_id

    @property
    def is_active(self) -> bool:
        return self._status in (ScanStatus.RUNNING, ScanStatus.PAUSED)

    def add_listener(self, callback: Callable[[SweepResult], None]) -> None:
        self._listeners.append(callback)

    def add_finalize_listener(self, callback: Callable[[ScanSession], None]) -> None:
        """Called once a sweep is finalized, before its file is written.

        Fires even when the export then fails.
        """
        self._finalize_listeners.append(callback)

    def output_path_for(self, session_id: int) -> Path:
        return self.output_dir / self.file_pattern.format(id=session_id)

    # -- transitions --
    def start(self, params: ScanParameters) -> bool:
        if self._status is not ScanStatus.IDLE:
            _log.debug("start() ignored while %s", self._status.value)
            return False
        self._cloud.clear()
        self._cursor = ScanCursor()
        self._session = ScanSession(id=self._next_session_id, parameters=params)
        self._status = ScanStatus.RUNNING
        _log.info(
            "Scan %d started: %dx%d rays, range %.3g",
            self._session.id, params.rays_per_axis, params.rays_per_axis, params.range,
        )
        return True

    def pause(self) -> bool:
        if self._status is not ScanStatus.RUNNING:
            _log.debug("pause() ignored while %s", self._status.value)
            return False
        self._set_status(ScanStatus.PAUSED)
        _log.info("Scan %d paused at %s", self._session.id, self._cursor)
        return True

    def resume(self) -> bool:
        if self._status is not ScanStatus.PAUSED:
            _log.debug("resume() ignored while %s", self._status.value)
            return False
        self._set_status(ScanStatus.RUNNING)
        _log.info("Scan %d resumed at %s", self._session.id, self._cursor)
        return True

    def cancel(self) -> bool:
        """Hard stop: back to IDLE with no export. Cloud and cursor stay as they are."""
        if not self.is_active:
            _log.debug("cancel() ignored while %s", self._status.value)
            return False
        self._set_status(ScanStatus.IDLE)
        _log.info(
            "Scan %d cancelled at %s; %d samples discarded",
            self._session.id, self._cursor, len(self._cloud),
        )
        return True

    def step(self) -> bool:
        if self._status is not ScanStatus.RUNNING:
            return False
        session = self._session
        assert session is not None
        rays = session.parameters.rays_per_axis

        self._process_cell(self._cursor, AngleConvention.INCREMENTAL)
        if self._cursor.is_exhausted(rays):
            self._complete(finished_synchronously=False)
        return True

    def finish_synchronously(self) -> bool:
        if not self.is_active:
            _log.debug("finish_synchronously() ignored while %s", self._status.value)
            return False
        session = self._session
        assert session is not None
        for cell in iter_cells(session.parameters.resolution, self._cursor):
            self._process_cell(cell, AngleConvention.FINISH)
        self._complete(finished_synchronously=True)
        return True

    def run_to_completion(self) -> Optional[SweepResult]:
        """Step until the current sweep ends; returns its result."""
        results: List[SweepResult] = []
        self._listeners.append(results.append)
        try:
            while self.step():
                pass
        finally:
            self._listeners.remove(results.append)
        return results[-1] if results else None

    # -- internals --
    def _set_status(self, status: ScanStatus) -> None:
        self._status = status
        if self._session is not None:
            self._session.status = status

    def _process_cell(self, cell: ScanCursor, convention: AngleConvention) -> Optional[Sample]:
        session = self._session
        assert session is not None
        params = session.parameters
        direction = direction_for(cell.phi_index, cell.theta_index, params.resolution, convention)
        self.observer.on_ray(self.origin, direction, params.range)

        sample: Optional[Sample] = None
        hit = self.intersector.intersect(self.origin, direction, params.range)
        if hit is not None and hit.has_surface_color:
            color = self.intersector.sample_surface_color(hit)
            if color is not None:
                position = np.asarray(hit.point, dtype=np.float32) - np.array(
                    [0.0, self.vertical_offset, 0.0], dtype=np.float32
                )
                sample = Sample.from_arrays(position, color, session.id)

        # commit the cell: sample and cursor move together
        if sample is not None:
            self._cloud.append(sample)
        self._cursor = cell.advance(params.rays_per_axis)
        session.cursor = self._cursor
        session.cells_visited += 1
        if sample is not None:
            self.observer.on_sample(sample)
        return sample

    def _complete(self, finished_synchronously: bool) -> SweepResult:
        session = self._session
        assert session is not None
        samples = self._cloud.snapshot_and_clear()
        self._cursor = ScanCursor()
        session.cursor = self._cursor
        session.status = ScanStatus.COMPLETED
        self._status = ScanStatus.IDLE
        self._next_session_id = session.id + 1

        path = self.output_path_for(session.id)
        result = SweepResult(
            session_id=session.id,
            samples=samples,
            path=path,
            cells_visited=session.cells_visited,
            finished_synchronously=finished_synchronously,
        )
        _log.info(
            "Scan %d complete: %d samples from %d cells",
            session.id, len(samples), session.cells_visited,
        )
        for callback in list(self._finalize_listeners):
            callback(session)
        try:
            self.exporter(samples, path)
        except OSError:
            _log.error("Export of scan %d to %s failed", session.id, path)
            raise
        self.observer.on_sweep_complete(result)
        for callback in list(self._listeners):
            callback(result)
        return result
