from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..config import ScanConfig, load_config
from ..core.engine import RecordingObserver, SweepResult
from ..runtime.builders import build_controller, build_engine, build_scene
from ..session.signals import ControlSignal, SignalLatch


@dataclass(frozen=True)
class ScanRunResult:
    """Summary of one sweep driven by a configuration file."""

    session_id: int
    output_path: Path
    points: int
    cells: int
    config: ScanConfig


def scan_from_config(
    config: Union[str, Path, ScanConfig],
    *,
    output_dir: Optional[Path] = None,
    rays_per_axis: Optional[int] = None,
    range: Optional[float] = None,
    finish: Optional[bool] = None,
    realtime: bool = False,
) -> ScanRunResult:
    """Run one full sweep described by a configuration file or object.

    Parameters
    ----------
    config:
        Path to a YAML file or a pre-loaded :class:`~spherescan.config.schema.ScanConfig`.
    output_dir:
        Optional override for the directory the PCD file is written to. It is
        created if missing.
    rays_per_axis, range:
        Optional overrides for the sensor parameters.
    finish:
        When true the sweep is started and immediately finished
        synchronously, otherwise it is stepped cell by cell. Defaults to the
        config's ``mode``.
    realtime:
        Step the incremental sweep through a :class:`ScanController`, one cell
        per ``ray_interval_s``, instead of as fast as possible.

    Returns
    -------
    ScanRunResult
        Session id, written file, number of samples and cells visited, and
        the resolved configuration used for the run.
    """

    cfg = load_config(config) if not isinstance(config, ScanConfig) else config.model_copy(deep=True)

    if rays_per_axis is not None:
        cfg.sensor.rays_per_axis = rays_per_axis
    if range is not None:
        cfg.sensor.range = float(range)
    if finish is not None:
        cfg.mode = "finish" if finish else "incremental"
    if output_dir is not None:
        cfg.output.dir = Path(output_dir).resolve()
    params = cfg.sensor.parameters()
    cfg.output.dir.mkdir(parents=True, exist_ok=True)

    scene = build_scene(cfg)
    observer = RecordingObserver()
    engine = build_engine(cfg, scene, observer=observer)

    result: Optional[SweepResult]
    if realtime and cfg.mode == "incremental":
        signals = SignalLatch(ControlSignal.RUN)
        controller = build_controller(cfg, engine, signals=signals)
        results = controller.run_loop(tick_interval_s=cfg.sensor.ray_interval_s)
        result = results[-1] if results else None
    else:
        engine.start(params)
        if cfg.mode == "finish":
            engine.finish_synchronously()
            result = observer.results[-1] if observer.results else None
        else:
            result = engine.run_to_completion()

    if result is None:
        raise RuntimeError("Sweep ended without producing a result.")
    return ScanRunResult(
        session_id=result.session_id,
        output_path=result.path,
        points=result.points,
        cells=result.cells_visited,
        config=cfg,
    )
