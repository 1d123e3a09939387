from __future__ import annotations

from typing import Callable, Optional

from ..config import ScanConfig
from ..core.engine import ScanEngine, ScanObserver
from ..core.intersector import MeshIntersector
from ..core.scene import MeshScene
from ..examples.synthetic import build_scene as build_synthetic_scene
from ..session.controller import ScanController
from ..session.parameters import ParameterSource, StaticParameterSource
from ..session.signals import SignalLatch, SignalSource


def build_scene(cfg: ScanConfig) -> MeshScene:
    scene_cfg = cfg.scene
    if scene_cfg.path is not None:
        return MeshScene.from_path(scene_cfg.path)
    if scene_cfg.preset is not None:
        return build_synthetic_scene(scene_cfg.preset, size=scene_cfg.size)
    raise ValueError("Scene requires a path or a preset")


def build_engine(
    cfg: ScanConfig,
    scene: MeshScene,
    observer: Optional[ScanObserver] = None,
) -> ScanEngine:
    return ScanEngine(
        MeshIntersector(scene),
        output_dir=cfg.output.dir,
        origin=cfg.sensor.origin,
        vertical_offset=cfg.sensor.vertical_offset,
        file_pattern=cfg.output.file_pattern,
        observer=observer,
        first_session_id=cfg.first_session_id,
    )


def build_controller(
    cfg: ScanConfig,
    engine: ScanEngine,
    signals: Optional[SignalSource] = None,
    parameters: Optional[ParameterSource] = None,
    clock: Optional[Callable[[], float]] = None,
) -> ScanController:
    kwargs = {}
    if clock is not None:
        kwargs["clock"] = clock
    return ScanController(
        engine,
        signals if signals is not None else SignalLatch(),
        parameters if parameters is not None else StaticParameterSource(cfg.sensor.parameters()),
        ray_interval_s=cfg.sensor.ray_interval_s,
        **kwargs,
    )
