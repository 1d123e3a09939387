from pathlib import Path

import pytest

from spherescan.core.engine import ScanEngine, ScanParameters, ScanStatus
from spherescan.core.exporter import ExportError
from spherescan.core.grid import ScanCursor
from spherescan.session import (
    ControlSignal,
    ScanController,
    SignalLatch,
    StaticParameterSource,
    TextParameterSource,
)

from dummies import DummyIntersector, RecordingExporter


class FakeClock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


def make_controller(tmp_path: Path, rays: int = 2, interval: float = 0.0, source=None):
    exporter = RecordingExporter()
    engine = ScanEngine(DummyIntersector(), output_dir=tmp_path, exporter=exporter)
    signals = SignalLatch()
    clock = FakeClock()
    parameters = source if source is not None else ScanParameters.of(15.0, rays)
    controller = ScanController(engine, signals, parameters, ray_interval_s=interval, clock=clock)
    return controller, engine, signals, exporter, clock


def test_control_codes_map_to_signals() -> None:
    assert ControlSignal.from_code(0b001) is ControlSignal.RUN
    assert ControlSignal.from_code(0b011) is ControlSignal.PAUSE
    assert ControlSignal.from_code(0b100) is ControlSignal.FINISH
    assert ControlSignal.from_code(0b000) is ControlSignal.IDLE
    assert ControlSignal.from_code(0b010) is ControlSignal.STOP
    assert ControlSignal.from_code(0b111) is ControlSignal.IDLE
    assert ControlSignal.parse("Pause") is ControlSignal.PAUSE
    with pytest.raises(ValueError):
        ControlSignal.parse("jump")


def test_text_parameters_keep_last_valid_value() -> None:
    previous = ScanParameters.of(15.0, 30)
    source = TextParameterSource("20.5", "12")
    current = source.read(previous)
    assert current.range == 20.5 and current.rays_per_axis == 12

    for range_text, rays_text in [("abc", "x"), ("-1", "0"), ("", "3.5"), (None, None)]:
        source.range_text, source.rays_text = range_text, rays_text
        assert source.read(current) is current

    source.range_text, source.rays_text = "nope", "7"
    mixed = source.read(current)
    assert mixed.range == 20.5 and mixed.rays_per_axis == 7


def test_run_signal_starts_and_steps_each_tick(tmp_path: Path) -> None:
    controller, engine, signals, exporter, _ = make_controller(tmp_path)
    controller.tick()
    assert engine.status is ScanStatus.IDLE

    signals.set(ControlSignal.RUN)
    controller.tick()
    assert engine.status is ScanStatus.RUNNING
    assert engine.cursor == ScanCursor(0, 1)
    for _ in range(3):
        controller.tick()

    assert engine.status is ScanStatus.IDLE
    assert len(exporter.calls) == 1
    assert controller.completed_sessions == [1]
    # completion resets the signal so a held RUN does not start another sweep
    assert signals.current() is ControlSignal.IDLE
    controller.tick()
    assert engine.status is ScanStatus.IDLE
    assert len(exporter.calls) == 1


def test_steps_wait_for_ray_interval(tmp_path: Path) -> None:
    controller, engine, signals, _, clock = make_controller(tmp_path, rays=3, interval=1.0)
    signals.set(ControlSignal.RUN)
    controller.tick()
    assert engine.cursor == ScanCursor(0, 1)
    controller.tick()
    controller.tick()
    assert engine.cursor == ScanCursor(0, 1)
    clock.t = 1.0
    controller.tick()
    assert engine.cursor == ScanCursor(0, 2)
    clock.t = 1.5
    controller.tick()
    assert engine.cursor == ScanCursor(0, 2)


def test_pause_and_resume_signals(tmp_path: Path) -> None:
    controller, engine, signals, exporter, _ = make_controller(tmp_path, rays=3)
    signals.set(ControlSignal.RUN)
    controller.tick()
    controller.tick()
    signals.set(ControlSignal.PAUSE)
    for _ in range(5):
        controller.tick()
    assert engine.status is ScanStatus.PAUSED
    assert engine.cursor == ScanCursor(0, 2)

    signals.set(ControlSignal.RUN)
    controller.tick()
    assert engine.status is ScanStatus.RUNNING
    assert engine.cursor == ScanCursor(1, 0)
    while engine.status is ScanStatus.RUNNING:
        controller.tick()
    assert len(exporter.calls[0][0]) == 9


def test_finish_signal_completes_immediately(tmp_path: Path) -> None:
    controller, engine, signals, exporter, _ = make_controller(tmp_path, rays=4)
    signals.set(ControlSignal.RUN)
    controller.tick()
    signals.set(ControlSignal.FINISH)
    controller.tick()
    assert engine.status is ScanStatus.IDLE
    assert len(exporter.calls) == 1
    assert len(exporter.calls[0][0]) == 16
    assert signals.current() is ControlSignal.IDLE



def test_failed_export_still_clears_run_signal(tmp_path: Path) -> None:
    engine = ScanEngine(DummyIntersector(), output_dir=tmp_path / "missing")
    signals = SignalLatch(ControlSignal.RUN)
    controller = ScanController(engine, signals, ScanParameters.of(15.0, 1), ray_interval_s=0.0, clock=FakeClock())

    with pytest.raises(ExportError):
        controller.tick()
    assert signals.current() is ControlSignal.IDLE
    assert controller.completed_sessions == [1]
    assert controller.results == []

    # nothing asked for another sweep
    assert controller.tick() is ScanStatus.IDLE
    assert engine.session.id == 1
    assert engine.next_session_id == 2

def test_finish_signal_while_idle_is_harmless(tmp_path: Path) -> None:
    controller, engine, signals, exporter, _ = make_controller(tmp_path)
    signals.set(ControlSignal.FINISH)
    controller.tick()
    assert engine.status is ScanStatus.IDLE
    assert exporter.calls == []


def test_stop_signal_cancels_without_export(tmp_path: Path) -> None:
    controller, engine, signals, exporter, _ = make_controller(tmp_path, rays=3)
    signals.set(ControlSignal.RUN)
    for _ in range(3):
        controller.tick()
    signals.set(ControlSignal.STOP)
    controller.tick()
    assert engine.status is ScanStatus.IDLE
    assert exporter.calls == []
    assert len(engine.cloud) == 3
    assert engine.cursor == ScanCursor(1, 0)

    signals.set(ControlSignal.RUN)
    controller.tick()
    assert engine.session.id == 1
    assert len(engine.cloud) == 1


def test_resolution_change_applies_to_next_sweep_only(tmp_path: Path) -> None:
    source = TextParameterSource("15", "2")
    controller, engine, signals, exporter, _ = make_controller(tmp_path, source=source)
    signals.set(ControlSignal.RUN)
    controller.tick()
    assert engine.session.parameters.rays_per_axis == 2

    source.rays_text = "5"
    controller.tick()
    assert controller.pending_parameters.rays_per_axis == 5
    assert engine.session.parameters.rays_per_axis == 2
    while engine.status is ScanStatus.RUNNING:
        controller.tick()
    assert len(exporter.calls[0][0]) == 4

    signals.set(ControlSignal.RUN)
    controller.tick()
    assert engine.session.parameters.rays_per_axis == 5


def test_run_loop_returns_completed_sweep(tmp_path: Path) -> None:
    controller, engine, signals, exporter, _ = make_controller(tmp_path, rays=3)
    signals.set(ControlSignal.RUN)
    results = controller.run_loop(max_ticks=100)
    assert len(results) == 1
    assert results[0].session_id == 1
    assert results[0].points == 9
    assert controller.ticks == 9


def test_static_source_and_validation(tmp_path: Path) -> None:
    params = ScanParameters.of(3.0, 2)
    assert StaticParameterSource(params).read(ScanParameters.of(1.0, 1)) is params
    engine = ScanEngine(DummyIntersector(), output_dir=tmp_path)
    with pytest.raises(ValueError):
        ScanController(engine, SignalLatch(), params, ray_interval_s=-1.0)
