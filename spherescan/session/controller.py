from __future__ import annotations
from typing import Callable, List, Optional
import time

from ..core.engine import ScanEngine, ScanParameters, ScanSession, ScanStatus, SweepResult
from ..core.utils import get_logger
from .parameters import ParameterSource, StaticParameterSource
from .signals import ControlSignal, SignalSource

_log = get_logger()

# Used until the parameter source supplies valid values.
DEFAULT_PARAMETERS = ScanParameters.of(15.0, 30)


class ScanController:
    """Drives a :class:`ScanEngine` from an externally owned control signal.

    Call :meth:`tick` once per external tick. Each tick re-reads the scan
    parameters (they only apply to the next sweep), reacts to the signal,
    then advances the incremental sweep by at most one cell once
    ``ray_interval_s`` of real time has passed since the previous cell.
    """

    def __init__(
        self,
        engine: ScanEngine,
        signals: SignalSource,
        parameters: ParameterSource | ScanParameters,
        ray_interval_s: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ray_interval_s < 0.0:
            raise ValueError("ray_interval_s must be non-negative.")
        if isinstance(parameters, ScanParameters):
            parameters = StaticParameterSource(parameters)
        self.engine = engine
        self.signals = signals
        self.parameter_source = parameters
        self.ray_interval_s = float(ray_interval_s)
        self.clock = clock
        self.pending_parameters: ScanParameters = parameters.read(DEFAULT_PARAMETERS)
        self.completed_sessions: List[int] = []
        self.results: List[SweepResult] = []
        self._last_step_time: Optional[float] = None
        self._ticks = 0
        engine.add_finalize_listener(self._on_sweep_finalized)
        engine.add_listener(self._on_sweep_complete)

    @property
    def ticks(self) -> int:
        return self._ticks

    def tick(self) -> ScanStatus:
        self._ticks += 1
        self.pending_parameters = self.parameter_source.read(self.pending_parameters)

        signal = self.signals.current()
        status = self.engine.status
        if signal is ControlSignal.RUN and status is ScanStatus.IDLE:
            if self.engine.start(self.pending_parameters):
                self._last_step_time = None
        elif signal is ControlSignal.PAUSE and status is ScanStatus.RUNNING:
            self.engine.pause()
        elif signal is ControlSignal.RUN and status is ScanStatus.PAUSED:
            if self.engine.resume():
                self._last_step_time = None
        elif signal is ControlSignal.FINISH:
            self.engine.finish_synchronously()
            self._hard_stop()
        elif signal is ControlSignal.STOP and self.engine.is_active:
            self.engine.cancel()
            self._hard_stop()

        if self.engine.status is ScanStatus.RUNNING and self._step_due():
            self._last_step_time = self.clock()
            self.engine.step()
        return self.engine.status

    def run_loop(
        self,
        max_ticks: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        tick_interval_s: float = 0.0,
    ) -> List[SweepResult]:
        """Tick until a sweep that was started has ended (or ``max_ticks`` ran out)."""
        started = False
        n_results = len(self.results)
        while max_ticks is None or self._ticks < max_ticks:
            status = self.tick()
            if status is not ScanStatus.IDLE:
                started = True
            elif started or len(self.results) > n_results:
                break
            if tick_interval_s > 0.0:
                sleep(tick_interval_s)
        return self.results[n_results:]

    def _step_due(self) -> bool:
        if self._last_step_time is None:
            return True
        return (self.clock() - self._last_step_time) >= self.ray_interval_s

    def _hard_stop(self) -> None:
        self._last_step_time = None
        if self.engine.status is not ScanStatus.IDLE:
            self.engine.cancel()

    def _on_sweep_finalized(self, session: ScanSession) -> None:
        self.completed_sessions.append(session.id)
        # a lingering RUN must not start the next sweep by itself, even if
        # writing this one fails
        self.signals.reset()

    def _on_sweep_complete(self, result: SweepResult) -> None:
        self.results.append(result)
        _log.info("Scan_%d grouped %d samples", result.session_id, result.points)
