from __future__ import annotations
from enum import Enum
from typing import Protocol


class ControlSignal(str, Enum):
    IDLE = "idle"
    RUN = "run"
    PAUSE = "pause"
    FINISH = "finish"
    STOP = "stop"

    @classmethod
    def from_code(cls, code: int) -> "ControlSignal":
        """Map the 3-bit panel state codes onto signals; unknown codes are IDLE."""
        return _CODES.get(int(code), cls.IDLE)

    @classmethod
    def parse(cls, value: "str | int | ControlSignal") -> "ControlSignal":
        if isinstance(value, ControlSignal):
            return value
        if isinstance(value, int):
            return cls.from_code(value)
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown control signal '{value}'") from None


_CODES = {
    0b000: ControlSignal.IDLE,
    0b001: ControlSignal.RUN,
    0b010: ControlSignal.STOP,
    0b011: ControlSignal.PAUSE,
    0b100: ControlSignal.FINISH,
}


class SignalSource(Protocol):
    def current(self) -> ControlSignal: ...

    def reset(self) -> None: ...


class SignalLatch:
    """Externally owned signal value, polled once per tick."""

    def __init__(self, initial: ControlSignal = ControlSignal.IDLE) -> None:
        self._value = ControlSignal.parse(initial)

    def set(self, value: "str | int | ControlSignal") -> None:
        self._value = ControlSignal.parse(value)

    def current(self) -> ControlSignal:
        return self._value

    def reset(self) -> None:
        self._value = ControlSignal.IDLE
