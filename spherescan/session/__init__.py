from .signals import ControlSignal, SignalLatch, SignalSource
from .parameters import ParameterSource, StaticParameterSource, TextParameterSource
from .controller import ScanController

__all__ = [
    "ControlSignal", "SignalLatch", "SignalSource",
    "ParameterSource", "StaticParameterSource", "TextParameterSource",
    "ScanController",
]
