from __future__ import annotations
from typing import Optional, Protocol
import math

from ..core.engine import ScanParameters
from ..core.grid import GridResolution
from ..core.utils import get_logger

_log = get_logger()


class ParameterSource(Protocol):
    def read(self, previous: ScanParameters) -> ScanParameters: ...


class StaticParameterSource:
    def __init__(self, params: ScanParameters) -> None:
        self.params = params

    def read(self, previous: ScanParameters) -> ScanParameters:
        return self.params


def _parse_range(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    try:
        value = float(str(text).strip())
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0.0:
        return None
    return value


def _parse_rays(text: Optional[str]) -> Optional[int]:
    if text is None:
        return None
    try:
        value = int(str(text).strip())
    except ValueError:
        return None
    if value < 1:
        return None
    return value


class TextParameterSource:
    """Scan parameters typed into two free-text fields.

    Each field is parsed on every read. A value that does not parse, or is
    out of range, is ignored and the previous valid value is kept.
    """

    def __init__(self, range_text: Optional[str] = None, rays_text: Optional[str] = None) -> None:
        self.range_text = range_text
        self.rays_text = rays_text

    def read(self, previous: ScanParameters) -> ScanParameters:
        rng = _parse_range(self.range_text)
        if rng is None:
            if self.range_text is not None:
                _log.debug("Ignoring range text %r; keeping %s", self.range_text, previous.range)
            rng = previous.range
        rays = _parse_rays(self.rays_text)
        if rays is None:
            if self.rays_text is not None:
                _log.debug("Ignoring resolution text %r; keeping %d", self.rays_text, previous.rays_per_axis)
            rays = previous.rays_per_axis
        if rng == previous.range and rays == previous.rays_per_axis:
            return previous
        return ScanParameters(range=rng, resolution=GridResolution(rays))
