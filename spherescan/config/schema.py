from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from ..core.engine import DEFAULT_FILE_PATTERN, DEFAULT_VERTICAL_OFFSET, ScanParameters


class SceneConfig(BaseModel):
    path: Optional[Path] = None
    preset: Optional[Literal["room", "plane", "demo"]] = None
    size: float = Field(10.0, gt=0.0)

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "SceneConfig":
        if (self.path is None) == (self.preset is None):
            raise ValueError("scene requires exactly one of 'path' or 'preset'")
        return self


class SensorConfig(BaseModel):
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    range: float = Field(15.0, gt=0.0)
    rays_per_axis: int = Field(30, ge=1)
    vertical_offset: float = DEFAULT_VERTICAL_OFFSET
    ray_interval_s: float = Field(0.1, ge=0.0)

    def parameters(self) -> ScanParameters:
        return ScanParameters.of(self.range, self.rays_per_axis)


class OutputConfig(BaseModel):
    dir: Path = Path("Output")
    file_pattern: str = DEFAULT_FILE_PATTERN

    @model_validator(mode="after")
    def _validate_pattern(self) -> "OutputConfig":
        if "{id}" not in self.file_pattern:
            raise ValueError("file_pattern must contain '{id}'")
        if not self.file_pattern.lower().endswith(".pcd"):
            raise ValueError("file_pattern must end with '.pcd'")
        return self


ScanMode = Literal["incremental", "finish"]


class ScanConfig(BaseModel):
    scene: SceneConfig
    sensor: SensorConfig = SensorConfig()
    output: OutputConfig = OutputConfig()
    mode: ScanMode = "incremental"
    first_session_id: int = Field(1, ge=1)


def load_config(path: str | Path) -> ScanConfig:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping.")
    cfg = ScanConfig.model_validate(data)
    if not cfg.output.dir.is_absolute():
        cfg.output.dir = (path.parent / cfg.output.dir).resolve()
    if cfg.scene.path is not None and not cfg.scene.path.is_absolute():
        cfg.scene.path = (path.parent / cfg.scene.path).resolve()
    return cfg
