"""Configuration loading utilities for Spherescan."""

from .schema import (
    ScanConfig,
    load_config,
)

__all__ = ["ScanConfig", "load_config"]
