"""Programmatic entry points for running sweeps."""

from .run import ScanRunResult, scan_from_config

__all__ = ["ScanRunResult", "scan_from_config"]
