"""Spherescan – spherical LIDAR sweep simulator.

This package contains:
- GridResolution, ScanCursor & angle conventions (core.grid)
- MeshScene and the ray/colour intersector (core.scene, core.intersector)
- Sample & PointCloud accumulator (core.pointcloud)
- ASCII PCD exporter (core.exporter)
- Resumable ScanEngine state machine (core.engine)
- ScanController driving the engine from control signals (session)
"""

from .core.grid import (GridResolution, ScanCursor, AngleConvention,
                        InvalidResolutionError, angles_for, direction_for)
from .core.scene import MeshScene
from .core.intersector import RayHit, SceneIntersector, MeshIntersector
from .core.pointcloud import Sample, PointCloud
from .core.exporter import PcdWriter, ExportError, export_pcd, pack_rgb
from .core.engine import (ScanEngine, ScanParameters, ScanSession, ScanStatus,
                          SweepResult, NullObserver, RecordingObserver)
from .session import (ControlSignal, SignalLatch, StaticParameterSource,
                      TextParameterSource, ScanController)
