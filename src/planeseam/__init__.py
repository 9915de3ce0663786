"""PlaneSeam - visible intersection seams between detected planes."""

__version__ = "0.1.0"

from planeseam.seam_engine import run, SeamConfig, SeamResult
from planeseam.seam_types import (
    IntersectionFailure,
    PairKey,
    SegmentEventType,
    TrackingState,
)
from planeseam.elements.seam_plane import Plane
from planeseam.elements.solvers import (
    IntersectionSegment,
    IntersectionSetTracker,
    PairSolution,
    PlaneIntersectionSolver,
    ReconcileResult,
    SegmentEvent,
)


__all__ = [
    'run',
    'SeamConfig',
    'SeamResult',
    'Plane',
    'PairKey',
    'TrackingState',
    'IntersectionFailure',
    'SegmentEventType',
    'PlaneIntersectionSolver',
    'PairSolution',
    'IntersectionSetTracker',
    'IntersectionSegment',
    'SegmentEvent',
    'ReconcileResult',
]
