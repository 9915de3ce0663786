"""
Solvers for plane seams.

Pipeline:
1. PlaneIntersectionSolver - computes the clipped intersection segment of one plane pair
2. IntersectionSetTracker - solves every pair of a plane snapshot and reconciles
   the results against the previously active segments
"""

from .seam_intersection_solver import (
    PlaneIntersectionSolver,
    PairSolution,
    BoundaryCrossing,
)

from .seam_segment_tracker import (
    IntersectionSetTracker,
    IntersectionSegment,
    SegmentEvent,
    ReconcileResult,
)

__all__ = [
    # Stage 1: Pair solving
    'PlaneIntersectionSolver',
    'PairSolution',
    'BoundaryCrossing',
    # Stage 2: Reconciliation
    'IntersectionSetTracker',
    'IntersectionSegment',
    'SegmentEvent',
    'ReconcileResult',
]
