"""
Intersection set tracker - keeps the active seam segments in step with a
changing set of planes.

Every reconciliation pass receives the current plane snapshot, solves every
unordered pair of tracked planes, and diffs the results against the segments
that were active after the previous pass:

    absent -> active    first successful solve          (CREATED)
    active -> active    solved again, endpoints refreshed (UPDATED)
    active -> absent    pair failed or a plane vanished  (DELETED)

There is no other state. A segment that is not recomputed in a pass is
deleted in that pass, and a failed pair is simply tried again next pass.

The tracker owns its mapping exclusively. reconcile() runs synchronously and
must not overlap itself; callers that receive change notifications faster
than a pass completes should queue and coalesce them.

Main API:
    tracker = IntersectionSetTracker(min_angle_degrees=5.0, max_distance=10.0)
    result = tracker.reconcile(planes)
    result.created / result.updated / result.deleted -> List[PairKey]
    result.events -> List[SegmentEvent]
    tracker.segments -> read-only Mapping[PairKey, IntersectionSegment]
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

import planeseam.mathutils.seam_math as SeamMath
from planeseam.elements.seam_plane import Plane
from planeseam.elements.solvers.seam_intersection_solver import PlaneIntersectionSolver
from planeseam.profiling import perf_marker, profile
from planeseam.seam_types import (
    DEFAULT_MAX_DISTANCE,
    DEFAULT_MIN_ANGLE_DEGREES,
    IntersectionFailure,
    PairKey,
    SegmentEventType,
)

logger = logging.getLogger(__name__)

Point3 = Tuple[float, float, float]


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class IntersectionSegment:
    """
    The visible seam between two planes.

    Endpoints are always farther apart than MIN_SEGMENT_SEPARATION; the
    solver rejects anything shorter before a segment is ever built.
    """
    pair_key: PairKey
    start_point: Point3
    end_point: Point3

    @property
    def length(self) -> float:
        return SeamMath.distance(self.start_point, self.end_point)

    @property
    def midpoint(self) -> Point3:
        return SeamMath.mul3(SeamMath.add3(self.start_point, self.end_point), 0.5)

    @property
    def direction(self) -> Point3:
        """Unit vector from start_point to end_point."""
        return SeamMath.normalize(SeamMath.sub3(self.end_point, self.start_point))

    def involves(self, plane_id) -> bool:
        return self.pair_key.involves(plane_id)


@dataclass(frozen=True)
class SegmentEvent:
    """A create/update/delete notification for the presentation layer."""
    type: SegmentEventType
    pair_key: PairKey
    start_point: Optional[Point3] = None
    end_point: Optional[Point3] = None


@dataclass
class ReconcileResult:
    """
    Everything one reconciliation pass changed.

    Attributes:
        created: Keys that became active, in scan order
        updated: Keys that stayed active with refreshed endpoints, in scan order
        deleted: Keys that stopped being active
        events: One SegmentEvent per key above (created/updated first, then deleted)
        failures: Reason for every attempted pair that produced no segment
        pair_count: Number of pairs attempted
    """
    created: List[PairKey] = field(default_factory=list)
    updated: List[PairKey] = field(default_factory=list)
    deleted: List[PairKey] = field(default_factory=list)
    events: List[SegmentEvent] = field(default_factory=list)
    failures: Dict[PairKey, IntersectionFailure] = field(default_factory=dict)
    pair_count: int = 0

    def get_events_of_type(self, event_type: SegmentEventType) -> List[SegmentEvent]:
        return [e for e in self.events if e.type == event_type]

    @property
    def changed_keys(self) -> Set[PairKey]:
        """Keys whose segment appeared or disappeared this pass."""
        return set(self.created) | set(self.deleted)


ReconcileListener = Callable[[ReconcileResult], None]


# ============================================================================
# VALIDATION
# ============================================================================

def validate_min_angle(min_angle_degrees: float) -> float:
    value = float(min_angle_degrees)
    if not (0.0 < value <= 90.0):
        raise ValueError(f"min_angle_degrees must be in (0, 90], got {min_angle_degrees}")
    return value


def validate_max_distance(max_distance: float) -> float:
    value = float(max_distance)
    if not (value > 0.0) or not math.isfinite(value):
        raise ValueError(f"max_distance must be a positive finite number, got {max_distance}")
    return value


def validate_cell_size(cell_size: Optional[float]) -> Optional[float]:
    if cell_size is None:
        return None
    value = float(cell_size)
    if not (value > 0.0) or not math.isfinite(value):
        raise ValueError(f"spatial_cell_size must be a positive finite number or None, got {cell_size}")
    return value


# ============================================================================
# SPATIAL PRUNING
# ============================================================================

def _get_boundary_bounds(plane: Plane, margin: float) -> Tuple[Point3, Point3]:
    """Axis-aligned bounding box of a plane's boundary, inflated by margin."""
    xs = [p[0] for p in plane.boundary]
    ys = [p[1] for p in plane.boundary]
    zs = [p[2] for p in plane.boundary]
    return ((min(xs) - margin, min(ys) - margin, min(zs) - margin),
            (max(xs) + margin, max(ys) + margin, max(zs) + margin))


def _build_spatial_grid(planes: Sequence[Plane], cell_size: float, margin: float) -> Dict[Tuple[int, int, int], List[int]]:
    """
    Build a spatial hash grid of plane indices.

    Each plane with geometry is inserted into every cell its inflated boundary
    bounding box overlaps. Planes without a boundary are left out. Cells are
    never smaller than margin, which bounds the cells per plane to a few per
    axis beyond the boundary's own extent.
    """
    cell_size = max(cell_size, margin)
    grid: Dict[Tuple[int, int, int], List[int]] = {}

    for index, plane in enumerate(planes):
        if not plane.has_geometry:
            continue
        min_pt, max_pt = _get_boundary_bounds(plane, margin)

        min_cell = [int(math.floor(c / cell_size)) for c in min_pt]
        max_cell = [int(math.floor(c / cell_size)) for c in max_pt]

        for cx in range(min_cell[0], max_cell[0] + 1):
            for cy in range(min_cell[1], max_cell[1] + 1):
                for cz in range(min_cell[2], max_cell[2] + 1):
                    grid.setdefault((cx, cy, cz), []).append(index)

    return grid


def _get_candidate_pairs_from_grid(grid: Dict[Tuple[int, int, int], List[int]]) -> List[Tuple[int, int]]:
    """Index pairs (i < j) sharing at least one cell, sorted into scan order."""
    pairs = set()
    for cell_indices in grid.values():
        for a, i in enumerate(cell_indices):
            for j in cell_indices[a + 1:]:
                pairs.add((i, j) if i < j else (j, i))
    return sorted(pairs)


def _all_pairs(count: int) -> Iterator[Tuple[int, int]]:
    for i in range(count):
        for j in range(i + 1, count):
            yield i, j


# ============================================================================
# TRACKER
# ============================================================================

class IntersectionSetTracker:
    """
    Maintains the keyed set of active intersection segments.

    Args:
        min_angle_degrees: Pairs whose normals are closer than this to parallel
            or anti-parallel are skipped. Must be in (0, 90].
        max_distance: Passed to the pair solver. Must be positive.
        spatial_cell_size: When set, only pairs whose boundary boxes (inflated
            by max_distance) share a grid cell of this size are attempted.
            None (default) attempts every pair.
    """

    def __init__(self,
                 min_angle_degrees: float = DEFAULT_MIN_ANGLE_DEGREES,
                 max_distance: float = DEFAULT_MAX_DISTANCE,
                 spatial_cell_size: Optional[float] = None):
        self._min_angle_degrees = validate_min_angle(min_angle_degrees)
        self._max_distance = validate_max_distance(max_distance)
        self._spatial_cell_size = validate_cell_size(spatial_cell_size)
        self._segments: Dict[PairKey, IntersectionSegment] = {}
        self._listeners: List[ReconcileListener] = []
        self._reconciling = False

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def min_angle_degrees(self) -> float:
        return self._min_angle_degrees

    @min_angle_degrees.setter
    def min_angle_degrees(self, value: float) -> None:
        self._min_angle_degrees = validate_min_angle(value)

    @property
    def max_distance(self) -> float:
        return self._max_distance

    @max_distance.setter
    def max_distance(self, value: float) -> None:
        self._max_distance = validate_max_distance(value)

    @property
    def spatial_cell_size(self) -> Optional[float]:
        return self._spatial_cell_size

    @spatial_cell_size.setter
    def spatial_cell_size(self, value: Optional[float]) -> None:
        self._spatial_cell_size = validate_cell_size(value)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def segments(self) -> Mapping[PairKey, IntersectionSegment]:
        """Read-only view of the active segments."""
        return MappingProxyType(self._segments)

    def get_segment(self, pair_key: PairKey) -> Optional[IntersectionSegment]:
        return self._segments.get(pair_key)

    def get_segments_for_plane(self, plane_id) -> List[IntersectionSegment]:
        """Active segments that have plane_id on either side."""
        return [s for s in self._segments.values() if s.involves(plane_id)]

    def __len__(self) -> int:
        return len(self._segments)

    def __contains__(self, pair_key) -> bool:
        return pair_key in self._segments

    def __iter__(self) -> Iterator[PairKey]:
        return iter(list(self._segments))

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: ReconcileListener) -> None:
        """Call listener(result) after every pass that has at least one event."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ReconcileListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, result: ReconcileResult) -> None:
        if not result.events:
            return
        for listener in list(self._listeners):
            listener(result)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def _candidate_pairs(self, planes: Sequence[Plane], max_distance: float) -> Iterable[Tuple[int, int]]:
        if self._spatial_cell_size is None:
            return _all_pairs(len(planes))
        with perf_marker("spatial_grid"):
            grid = _build_spatial_grid(planes, self._spatial_cell_size, max_distance)
            return _get_candidate_pairs_from_grid(grid)

    @staticmethod
    def _filter_tracked(current_planes: Iterable[Optional[Plane]]) -> List[Plane]:
        """Tracked planes in snapshot order. Duplicate ids raise ValueError."""
        seen_ids = set()
        planes = []
        for plane in current_planes:
            if plane is None:
                continue
            if plane.id in seen_ids:
                raise ValueError(f"Duplicate plane id {plane.id!r} in snapshot")
            seen_ids.add(plane.id)
            if plane.is_tracking:
                planes.append(plane)
        return planes

    @profile("reconcile")
    def reconcile(self,
                  current_planes: Iterable[Optional[Plane]],
                  min_angle_degrees: Optional[float] = None,
                  max_distance: Optional[float] = None) -> ReconcileResult:
        """
        Bring the active segments in line with a plane snapshot.

        Args:
            current_planes: Every plane the platform currently knows about;
                planes not in TrackingState.TRACKING are ignored
            min_angle_degrees: Override for this pass only
            max_distance: Override for this pass only

        Returns:
            ReconcileResult describing the created, updated and deleted keys

        Raises:
            ValueError: On duplicate plane ids or out-of-range overrides. The
                active segments are left untouched.
            RuntimeError: If called while another pass on this tracker is running
        """
        if self._reconciling:
            raise RuntimeError("reconcile() is already running on this tracker")

        min_angle = self._min_angle_degrees if min_angle_degrees is None else validate_min_angle(min_angle_degrees)
        max_dist = self._max_distance if max_distance is None else validate_max_distance(max_distance)

        self._reconciling = True
        try:
            planes = self._filter_tracked(current_planes)
            result = ReconcileResult()
            solved: List[Tuple[PairKey, Point3, Point3]] = []

            # Solve every candidate pair before touching the mapping so that a
            # bad snapshot (e.g. incomparable ids) leaves the state intact
            for i, j in self._candidate_pairs(planes, max_dist):
                plane1, plane2 = planes[i], planes[j]
                pair_key = PairKey.of(plane1.id, plane2.id)
                result.pair_count += 1

                failure = self._check_angle(plane1, plane2, min_angle)
                if failure is None:
                    solution = PlaneIntersectionSolver.solve_pair(plane1, plane2, max_dist)
                    if solution:
                        solved.append((pair_key, solution.start_point, solution.end_point))
                        continue
                    failure = solution.failure

                result.failures[pair_key] = failure
                logger.debug("Pair %s has no segment: %s", pair_key, failure.name)

            self._apply(solved, result)

            logger.debug(
                "Reconciled %d planes (%d pairs): %d created, %d updated, %d deleted, %d active",
                len(planes), result.pair_count, len(result.created), len(result.updated),
                len(result.deleted), len(self._segments)
            )

            self._notify(result)
            return result
        finally:
            self._reconciling = False

    @staticmethod
    def _check_angle(plane1: Plane, plane2: Plane, min_angle: float) -> Optional[IntersectionFailure]:
        if plane1.is_degenerate or plane2.is_degenerate:
            return IntersectionFailure.PARALLEL_PLANES
        angle = SeamMath.angle_between(plane1.normal, plane2.normal)
        if angle < min_angle or angle > 180.0 - min_angle:
            return IntersectionFailure.SHALLOW_ANGLE
        return None

    def _apply(self, solved: List[Tuple[PairKey, Point3, Point3]], result: ReconcileResult) -> None:
        with perf_marker("apply_segments"):
            seen = set()
            for pair_key, start, end in solved:
                seen.add(pair_key)
                is_new = pair_key not in self._segments
                self._segments[pair_key] = IntersectionSegment(pair_key, start, end)
                if is_new:
                    result.created.append(pair_key)
                    result.events.append(SegmentEvent(SegmentEventType.CREATED, pair_key, start, end))
                else:
                    result.updated.append(pair_key)
                    result.events.append(SegmentEvent(SegmentEventType.UPDATED, pair_key, start, end))

            for pair_key in [k for k in self._segments if k not in seen]:
                del self._segments[pair_key]
                result.deleted.append(pair_key)
                result.events.append(SegmentEvent(SegmentEventType.DELETED, pair_key))

    def clear(self) -> ReconcileResult:
        """Delete every active segment, emitting a DELETED event for each."""
        if self._reconciling:
            raise RuntimeError("clear() called while reconcile() is running on this tracker")

        self._reconciling = True
        try:
            result = ReconcileResult()
            for pair_key in list(self._segments):
                del self._segments[pair_key]
                result.deleted.append(pair_key)
                result.events.append(SegmentEvent(SegmentEventType.DELETED, pair_key))
            self._notify(result)
            return result
        finally:
            self._reconciling = False
