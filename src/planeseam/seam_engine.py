"""
PlaneSeam Engine - one-call entry point for solving plane seams.

This module provides the configuration object and a run() helper around
IntersectionSetTracker for callers that want a single reconciliation pass
with statistics and optional timings.

Usage:
    from planeseam.seam_engine import run, SeamConfig

    # Simple usage with defaults
    result = run(planes)

    # With configuration
    config = SeamConfig(min_angle_degrees=10.0, max_distance=5.0)
    result = run(planes, config=config)

    # Keep the active set across passes by reusing the tracker
    result = run(planes)
    result = run(next_planes, tracker=result.tracker)

    # With profiling - timing for every instrumented code section
    result = run(planes, profile=True)
    print(result.timings)
    # {'reconcile': {'count': 1, 'total_ms': 1.2, ...},
    #  'solve_pair': {'count': 15, 'total_ms': 0.9, ...}, ...}
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from planeseam.elements.seam_plane import Plane
from planeseam.elements.solvers import IntersectionSegment, IntersectionSetTracker, ReconcileResult
from planeseam.elements.solvers.seam_segment_tracker import (
    validate_cell_size,
    validate_max_distance,
    validate_min_angle,
)
from planeseam.profiling import (
    enable_profiling,
    get_profile_results,
    perf_marker,
    reset_profile,
)
from planeseam.seam_types import DEFAULT_MAX_DISTANCE, DEFAULT_MIN_ANGLE_DEGREES

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class SeamConfig:
    """
    Configuration options for seam tracking.

    Attributes:
        min_angle_degrees: Pairs whose normals are within this angle of
            parallel or anti-parallel are never joined. Range (0, 90].

        max_distance: Bound for projection-based segment endpoints, in world
            units. Must be positive.

        spatial_cell_size: Grid cell size for pruning distant pairs before
            solving. None attempts every pair.

        profile: Enable timing of the reconciliation pass.
            When True, returns timing data from all instrumented code sections.
    """
    min_angle_degrees: float = DEFAULT_MIN_ANGLE_DEGREES
    max_distance: float = DEFAULT_MAX_DISTANCE
    spatial_cell_size: Optional[float] = None
    profile: bool = False

    def validate(self) -> 'SeamConfig':
        """Raise ValueError if any option is out of range. Returns self."""
        validate_min_angle(self.min_angle_degrees)
        validate_max_distance(self.max_distance)
        validate_cell_size(self.spatial_cell_size)
        return self

    def create_tracker(self) -> IntersectionSetTracker:
        return IntersectionSetTracker(
            min_angle_degrees=self.min_angle_degrees,
            max_distance=self.max_distance,
            spatial_cell_size=self.spatial_cell_size,
        )


@dataclass
class SeamResult:
    """
    Result from one engine run.

    Attributes:
        tracker: The tracker that ran the pass (pass it back in to keep state).
        result: The ReconcileResult of the pass.
        segments: Snapshot of the active segments after the pass.
        timings: Timing data from profiled code sections (if config.profile=True).
            Each key is a marker name, value contains count, total_ms, avg_ms, min_ms, max_ms.
        stats: Counts of planes, pairs, segments and events.
    """
    tracker: IntersectionSetTracker
    result: ReconcileResult
    segments: Mapping[Any, IntersectionSegment]
    timings: Optional[Dict[str, Any]] = None
    stats: Optional[Dict[str, int]] = None


# =============================================================================
# Internal Helpers
# =============================================================================

def _collect_stats(planes, result: ReconcileResult, tracker: IntersectionSetTracker) -> Dict[str, int]:
    """Collect statistics about a pass."""
    return {
        'plane_count': len(planes),
        'tracked_plane_count': sum(1 for p in planes if p is not None and p.is_tracking),
        'pair_count': result.pair_count,
        'segment_count': len(tracker),
        'created_count': len(result.created),
        'updated_count': len(result.updated),
        'deleted_count': len(result.deleted),
        'failure_count': len(result.failures),
    }


def _sync_tracker(tracker: IntersectionSetTracker, config: SeamConfig) -> None:
    tracker.min_angle_degrees = config.min_angle_degrees
    tracker.max_distance = config.max_distance
    tracker.spatial_cell_size = config.spatial_cell_size


# =============================================================================
# Main API
# =============================================================================

def run(
    planes: Iterable[Plane],
    config: Optional[SeamConfig] = None,
    tracker: Optional[IntersectionSetTracker] = None,
    *,
    # Convenience kwargs that override config
    min_angle_degrees: Optional[float] = None,
    max_distance: Optional[float] = None,
    profile: Optional[bool] = None,
) -> SeamResult:
    """
    Run one reconciliation pass over a plane snapshot.

    Args:
        planes: The current plane snapshot.
        config: Configuration options (SeamConfig instance).
        tracker: Tracker to reconcile against. A new one is built from the
            config when omitted; an existing one is reconfigured to match it.
        min_angle_degrees: Override config.min_angle_degrees.
        max_distance: Override config.max_distance.
        profile: Override config.profile.

    Returns:
        SeamResult with the pass result, active segments and stats.

    Raises:
        ValueError: If the effective configuration is out of range.
    """
    # Build effective config
    if config is None:
        config = SeamConfig()

    # Apply overrides
    if min_angle_degrees is not None:
        config.min_angle_degrees = min_angle_degrees
    if max_distance is not None:
        config.max_distance = max_distance
    if profile is not None:
        config.profile = profile

    config.validate()

    if tracker is None:
        tracker = config.create_tracker()
    else:
        _sync_tracker(tracker, config)

    planes = list(planes)

    # Setup profiling
    if config.profile:
        reset_profile()
        enable_profiling(True)

    try:
        with perf_marker("run"):
            result = tracker.reconcile(planes)

        timings = get_profile_results() if config.profile else None
        stats = _collect_stats(planes, result, tracker)

        logger.debug("Seam run finished: %s", stats)

        return SeamResult(
            tracker=tracker,
            result=result,
            segments=dict(tracker.segments),
            timings=timings,
            stats=stats,
        )

    finally:
        # Always disable profiling when done
        if config.profile:
            enable_profiling(False)

