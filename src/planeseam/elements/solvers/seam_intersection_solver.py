"""
Plane pair intersection solver - finds the visible seam between two planes.

This module is pure geometry: every function reads two Plane snapshots and
returns a result, with no retained state. Independent pairs can therefore be
solved in any order, or concurrently.

Core Concepts:
    Infinite intersection (SeamLine):
        Two non-parallel planes meet along a line with direction
        cross(normal1, normal2). The line's origin is a reproducible point on
        that line derived from the two plane centers.

    Boundary crossings:
        Each plane's boundary is a closed edge loop. Where an edge pierces the
        *other* plane, and the piercing point lies inside both polygons, we get
        a crossing point on the visible seam.

    Three-tier clipping:
        Sensor polygons are noisy and rarely cross each other exactly, so the
        segment endpoints come from the first tier that applies:
        - 2+ crossings: the two crossings farthest apart
        - 1 crossing: that crossing, plus the closest boundary vertex of the
          other plane projected onto the line
        - 0 crossings: the closest boundary vertex of each plane projected onto
          the line
        Projection tiers are bounded by max_distance and require the two
        boundaries' extents along the line to overlap.

Main API:
    # Infinite line, or None for parallel / degenerate planes
    line = PlaneIntersectionSolver.compute_infinite_intersection(plane1, plane2)

    # Clipped segment endpoints, or None
    endpoints = PlaneIntersectionSolver.clip_to_boundaries(plane1, plane2, max_distance)

    # Same, with the failure reason when there is no segment
    solution = PlaneIntersectionSolver.solve_pair(plane1, plane2, max_distance)
    solution.endpoints, solution.failure
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import planeseam.mathutils.seam_math as SeamMath
from planeseam.mathutils.seam_line import SeamLine
from planeseam.elements.seam_plane import Plane
from planeseam.profiling import profile
from planeseam.seam_types import (
    BOUNDARY_TOLERANCE,
    DEFAULT_MAX_DISTANCE,
    EDGE_PARAM_TOLERANCE,
    GEOMETRY_EPSILON,
    MIN_SEGMENT_SEPARATION,
    IntersectionFailure,
)

Point3 = Tuple[float, float, float]


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class BoundaryCrossing:
    """
    A point where one plane's boundary edge pierces the other plane.

    Attributes:
        point: World-space crossing point
        source: 0 if the edge belongs to the first plane of the pair, 1 if to the second
        edge_index: Index i of the edge (boundary[i], boundary[i + 1])
    """
    point: Point3
    source: int
    edge_index: int


@dataclass
class PairSolution:
    """
    Outcome of solving one plane pair.

    Exactly one of endpoints / failure is set. line is set whenever the planes
    have a well-defined infinite intersection, even if clipping failed.
    """
    line: Optional[SeamLine] = None
    endpoints: Optional[Tuple[Point3, Point3]] = None
    failure: Optional[IntersectionFailure] = None
    crossings: Tuple[BoundaryCrossing, ...] = ()

    def __bool__(self) -> bool:
        return self.endpoints is not None

    @property
    def start_point(self) -> Optional[Point3]:
        return self.endpoints[0] if self.endpoints else None

    @property
    def end_point(self) -> Optional[Point3]:
        return self.endpoints[1] if self.endpoints else None

    @staticmethod
    def failed(failure: IntersectionFailure, line: Optional[SeamLine] = None,
               crossings: Sequence[BoundaryCrossing] = ()) -> 'PairSolution':
        return PairSolution(line=line, failure=failure, crossings=tuple(crossings))


# ============================================================================
# SOLVER
# ============================================================================

class PlaneIntersectionSolver:
    """
    Computes intersection geometry for a single pair of planes.

    Main API:
        PlaneIntersectionSolver.solve_pair(plane1, plane2, max_distance) -> PairSolution

    compute_infinite_intersection and clip_to_boundaries are the two stages of
    solve_pair exposed on their own; the underscore helpers are internal.
    """

    @staticmethod
    def compute_infinite_intersection(plane1: Plane, plane2: Plane) -> Optional[SeamLine]:
        """
        Find the infinite line where two planes meet.

        The origin starts as center1 moved along the line direction by the
        projection of (center2 - center1), then gets the smallest correction
        along the two normals that puts it on both planes. When that starting
        point already satisfies both plane equations it is returned unchanged.

        Returns:
            SeamLine with finite origin and unit direction, or None when either
            normal is degenerate or the normals are (anti-)parallel.
        """
        if plane1.is_degenerate or plane2.is_degenerate:
            return None

        n1 = plane1.normal
        n2 = plane2.normal

        cross = SeamMath.cross3(n1, n2)
        cross_sq = SeamMath.length_sq(cross)
        if cross_sq < GEOMETRY_EPSILON:
            return None

        direction = SeamMath.normalize(cross)

        c1 = plane1.center
        c2 = plane2.center
        t = SeamMath.dot3(SeamMath.sub3(c2, c1), direction)
        origin = SeamMath.add3(c1, SeamMath.mul3(direction, t))

        # Residuals of both plane equations at origin
        r1 = -plane1.signed_distance(origin)
        r2 = -plane2.signed_distance(origin)
        if r1 != 0.0 or r2 != 0.0:
            # Unit normals: det of the 2x2 Gram system equals |n1 x n2|^2
            k = SeamMath.dot3(n1, n2)
            a = (r1 - k * r2) / cross_sq
            b = (r2 - k * r1) / cross_sq
            origin = SeamMath.add3(origin, SeamMath.add3(SeamMath.mul3(n1, a), SeamMath.mul3(n2, b)))

        if not all(math.isfinite(c) for c in origin):
            return None

        return SeamLine(origin=origin, direction=direction)

    @staticmethod
    def _find_boundary_crossings(source: Plane, other: Plane, source_index: int) -> List[BoundaryCrossing]:
        """
        Intersect every edge of source's boundary with the other infinite plane.

        A crossing is kept only if it lies inside both polygons (each tested in
        its own plane frame, with points near an edge counting as inside).
        """
        crossings = []
        boundary = source.boundary
        n = len(boundary)

        for i in range(n):
            hit = SeamMath.intersect_segment_with_plane(
                boundary[i], boundary[(i + 1) % n],
                other.center, other.normal,
                GEOMETRY_EPSILON, EDGE_PARAM_TOLERANCE
            )
            if hit is None:
                continue

            if not source.contains_point(hit, BOUNDARY_TOLERANCE):
                continue
            if not other.contains_point(hit, BOUNDARY_TOLERANCE):
                continue

            crossings.append(BoundaryCrossing(point=hit, source=source_index, edge_index=i))

        return crossings

    @staticmethod
    def _closest_boundary_projection(line: SeamLine, boundary: Sequence[Point3],
                                     max_distance: float) -> Optional[Tuple[float, Point3]]:
        """
        Project the boundary vertex closest to the line onto the line.

        Only vertices nearer to the line than max_distance are considered.

        Returns:
            (s, point) where s is the signed distance of the projection from the
            line origin, or None if no vertex is close enough.
        """
        best = None
        best_distance = math.inf

        for p in boundary:
            d = line.distance_to(p)
            if d < best_distance and d < max_distance:
                best_distance = d
                s = line.project(p)
                best = (s, line.point_at(s))

        return best

    @staticmethod
    def _extents_overlap(line: SeamLine, boundary1: Sequence[Point3], boundary2: Sequence[Point3]) -> bool:
        """True if the two boundaries' projections onto the line share an interval."""
        s1 = [line.project(p) for p in boundary1]
        s2 = [line.project(p) for p in boundary2]
        lo = max(min(s1), min(s2))
        hi = min(max(s1), max(s2))
        return hi >= lo - BOUNDARY_TOLERANCE

    @staticmethod
    def _farthest_pair(points: Sequence[Point3]) -> Tuple[Point3, Point3]:
        """Exhaustive search for the two points farthest apart (first maximum wins)."""
        best_i, best_j = 0, 1
        best_dist_sq = -1.0
        for i in range(len(points)):
            for j in range(i + 1, len(points)):
                d = SeamMath.distance_sq(points[i], points[j])
                if d > best_dist_sq:
                    best_dist_sq = d
                    best_i, best_j = i, j
        return points[best_i], points[best_j]

    @staticmethod
    @profile("solve_pair")
    def solve_pair(plane1: Plane, plane2: Plane, max_distance: float = DEFAULT_MAX_DISTANCE) -> PairSolution:
        """
        Compute the visible intersection segment of two planes.

        The pair is solved with the smaller id first, so swapping the arguments
        gives the same line, endpoints and failure. BoundaryCrossing.source
        refers to that id order.

        Args:
            plane1: First plane of the pair
            plane2: Second plane of the pair
            max_distance: Bound for projection-based endpoints, both on how far a
                boundary vertex may be from the line and how far the projected
                endpoint may be from the line origin

        Returns:
            PairSolution with endpoints on success, or the IntersectionFailure

        Raises:
            ValueError: If max_distance is not a positive finite number
        """
        if not (max_distance > 0.0) or not math.isfinite(max_distance):
            raise ValueError(f"max_distance must be a positive finite number, got {max_distance}")

        if plane2.id < plane1.id:
            plane1, plane2 = plane2, plane1

        line = PlaneIntersectionSolver.compute_infinite_intersection(plane1, plane2)
        if line is None:
            return PairSolution.failed(IntersectionFailure.PARALLEL_PLANES)

        if not plane1.has_geometry or not plane2.has_geometry:
            return PairSolution.failed(IntersectionFailure.EMPTY_BOUNDARY, line)

        crossings = (PlaneIntersectionSolver._find_boundary_crossings(plane1, plane2, 0)
                     + PlaneIntersectionSolver._find_boundary_crossings(plane2, plane1, 1))

        if len(crossings) >= 2:
            start, end = PlaneIntersectionSolver._farthest_pair([c.point for c in crossings])
        else:
            if not PlaneIntersectionSolver._extents_overlap(line, plane1.boundary, plane2.boundary):
                return PairSolution.failed(IntersectionFailure.NO_OVERLAP, line, crossings)

            if len(crossings) == 1:
                start = crossings[0].point
                other = plane2 if crossings[0].source == 0 else plane1
                projection = PlaneIntersectionSolver._closest_boundary_projection(line, other.boundary, max_distance)
                if projection is None or abs(projection[0]) >= max_distance:
                    return PairSolution.failed(IntersectionFailure.NO_OVERLAP, line, crossings)
                end = projection[1]
            else:
                projection1 = PlaneIntersectionSolver._closest_boundary_projection(line, plane1.boundary, max_distance)
                projection2 = PlaneIntersectionSolver._closest_boundary_projection(line, plane2.boundary, max_distance)
                if projection1 is None or projection2 is None:
                    return PairSolution.failed(IntersectionFailure.NO_OVERLAP, line)
                if abs(projection1[0]) >= max_distance or abs(projection2[0]) >= max_distance:
                    return PairSolution.failed(IntersectionFailure.NO_OVERLAP, line)
                start, end = projection1[1], projection2[1]

        if SeamMath.distance(start, end) <= MIN_SEGMENT_SEPARATION:
            return PairSolution.failed(IntersectionFailure.DEGENERATE_SEGMENT, line, crossings)

        return PairSolution(line=line, endpoints=(start, end), crossings=tuple(crossings))

    @staticmethod
    def clip_to_boundaries(plane1: Plane, plane2: Plane,
                           max_distance: float = DEFAULT_MAX_DISTANCE) -> Optional[Tuple[Point3, Point3]]:
        """
        Clip the planes' infinite intersection to both boundaries.

        Returns:
            (start_point, end_point) tuples, or None when the pair has no
            visible segment (see solve_pair for the reason)
        """
        return PlaneIntersectionSolver.solve_pair(plane1, plane2, max_distance).endpoints
