"""
Unit tests for the plane pair intersection solver.
"""

import math
import unittest
import numpy as np
import planeseam.mathutils.seam_math as SeamMath
from planeseam.elements.solvers import PlaneIntersectionSolver
from planeseam.seam_types import IntersectionFailure
from tests.test_fixtures.mocks import make_plane, make_floor, make_wall_x, rect_boundary
from tests.test_fixtures.assertions import assert_segment_endpoints, assert_point_on_plane


class InfiniteIntersectionTests(unittest.TestCase):
    """Tests for PlaneIntersectionSolver.compute_infinite_intersection"""

    def testPerpendicularPlanes(self):
        """Test floor and wall meet along the Z axis"""
        line = PlaneIntersectionSolver.compute_infinite_intersection(make_floor("a"), make_wall_x("b"))
        self.assertIsNotNone(line)
        self.assertTrue(np.allclose(line.direction, [0, 0, -1]), "Direction should be cross(n1, n2) normalized")
        self.assertTrue(np.allclose(line.origin, [0, 0, 0]))
        self.assertIsInstance(line.origin, tuple)
        self.assertIsInstance(line.direction, tuple)

    def testOriginFromCenters(self):
        """Test the origin is the second center projected onto the line through the first"""
        floor = make_floor("a")
        wall = make_wall_x("b", center_yz=(0.0, 2.0))
        line = PlaneIntersectionSolver.compute_infinite_intersection(floor, wall)
        self.assertTrue(np.allclose(line.origin, [0, 0, 2]))

    def testOriginLiesOnBothPlanes(self):
        """Test the origin satisfies both plane equations for arbitrary centers"""
        plane1 = make_plane("p1", (1, 2, 3), (0, 1, 0), [])
        plane2 = make_plane("p2", (4, 0, -2), SeamMath.normalize((1, 0, 1)), [])
        line = PlaneIntersectionSolver.compute_infinite_intersection(plane1, plane2)

        self.assertIsNotNone(line)
        assert_point_on_plane(self, line.origin, plane1)
        assert_point_on_plane(self, line.origin, plane2)
        self.assertAlmostEqual(float(np.linalg.norm(line.direction)), 1.0)
        self.assertAlmostEqual(float(np.dot(line.direction, plane1.normal)), 0.0)
        self.assertAlmostEqual(float(np.dot(line.direction, plane2.normal)), 0.0)
        self.assertTrue(np.all(np.isfinite(line.origin)))

    def testParallelPlanes(self):
        """Test parallel, anti-parallel and nearly parallel normals have no line"""
        floor = make_floor("a")
        self.assertIsNone(PlaneIntersectionSolver.compute_infinite_intersection(floor, make_floor("b", y=1.0)))

        flipped = make_plane("b", (0, 1, 0), (0, -1, 0), [])
        self.assertIsNone(PlaneIntersectionSolver.compute_infinite_intersection(floor, flipped))

        angle = math.radians(1.0)
        almost = make_plane("c", (0, 1, 0), (math.sin(angle), math.cos(angle), 0), [])
        self.assertIsNone(PlaneIntersectionSolver.compute_infinite_intersection(floor, almost))

    def testDegenerateNormal(self):
        zero = make_plane("b", (0, 0, 0), (0, 0, 0), [])
        self.assertIsNone(PlaneIntersectionSolver.compute_infinite_intersection(make_floor("a"), zero))


class ClipToBoundariesTests(unittest.TestCase):
    """Tests for PlaneIntersectionSolver.solve_pair and clip_to_boundaries"""

    def testAxisAlignedSquares(self):
        """Test two 2x2 squares meeting at right angles give (0,0,-1)-(0,0,1)"""
        endpoints = PlaneIntersectionSolver.clip_to_boundaries(make_floor("a"), make_wall_x("b"), 10.0)
        assert_segment_endpoints(self, endpoints, [0, 0, -1], [0, 0, 1])

    def testAxisAlignedSquaresSolution(self):
        solution = PlaneIntersectionSolver.solve_pair(make_floor("a"), make_wall_x("b"))
        self.assertTrue(solution)
        self.assertIsNone(solution.failure)
        self.assertIsNotNone(solution.line)
        self.assertEqual(len(solution.crossings), 4, "Each square should contribute two crossings")
        self.assertEqual([c.source for c in solution.crossings], [0, 0, 1, 1])
        for point in solution.endpoints:
            self.assertTrue(np.allclose(point[:2], [0, 0]), "Endpoints should lie on the line x=0, y=0")

    def testShrunkBoundariesDoNotOverlap(self):
        """Test squares shrunk to disjoint z ranges give no segment"""
        floor = make_floor("a", center_xz=(0.0, 0.75), half_z=0.25)      # z in [0.5, 1]
        wall = make_wall_x("b", center_yz=(0.0, -0.75), half_z=0.25)     # z in [-1, -0.5]

        solution = PlaneIntersectionSolver.solve_pair(floor, wall)
        self.assertFalse(solution)
        self.assertEqual(solution.failure, IntersectionFailure.NO_OVERLAP)
        self.assertEqual(len(solution.crossings), 0, "Crossings outside the other polygon should be dropped")
        self.assertIsNone(PlaneIntersectionSolver.clip_to_boundaries(floor, wall))

    def testCoplanarPlanes(self):
        """Test coplanar planes report PARALLEL_PLANES regardless of boundaries"""
        plane1 = make_floor("a")
        plane2 = make_floor("b", center_xz=(0.5, 0.0))
        solution = PlaneIntersectionSolver.solve_pair(plane1, plane2)
        self.assertEqual(solution.failure, IntersectionFailure.PARALLEL_PLANES)
        self.assertIsNone(solution.line)

        empty = make_plane("c", (3, 0, 0), (0, 1, 0), [])
        self.assertEqual(PlaneIntersectionSolver.solve_pair(plane1, empty).failure,
                         IntersectionFailure.PARALLEL_PLANES)

    def testEmptyBoundary(self):
        """Test a plane without a boundary yet gives EMPTY_BOUNDARY but still a line"""
        wall = make_plane("b", (0, 0, 0), (1, 0, 0), [(0, 0, 0), (0, 1, 0)])
        solution = PlaneIntersectionSolver.solve_pair(make_floor("a"), wall)
        self.assertEqual(solution.failure, IntersectionFailure.EMPTY_BOUNDARY)
        self.assertIsNotNone(solution.line)

    def testDegenerateNormalIsParallel(self):
        zero = make_plane("b", (0, 0, 0), (0, 0, 0), rect_boundary((0, 0, 0), (0, 1, 0), (0, 0, 1), 1, 1))
        self.assertEqual(PlaneIntersectionSolver.solve_pair(make_floor("a"), zero).failure,
                         IntersectionFailure.PARALLEL_PLANES)

    def testPartialOverlap(self):
        """Test the segment covers only the shared z range"""
        wall = make_wall_x("b", center_yz=(0.0, 1.0))   # z in [0, 2]
        endpoints = PlaneIntersectionSolver.clip_to_boundaries(make_floor("a"), wall)
        assert_segment_endpoints(self, endpoints, [0, 0, 0], [0, 0, 1])

    def testTiltedWall(self):
        """Test a wall leaning 45 degrees still clips to the floor edges"""
        a = math.sqrt(0.5)
        boundary = rect_boundary((0, 0, 0), (-a, a, 0), (0, 0, 1), 1, 1)
        wall = make_plane("b", (0, 0, 0), (1, 1, 0), boundary)
        endpoints = PlaneIntersectionSolver.clip_to_boundaries(make_floor("a"), wall)
        assert_segment_endpoints(self, endpoints, [0, 0, -1], [0, 0, 1])

    def testWallOffsetFromOrigin(self):
        """Test the line is found when neither center lies on it"""
        wall = make_wall_x("b", x=0.5)
        endpoints = PlaneIntersectionSolver.clip_to_boundaries(make_floor("a"), wall)
        assert_segment_endpoints(self, endpoints, [0.5, 0, -1], [0.5, 0, 1])

    def testNearlyTouchingBoundariesAreDegenerate(self):
        """Test crossings 0.005 apart are rejected as a degenerate segment"""
        wall = make_plane("b", (0, 0, 2), (1, 0, 0),
                          [(0, -1, 1.005), (0, 1, 1.005), (0, 1, 3), (0, -1, 3)])
        solution = PlaneIntersectionSolver.solve_pair(make_floor("a"), wall)
        self.assertEqual(solution.failure, IntersectionFailure.DEGENERATE_SEGMENT)
        self.assertEqual(len(solution.crossings), 2)

    def testSingleCrossingUsesOtherPlaneProjection(self):
        """Test one crossing is paired with the other plane's closest vertex projection"""
        # Slanted bottom edge passes within tolerance of (0, 0, 1) but crosses
        # the floor plane at z=1.05, outside the floor
        wall = make_plane("b", (0, 0, 2), (1, 0, 0),
                          [(0, -0.09, 0.15), (0, 0.11, 2.15), (0, 0.11, 3), (0, -0.09, 3)])
        solution = PlaneIntersectionSolver.solve_pair(make_floor("a"), wall)

        self.assertTrue(solution, f"Expected a segment, got {solution.failure}")
        self.assertEqual(len(solution.crossings), 1)
        self.assertEqual(solution.crossings[0].source, 0)
        self.assertTrue(np.allclose(solution.start_point, [0, 0, 1]))
        self.assertTrue(np.allclose(solution.end_point, [0, 0, 0.15]),
                        "Other endpoint should be the wall vertex closest to the line, projected onto it")

    def testNoCrossingsUsesVertexProjections(self):
        """Test a wall hovering above the floor is joined by vertex projections"""
        wall = make_wall_x("b", center_yz=(1.0, 0.0), half_y=0.5, half_z=0.5)   # y in [0.5, 1.5]
        solution = PlaneIntersectionSolver.solve_pair(make_floor("a"), wall)

        self.assertTrue(solution, f"Expected a segment, got {solution.failure}")
        self.assertEqual(len(solution.crossings), 0)
        self.assertTrue(np.allclose(solution.start_point, [0, 0, -1]))
        self.assertTrue(np.allclose(solution.end_point, [0, 0, -0.5]))

    def testVertexProjectionRespectsMaxDistance(self):
        """Test vertices farther than max_distance from the line are not used"""
        wall = make_wall_x("b", center_yz=(1.0, 0.0), half_y=0.5, half_z=0.5)
        solution = PlaneIntersectionSolver.solve_pair(make_floor("a"), wall, max_distance=0.4)
        self.assertEqual(solution.failure, IntersectionFailure.NO_OVERLAP)

    def testFarWallHasNoSegment(self):
        """Test a wall far from the floor boundary gives NO_OVERLAP"""
        wall = make_wall_x("b", x=50.0)
        self.assertEqual(PlaneIntersectionSolver.solve_pair(make_floor("a"), wall).failure,
                         IntersectionFailure.NO_OVERLAP)

    def testInvalidMaxDistanceRaises(self):
        for value in (0.0, -1.0, float('nan'), float('inf')):
            with self.assertRaises(ValueError, msg=f"max_distance={value} should raise"):
                PlaneIntersectionSolver.solve_pair(make_floor("a"), make_wall_x("b"), value)

    def testSymmetry(self):
        """Test swapping the planes gives the same endpoint set or the same failure"""
        floor = make_floor("a")
        cases = [
            make_wall_x("b"),
            make_wall_x("b", center_yz=(0.0, 1.0)),
            make_wall_x("b", x=0.5),
            make_wall_x("b", center_yz=(1.0, 0.0), half_y=0.5, half_z=0.5),
            make_wall_x("b", x=50.0),
            make_floor("b", y=2.0),
        ]
        for wall in cases:
            forward = PlaneIntersectionSolver.solve_pair(floor, wall)
            backward = PlaneIntersectionSolver.solve_pair(wall, floor)
            self.assertEqual(forward.failure, backward.failure, f"Failure mismatch for {wall}")
            if forward:
                assert_segment_endpoints(self, backward.endpoints, *forward.endpoints,
                                         msg=f"Symmetry for {wall.center}")

    def testArgumentOrderDoesNotMoveLineOrigin(self):
        """Test a pair whose projection bound depends on the line origin gives one answer"""
        # Floor x in [0.5, 2.5], z in [0, 12]; wall y in [0.5, 2.5], z in [11, 13]
        floor = make_floor("a", center_xz=(1.5, 6.0), half_x=1.0, half_z=6.0)
        wall = make_wall_x("b", center_yz=(1.5, 12.0), half_y=1.0, half_z=1.0)

        forward = PlaneIntersectionSolver.solve_pair(floor, wall, 10.0)
        backward = PlaneIntersectionSolver.solve_pair(wall, floor, 10.0)
        self.assertEqual(forward.failure, backward.failure)
        self.assertEqual(forward.endpoints, backward.endpoints)
        self.assertTrue(np.allclose(forward.line.origin, backward.line.origin))
        self.assertTrue(np.allclose(forward.line.direction, backward.line.direction))

        # Same geometry with the ids swapped solves from the wall side
        wall_first = make_wall_x("a", center_yz=(1.5, 12.0), half_y=1.0, half_z=1.0)
        floor_second = make_floor("b", center_xz=(1.5, 6.0), half_x=1.0, half_z=6.0)
        forward = PlaneIntersectionSolver.solve_pair(wall_first, floor_second, 10.0)
        backward = PlaneIntersectionSolver.solve_pair(floor_second, wall_first, 10.0)
        self.assertIsNone(forward.failure)
        self.assertTrue(np.allclose(forward.start_point, [0, 0, 11]))
        self.assertTrue(np.allclose(forward.end_point, [0, 0, 0]))
        self.assertTrue(np.allclose(backward.start_point, forward.start_point))
        self.assertTrue(np.allclose(backward.end_point, forward.end_point))


if __name__ == '__main__':
    unittest.main()
