"""
Integration tests for seams in a room built from posed planes.

The room is a 4x4 floor with two 2m walls standing on its +X and +Z edges,
all described the way the sensing platform reports them: a pose and a
boundary in the plane's local 2D space.
"""

import math
import unittest
import numpy as np
from planeseam import Plane, PairKey, SeamConfig, TrackingState, run
from planeseam.elements.solvers import IntersectionSetTracker
from planeseam.render_engines import JSONRenderContext
from planeseam.seam_types import SegmentEventType
from tests.test_fixtures.assertions import assert_segment_endpoints

S = math.sqrt(0.5)


def make_room_floor():
    return Plane.from_pose("floor", (0, 0, 0), (0, 0, 0, 1), [(-2, -2), (2, -2), (2, 2), (-2, 2)])


def make_room_wall_x(x=2.0, tracking_state=TrackingState.TRACKING):
    # Rotated 90 degrees about +Z: normal faces -X, local u runs up, v along Z
    return Plane.from_pose("wall_x", (x, 1, 0), (0, 0, S, S), [(-1, -2), (1, -2), (1, 2), (-1, 2)], tracking_state)


def make_room_wall_z(z=2.0):
    # Rotated -90 degrees about +X: normal faces -Z, local u runs along X, v up
    return Plane.from_pose("wall_z", (0, 1, z), (-S, 0, 0, S), [(-2, -1), (2, -1), (2, 1), (-2, 1)])


class RoomSeamIntegrationTests(unittest.TestCase):
    """Floor and walls reconciled over several frames"""

    def setUp(self):
        self.tracker = IntersectionSetTracker()
        self.context = JSONRenderContext()
        self.tracker.add_listener(self.context)

    def testPosedPlanes(self):
        """Test poses produce the expected world-space planes"""
        self.assertTrue(np.allclose(make_room_wall_x().normal, [-1, 0, 0]))
        self.assertTrue(np.allclose(make_room_wall_z().normal, [0, 0, -1]))
        self.assertTrue(np.allclose(make_room_wall_z().boundary[0], [-2, 0, 2]))

    def testRoomSeams(self):
        """Test the floor edges and the wall corner are all found"""
        result = self.tracker.reconcile([make_room_floor(), make_room_wall_x(), make_room_wall_z()])

        self.assertEqual(len(result.created), 3)
        segments = self.tracker.segments

        floor_x = segments[PairKey.of("floor", "wall_x")]
        assert_segment_endpoints(self, (floor_x.start_point, floor_x.end_point), [2, 0, -2], [2, 0, 2])

        floor_z = segments[PairKey.of("floor", "wall_z")]
        assert_segment_endpoints(self, (floor_z.start_point, floor_z.end_point), [-2, 0, 2], [2, 0, 2])

        corner = segments[PairKey.of("wall_x", "wall_z")]
        assert_segment_endpoints(self, (corner.start_point, corner.end_point), [2, 0, 2], [2, 2, 2])

        self.assertEqual(len(self.context.get_output()['lines']), 3)

    def testFramesUpdateAndDelete(self):
        """Test a wall drifting, losing tracking and coming back over several frames"""
        floor, wall_z = make_room_floor(), make_room_wall_z()

        self.tracker.reconcile([floor, make_room_wall_x(), wall_z])

        # Frame 2: wall_x refined slightly inward
        result = self.tracker.reconcile([floor, make_room_wall_x(x=1.9), wall_z])
        self.assertEqual(result.created, [])
        self.assertEqual(len(result.updated), 3)
        seam = self.tracker.get_segment(PairKey.of("floor", "wall_x"))
        self.assertTrue(np.allclose([seam.start_point[0], seam.end_point[0]], [1.9, 1.9]))

        # Frame 3: wall_x tracking is limited, its two seams go away
        result = self.tracker.reconcile([floor, make_room_wall_x(tracking_state=TrackingState.LIMITED), wall_z])
        self.assertEqual(set(result.deleted), {PairKey.of("floor", "wall_x"), PairKey.of("wall_x", "wall_z")})
        self.assertEqual(result.updated, [PairKey.of("floor", "wall_z")])
        self.assertEqual(len(self.context.get_output()['lines']), 1)

        # Frame 4: tracking recovered
        result = self.tracker.reconcile([floor, make_room_wall_x(), wall_z])
        self.assertEqual(len(result.get_events_of_type(SegmentEventType.CREATED)), 2)
        self.assertEqual(len(self.context.get_output()['lines']), 3)

    def testEngineRunsAcrossFrames(self):
        planes = [make_room_floor(), make_room_wall_x(), make_room_wall_z()]
        config = SeamConfig(spatial_cell_size=4.0)

        first = run(planes, config=config)
        second = run(planes, config=config, tracker=first.tracker)

        self.assertEqual(first.stats['created_count'], 3)
        self.assertEqual(second.stats['updated_count'], 3)
        self.assertEqual(second.stats['segment_count'], 3)


if __name__ == '__main__':
    unittest.main()
