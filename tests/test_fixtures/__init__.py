"""Test fixtures and utilities for planeseam testing.

Organized into logical modules:
- mocks: Plane factories (make_floor, make_wall_x, make_wall_z, make_plane, rect_boundary)
  and a recording listener (RecordingListener)
- assertions: Custom assertion functions (assert_segment_endpoints, assert_point_on_plane)
"""

from .mocks import (
    rect_boundary,
    make_plane,
    make_floor,
    make_wall_x,
    make_wall_z,
    RecordingListener,
)
from .assertions import assert_segment_endpoints, assert_point_on_plane

__all__ = [
    'rect_boundary',
    'make_plane',
    'make_floor',
    'make_wall_x',
    'make_wall_z',
    'RecordingListener',
    'assert_segment_endpoints',
    'assert_point_on_plane',
]
