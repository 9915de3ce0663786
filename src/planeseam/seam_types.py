"""
    Provides shared types and tolerances for plane seam solving and tracking.
"""

from enum import Enum
from typing import Any, NamedTuple


# ============================================================================
# TOLERANCES
# ============================================================================

# Squared cross-product magnitude below which two unit normals are treated as
# parallel, and |cos| below which a boundary edge is treated as parallel to a plane
GEOMETRY_EPSILON = 1e-3

# Distance a crossing may fall beyond a boundary edge's endpoints and still count
EDGE_PARAM_TOLERANCE = 0.01

# Distance from a polygon edge within which a point counts as inside the polygon
BOUNDARY_TOLERANCE = 0.01

# Segments whose endpoints are closer than this are rejected as degenerate
MIN_SEGMENT_SEPARATION = 0.01

# Minimum number of boundary points for a plane to have usable geometry
MIN_BOUNDARY_POINTS = 3

DEFAULT_MIN_ANGLE_DEGREES = 5.0
DEFAULT_MAX_DISTANCE = 10.0


class TrackingState(Enum):
    """How well the sensing platform currently tracks a plane"""
    NONE = 0
    LIMITED = 1
    TRACKING = 2

    @staticmethod
    def parse(state_str):
        try:
            return TrackingState[state_str.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown tracking state: {state_str!r}")


class IntersectionFailure(Enum):
    """Why a plane pair currently has no visible intersection segment"""
    PARALLEL_PLANES = 1      # Normals nearly collinear, no well-defined line
    EMPTY_BOUNDARY = 2       # One or both planes have no boundary polygon yet
    NO_OVERLAP = 3           # Line exists but no finite segment within limits
    DEGENERATE_SEGMENT = 4   # Endpoints coincide within tolerance
    SHALLOW_ANGLE = 5        # Angle between normals outside [min, 180 - min]


class SegmentEventType(Enum):
    CREATED = 1
    UPDATED = 2
    DELETED = 3


class PairKey(NamedTuple):
    """
    Canonical, order-independent key for an unordered pair of plane ids.

    The smaller id (by the ids' natural ordering) is always stored first, so
    PairKey.of(a, b) == PairKey.of(b, a). Being a tuple it hashes and orders
    like one, which gives keys a well-defined total order of their own.
    """
    first: Any
    second: Any

    @staticmethod
    def of(id_a, id_b) -> 'PairKey':
        if id_a == id_b:
            raise ValueError(f"A pair key needs two distinct plane ids, got {id_a!r} twice")
        if id_b < id_a:
            return PairKey(id_b, id_a)
        return PairKey(id_a, id_b)

    def involves(self, plane_id) -> bool:
        return self.first == plane_id or self.second == plane_id

    def other(self, plane_id):
        """The id paired with plane_id in this key."""
        if self.first == plane_id:
            return self.second
        if self.second == plane_id:
            return self.first
        raise ValueError(f"Plane {plane_id!r} is not part of {self!r}")
