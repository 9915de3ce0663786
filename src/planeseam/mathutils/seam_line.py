"""
SeamLine - the infinite line along which two planes meet.
"""

from dataclasses import dataclass
from typing import Tuple

import planeseam.mathutils.seam_math as SeamMath

Point3 = Tuple[float, float, float]


@dataclass(frozen=True)
class SeamLine:
    """An infinite line with an origin and a unit direction, stored as tuples."""
    origin: Point3
    direction: Point3  # Normalized

    def point_at(self, s: float) -> Point3:
        """Get the point at signed distance s from the origin."""
        return SeamMath.add3(self.origin, SeamMath.mul3(self.direction, s))

    def project(self, point) -> float:
        """Signed distance from the origin to the projection of point."""
        return SeamMath.dot3(SeamMath.sub3(point, self.origin), self.direction)

    def distance_to(self, point) -> float:
        return SeamMath.distance(point, self.point_at(self.project(point)))
