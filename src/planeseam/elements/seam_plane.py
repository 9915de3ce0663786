"""
    A plane is a finite, roughly planar surface patch reported by the sensing
    platform: a pose (center + normal) and a boundary polygon in world space.

    Planes are immutable snapshots. Every reconciliation pass receives a fresh
    list of them; the solver and tracker only ever read them.

    Boundary conventions:
    - World-space points, ordered consistently around a simple polygon
    - Fewer than 3 points means the plane has no usable geometry yet
    - Plane.from_pose() accepts the platform's local 2D boundary, where local
      (u, v) maps to local (u, 0, v) and the local +Y axis is the normal
"""

from dataclasses import dataclass, field
from typing import Any, Sequence, Tuple
import numpy as np

import planeseam.mathutils.seam_math as SeamMath
from planeseam.seam_types import MIN_BOUNDARY_POINTS, TrackingState

Point3 = Tuple[float, float, float]


def _as_point(value, name: str) -> Point3:
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must be finite, got {arr.tolist()}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def _as_boundary(value) -> Tuple[Point3, ...]:
    if value is None:
        return ()
    arr = np.asarray(value, dtype=float)
    if arr.size == 0:
        return ()
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"boundary must be a sequence of 3D points, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError("boundary points must be finite")
    return tuple((float(x), float(y), float(z)) for x, y, z in arr)


@dataclass(frozen=True)
class Plane:
    """
    An immutable, validated plane snapshot.

    Attributes:
        id: Stable, totally ordered, hashable identifier, unique per plane
        center: World-space center point
        normal: World-space unit normal (normalized on construction; a zero
            normal is kept as (0, 0, 0) and marks the plane degenerate)
        boundary: World-space boundary polygon points
        tracking_state: Whether the platform currently tracks this plane
    """
    id: Any
    center: Point3
    normal: Point3
    boundary: Tuple[Point3, ...] = ()
    tracking_state: TrackingState = TrackingState.TRACKING
    _basis: Tuple[Point3, Point3] = field(default=None, init=False, repr=False, compare=False)
    _boundary_2d: Tuple[Tuple[float, float], ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self):
        # Frozen dataclass: normalize fields through object.__setattr__
        object.__setattr__(self, 'center', _as_point(self.center, 'center'))
        object.__setattr__(self, 'normal', SeamMath.safe_normalize(_as_point(self.normal, 'normal')))
        object.__setattr__(self, 'boundary', _as_boundary(self.boundary))
        if isinstance(self.tracking_state, str):
            object.__setattr__(self, 'tracking_state', TrackingState.parse(self.tracking_state))
        elif not isinstance(self.tracking_state, TrackingState):
            object.__setattr__(self, 'tracking_state', TrackingState(self.tracking_state))
        if not self.is_degenerate:
            u_axis, v_axis = SeamMath.get_plane_basis(self.normal)
            object.__setattr__(self, '_basis', (u_axis, v_axis))
            object.__setattr__(self, '_boundary_2d', tuple(
                SeamMath.project_to_plane_2d(p, self.center, u_axis, v_axis) for p in self.boundary
            ))

    @property
    def has_geometry(self) -> bool:
        """True once the boundary has enough points to form a polygon."""
        return len(self.boundary) >= MIN_BOUNDARY_POINTS

    @property
    def is_degenerate(self) -> bool:
        return SeamMath.length_sq(self.normal) < 0.5

    @property
    def is_tracking(self) -> bool:
        return self.tracking_state == TrackingState.TRACKING

    @property
    def basis(self) -> Tuple[Point3, Point3]:
        """In-plane orthonormal axes (u, v) used for 2D polygon tests."""
        if self._basis is None:
            raise ValueError(f"Plane {self.id!r} has a zero normal and no local frame")
        return self._basis

    def contains_point(self, point, tol: float = 0.0) -> bool:
        """True if point, projected into this plane's frame, lies inside the boundary."""
        if not self.has_geometry or self.is_degenerate:
            return False
        u_axis, v_axis = self.basis
        point_2d = SeamMath.project_to_plane_2d(point, self.center, u_axis, v_axis)
        return SeamMath.is_point_inside_polygon_2d(point_2d, self._boundary_2d, tol)

    def signed_distance(self, point) -> float:
        """Signed distance from point to the infinite plane along the normal."""
        return SeamMath.dot3(SeamMath.sub3(point, self.center), self.normal)

    @staticmethod
    def from_pose(plane_id,
                  position: Sequence[float],
                  rotation: Sequence[float],
                  local_boundary: Sequence[Sequence[float]] = (),
                  tracking_state: TrackingState = TrackingState.TRACKING) -> 'Plane':
        """
        Build a plane from a pose and a boundary in the plane's local 2D space.

        Args:
            plane_id: Identifier for the plane
            position: World-space pose position (becomes the center)
            rotation: Unit quaternion (x, y, z, w) of the pose
            local_boundary: Sequence of (u, v) points; local (u, v) maps to
                local 3D (u, 0, v) before the pose is applied
            tracking_state: Tracking state reported by the platform

        Returns:
            Plane with world-space center, normal (pose +Y) and boundary
        """
        matrix = SeamMath.build_pose_matrix(position, rotation)

        local = np.asarray(local_boundary, dtype=float)
        if local.size and (local.ndim != 2 or local.shape[1] != 2):
            raise ValueError(f"local_boundary must be a sequence of 2D points, got shape {local.shape}")

        world_boundary = [SeamMath.transform_point((u, 0.0, v), matrix) for u, v in local]
        normal = SeamMath.transform_direction((0.0, 1.0, 0.0), matrix)

        return Plane(
            id=plane_id,
            center=position,
            normal=normal,
            boundary=world_boundary,
            tracking_state=tracking_state,
        )
