import math

def quaternion_to_matrix(rotation):
    """
    Build a 4x4 rotation matrix from a unit quaternion (x, y, z, w).

    The matrix is row-major for row-vector multiplication (v @ M), matching
    transform_point. The quaternion is normalized first; a zero quaternion
    raises ValueError.
    """
    qx, qy, qz, qw = rotation[0], rotation[1], rotation[2], rotation[3]
    mag = math.sqrt(qx * qx + qy * qy + qz * qz + qw * qw)
    if mag < 1e-10:
        raise ValueError("Cannot build a rotation from a zero quaternion")
    inv_mag = 1.0 / mag
    qx, qy, qz, qw = qx * inv_mag, qy * inv_mag, qz * inv_mag, qw * inv_mag

    xx, yy, zz = qx * qx, qy * qy, qz * qz
    xy, xz, yz = qx * qy, qx * qz, qy * qz
    wx, wy, wz = qw * qx, qw * qy, qw * qz

    # Rows are the images of the local x, y and z axes
    return (
        (1.0 - 2.0 * (yy + zz), 2.0 * (xy + wz), 2.0 * (xz - wy), 0.0),
        (2.0 * (xy - wz), 1.0 - 2.0 * (xx + zz), 2.0 * (yz + wx), 0.0),
        (2.0 * (xz + wy), 2.0 * (yz - wx), 1.0 - 2.0 * (xx + yy), 0.0),
        (0.0, 0.0, 0.0, 1.0)
    )

def build_pose_matrix(position, rotation):
    """Rotation followed by translation, as a single 4x4 matrix."""
    r = quaternion_to_matrix(rotation)
    return (
        r[0],
        r[1],
        r[2],
        (float(position[0]), float(position[1]), float(position[2]), 1.0)
    )

def transform_point(point, matrix):
    """Transform a 3D point by a 4x4 row-major matrix (v @ M). Returns tuple."""
    x, y, z = point[0], point[1], point[2]
    w = x * matrix[0][3] + y * matrix[1][3] + z * matrix[2][3] + matrix[3][3]
    if abs(w) > 1e-10:
        inv_w = 1.0 / w
        return (
            (x * matrix[0][0] + y * matrix[1][0] + z * matrix[2][0] + matrix[3][0]) * inv_w,
            (x * matrix[0][1] + y * matrix[1][1] + z * matrix[2][1] + matrix[3][1]) * inv_w,
            (x * matrix[0][2] + y * matrix[1][2] + z * matrix[2][2] + matrix[3][2]) * inv_w
        )
    return (0.0, 0.0, 0.0)

def transform_direction(vector, matrix):
    """Rotate a vector by the upper-left 3x3 of matrix (no translation)."""
    vx, vy, vz = vector[0], vector[1], vector[2]
    return (
        vx * matrix[0][0] + vy * matrix[1][0] + vz * matrix[2][0],
        vx * matrix[0][1] + vy * matrix[1][1] + vz * matrix[2][1],
        vx * matrix[0][2] + vy * matrix[1][2] + vz * matrix[2][2]
    )

def distance(p1, p2):
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    dz = p2[2] - p1[2]
    return math.sqrt(dx * dx + dy * dy + dz * dz)

def distance_sq(p1, p2):
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    dz = p2[2] - p1[2]
    return dx * dx + dy * dy + dz * dz

def length(vector):
    return math.sqrt(vector[0] * vector[0] + vector[1] * vector[1] + vector[2] * vector[2])

def length_sq(vector):
    return vector[0] * vector[0] + vector[1] * vector[1] + vector[2] * vector[2]

def sub3(a, b):
    """Subtract two 3D vectors. Returns tuple."""
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])

def add3(a, b):
    """Add two 3D vectors. Returns tuple."""
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])

def mul3(v, s):
    """Multiply vector by scalar. Returns tuple."""
    return (v[0] * s, v[1] * s, v[2] * s)

def dot3(a, b):
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]

def cross3(a, b):
    """Fast 3D cross product. Returns tuple."""
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0]
    )

def normalize(vector):
    """Normalize a vector. Returns tuple. Raises ValueError for a zero vector."""
    mag = math.sqrt(vector[0] * vector[0] + vector[1] * vector[1] + vector[2] * vector[2])
    if mag < 1e-10:
        raise ValueError("Cannot normalize a zero vector")
    inv_mag = 1.0 / mag
    return (vector[0] * inv_mag, vector[1] * inv_mag, vector[2] * inv_mag)

def safe_normalize(vector):
    """Normalize a vector, returning zero vector if input is zero. Returns tuple."""
    mag = math.sqrt(vector[0] * vector[0] + vector[1] * vector[1] + vector[2] * vector[2])
    if mag < 1e-10:
        return (0.0, 0.0, 0.0)
    inv_mag = 1.0 / mag
    return (vector[0] * inv_mag, vector[1] * inv_mag, vector[2] * inv_mag)

def angle_between(vector1, vector2):
    """Angle between two vectors in degrees. Zero-length input gives 0."""
    mag = length(vector1) * length(vector2)
    if mag < 1e-20:
        return 0.0
    cos_angle = dot3(vector1, vector2) / mag
    cos_angle = max(-1.0, min(1.0, cos_angle))  # clip to [-1, 1]
    return math.degrees(math.acos(cos_angle))

def get_plane_basis(normal):
    """
    Two orthonormal in-plane axes (u, v) for a plane with the given unit normal.

    u is built against the world axis least aligned with the normal, so the
    frame is stable and well conditioned for any orientation. (u, v, normal)
    is right-handed.
    """
    nx, ny, nz = abs(normal[0]), abs(normal[1]), abs(normal[2])
    if nx <= ny and nx <= nz:
        helper = (1.0, 0.0, 0.0)
    elif ny <= nz:
        helper = (0.0, 1.0, 0.0)
    else:
        helper = (0.0, 0.0, 1.0)

    u = normalize(cross3(helper, normal))
    v = cross3(normal, u)
    return u, v

def project_to_plane_2d(point, origin, u_axis, v_axis):
    """Express a 3D point in the 2D frame (origin, u_axis, v_axis)."""
    dx = point[0] - origin[0]
    dy = point[1] - origin[1]
    dz = point[2] - origin[2]
    return (dx * u_axis[0] + dy * u_axis[1] + dz * u_axis[2],
            dx * v_axis[0] + dy * v_axis[1] + dz * v_axis[2])

def distance_point_to_segment_2d(point, a, b):
    ex, ey = b[0] - a[0], b[1] - a[1]
    px, py = point[0] - a[0], point[1] - a[1]
    len_sq = ex * ex + ey * ey
    if len_sq < 1e-20:
        return math.sqrt(px * px + py * py)
    t = max(0.0, min(1.0, (px * ex + py * ey) / len_sq))
    dx, dy = px - t * ex, py - t * ey
    return math.sqrt(dx * dx + dy * dy)

def is_point_inside_polygon_2d(point, polygon, tol=0.0):
    """
    Ray-casting point-in-polygon test in 2D.

    Points within tol of any polygon edge count as inside, which keeps
    crossings that land exactly on a boundary (shared edges, corners) from
    flipping in and out with rounding noise.
    """
    n = len(polygon)
    if n < 3:
        return False

    px, py = point[0], point[1]

    if tol > 0.0:
        for i in range(n):
            if distance_point_to_segment_2d(point, polygon[i], polygon[(i + 1) % n]) <= tol:
                return True

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        if (yi > py) != (yj > py):
            x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
            if px < x_cross:
                inside = not inside
        j = i
    return inside


def intersect_segment_with_plane(seg_start, seg_end, plane_point, plane_normal, denom_tol, param_tol):
    """
    Intersect a finite segment with an infinite plane.

    The segment direction is normalized first, so denom_tol bounds |cos| between
    segment and plane normal regardless of edge length. The crossing is accepted
    when its distance along the segment lies in [-param_tol, length + param_tol].

    Returns:
        Crossing point tuple, or None if the segment is degenerate, parallel to
        the plane, or crosses it outside the tolerated extent.
    """
    sx, sy, sz = seg_start[0], seg_start[1], seg_start[2]
    dx = seg_end[0] - sx
    dy = seg_end[1] - sy
    dz = seg_end[2] - sz

    seg_length = math.sqrt(dx * dx + dy * dy + dz * dz)
    if seg_length < 1e-10:
        return None
    inv_len = 1.0 / seg_length
    dx, dy, dz = dx * inv_len, dy * inv_len, dz * inv_len

    nx, ny, nz = plane_normal[0], plane_normal[1], plane_normal[2]
    denom = dx * nx + dy * ny + dz * nz
    if abs(denom) < denom_tol:
        return None

    t = ((plane_point[0] - sx) * nx + (plane_point[1] - sy) * ny + (plane_point[2] - sz) * nz) / denom
    if t < -param_tol or t > seg_length + param_tol:
        return None

    return (sx + t * dx, sy + t * dy, sz + t * dz)
