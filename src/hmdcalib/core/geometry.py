from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from hmdcalib.core.bounds import RectBounds
from hmdcalib.core.types import Plane
from hmdcalib.errors import DegenerateGeometryError

UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)
GAZE = np.array([0.0, 0.0, -1.0], dtype=np.float64)


def normalize_screen(xy: np.ndarray, bounds: RectBounds) -> np.ndarray:
    """
    Map screen coordinates (input units) -> normalized screen coordinates.

    Convention: `bounds.left`/`bounds.bottom` map to 0, `bounds.right`/`bounds.top` to 1.
    """
    xy = np.asarray(xy, dtype=np.float64).reshape(-1, 2)
    x = (xy[:, 0] - bounds.left) / (bounds.right - bounds.left)
    y = (xy[:, 1] - bounds.bottom) / (bounds.top - bounds.bottom)
    return np.stack([x, y], axis=-1)


def denormalize_screen(xy: np.ndarray, bounds: RectBounds) -> np.ndarray:
    """Inverse of `normalize_screen` for the same bounds."""
    xy = np.asarray(xy, dtype=np.float64).reshape(-1, 2)
    x = xy[:, 0] * (bounds.right - bounds.left) + bounds.left
    y = xy[:, 1] * (bounds.top - bounds.bottom) + bounds.bottom
    return np.stack([x, y], axis=-1)


def angles_to_points(angles_deg: np.ndarray, depth: float, use_field_angles: bool) -> np.ndarray:
    """
    Eye-space points (eye at origin, looking along -z) for view angles in degrees.

    Column 0 is the longitude (or horizontal field angle), column 1 the latitude (or
    vertical field angle). Positive longitude turns towards -x, positive latitude
    towards +y. Points are scaled so that z = -depth.
    """
    angles = np.deg2rad(np.asarray(angles_deg, dtype=np.float64).reshape(-1, 2))
    lon = angles[:, 0]
    lat = angles[:, 1]
    if use_field_angles:
        x = -np.tan(lon)
        y = np.tan(lat)
    else:
        # Unit direction (-cos(lat) sin(lon), sin(lat), -cos(lat) cos(lon)) divided by cos(lat) cos(lon).
        x = -np.tan(lon)
        y = np.tan(lat) / np.cos(lon)
    depth = float(depth)
    return np.stack([depth * x, depth * y, np.full_like(x, -depth)], axis=-1)


def points_to_angles(points: np.ndarray, use_field_angles: bool) -> np.ndarray:
    """Inverse of `angles_to_points` for points in front of the eye; returns degrees."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    x = points[:, 0]
    y = points[:, 1]
    z = points[:, 2]
    lon = rotation_about_y(points)
    if use_field_angles:
        lat = np.arctan2(y, -z)
    else:
        lat = np.arctan2(y, np.hypot(x, z))
    return np.rad2deg(np.stack([lon, lat], axis=-1))


def rotation_about_y(points: np.ndarray) -> np.ndarray:
    """
    Rotation about +y in radians: 0 along -z, positive towards -x.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return np.arctan2(-points[:, 0], -points[:, 2])


def dot3(p: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Row-wise dot product of (N,3) points with a (3,) vector, evaluated per element."""
    p = np.asarray(p, dtype=np.float64).reshape(-1, 3)
    return p[:, 0] * v[0] + p[:, 1] * v[1] + p[:, 2] * v[2]


def angle_between_deg(a: np.ndarray, b: np.ndarray) -> float:
    a = np.asarray(a, dtype=np.float64).reshape(3)
    b = np.asarray(b, dtype=np.float64).reshape(3)
    return float(np.rad2deg(np.arctan2(np.linalg.norm(np.cross(a, b)), float(np.dot(a, b)))))


def ray_plane_scale(points: np.ndarray, plane: Plane, eps: float = 1e-12) -> np.ndarray:
    """
    Scale s with s * p on the plane, for rays from the origin through each point.

    Solves A sx + B sy + C sz + D = 0, i.e. s = -D / (Ax + By + Cz). Rays parallel to
    the plane (|denominator| <= eps * |p| * |n|) get NaN.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    a, b, c, d = (float(v) for v in plane.coeffs)
    denom = a * points[:, 0] + b * points[:, 1] + c * points[:, 2]
    scale = np.linalg.norm(points, axis=-1) * float(np.linalg.norm(plane.coeffs[:3]))
    denom = np.where(np.abs(denom) <= eps * scale, np.nan, denom)
    return -d / denom


@dataclass(frozen=True)
class PlaneFrame:
    """
    2D frame in a screen plane.

    Origin is the foot of the perpendicular from the eye; `u_axis` is horizontal
    (+y cross normal), `v_axis` is normal cross u_axis. The unit normal points
    towards the eye.
    """

    origin: np.ndarray  # (3,)
    normal: np.ndarray  # (3,)
    u_axis: np.ndarray  # (3,)
    v_axis: np.ndarray  # (3,)

    @classmethod
    def from_plane(cls, plane: Plane, eps: float = 1e-12) -> "PlaneFrame":
        norm = float(np.linalg.norm(plane.coeffs[:3]))
        n = plane.coeffs[:3] / norm
        d = float(plane.coeffs[3]) / norm
        if abs(d) <= eps:
            raise DegenerateGeometryError("screen plane passes through the eye")
        if d < 0.0:
            n = -n
            d = -d
        u = np.cross(UP, n)
        u_norm = float(np.linalg.norm(u))
        if u_norm <= eps:
            raise DegenerateGeometryError("screen plane is perpendicular to the vertical axis")
        u = u / u_norm
        v = np.cross(n, u)
        return cls(origin=-d * n, normal=n, u_axis=u, v_axis=v)

    def to_local(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        rel = points - self.origin[None, :]
        return np.stack([dot3(rel, self.u_axis), dot3(rel, self.v_axis)], axis=-1)

    def to_world(self, uv: np.ndarray) -> np.ndarray:
        uv = np.asarray(uv, dtype=np.float64).reshape(-1, 2)
        return self.origin[None, :] + uv[:, 0:1] * self.u_axis[None, :] + uv[:, 1:2] * self.v_axis[None, :]
