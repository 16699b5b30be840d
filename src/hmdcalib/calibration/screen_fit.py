from __future__ import annotations

import numpy as np

from hmdcalib.calibration.projection import project_measurements
from hmdcalib.config import CalibrationConfig
from hmdcalib.core.geometry import GAZE, PlaneFrame, angle_between_deg, ray_plane_scale
from hmdcalib.core.types import NormalizedMeasurements, Plane, ProjectionDescription, ScreenDetails
from hmdcalib.errors import DegenerateGeometryError, DegenerateRayError


def fit_plane(points: np.ndarray, *, input_source: str = "", rel_tol: float = 1e-9) -> Plane:
    """
    Total least-squares plane through (N,3) points (exact for 3 points).

    The normal is the right singular vector of the smallest singular value of the
    centered points. The returned plane has a unit normal pointing towards the
    origin (D > 0).
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if points.shape[0] < 3:
        raise DegenerateGeometryError(
            f"need >= 3 measurements to fit a screen plane, got {points.shape[0]}", input_source=input_source
        )
    if not np.all(np.isfinite(points)):
        raise DegenerateGeometryError("points must be finite", input_source=input_source)
    if np.unique(points, axis=0).shape[0] < 3:
        raise DegenerateGeometryError("need >= 3 distinct points to fit a screen plane", input_source=input_source)

    centroid = points.mean(axis=0)
    _u, sv, vt = np.linalg.svd(points - centroid[None, :], full_matrices=False)
    if sv[0] <= 0.0 or sv[1] <= rel_tol * sv[0]:
        raise DegenerateGeometryError("points are collinear", input_source=input_source)

    normal = vt[2] / np.linalg.norm(vt[2])
    d = -float(np.dot(normal, centroid))
    scale = float(np.max(np.linalg.norm(points, axis=-1)))
    if abs(d) <= rel_tol * scale:
        raise DegenerateGeometryError("fitted screen plane passes through the eye", input_source=input_source)
    if d < 0.0:
        normal = -normal
        d = -d
    return Plane(coeffs=np.array([normal[0], normal[1], normal[2], d], dtype=np.float64))


def find_screen(
    normalized: NormalizedMeasurements, config: CalibrationConfig
) -> tuple[ProjectionDescription, ScreenDetails]:
    """
    Fit the screen plane and derive field of view, overlap and center of projection.

    Horizontal extent: left-most and right-most measurements projected onto the plane.
    Vertical extent: symmetric, +/- the largest absolute vertical offset.
    """
    source = normalized.input_source
    plane = fit_plane(normalized.points_array(), input_source=source)
    try:
        frame = PlaneFrame.from_plane(plane)
    except DegenerateGeometryError as e:
        raise DegenerateGeometryError(e.message, input_source=source) from e

    projected = project_measurements(normalized, plane)
    uv = frame.to_local(projected)

    left = int(np.argmin(uv[:, 0]))
    right = int(np.argmax(uv[:, 0]))
    u_left = float(uv[left, 0])
    u_right = float(uv[right, 0])
    max_y = float(np.max(np.abs(uv[:, 1])))
    if u_right - u_left <= 0.0:
        raise DegenerateGeometryError("measurements have no horizontal extent on the screen", input_source=source)
    if max_y <= 0.0:
        raise DegenerateGeometryError("measurements have no vertical extent on the screen", input_source=source)

    # Field of view: horizontal along v=0, vertical along the meridian through the horizontal center.
    u_center = 0.5 * (u_left + u_right)
    edges = frame.to_world(np.array([[u_left, 0.0], [u_right, 0.0], [u_center, max_y], [u_center, -max_y]]))
    h_fov = angle_between_deg(edges[0], edges[1])
    v_fov = angle_between_deg(edges[2], edges[3])

    s = ray_plane_scale(GAZE[None, :], plane)
    if not (np.isfinite(s[0]) and s[0] > 0.0):
        raise DegenerateRayError("straight-ahead ray does not meet the screen plane", input_source=source)
    cop_uv = frame.to_local(s[0] * GAZE)[0]
    cop = (
        float((cop_uv[0] - u_left) / (u_right - u_left)),
        float((cop_uv[1] + max_y) / (2.0 * max_y)),
    )

    projection = ProjectionDescription(
        h_fov_degrees=h_fov,
        v_fov_degrees=v_fov,
        overlap_percent=float(config.overlap_percent),
        cop=cop,
    )
    screen = ScreenDetails(
        plane=plane,
        screen_left=projected[left].copy(),
        screen_right=projected[right].copy(),
        max_y=max_y,
    )
    return projection, screen
