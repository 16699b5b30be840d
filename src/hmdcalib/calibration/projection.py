from __future__ import annotations

import numpy as np

from hmdcalib.core.geometry import ray_plane_scale
from hmdcalib.core.types import NormalizedMeasurements, Plane
from hmdcalib.errors import DegenerateRayError


def project_measurements(normalized: NormalizedMeasurements, plane: Plane) -> np.ndarray:
    """
    Project each measurement's eye ray onto `plane`; returns (N,3) points.

    Raises DegenerateRayError, carrying the measurement's origin, for a ray that is
    parallel to the plane or meets it behind the eye.
    """
    points = normalized.points_array()
    s = ray_plane_scale(points, plane)
    bad = ~(np.isfinite(s) & (s > 0.0))
    if np.any(bad):
        i = int(np.flatnonzero(bad)[0])
        reason = "is parallel to the screen plane" if not np.isfinite(s[i]) else "meets the screen plane behind the eye"
        raise DegenerateRayError(f"ray through {normalized[i].point_from_view} {reason}", origin=normalized.origin(i))
    return s[:, None] * points
