from __future__ import annotations

import numpy as np

from hmdcalib.calibration.projection import project_measurements
from hmdcalib.core.geometry import PlaneFrame
from hmdcalib.core.types import MeshDescription, NormalizedMeasurements, ScreenDetails


def canonical_coordinates(points_on_plane: np.ndarray, screen: ScreenDetails) -> np.ndarray:
    """
    Canonical normalized coordinates of points lying on the screen plane.

    x runs 0 -> 1 from `screen_left` to `screen_right`, y runs 0 -> 1 from -max_y to
    +max_y. Points beyond the extremes fall outside [0, 1] and are not clamped.
    """
    frame = PlaneFrame.from_plane(screen.plane)
    uv = frame.to_local(points_on_plane)
    u_left = frame.to_local(screen.screen_left)[0, 0]
    u_right = frame.to_local(screen.screen_right)[0, 0]
    x = (uv[:, 0] - u_left) / (u_right - u_left)
    y = (uv[:, 1] + screen.max_y) / (2.0 * screen.max_y)
    return np.stack([x, y], axis=-1)


def find_mesh(normalized: NormalizedMeasurements, screen: ScreenDetails) -> MeshDescription:
    """
    One mesh row per measurement, in measurement order:
    (physical normalized screen coordinate, canonical coordinate).
    """
    projected = project_measurements(normalized, screen.plane)
    canonical = canonical_coordinates(projected, screen)
    return MeshDescription.from_arrays(normalized.screen_array(), canonical)
