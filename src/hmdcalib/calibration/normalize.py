from __future__ import annotations

import numpy as np

from hmdcalib.config import CalibrationConfig
from hmdcalib.core.bounds import RectBounds
from hmdcalib.core.geometry import angles_to_points, normalize_screen
from hmdcalib.core.types import (
    InputMeasurements,
    NormalizedMeasurement,
    NormalizedMeasurements,
    ScreenBoundsWarning,
)
from hmdcalib.errors import InsufficientDataError, InvalidAngleError


def compute_screen_bounds(measurements: InputMeasurements) -> RectBounds:
    """Bounds spanned by the measured screen coordinates."""
    xy = measurements.screen_array()
    if xy.shape[0] == 0 or np.unique(xy, axis=0).shape[0] < 2:
        raise InsufficientDataError(
            "need at least 2 distinct screen positions to compute screen bounds",
            input_source=measurements.input_source,
        )
    bounds = RectBounds.from_points(xy)
    if bounds.width <= 0.0 or bounds.height <= 0.0:
        raise InsufficientDataError(
            f"screen positions span no area (width {bounds.width:g}, height {bounds.height:g})",
            input_source=measurements.input_source,
        )
    return bounds


def check_view_angles(measurements: InputMeasurements) -> None:
    """
    Raise InvalidAngleError for the first angle pair that cannot become a forward ray.

    Both angles must be finite and strictly inside (-90, 90) degrees.
    """
    angles = measurements.angles_degrees_array()
    bad = ~np.all(np.isfinite(angles) & (np.abs(angles) < 90.0), axis=1)
    if np.any(bad):
        i = int(np.flatnonzero(bad)[0])
        m = measurements[i]
        raise InvalidAngleError(
            f"view angles (long {m.view_angles_degrees.longitude:g}, lat {m.view_angles_degrees.latitude:g}) "
            "must lie strictly within +/-90 degrees",
            origin=measurements.origin(i),
        )


def normalize_measurements(
    measurements: InputMeasurements, config: CalibrationConfig
) -> tuple[NormalizedMeasurements, list[ScreenBoundsWarning]]:
    """
    Normalize screen positions to [0, 1]^2 and turn view angles into eye-space points.

    Returns the normalized measurements (same length and order as the input) and the
    measurements that fall outside supplied screen bounds.
    """
    if measurements.empty:
        raise InsufficientDataError("no measurements", input_source=measurements.input_source)

    warnings: list[ScreenBoundsWarning] = []
    if config.compute_screen_bounds:
        bounds = compute_screen_bounds(measurements)
    else:
        bounds = config.supplied_screen_bounds
        if bounds is None:
            raise InsufficientDataError(
                "compute_screen_bounds is off and no screen bounds were supplied",
                input_source=measurements.input_source,
            )
        if bounds.width == 0.0 or bounds.height == 0.0:
            raise InsufficientDataError(
                f"supplied screen bounds span no area ({bounds})", input_source=measurements.input_source
            )
        xy_bounds = bounds.xy_bounds()
        for i, m in enumerate(measurements):
            if not xy_bounds.contains(m.screen):
                warnings.append(ScreenBoundsWarning(origin=measurements.origin(i), screen=m.screen, bounds=bounds))

    check_view_angles(measurements)

    screen = normalize_screen(measurements.screen_array(), bounds)
    points = angles_to_points(measurements.angles_degrees_array(), config.eye_depth, config.use_field_angles)

    rows = tuple(
        NormalizedMeasurement(
            screen=(float(s[0]), float(s[1])),
            point_from_view=(float(p[0]), float(p[1]), float(p[2])),
            line_number=m.line_number,
        )
        for m, s, p in zip(measurements, screen, points)
    )
    normalized = NormalizedMeasurements(
        input_source=measurements.input_source, measurements=rows, screen_bounds=bounds
    )
    return normalized, warnings
