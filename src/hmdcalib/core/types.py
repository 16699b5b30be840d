"""
Measurement and calibration data types.

All types are frozen dataclasses. Measurement collections are tuples of
per-sample records plus array views for the vectorized geometry code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence

import numpy as np

from hmdcalib.core.bounds import RectBounds
from hmdcalib.errors import DegenerateGeometryError

Point2d = tuple[float, float]
Point3d = tuple[float, float, float]


@dataclass(frozen=True)
class LongLat:
    """Angle pair in degrees: longitude is the angle in x, latitude the angle in y."""

    longitude: float
    latitude: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class DataOrigin:
    """Input source (typically a file name) and line number of a measurement."""

    input_source: str = ""
    line_number: int = 0

    @property
    def known(self) -> bool:
        return bool(self.input_source)

    def __str__(self) -> str:
        if self.known:
            return f"{self.input_source}:{self.line_number}"
        return "(unknown)"


# ============================================================================
# Measurements
# ============================================================================


@dataclass(frozen=True)
class InputMeasurement:
    screen: Point2d  # arbitrary units
    view_angles_degrees: LongLat  # field angles or longitude/latitude, per config
    line_number: int = 0

    def origin(self, parent: InputMeasurements) -> DataOrigin:
        return DataOrigin(parent.input_source, self.line_number)


@dataclass(frozen=True)
class InputMeasurements:
    input_source: str
    measurements: tuple[InputMeasurement, ...]

    def __len__(self) -> int:
        return len(self.measurements)

    def __iter__(self) -> Iterator[InputMeasurement]:
        return iter(self.measurements)

    def __getitem__(self, i: int) -> InputMeasurement:
        return self.measurements[i]

    @property
    def empty(self) -> bool:
        return not self.measurements

    def origin(self, i: int) -> DataOrigin:
        return self.measurements[i].origin(self)

    def screen_array(self) -> np.ndarray:
        return np.asarray([m.screen for m in self.measurements], dtype=np.float64).reshape(-1, 2)

    def angles_degrees_array(self) -> np.ndarray:
        return np.asarray(
            [m.view_angles_degrees.as_tuple() for m in self.measurements], dtype=np.float64
        ).reshape(-1, 2)

    @classmethod
    def from_arrays(
        cls,
        screen: np.ndarray,
        angles_degrees: np.ndarray,
        *,
        input_source: str = "",
        line_numbers: Sequence[int] | None = None,
    ) -> "InputMeasurements":
        screen = np.asarray(screen, dtype=np.float64).reshape(-1, 2)
        angles_degrees = np.asarray(angles_degrees, dtype=np.float64).reshape(-1, 2)
        if screen.shape[0] != angles_degrees.shape[0]:
            raise ValueError("screen and angles_degrees must have the same length")
        if line_numbers is None:
            line_numbers = range(1, screen.shape[0] + 1)
        line_numbers = list(line_numbers)
        if len(line_numbers) != screen.shape[0]:
            raise ValueError("line_numbers must match the number of measurements")
        rows = tuple(
            InputMeasurement(
                screen=(float(s[0]), float(s[1])),
                view_angles_degrees=LongLat(longitude=float(a[0]), latitude=float(a[1])),
                line_number=int(ln),
            )
            for s, a, ln in zip(screen, angles_degrees, line_numbers)
        )
        return cls(input_source=input_source, measurements=rows)


@dataclass(frozen=True)
class NormalizedMeasurement:
    screen: Point2d  # normalized screen units in [0, 1]
    point_from_view: Point3d  # eye space: eye at the origin looking along -z
    line_number: int = 0

    def origin(self, parent: NormalizedMeasurements) -> DataOrigin:
        return DataOrigin(parent.input_source, self.line_number)


@dataclass(frozen=True)
class NormalizedMeasurements:
    input_source: str
    measurements: tuple[NormalizedMeasurement, ...]
    screen_bounds: RectBounds  # bounds the screen coordinates were normalized against

    def __len__(self) -> int:
        return len(self.measurements)

    def __iter__(self) -> Iterator[NormalizedMeasurement]:
        return iter(self.measurements)

    def __getitem__(self, i: int) -> NormalizedMeasurement:
        return self.measurements[i]

    @property
    def empty(self) -> bool:
        return not self.measurements

    def origin(self, i: int) -> DataOrigin:
        return self.measurements[i].origin(self)

    def screen_array(self) -> np.ndarray:
        return np.asarray([m.screen for m in self.measurements], dtype=np.float64).reshape(-1, 2)

    def points_array(self) -> np.ndarray:
        return np.asarray([m.point_from_view for m in self.measurements], dtype=np.float64).reshape(-1, 3)

    @classmethod
    def from_arrays(
        cls,
        screen: np.ndarray,
        points_from_view: np.ndarray,
        *,
        screen_bounds: RectBounds,
        input_source: str = "",
        line_numbers: Sequence[int] | None = None,
    ) -> "NormalizedMeasurements":
        screen = np.asarray(screen, dtype=np.float64).reshape(-1, 2)
        points_from_view = np.asarray(points_from_view, dtype=np.float64).reshape(-1, 3)
        if screen.shape[0] != points_from_view.shape[0]:
            raise ValueError("screen and points_from_view must have the same length")
        if line_numbers is None:
            line_numbers = range(1, screen.shape[0] + 1)
        line_numbers = list(line_numbers)
        if len(line_numbers) != screen.shape[0]:
            raise ValueError("line_numbers must match the number of measurements")
        rows = tuple(
            NormalizedMeasurement(
                screen=(float(s[0]), float(s[1])),
                point_from_view=(float(p[0]), float(p[1]), float(p[2])),
                line_number=int(ln),
            )
            for s, p, ln in zip(screen, points_from_view, line_numbers)
        )
        return cls(input_source=input_source, measurements=rows, screen_bounds=screen_bounds)


# ============================================================================
# Screen geometry
# ============================================================================


@dataclass(frozen=True)
class Plane:
    """
    Implicit plane Ax + By + Cz + D = 0.

    `coeffs` holds (A, B, C, D); the normal (A, B, C) is never zero-length.
    """

    coeffs: np.ndarray  # (4,)

    def __post_init__(self) -> None:
        coeffs = np.asarray(self.coeffs, dtype=np.float64).reshape(4)
        if not np.all(np.isfinite(coeffs)):
            raise DegenerateGeometryError("plane coefficients must be finite")
        if float(np.linalg.norm(coeffs[:3])) <= 0.0:
            raise DegenerateGeometryError("plane normal must be non-zero")
        object.__setattr__(self, "coeffs", coeffs)

    @classmethod
    def through(cls, point: np.ndarray, normal: np.ndarray) -> "Plane":
        point = np.asarray(point, dtype=np.float64).reshape(3)
        normal = np.asarray(normal, dtype=np.float64).reshape(3)
        d = -float(normal[0] * point[0] + normal[1] * point[1] + normal[2] * point[2])
        return cls(coeffs=np.array([normal[0], normal[1], normal[2], d], dtype=np.float64))

    @property
    def a(self) -> float:
        return float(self.coeffs[0])

    @property
    def b(self) -> float:
        return float(self.coeffs[1])

    @property
    def c(self) -> float:
        return float(self.coeffs[2])

    @property
    def d(self) -> float:
        return float(self.coeffs[3])

    @property
    def normal(self) -> np.ndarray:
        return self.coeffs[:3].copy()

    def signed_distance(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        n = float(np.linalg.norm(self.coeffs[:3]))
        a, b, c, d = (float(v) for v in self.coeffs)
        return (a * points[:, 0] + b * points[:, 1] + c * points[:, 2] + d) / n


@dataclass(frozen=True)
class ProjectionDescription:
    h_fov_degrees: float
    v_fov_degrees: float
    overlap_percent: float = 100.0
    cop: Point2d = (0.5, 0.5)  # center of projection, normalized screen units


@dataclass(frozen=True)
class ScreenDetails:
    """
    Screen geometry found while fitting that the mesh computation reuses.

    `screen_left`/`screen_right` are the left-most and right-most measurements
    projected onto `plane`; `max_y` is the largest absolute vertical offset of a
    projected measurement in the plane's frame.
    """

    plane: Plane
    screen_left: np.ndarray  # (3,)
    screen_right: np.ndarray  # (3,)
    max_y: float


# ============================================================================
# Mesh
# ============================================================================


@dataclass(frozen=True)
class MeshDescriptionRow:
    physical: Point2d  # physical-display normalized coordinate
    canonical: Point2d  # canonical-display normalized coordinate


@dataclass(frozen=True)
class MeshDescription:
    """Ordered mesh rows, index-aligned with the measurements they came from."""

    rows: tuple[MeshDescriptionRow, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[MeshDescriptionRow]:
        return iter(self.rows)

    def __getitem__(self, i: int) -> MeshDescriptionRow:
        return self.rows[i]

    def as_array(self) -> np.ndarray:
        """(N, 2, 2) array: [:, 0] physical, [:, 1] canonical."""
        return np.asarray([[r.physical, r.canonical] for r in self.rows], dtype=np.float64).reshape(-1, 2, 2)

    @classmethod
    def from_arrays(cls, physical: np.ndarray, canonical: np.ndarray) -> "MeshDescription":
        physical = np.asarray(physical, dtype=np.float64).reshape(-1, 2)
        canonical = np.asarray(canonical, dtype=np.float64).reshape(-1, 2)
        if physical.shape[0] != canonical.shape[0]:
            raise ValueError("physical and canonical must have the same length")
        return cls(
            rows=tuple(
                MeshDescriptionRow(physical=(float(p[0]), float(p[1])), canonical=(float(c[0]), float(c[1])))
                for p, c in zip(physical, canonical)
            )
        )


# ============================================================================
# Non-fatal diagnostics
# ============================================================================


@dataclass(frozen=True)
class ScreenBoundsWarning:
    origin: DataOrigin
    screen: Point2d
    bounds: RectBounds

    def __str__(self) -> str:
        return f"{self.origin}: screen point {self.screen} outside supplied bounds ({self.bounds})"


@dataclass(frozen=True)
class ToleranceExceededViolation:
    origin: DataOrigin
    index: int
    measured_degrees: LongLat
    predicted_degrees: LongLat
    deviation_degrees: LongLat  # absolute per-axis deviation

    @property
    def max_deviation_degrees(self) -> float:
        return max(self.deviation_degrees.longitude, self.deviation_degrees.latitude)

    def __str__(self) -> str:
        return (
            f"{self.origin}: angle deviation "
            f"(long {self.deviation_degrees.longitude:.3f}, lat {self.deviation_degrees.latitude:.3f}) deg"
        )
