from hmdcalib.api import CalibrationResult, mirror_mesh, mirror_projection, run_calibration
from hmdcalib.config import CalibrationConfig, load_config, parse_config
from hmdcalib.core.bounds import InclusiveBounds, RectBounds, XYInclusiveBounds
from hmdcalib.core.types import (
    DataOrigin,
    InputMeasurement,
    InputMeasurements,
    LongLat,
    MeshDescription,
    MeshDescriptionRow,
    NormalizedMeasurement,
    NormalizedMeasurements,
    Plane,
    ProjectionDescription,
    ScreenDetails,
    ToleranceExceededViolation,
)
from hmdcalib.errors import (
    CalibrationError,
    DegenerateGeometryError,
    DegenerateRayError,
    InsufficientDataError,
    InvalidAngleError,
)

__all__ = [
    "CalibrationConfig",
    "CalibrationResult",
    "load_config",
    "parse_config",
    "run_calibration",
    "mirror_mesh",
    "mirror_projection",
    "DataOrigin",
    "LongLat",
    "InputMeasurement",
    "InputMeasurements",
    "NormalizedMeasurement",
    "NormalizedMeasurements",
    "Plane",
    "ProjectionDescription",
    "ScreenDetails",
    "MeshDescription",
    "MeshDescriptionRow",
    "ToleranceExceededViolation",
    "InclusiveBounds",
    "XYInclusiveBounds",
    "RectBounds",
    "CalibrationError",
    "InsufficientDataError",
    "InvalidAngleError",
    "DegenerateGeometryError",
    "DegenerateRayError",
]
