from __future__ import annotations

from dataclasses import dataclass, replace

from hmdcalib.calibration.mesh import find_mesh
from hmdcalib.calibration.normalize import normalize_measurements
from hmdcalib.calibration.screen_fit import find_screen
from hmdcalib.calibration.verify import verify_angles
from hmdcalib.config import CalibrationConfig
from hmdcalib.core.types import (
    InputMeasurements,
    MeshDescription,
    MeshDescriptionRow,
    NormalizedMeasurements,
    ProjectionDescription,
    ScreenBoundsWarning,
    ScreenDetails,
    ToleranceExceededViolation,
)


@dataclass(frozen=True)
class CalibrationResult:
    """
    Everything one calibration run produces.

    `projection` and `mesh` are the calibration artifacts; `bounds_warnings` and
    `angle_violations` are non-fatal diagnostics.
    """

    normalized: NormalizedMeasurements
    projection: ProjectionDescription
    screen: ScreenDetails
    mesh: MeshDescription
    bounds_warnings: tuple[ScreenBoundsWarning, ...] = ()
    angle_violations: tuple[ToleranceExceededViolation, ...] = ()

    def mirrored(self) -> "CalibrationResult":
        """Artifacts for the other eye of a mirror-symmetric headset."""
        return replace(self, projection=mirror_projection(self.projection), mesh=mirror_mesh(self.mesh))


def run_calibration(measurements: InputMeasurements, config: CalibrationConfig) -> CalibrationResult:
    normalized, bounds_warnings = normalize_measurements(measurements, config)
    projection, screen = find_screen(normalized, config)
    mesh = find_mesh(normalized, screen)
    violations: list[ToleranceExceededViolation] = []
    if config.verify_angles:
        violations = verify_angles(normalized, screen, config)
    return CalibrationResult(
        normalized=normalized,
        projection=projection,
        screen=screen,
        mesh=mesh,
        bounds_warnings=tuple(bounds_warnings),
        angle_violations=tuple(violations),
    )


def mirror_projection(projection: ProjectionDescription) -> ProjectionDescription:
    return replace(projection, cop=(1.0 - projection.cop[0], projection.cop[1]))


def mirror_mesh(mesh: MeshDescription) -> MeshDescription:
    return MeshDescription(
        rows=tuple(
            MeshDescriptionRow(
                physical=(1.0 - r.physical[0], r.physical[1]),
                canonical=(1.0 - r.canonical[0], r.canonical[1]),
            )
            for r in mesh
        )
    )
