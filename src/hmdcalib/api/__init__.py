from hmdcalib.api.pipeline import CalibrationResult, mirror_mesh, mirror_projection, run_calibration

__all__ = [
    "CalibrationResult",
    "run_calibration",
    "mirror_mesh",
    "mirror_projection",
]
