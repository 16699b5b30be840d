"""
Calibration stages: normalize -> fit screen -> project mesh (-> verify angles).

Each stage is a pure function of its inputs and the configuration.
"""

from hmdcalib.calibration.mesh import canonical_coordinates, find_mesh
from hmdcalib.calibration.normalize import compute_screen_bounds, normalize_measurements
from hmdcalib.calibration.screen_fit import find_screen, fit_plane
from hmdcalib.calibration.verify import predicted_angles, verify_angles

__all__ = [
    "normalize_measurements",
    "compute_screen_bounds",
    "fit_plane",
    "find_screen",
    "find_mesh",
    "canonical_coordinates",
    "verify_angles",
    "predicted_angles",
]
