from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from hmdcalib.core.geometry import points_to_angles
from hmdcalib.core.types import InputMeasurements


@dataclass(frozen=True)
class SyntheticScreen:
    """
    Flat physical screen seen through ideal (distortion-free) optics.

    The screen center sits at (offset_x_m, offset_y_m, -depth_m) in eye space and
    the screen is turned by `yaw_deg` about the vertical axis through its center.
    Measurements sample a `cols` x `rows` grid of pixels spanning the full panel;
    pixel y grows upwards.
    """

    width_m: float = 0.12
    height_m: float = 0.07
    depth_m: float = 2.0
    offset_x_m: float = 0.0
    offset_y_m: float = 0.0
    yaw_deg: float = 0.0
    cols: int = 9
    rows: int = 7
    width_px: int = 1920
    height_px: int = 1080

    def pixel_grid(self) -> np.ndarray:
        """(rows*cols, 2) pixel coordinates, row-major from the bottom-left corner."""
        px = np.linspace(0.0, self.width_px - 1, int(self.cols))
        py = np.linspace(0.0, self.height_px - 1, int(self.rows))
        xx, yy = np.meshgrid(px, py, indexing="xy")
        return np.stack([xx.reshape(-1), yy.reshape(-1)], axis=-1)

    def pixels_to_eye(self, pixels: np.ndarray) -> np.ndarray:
        """Eye-space positions (m) of screen pixels."""
        from scipy.spatial.transform import Rotation as Rot  # type: ignore

        pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)
        sx = pixels[:, 0] / (self.width_px - 1) - 0.5
        sy = pixels[:, 1] / (self.height_px - 1) - 0.5
        local = np.stack([sx * self.width_m, sy * self.height_m, np.zeros_like(sx)], axis=-1)
        rot = Rot.from_euler("y", float(self.yaw_deg), degrees=True).as_matrix()
        center = np.array([self.offset_x_m, self.offset_y_m, -self.depth_m], dtype=np.float64)
        return (rot @ local.T).T + center[None, :]


def generate_measurements(
    screen: SyntheticScreen,
    *,
    use_field_angles: bool = True,
    angle_noise_deg: float = 0.0,
    seed: int = 0,
    perturb_degrees: dict[int, tuple[float, float]] | None = None,
    input_source: str = "synthetic",
) -> InputMeasurements:
    """
    Measurements (pixel, view angle) for every grid pixel of `screen`.

    `angle_noise_deg` adds Gaussian noise to both angles; `perturb_degrees` adds a
    fixed (longitude, latitude) error to selected measurement indices. Line numbers
    start at 1.
    """
    rng = np.random.default_rng(seed)
    pixels = screen.pixel_grid()
    angles = points_to_angles(screen.pixels_to_eye(pixels), use_field_angles)
    if angle_noise_deg > 0:
        angles = angles + rng.normal(scale=float(angle_noise_deg), size=angles.shape)
    for i, (dlon, dlat) in (perturb_degrees or {}).items():
        angles[int(i), 0] += float(dlon)
        angles[int(i), 1] += float(dlat)
    return InputMeasurements.from_arrays(pixels, angles, input_source=input_source)
