from __future__ import annotations

import numpy as np

from hmdcalib.api.pipeline import run_calibration
from hmdcalib.config import CalibrationConfig
from hmdcalib.sim.synthetic_screen import SyntheticScreen, generate_measurements


def expected_projection(screen: SyntheticScreen) -> dict[str, float]:
    """Closed-form FOV and center of projection for an untilted synthetic screen."""
    if screen.yaw_deg != 0.0:
        raise ValueError(f"Oracle only supports untilted screens (got yaw_deg={screen.yaw_deg})")
    ox, oy = float(screen.offset_x_m), float(screen.offset_y_m)
    half_w, half_h = 0.5 * float(screen.width_m), 0.5 * float(screen.height_m)
    depth = float(screen.depth_m)
    h_fov = np.rad2deg(np.arctan((ox + half_w) / depth) - np.arctan((ox - half_w) / depth))
    v_fov = np.rad2deg(2.0 * np.arctan2(abs(oy) + half_h, np.hypot(ox, depth)))
    return {
        "h_fov_deg": float(h_fov),
        "v_fov_deg": float(v_fov),
        "cop_x": float(0.5 - ox / float(screen.width_m)),
        "cop_y": 0.5,
    }


def eval_synthetic_screen(
    screen: SyntheticScreen,
    config: CalibrationConfig,
    *,
    angle_noise_deg: float = 0.0,
    seed: int = 0,
) -> dict[str, float]:
    measurements = generate_measurements(
        screen, use_field_angles=config.use_field_angles, angle_noise_deg=angle_noise_deg, seed=seed
    )
    result = run_calibration(measurements, config)
    expected = expected_projection(screen)

    p = result.projection
    normal = result.screen.plane.normal
    mesh = result.mesh.as_array()
    return {
        "h_fov_deg": float(p.h_fov_degrees),
        "v_fov_deg": float(p.v_fov_degrees),
        "cop_x": float(p.cop[0]),
        "cop_y": float(p.cop[1]),
        "h_fov_err_deg": float(p.h_fov_degrees - expected["h_fov_deg"]),
        "v_fov_err_deg": float(p.v_fov_degrees - expected["v_fov_deg"]),
        "cop_x_err": float(p.cop[0] - expected["cop_x"]),
        "cop_y_err": float(p.cop[1] - expected["cop_y"]),
        "normal_z": float(normal[2]),
        "mesh_max_abs_residual": float(np.max(np.abs(mesh[:, 1] - mesh[:, 0]))) if mesh.size else float("nan"),
        "n_points": float(len(measurements)),
        "n_angle_violations": float(len(result.angle_violations)),
    }
