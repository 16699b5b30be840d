from __future__ import annotations

import numpy as np

from hmdcalib.calibration.projection import project_measurements
from hmdcalib.config import CalibrationConfig
from hmdcalib.core.geometry import PlaneFrame, points_to_angles
from hmdcalib.core.types import LongLat, NormalizedMeasurements, ScreenDetails, ToleranceExceededViolation


def _similarity_normalize(pts: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    m = np.mean(pts, axis=0)
    d = np.linalg.norm(pts - m[None, :], axis=1)
    s = float(np.sqrt(2.0) / (np.mean(d) + 1e-12))
    T = np.array([[s, 0.0, -s * m[0]], [0.0, s, -s * m[1]], [0.0, 0.0, 1.0]], dtype=np.float64)
    ph = np.concatenate([pts, np.ones((pts.shape[0], 1), dtype=np.float64)], axis=1)
    return (T @ ph.T).T[:, :2], T


def _weighted_affine(xy: np.ndarray, uv: np.ndarray, w: np.ndarray) -> np.ndarray:
    A = np.concatenate([xy, np.ones((xy.shape[0], 1), dtype=np.float64)], axis=1)
    sw = np.sqrt(w)[:, None]
    sol, *_ = np.linalg.lstsq(A * sw, uv * sw, rcond=None)
    H = np.eye(3, dtype=np.float64)
    H[:2, :] = sol.T
    return H


def _weighted_homography(xy: np.ndarray, uv: np.ndarray, w: np.ndarray) -> np.ndarray:
    xn, T1 = _similarity_normalize(xy)
    un, T2 = _similarity_normalize(uv)
    A = np.zeros((2 * xy.shape[0], 9), dtype=np.float64)
    for j, ((x, y), (u, v)) in enumerate(zip(xn.tolist(), un.tolist())):
        A[2 * j + 0] = [-x, -y, -1.0, 0.0, 0.0, 0.0, u * x, u * y, u]
        A[2 * j + 1] = [0.0, 0.0, 0.0, -x, -y, -1.0, v * x, v * y, v]
    A *= np.sqrt(np.repeat(w, 2))[:, None]
    _u, _s, vt = np.linalg.svd(A, full_matrices=False)
    Hn = vt[-1].reshape(3, 3)
    return np.linalg.inv(T2) @ Hn @ T1


def _apply(H: np.ndarray, xy: np.ndarray) -> np.ndarray:
    ph = np.concatenate([xy, np.ones((xy.shape[0], 1), dtype=np.float64)], axis=1)
    uvw = (H @ ph.T).T
    return uvw[:, :2] / uvw[:, 2:3]


def fit_screen_map(xy: np.ndarray, uv: np.ndarray, *, iters: int = 20, huber_k: float = 1.345) -> np.ndarray:
    """
    Robust 3x3 map from normalized screen coordinates to plane coordinates (u, v).

    A homography when at least 4 measurements span the screen, an affine map
    otherwise. Huber weights (threshold `huber_k` times the MAD scale of the
    residuals) keep a single bad measurement from bending the map.
    """
    xy = np.asarray(xy, dtype=np.float64).reshape(-1, 2)
    uv = np.asarray(uv, dtype=np.float64).reshape(-1, 2)
    n = xy.shape[0]
    design = np.concatenate([xy, np.ones((n, 1), dtype=np.float64)], axis=1)
    projective = n >= 4 and np.linalg.matrix_rank(design) == 3
    fit = _weighted_homography if projective else _weighted_affine

    scale = float(np.mean(np.linalg.norm(uv - uv.mean(axis=0)[None, :], axis=1)))
    floor = 1e-9 * max(scale, 1e-12)
    w = np.ones((n,), dtype=np.float64)
    H = fit(xy, uv, w)
    for _ in range(int(iters)):
        r = np.linalg.norm(_apply(H, xy) - uv, axis=1)
        if not np.all(np.isfinite(r)):
            break
        c = max(huber_k * 1.4826 * float(np.median(r)), floor)
        w_new = np.where(r <= c, 1.0, c / (r + 1e-300))
        if np.allclose(w_new, w):
            break
        w = w_new
        H = fit(xy, uv, w)
    return H


def predicted_angles(normalized: NormalizedMeasurements, screen: ScreenDetails, config: CalibrationConfig) -> np.ndarray:
    """
    Angles (degrees) implied by the fitted screen at each physical screen position.

    Normalized screen coordinates are mapped onto the screen plane by a robust
    fit over all projected measurements; the eye ray to each mapped point gives
    the angles, which are then sent through the cross-axis transform of `config`.
    """
    frame = PlaneFrame.from_plane(screen.plane)
    xy = normalized.screen_array()
    uv = frame.to_local(project_measurements(normalized, screen.plane))
    H = fit_screen_map(xy, uv)
    on_screen = frame.to_world(_apply(H, xy))
    angles = points_to_angles(on_screen, config.use_field_angles)
    return angles @ config.angle_transform().T


def verify_angles(
    normalized: NormalizedMeasurements, screen: ScreenDetails, config: CalibrationConfig
) -> list[ToleranceExceededViolation]:
    """
    Compare measured angles against those implied by the fitted screen geometry.

    Every measurement with a per-axis deviation above `config.max_angle_diff_degrees`
    is returned; nothing is raised.
    """
    if normalized.empty:
        return []
    measured = points_to_angles(normalized.points_array(), config.use_field_angles)
    predicted = predicted_angles(normalized, screen, config)
    deviation = np.abs(predicted - measured)
    tol = float(config.max_angle_diff_degrees)

    violations: list[ToleranceExceededViolation] = []
    for i in np.flatnonzero(np.any(deviation > tol, axis=1)):
        i = int(i)
        violations.append(
            ToleranceExceededViolation(
                origin=normalized.origin(i),
                index=i,
                measured_degrees=LongLat(float(measured[i, 0]), float(measured[i, 1])),
                predicted_degrees=LongLat(float(predicted[i, 0]), float(predicted[i, 1])),
                deviation_degrees=LongLat(float(deviation[i, 0]), float(deviation[i, 1])),
            )
        )
    return violations
