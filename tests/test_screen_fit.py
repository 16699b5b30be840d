import numpy as np
import pytest

from hmdcalib.calibration.screen_fit import find_screen, fit_plane
from hmdcalib.config import CalibrationConfig
from hmdcalib.core.bounds import RectBounds
from hmdcalib.core.types import NormalizedMeasurements
from hmdcalib.errors import DegenerateGeometryError, DegenerateRayError

UNIT = RectBounds(left=0.0, right=1.0, top=1.0, bottom=0.0)


def _flat_screen(
    half_w: float = 0.5,
    half_h: float = 0.3,
    depth: float = 2.0,
    center_x: float = 0.0,
    cols: int = 5,
    rows: int = 3,
) -> NormalizedMeasurements:
    xs = np.linspace(center_x - half_w, center_x + half_w, cols)
    ys = np.linspace(-half_h, half_h, rows)
    xx, yy = np.meshgrid(xs, ys)
    points = np.stack([xx.reshape(-1), yy.reshape(-1), np.full(xx.size, -depth)], axis=-1)
    screen = np.stack([(xx.reshape(-1) - xs[0]) / (2 * half_w), (yy.reshape(-1) + half_h) / (2 * half_h)], axis=-1)
    return NormalizedMeasurements.from_arrays(screen, points, screen_bounds=UNIT, input_source="flat.txt")


def _tilted_points(normal: np.ndarray, center: np.ndarray, n: int = 40, seed: int = 0) -> np.ndarray:
    normal = normal / np.linalg.norm(normal)
    e1 = np.cross([0.0, 1.0, 0.0], normal)
    e1 /= np.linalg.norm(e1)
    e2 = np.cross(normal, e1)
    rng = np.random.default_rng(seed)
    a = rng.uniform(-0.5, 0.5, size=n)
    b = rng.uniform(-0.3, 0.3, size=n)
    return center[None, :] + a[:, None] * e1[None, :] + b[:, None] * e2[None, :]


def test_centered_flat_screen_normal_and_fov():
    projection, screen = find_screen(_flat_screen(), CalibrationConfig())
    np.testing.assert_allclose(np.abs(screen.plane.normal), [0.0, 0.0, 1.0], atol=1e-12)
    assert screen.plane.d == pytest.approx(2.0)
    assert projection.h_fov_degrees == pytest.approx(np.rad2deg(2.0 * np.arctan(0.5 / 2.0)), abs=1e-10)
    assert projection.v_fov_degrees == pytest.approx(np.rad2deg(2.0 * np.arctan(0.3 / 2.0)), abs=1e-10)
    assert projection.cop == pytest.approx((0.5, 0.5), abs=1e-12)
    assert projection.overlap_percent == 100.0
    assert screen.max_y == pytest.approx(0.3)
    np.testing.assert_allclose(screen.screen_left[[0, 2]], [-0.5, -2.0], atol=1e-12)
    np.testing.assert_allclose(screen.screen_right[[0, 2]], [0.5, -2.0], atol=1e-12)


def test_offset_screen_moves_center_of_projection():
    projection, _ = find_screen(_flat_screen(center_x=0.25), CalibrationConfig(overlap_percent=80.0))
    # straight-ahead ray hits x=0, a quarter of the way in from the left edge at x=-0.25
    assert projection.cop[0] == pytest.approx(0.25, abs=1e-12)
    assert projection.cop[1] == pytest.approx(0.5, abs=1e-12)
    expected_h = np.rad2deg(np.arctan(0.75 / 2.0) + np.arctan(0.25 / 2.0))
    assert projection.h_fov_degrees == pytest.approx(expected_h, abs=1e-10)
    assert projection.overlap_percent == 80.0


def test_fit_plane_recovers_tilted_plane():
    normal = np.array([0.3, -0.1, 1.0])
    pts = _tilted_points(normal, np.array([0.1, 0.05, -2.0]))
    plane = fit_plane(pts)
    expected = normal / np.linalg.norm(normal)
    np.testing.assert_allclose(plane.normal, expected, atol=1e-9)
    assert plane.d > 0.0
    assert np.max(np.abs(plane.signed_distance(pts))) < 1e-12


def test_fit_plane_least_squares_with_noise():
    rng = np.random.default_rng(3)
    pts = _tilted_points(np.array([0.0, 0.0, 1.0]), np.array([0.0, 0.0, -1.0]), n=500)
    pts[:, 2] += rng.normal(scale=1e-4, size=pts.shape[0])
    plane = fit_plane(pts)
    assert abs(plane.normal[2]) == pytest.approx(1.0, abs=1e-6)
    assert plane.d == pytest.approx(1.0, abs=1e-4)


def test_fit_plane_exact_through_three_points():
    pts = np.array([[0.0, 0.0, -1.0], [1.0, 0.0, -2.0], [0.0, 1.0, -1.0]])
    plane = fit_plane(pts)
    assert np.max(np.abs(plane.signed_distance(pts))) < 1e-12


def test_fewer_than_three_measurements_fail():
    two = NormalizedMeasurements.from_arrays(
        [[0.0, 0.0], [1.0, 1.0]], [[-1.0, -1.0, -2.0], [1.0, 1.0, -2.0]], screen_bounds=UNIT, input_source="two.txt"
    )
    with pytest.raises(DegenerateGeometryError) as excinfo:
        find_screen(two, CalibrationConfig())
    assert excinfo.value.input_source == "two.txt"


def test_collinear_and_duplicate_points_fail():
    with pytest.raises(DegenerateGeometryError):
        fit_plane(np.array([[0.0, 0.0, -1.0], [1.0, 1.0, -1.0], [2.0, 2.0, -1.0], [3.0, 3.0, -1.0]]))
    with pytest.raises(DegenerateGeometryError):
        fit_plane(np.array([[0.0, 0.0, -1.0], [0.0, 0.0, -1.0], [1.0, 0.0, -1.0]]))


def test_plane_through_eye_fails():
    with pytest.raises(DegenerateGeometryError):
        fit_plane(np.array([[0.0, 0.0, 0.0], [1.0, 0.0, -1.0], [0.0, 1.0, 0.0]]))


def test_screen_parallel_to_gaze_has_no_center_of_projection():
    # Vertical screen plane x = 1: forward ray (0, 0, -1) never meets it.
    pts = np.array([[1.0, y, z] for y in (-0.5, 0.0, 0.5) for z in (-1.0, -2.0, -3.0)])
    screen = np.zeros((pts.shape[0], 2))
    m = NormalizedMeasurements.from_arrays(screen, pts, screen_bounds=UNIT, input_source="side.txt")
    with pytest.raises(DegenerateRayError):
        find_screen(m, CalibrationConfig())
