from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from hmdcalib.api.pipeline import mirror_mesh, run_calibration
from hmdcalib.config import CalibrationConfig, config_to_dict
from hmdcalib.core.types import InputMeasurements
from hmdcalib.errors import DegenerateGeometryError
from hmdcalib.eval.oracle import eval_synthetic_screen, expected_projection
from hmdcalib.sim.synthetic_screen import SyntheticScreen, generate_measurements


def test_run_calibration_on_synthetic_screen() -> None:
    screen = SyntheticScreen()
    m = generate_measurements(screen)
    result = run_calibration(m, CalibrationConfig())
    expected = expected_projection(screen)
    assert len(result.mesh) == len(m) == screen.cols * screen.rows
    assert result.bounds_warnings == ()
    assert result.angle_violations == ()
    assert result.projection.h_fov_degrees == pytest.approx(expected["h_fov_deg"], abs=1e-9)
    assert result.projection.v_fov_degrees == pytest.approx(expected["v_fov_deg"], abs=1e-9)
    assert result.projection.cop == pytest.approx((0.5, 0.5), abs=1e-9)
    mesh = result.mesh.as_array()
    np.testing.assert_allclose(mesh[:, 1], mesh[:, 0], atol=1e-9)


def test_mirrored_result_flips_horizontal_coordinates() -> None:
    m = generate_measurements(SyntheticScreen(offset_x_m=0.02))
    result = run_calibration(m, CalibrationConfig())
    other = result.mirrored()
    assert other.projection.cop[0] == pytest.approx(1.0 - result.projection.cop[0])
    assert other.projection.cop[1] == result.projection.cop[1]
    assert other.projection.h_fov_degrees == result.projection.h_fov_degrees
    a = result.mesh.as_array()
    b = other.mesh.as_array()
    np.testing.assert_allclose(b[..., 0], 1.0 - a[..., 0])
    np.testing.assert_array_equal(b[..., 1], a[..., 1])
    assert other.screen is result.screen
    np.testing.assert_allclose(mirror_mesh(other.mesh).as_array(), a, atol=1e-15)


def test_two_measurements_cannot_define_a_screen() -> None:
    m = InputMeasurements.from_arrays([[0.0, 0.0], [1.0, 1.0]], [[5.0, -5.0], [-5.0, 5.0]], input_source="two.txt")
    with pytest.raises(DegenerateGeometryError, match="two.txt"):
        run_calibration(m, CalibrationConfig())


@pytest.mark.parametrize("use_field_angles", [True, False])
def test_oracle_offset_screen(use_field_angles: bool) -> None:
    screen = SyntheticScreen(offset_x_m=0.03, offset_y_m=-0.01)
    stats = eval_synthetic_screen(screen, CalibrationConfig(use_field_angles=use_field_angles))
    assert stats["cop_x"] == pytest.approx(0.25, abs=1e-9)
    assert abs(stats["h_fov_err_deg"]) < 1e-9
    assert abs(stats["v_fov_err_deg"]) < 1e-9
    assert abs(stats["cop_x_err"]) < 1e-9
    assert abs(stats["cop_y_err"]) < 1e-9
    assert abs(stats["normal_z"]) == pytest.approx(1.0)
    assert stats["n_points"] == 63.0


def test_oracle_noise_stays_close() -> None:
    stats = eval_synthetic_screen(SyntheticScreen(), CalibrationConfig(), angle_noise_deg=0.01, seed=4)
    assert abs(stats["h_fov_err_deg"]) < 0.1
    assert abs(stats["cop_x_err"]) < 0.01


def test_oracle_rejects_yawed_screen() -> None:
    with pytest.raises(ValueError):
        expected_projection(SyntheticScreen(yaw_deg=10.0))


@pytest.mark.integration
def test_cli_eval_oracle(capsys: pytest.CaptureFixture[str]) -> None:
    from hmdcalib.cli.main import main

    assert main(["eval-oracle", "--offset-x-m", "0.03"]) == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["cop_x"] == pytest.approx(0.25, abs=1e-9)


@pytest.mark.integration
def test_cli_simulate_mesh_with_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    from hmdcalib.cli.main import main

    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps(config_to_dict(CalibrationConfig(overlap_percent=90.0))), encoding="utf-8")
    assert main(["simulate-mesh", "--config", str(cfg), "--cols", "3", "--rows", "2", "--verbose"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    summary = json.loads(lines[0])
    assert summary["overlap_percent"] == 90.0
    assert summary["mesh_rows"] == 6
    assert len(lines) == 1 + 6
    assert lines[1].startswith("synthetic:1: ")


@pytest.mark.integration
def test_cli_simulate_mesh_reports_calibration_error(capsys: pytest.CaptureFixture[str]) -> None:
    from hmdcalib.cli.main import main

    assert main(["simulate-mesh", "--cols", "1"]) == 1
    assert capsys.readouterr().out.startswith("error: synthetic: ")
