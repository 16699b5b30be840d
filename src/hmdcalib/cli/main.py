from __future__ import annotations

import argparse
import json
from dataclasses import replace
from pathlib import Path

from hmdcalib.api.pipeline import CalibrationResult, run_calibration
from hmdcalib.config import CalibrationConfig, load_config
from hmdcalib.errors import CalibrationError
from hmdcalib.eval.oracle import eval_synthetic_screen
from hmdcalib.sim.synthetic_screen import SyntheticScreen, generate_measurements


def _add_screen_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, default=None, help="Calibration config JSON (hmdcalib.config.v0).")
    p.add_argument("--width-m", type=float, default=0.12, help="Physical screen width.")
    p.add_argument("--height-m", type=float, default=0.07, help="Physical screen height.")
    p.add_argument("--depth-m", type=float, default=2.0, help="Eye-to-screen distance of the synthetic screen.")
    p.add_argument("--offset-x-m", type=float, default=0.0)
    p.add_argument("--offset-y-m", type=float, default=0.0)
    p.add_argument("--yaw-deg", type=float, default=0.0, help="Screen rotation about the vertical axis.")
    p.add_argument("--cols", type=int, default=9)
    p.add_argument("--rows", type=int, default=7)
    p.add_argument("--noise-deg", type=float, default=0.0, help="Gaussian angle noise (degrees).")
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--longlat", action="store_true", help="Angles are longitude/latitude instead of field angles.")
    p.add_argument("--verify-angles", action="store_true")
    p.add_argument("--max-angle-diff-deg", type=float, default=None)
    p.add_argument("--verbose", action="store_true")


def _screen_from_args(args: argparse.Namespace) -> SyntheticScreen:
    return SyntheticScreen(
        width_m=args.width_m,
        height_m=args.height_m,
        depth_m=args.depth_m,
        offset_x_m=args.offset_x_m,
        offset_y_m=args.offset_y_m,
        yaw_deg=args.yaw_deg,
        cols=args.cols,
        rows=args.rows,
    )


def _config_from_args(args: argparse.Namespace) -> CalibrationConfig:
    config = load_config(args.config) if args.config is not None else CalibrationConfig()
    if args.longlat:
        config = replace(config, use_field_angles=False)
    if args.verify_angles:
        config = replace(config, verify_angles=True)
    if args.max_angle_diff_deg is not None:
        config = replace(config, max_angle_diff_degrees=args.max_angle_diff_deg)
    if args.verbose:
        config = replace(config, verbose=True)
    return config


def _print_result(result: CalibrationResult, verbose: bool) -> None:
    p = result.projection
    summary = {
        "h_fov_deg": p.h_fov_degrees,
        "v_fov_deg": p.v_fov_degrees,
        "overlap_percent": p.overlap_percent,
        "cop": list(p.cop),
        "plane": [float(c) for c in result.screen.plane.coeffs],
        "mesh_rows": len(result.mesh),
        "bounds_warnings": len(result.bounds_warnings),
        "angle_violations": len(result.angle_violations),
    }
    print(json.dumps(summary, indent=None, sort_keys=True))
    if not verbose:
        return
    for i, row in enumerate(result.mesh):
        print(
            f"{result.normalized.origin(i)}: "
            f"({row.physical[0]:.6f}, {row.physical[1]:.6f}) -> ({row.canonical[0]:.6f}, {row.canonical[1]:.6f})"
        )
    for w in result.bounds_warnings:
        print(f"warning: {w}")
    for v in result.angle_violations:
        print(f"violation: {v}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="hmdcalib")
    sub = parser.add_subparsers(dest="cmd", required=True)

    oracle = sub.add_parser(
        "eval-oracle",
        help="Calibrate a synthetic untilted screen and compare FOV/COP against closed-form values.",
    )
    _add_screen_args(oracle)

    sim = sub.add_parser(
        "simulate-mesh",
        help="Calibrate a synthetic screen and print the projection (and mesh with --verbose).",
    )
    _add_screen_args(sim)

    args = parser.parse_args(argv)
    screen = _screen_from_args(args)
    config = _config_from_args(args)

    if args.cmd == "eval-oracle":
        stats = eval_synthetic_screen(screen, config, angle_noise_deg=args.noise_deg, seed=args.seed)
        print(json.dumps(stats, indent=None, sort_keys=True))
        return 0

    if args.cmd == "simulate-mesh":
        measurements = generate_measurements(
            screen,
            use_field_angles=config.use_field_angles,
            angle_noise_deg=args.noise_deg,
            seed=args.seed,
        )
        try:
            result = run_calibration(measurements, config)
        except CalibrationError as e:
            print(f"error: {e}")
            return 1
        _print_result(result, config.verbose)
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")
