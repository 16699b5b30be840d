from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import numpy as np

from hmdcalib.core.bounds import RectBounds

SCHEMA_VERSION = "hmdcalib.config.v0"


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class CalibrationConfig:
    """
    Options for one calibration run.

    `depth` is the assumed eye-to-screen distance in input units; geometry is
    carried in `depth * to_meters`. `xx, xy, yx, yy` form the cross-axis matrix
    applied to recomputed angles before they are compared during verification.
    """

    compute_screen_bounds: bool = True
    supplied_screen_bounds: RectBounds | None = None
    use_field_angles: bool = True
    to_meters: float = 1.0
    depth: float = 2.0
    overlap_percent: float = 100.0
    verify_angles: bool = False
    max_angle_diff_degrees: float = 1.0
    xx: float = 1.0
    xy: float = 0.0
    yx: float = 0.0
    yy: float = 1.0
    verbose: bool = False

    @property
    def eye_depth(self) -> float:
        return float(self.depth) * float(self.to_meters)

    def angle_transform(self) -> np.ndarray:
        return np.array([[self.xx, self.xy], [self.yx, self.yy]], dtype=np.float64)

    def for_other_eye(self) -> "CalibrationConfig":
        if self.supplied_screen_bounds is None:
            return self
        return replace(self, supplied_screen_bounds=self.supplied_screen_bounds.reflected_horizontally())


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def _as_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    _require(isinstance(value, bool), f"{key} must be a boolean")
    return value


def _as_float(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    _require(isinstance(value, (int, float)) and not isinstance(value, bool), f"{key} must be a number")
    value = float(value)
    _require(bool(np.isfinite(value)), f"{key} must be finite")
    return value


def load_config(path: Path) -> CalibrationConfig:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_config(data)


def parse_config(data: dict[str, Any]) -> CalibrationConfig:
    _require(isinstance(data, dict), "config must be an object")
    schema_version = data.get("schema_version")
    _require(schema_version == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    compute_bounds = _as_bool(data, "compute_screen_bounds", True)

    bounds = None
    raw_bounds = data.get("supplied_screen_bounds")
    if raw_bounds is not None:
        _require(isinstance(raw_bounds, dict), "supplied_screen_bounds must be an object")
        for k in ("left", "right", "top", "bottom"):
            _require(k in raw_bounds, f"supplied_screen_bounds.{k} is required")
        bounds = RectBounds(
            left=_as_float(raw_bounds, "left", 0.0),
            right=_as_float(raw_bounds, "right", 0.0),
            top=_as_float(raw_bounds, "top", 0.0),
            bottom=_as_float(raw_bounds, "bottom", 0.0),
        )
        _require(bounds.width != 0.0 and bounds.height != 0.0, "supplied_screen_bounds must have a non-zero extent")
    _require(compute_bounds or bounds is not None, "supplied_screen_bounds is required when compute_screen_bounds is false")

    to_meters = _as_float(data, "to_meters", 1.0)
    _require(to_meters > 0.0, "to_meters must be > 0")
    depth = _as_float(data, "depth", 2.0)
    _require(depth > 0.0, "depth must be > 0")
    overlap = _as_float(data, "overlap_percent", 100.0)
    _require(0.0 <= overlap <= 100.0, "overlap_percent must be in [0, 100]")

    verify = data.get("verify", {})
    _require(isinstance(verify, dict), "verify must be an object")
    max_diff = _as_float(verify, "max_angle_diff_degrees", 1.0)
    _require(max_diff > 0.0, "verify.max_angle_diff_degrees must be > 0")
    xx = _as_float(verify, "xx", 1.0)
    xy = _as_float(verify, "xy", 0.0)
    yx = _as_float(verify, "yx", 0.0)
    yy = _as_float(verify, "yy", 1.0)
    _require(abs(xx * yy - xy * yx) > 1e-12, "verify angle transform [[xx, xy], [yx, yy]] must be non-singular")

    return CalibrationConfig(
        compute_screen_bounds=compute_bounds,
        supplied_screen_bounds=bounds,
        use_field_angles=_as_bool(data, "use_field_angles", True),
        to_meters=to_meters,
        depth=depth,
        overlap_percent=overlap,
        verify_angles=_as_bool(verify, "enabled", False),
        max_angle_diff_degrees=max_diff,
        xx=xx,
        xy=xy,
        yx=yx,
        yy=yy,
        verbose=_as_bool(data, "verbose", False),
    )


def config_to_dict(config: CalibrationConfig) -> dict[str, Any]:
    out: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "compute_screen_bounds": bool(config.compute_screen_bounds),
        "use_field_angles": bool(config.use_field_angles),
        "to_meters": float(config.to_meters),
        "depth": float(config.depth),
        "overlap_percent": float(config.overlap_percent),
        "verify": {
            "enabled": bool(config.verify_angles),
            "max_angle_diff_degrees": float(config.max_angle_diff_degrees),
            "xx": float(config.xx),
            "xy": float(config.xy),
            "yx": float(config.yx),
            "yy": float(config.yy),
        },
        "verbose": bool(config.verbose),
    }
    b = config.supplied_screen_bounds
    if b is not None:
        out["supplied_screen_bounds"] = {"left": b.left, "right": b.right, "top": b.top, "bottom": b.bottom}
    return out
