from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from hmdcalib.core.types import ProjectionDescription

Channel = Literal["red", "green", "blue"]
CHANNELS: tuple[Channel, ...] = ("red", "green", "blue")


@dataclass(frozen=True)
class RadialDistortion:
    """
    Per-colour-channel radial lens distortion around an optical center:

      p' = c + (p - c) * (1 + k1 * |p - c|^2)

    Coordinates are normalized screen units; `center` is usually the center of
    projection of the eye.
    """

    k1_rgb: tuple[float, float, float] = (0.0, 0.0, 0.0)
    center: tuple[float, float] = (0.5, 0.5)

    @classmethod
    def from_projection(
        cls, projection: ProjectionDescription, k1_rgb: tuple[float, float, float]
    ) -> "RadialDistortion":
        return cls(k1_rgb=tuple(float(k) for k in k1_rgb), center=(float(projection.cop[0]), float(projection.cop[1])))

    def k1(self, channel: Channel) -> float:
        return float(self.k1_rgb[CHANNELS.index(channel)])

    def distort(self, x: np.ndarray, y: np.ndarray, channel: Channel = "green") -> tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        cx, cy = self.center
        dx = x - cx
        dy = y - cy
        radial = 1.0 + self.k1(channel) * (dx * dx + dy * dy)
        return cx + dx * radial, cy + dy * radial

    def undistort(
        self, xd: np.ndarray, yd: np.ndarray, channel: Channel = "green", iterations: int = 20
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Inverse of distort() for one channel.

        The model only rescales the offset from `center`, so the undistorted point is
        `c + (p' - c) * f` with `f = 1 / (1 + k1 * |p' - c|^2 * f^2)`, solved by
        fixed-point iteration. Converges while `3 * |k1| * |p - c|^2 < 1`.
        """
        xd = np.asarray(xd, dtype=np.float64)
        yd = np.asarray(yd, dtype=np.float64)
        cx, cy = self.center
        dx = xd - cx
        dy = yd - cy
        rd2 = dx * dx + dy * dy
        k1 = self.k1(channel)
        f = np.ones_like(rd2)
        for _ in range(int(iterations)):
            f = 1.0 / (1.0 + k1 * rd2 * f * f)
        return cx + dx * f, cy + dy * f

    def distort_rgb(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Distorted positions for all channels, shape (3, *x.shape, 2) in RGB order."""
        out = []
        for channel in CHANNELS:
            xd, yd = self.distort(x, y, channel)
            out.append(np.stack([xd, yd], axis=-1))
        return np.stack(out, axis=0)


def radial_from_dict(d: dict) -> RadialDistortion:
    k1 = d.get("k1_rgb", [0.0, 0.0, 0.0])
    if len(k1) != 3:
        raise ValueError("k1_rgb must have three entries (red, green, blue)")
    center = d.get("center", [0.5, 0.5])
    if len(center) != 2:
        raise ValueError("center must be [x, y]")
    return RadialDistortion(
        k1_rgb=(float(k1[0]), float(k1[1]), float(k1[2])),
        center=(float(center[0]), float(center[1])),
    )


def radial_to_dict(m: RadialDistortion) -> dict:
    return {"k1_rgb": [float(k) for k in m.k1_rgb], "center": [float(c) for c in m.center]}
