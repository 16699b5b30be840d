from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class InclusiveBounds:
    """
    Closed interval [lo, hi], or unbounded when `interval` is None.

    An unbounded interval contains every value.
    """

    interval: tuple[float, float] | None = None

    def __post_init__(self) -> None:
        if self.interval is None:
            return
        lo, hi = (float(v) for v in self.interval)
        if hi < lo:
            lo, hi = hi, lo
        object.__setattr__(self, "interval", (lo, hi))

    @classmethod
    def between(cls, a: float, b: float) -> "InclusiveBounds":
        return cls(interval=(a, b))

    def __bool__(self) -> bool:
        return self.interval is not None

    @property
    def min(self) -> float:
        if self.interval is None:
            raise ValueError("unbounded interval has no min")
        return self.interval[0]

    @property
    def max(self) -> float:
        if self.interval is None:
            raise ValueError("unbounded interval has no max")
        return self.interval[1]

    def contains(self, value: float) -> bool:
        if self.interval is None:
            return True
        return self.interval[0] <= value <= self.interval[1]

    def outside(self, value: float) -> bool:
        return not self.contains(value)

    def __str__(self) -> str:
        if self.interval is None:
            return "[unbounded]"
        return f"[{self.interval[0]:g}, {self.interval[1]:g}]"


@dataclass(frozen=True)
class XYInclusiveBounds:
    x: InclusiveBounds = InclusiveBounds()
    y: InclusiveBounds = InclusiveBounds()

    def __bool__(self) -> bool:
        return bool(self.x) or bool(self.y)

    def contains(self, point: tuple[float, float]) -> bool:
        return self.x.contains(point[0]) and self.y.contains(point[1])

    def __str__(self) -> str:
        if not self:
            return "unbounded"
        parts: list[str] = []
        if self.x:
            parts.append(f"x: {self.x}")
        if self.y:
            parts.append(f"y: {self.y}")
        return ", ".join(parts)


@dataclass(frozen=True)
class RectBounds:
    """
    Axis-aligned screen rectangle in input screen units.

    `left`/`right` bound x and `bottom`/`top` bound y; normalized coordinates put
    `left` and `bottom` at 0.
    """

    left: float
    right: float
    top: float
    bottom: float

    @classmethod
    def from_points(cls, xy: np.ndarray) -> "RectBounds":
        xy = np.asarray(xy, dtype=np.float64).reshape(-1, 2)
        if xy.shape[0] == 0:
            raise ValueError("need at least one point")
        lo = xy.min(axis=0)
        hi = xy.max(axis=0)
        return cls(left=float(lo[0]), right=float(hi[0]), top=float(hi[1]), bottom=float(lo[1]))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    def reflected_horizontally(self) -> "RectBounds":
        """Mirror about x=0, as used to carry bounds from one eye to the other."""
        return RectBounds(left=-self.right, right=-self.left, top=self.top, bottom=self.bottom)

    def x_bounds(self) -> InclusiveBounds:
        return InclusiveBounds.between(self.left, self.right)

    def y_bounds(self) -> InclusiveBounds:
        return InclusiveBounds.between(self.bottom, self.top)

    def xy_bounds(self) -> XYInclusiveBounds:
        return XYInclusiveBounds(x=self.x_bounds(), y=self.y_bounds())

    def __str__(self) -> str:
        return str(self.xy_bounds())
