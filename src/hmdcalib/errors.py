from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hmdcalib.core.types import DataOrigin


class CalibrationError(ValueError):
    """
    Fatal error raised by a calibration stage.

    `origin` is set when a single measurement triggered the error; `input_source`
    is set for errors about the measurement set as a whole.
    """

    def __init__(self, message: str, *, origin: DataOrigin | None = None, input_source: str | None = None) -> None:
        self.message = message
        self.origin = origin
        self.input_source = input_source
        super().__init__(self._format())

    def _format(self) -> str:
        if self.origin is not None:
            return f"{self.origin}: {self.message}"
        if self.input_source:
            return f"{self.input_source}: {self.message}"
        return self.message


class InsufficientDataError(CalibrationError):
    pass


class InvalidAngleError(CalibrationError):
    pass


class DegenerateGeometryError(CalibrationError):
    pass


class DegenerateRayError(CalibrationError):
    pass
