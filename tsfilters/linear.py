"""Linear calibration of touchscreen coordinates, pressure scaling and rotation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import NamedTuple

from .core import Module, OptionError, parse_c_ulong

_DEFAULT_CALIBFILE = "/etc/pointercal"
_INT_PATTERN = re.compile(r"\s*([+-]?\d+)")


class _Calibration(NamedTuple):
    coefficients: tuple
    res_x: int | None
    res_y: int | None
    rotation: int | None


def _scan_ints(text):
    pos = 0
    while True:
        match = _INT_PATTERN.match(text, pos)
        if match is None:
            return
        yield int(match.group(1))
        pos = match.end()


def _cdiv(a, b):
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def _as_c_int(value):
    return (value + 2**31) % 2**32 - 2**31


def load_calibration(path):
    """Read a pointercal file: up to 7 coefficients, resolution, rotation.

    Values that are missing are reported as None (coefficients are simply fewer).
    """
    values = list(_scan_ints(Path(path).read_text()))
    coefficients = tuple(values[:7])
    rest = values[7:] if len(coefficients) == 7 else []
    return _Calibration(
        coefficients=coefficients,
        res_x=rest[0] if len(rest) > 0 else None,
        res_y=rest[1] if len(rest) > 1 else None,
        rotation=rest[2] if len(rest) > 2 else None,
    )


class Linear(Module):
    """Apply the affine calibration transform and optional swap and rotation."""

    def __init__(self, params=None, *, source=None, dev=None, calibfile=None):
        self.coefficients = [1, 0, 0, 0, 1, 0, 1]
        self.p_offset = 0
        self.p_mult = 1
        self.p_div = 1
        self.swap_xy = False
        self.cal_res_x = 0
        self.cal_res_y = 0
        self.rot = 0

        if calibfile is None:
            calibfile = os.environ.get("TSLIB_CALIBFILE", _DEFAULT_CALIBFILE)
        if os.path.exists(calibfile):
            cal = load_calibration(calibfile)
            self.coefficients[: len(cal.coefficients)] = cal.coefficients
            if cal.res_x is not None:
                self.cal_res_x = cal.res_x
            if cal.res_y is not None:
                self.cal_res_y = cal.res_y
            if cal.rotation is not None:
                self.rot = cal.rotation

        super().__init__(params, source=source, dev=dev)

    def _apply_option(self, name, value):
        if name == "xyswap":
            self.swap_xy = True
        elif name == "pressure_offset":
            self.p_offset = _as_c_int(parse_c_ulong(value))
        elif name == "pressure_mul":
            self.p_mult = _as_c_int(parse_c_ulong(value))
        elif name == "pressure_div":
            self.p_div = _as_c_int(parse_c_ulong(value))
        elif name == "rot":
            rot = parse_c_ulong(value)
            if rot not in (0, 1, 2, 3):
                raise OptionError(f"rotation must be 0..3, got {value!r}")
            self.rot = rot
        else:
            super()._apply_option(name, value)

    def _apply(self, sample):
        a = self.coefficients
        x_in, y_in = sample.x, sample.y
        x = _cdiv(a[2] + a[0] * x_in + a[1] * y_in, a[6])
        y = _cdiv(a[5] + a[3] * x_in + a[4] * y_in, a[6])
        if self.dev.res_x and self.cal_res_x:
            x = _cdiv(x * self.dev.res_x, self.cal_res_x)
        if self.dev.res_y and self.cal_res_y:
            y = _cdiv(y * self.dev.res_y, self.cal_res_y)

        sample.pressure = _cdiv((sample.pressure + self.p_offset) * self.p_mult, self.p_div)

        if self.swap_xy:
            x, y = y, x

        if self.rot == 1:
            x, y = y, self.cal_res_x - x - 1
        elif self.rot == 2:
            x, y = self.cal_res_x - x - 1, self.cal_res_y - y - 1
        elif self.rot == 3:
            x, y = self.cal_res_y - y - 1, x

        sample.x, sample.y = x, y

    def read(self, nr):
        samples = self._lower().read(nr)
        for sample in samples:
            self._apply(sample)
        return samples

    def read_mt(self, max_slots, nr):
        frames = self._lower().read_mt(max_slots, nr)
        for frame in frames:
            for sample in frame[:max_slots]:
                if sample.valid:
                    self._apply(sample)
        return frames