"""Simple lowpass dejittering filter."""

from __future__ import annotations

import re
import struct
from dataclasses import replace

from .core import Module, OptionError, parse_c_long

_DOUBLE_PREFIX = re.compile(r"[ \t\n\r\f\v]*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _f32(value):
    return struct.unpack("f", struct.pack("f", value))[0]


def _parse_double(text):
    if text is None:
        raise OptionError("option requires a value")
    match = _DOUBLE_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


class Lowpass(Module):
    """Move each point only a fraction of the way towards the new position."""

    def __init__(self, params=None, *, source=None, dev=None):
        self.factor = _f32(0.4)
        self.threshold = 2
        self._pen_up = True
        self._last = None
        self._slots = 0
        self._last_mt: list = []
        self._pen_up_mt: list[bool] = []
        super().__init__(params, source=source, dev=dev)

    def _apply_option(self, name, value):
        if name == "factor":
            factor = _parse_double(value)
            if factor > 1 or factor < 0:
                raise OptionError(f"factor must lie within 0..1, got {value!r}")
            self.factor = _f32(factor)
        elif name == "threshold":
            self.threshold = parse_c_long(value) & 0xFF
        else:
            super()._apply_option(name, value)

    def _step(self, current, last):
        delta = current - last
        if -self.threshold <= delta <= self.threshold:
            delta = 0
        return last + int(_f32(delta * self.factor))

    def _smooth(self, current, last):
        ideal = replace(current)
        ideal.x = self._step(current.x, last.x)
        ideal.y = self._step(current.y, last.y)
        return ideal

    def read(self, nr):
        result = []
        while len(result) < nr:
            got = self._lower().read(1)
            if not got:
                break
            current = got[0]
            if current.pressure == 0:
                self._pen_up = True
                result.append(current)
            elif self._pen_up:
                self._pen_up = False
                self._last = replace(current)
                result.append(current)
            else:
                ideal = self._smooth(current, self._last)
                self._last = ideal
                result.append(replace(ideal))
        return result

    def read_mt(self, max_slots, nr):
        frames = self._lower().read_mt(max_slots, nr)

        if not self._last_mt or max_slots > self._slots:
            from .core import MTSample

            self._last_mt = [MTSample() for _ in range(max_slots)]
            self._pen_up_mt = [False] * max_slots
            self._slots = max_slots

        for frame in frames:
            for j, sample in enumerate(frame[:max_slots]):
                if not sample.valid:
                    continue
                if sample.pressure == 0:
                    self._pen_up_mt[j] = True
                elif self._pen_up_mt[j]:
                    self._pen_up_mt[j] = False
                    self._last_mt[j] = replace(sample)
                else:
                    ideal = self._smooth(sample, self._last_mt[j])
                    self._last_mt[j] = ideal
                    frame[j] = replace(ideal)
        return frames