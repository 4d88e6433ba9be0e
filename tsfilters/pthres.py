"""Pressure threshold: a release always has pressure 0, a press lies within bounds."""

from __future__ import annotations

from .core import Module, parse_c_ulong

_INT_MAX = 2**31 - 1


class PressureThreshold(Module):
    """Drop samples outside [pmin, pmax] and turn sub-pmin samples into releases."""

    def __init__(self, params=None, *, source=None, dev=None):
        self.pmin = 1
        self.pmax = _INT_MAX
        self._pressed = False
        self._saved = (0, 0)
        self._slot_pressed: list[bool] = []
        self._slot_saved: list[tuple[int, int]] = []
        super().__init__(params, source=source, dev=dev)

    def _apply_option(self, name, value):
        if name == "pmin":
            self.pmin = parse_c_ulong(value) & 0xFFFFFFFF
        elif name == "pmax":
            self.pmax = parse_c_ulong(value) & 0xFFFFFFFF
        else:
            super()._apply_option(name, value)

    def read(self, nr):
        kept = []
        for sample in self._lower().read(nr):
            if sample.pressure < self.pmin:
                if not self._pressed:
                    continue
                self._pressed = False
                sample.pressure = 0
                sample.x, sample.y = self._saved
            elif sample.pressure > self.pmax:
                continue
            else:
                self._pressed = True
                self._saved = (sample.x, sample.y)
            kept.append(sample)
        return kept

    def read_mt(self, max_slots, nr):
        if max_slots > len(self._slot_pressed):
            self._slot_pressed = [False] * max_slots
            self._slot_saved = [(0, 0)] * max_slots

        frames = self._lower().read_mt(max_slots, nr)
        for frame in frames:
            for j, sample in enumerate(frame[:max_slots]):
                if not sample.valid:
                    continue
                if sample.pressure < self.pmin:
                    if self._slot_pressed[j]:
                        self._slot_pressed[j] = False
                        sample.pressure = 0
                        sample.x, sample.y = self._slot_saved[j]
                    else:
                        sample.valid = False
                elif sample.pressure > self.pmax:
                    sample.valid = False
                else:
                    self._slot_pressed[j] = True
                    self._slot_saved[j] = (sample.x, sample.y)
        return frames