"""Median filter over a sliding window of recent samples."""

from __future__ import annotations

from collections import deque

from .core import Module, OptionError, parse_c_ulong

MEDIAN_DEPTH_MAX = 128
_DEFAULT_DEPTH = 3


def _median(values, key=None):
    ordered = sorted(values, key=key)
    return ordered[len(ordered) // 2]


class Median(Module):
    """Replace x, y and pressure by the median of the last `depth` samples."""

    def __init__(self, params=None, *, source=None, dev=None):
        self.size = None
        super().__init__(params, source=source, dev=dev)
        if self.size is None:
            self.size = _DEFAULT_DEPTH
        self._delay = self._empty_window()
        self._with_samples = False
        self._slots = 0
        self._delay_mt: list[deque] = []
        self._with_samples_mt: list[int] = []

    def _apply_option(self, name, value):
        if name == "depth":
            depth = parse_c_ulong(value)
            if depth >= MEDIAN_DEPTH_MAX:
                raise OptionError(f"depth exceeds maximum of {MEDIAN_DEPTH_MAX}")
            if depth == 0:
                raise OptionError("depth must be at least 1")
            self.size = depth
        else:
            super()._apply_option(name, value)

    def _empty_window(self):
        return deque([(0, 0, 0)] * self.size, maxlen=self.size)

    @staticmethod
    def _filter(window, sample):
        window.append((sample.x, sample.y, sample.pressure))
        sample.x = _median(v[0] for v in window)
        sample.y = _median(v[1] for v in window)
        sample.pressure = _median((v[2] for v in window), key=lambda p: p & 0xFFFFFFFF)

    def read(self, nr):
        samples = self._lower().read(nr)
        for sample in samples:
            cpress = sample.pressure
            self._filter(self._delay, sample)
            if cpress == 0 and self._with_samples:
                self._delay = self._empty_window()
                self._with_samples = False
                sample.pressure = cpress
            elif cpress != 0 and not self._with_samples:
                self._with_samples = True
        return samples

    def read_mt(self, max_slots, nr):
        frames = self._lower().read_mt(max_slots, nr)

        if not self._delay_mt or max_slots > self._slots:
            self._delay_mt = [self._empty_window() for _ in range(max_slots)]
            self._with_samples_mt = [0] * max_slots
            self._slots = max_slots

        half = self.size // 2
        for frame in frames:
            for j, sample in enumerate(frame[:max_slots]):
                if not sample.valid:
                    continue
                cpress = sample.pressure
                self._filter(self._delay_mt[j], sample)

                if cpress == 0 and self._with_samples_mt[j]:
                    self._delay_mt[j] = self._empty_window()
                    self._with_samples_mt[j] = 0
                    sample.pressure = cpress
                    sample.pen_down = 0
                elif cpress != 0 and self._with_samples_mt[j] == 0:
                    self._with_samples_mt[j] = 1

                if cpress != 0:
                    if self._with_samples_mt[j] <= half:
                        sample.valid = False
                        self._with_samples_mt[j] += 1
                    else:
                        sample.pen_down = 1
        return frames