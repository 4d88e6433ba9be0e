"""Mirror coordinates around a given point in X and/or Y."""

from __future__ import annotations

from .core import Module, parse_c_long


class Invert(Module):
    """Replace x by x0 - x and/or y by y0 - y."""

    def __init__(self, params=None, *, source=None, dev=None):
        self.x0 = 0
        self.y0 = 0
        self.invert_x = False
        self.invert_y = False
        super().__init__(params, source=source, dev=dev)

    def _apply_option(self, name, value):
        if name == "x0":
            self.x0 = parse_c_long(value)
            self.invert_x = True
        elif name == "y0":
            self.y0 = parse_c_long(value)
            self.invert_y = True
        else:
            super()._apply_option(name, value)

    def _apply(self, sample):
        if self.invert_x:
            sample.x = self.x0 - sample.x
        if self.invert_y:
            sample.y = self.y0 - sample.y

    def read(self, nr):
        result = []
        while len(result) < nr:
            got = self._lower().read(1)
            if not got:
                break
            sample = got[0]
            self._apply(sample)
            result.append(sample)
        return result

    def read_mt(self, max_slots, nr):
        frames = self._lower().read_mt(max_slots, nr)
        for frame in frames:
            for sample in frame:
                if sample.valid:
                    self._apply(sample)
        return frames