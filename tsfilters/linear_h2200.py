"""Fixed-point polynomial scaling for the HP iPAQ h22xx touchscreen."""

from __future__ import annotations

from .core import Module


def _m20(a, b):
    return (a * b) >> 20


def _m32(a, b):
    return (a * b) >> 32


def h2200_transform(x, y):
    """Map raw (x, y) to screen coordinates with the 12.20 fixed-point polynomial."""
    x <<= 20
    y <<= 20
    new_x = (
        14708834
        + _m20(1009971, x)
        + _m20(-18416, y)
        + _m20(_m32(129310, x), y)
        + _m20(_m32(76687, x), x)
        + _m20(_m32(5340, y), y)
    )
    new_y = (
        -10920238
        + _m20(129836, x)
        + _m20(951939, y)
        + _m20(_m32(-947740, x), y)
        + _m20(_m32(22599, x), x)
        + _m20(_m32(735087, y), y)
    )
    return new_x >> 20, new_y >> 20


class LinearH2200(Module):
    """Apply the h22xx polynomial to every sample; parameters are ignored."""

    def _apply_option(self, name, value):
        pass

    def read(self, nr):
        samples = self._lower().read(nr)
        for sample in samples:
            sample.x, sample.y = h2200_transform(sample.x, sample.y)
        return samples