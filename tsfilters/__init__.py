"""Touchscreen raw readers, calibration and filter modules for sample chains."""

__version__ = "0.1.0"

__all__ = [
    "core",
    "events",
    "input_raw",
    "invert",
    "linear",
    "linear_h2200",
    "lowpass",
    "median",
    "mk712",
    "one_wire",
    "pthres",
    "skip",
    "tatung",
    "touchkit",
    "ucb1x00",
    "variance",
    "waveshare",
]