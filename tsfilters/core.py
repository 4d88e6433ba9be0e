"""Sample types, option parsing and the base class of a filter chain."""

from __future__ import annotations

import string
from collections import deque
from dataclasses import dataclass, replace
from typing import Iterable

_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1
_ULONG_MAX = 2**64 - 1
_WHITESPACE = " \t\n\r\f\v"


@dataclass
class Sample:
    """A single-touch sample: position, pressure and timestamp."""

    x: int = 0
    y: int = 0
    pressure: int = 0
    tv_sec: int = 0
    tv_usec: int = 0


@dataclass
class MTSample:
    """One slot of a multitouch frame."""

    x: int = 0
    y: int = 0
    pressure: int = 0
    slot: int = 0
    tracking_id: int = 0
    tool_type: int = 0
    tool_x: int = 0
    tool_y: int = 0
    touch_major: int = 0
    width_major: int = 0
    touch_minor: int = 0
    width_minor: int = 0
    orientation: int = 0
    distance: int = 0
    blob_id: int = 0
    tv_sec: int = 0
    tv_usec: int = 0
    pen_down: int = 0
    valid: bool = False


@dataclass
class Device:
    """The touchscreen device shared by all modules of a chain."""

    fd: int = -1
    path: str | None = None
    res_x: int = 0
    res_y: int = 0


class OptionError(ValueError):
    """A module option is unknown or its value is not acceptable."""


def parse_params(params):
    """Split a parameter string into (name, value) pairs; value is None for flags."""
    if not params:
        return []
    result = []
    for token in params.split():
        name, sep, value = token.partition("=")
        result.append((name, value if sep else None))
    return result


def _scan_integer(text):
    if text is None:
        raise OptionError("option requires a value")
    rest = text.lstrip(_WHITESPACE)
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest[:2].lower() == "0x" and len(rest) > 2 and rest[2] in string.hexdigits:
        base, rest, allowed = 16, rest[2:], string.hexdigits
    elif rest.startswith("0"):
        base, allowed = 8, string.octdigits
    else:
        base, allowed = 10, string.digits
    end = 0
    while end < len(rest) and rest[end] in allowed:
        end += 1
    if end == 0:
        return 0
    value = int(rest[:end], base)
    return -value if negative else value


def parse_c_long(text):
    """Parse a signed integer with automatic base (0x.., 0.., decimal).

    Parsing stops at the first character that is not a digit; no digits give 0.
    Values outside the 64-bit signed range raise OptionError.
    """
    value = _scan_integer(text)
    if not _LONG_MIN <= value <= _LONG_MAX:
        raise OptionError(f"value out of range: {text!r}")
    return value


def parse_c_ulong(text):
    """Parse an unsigned integer with automatic base.

    A leading minus sign negates modulo 2**64; magnitudes beyond the
    64-bit unsigned range raise OptionError.
    """
    value = _scan_integer(text)
    if abs(value) > _ULONG_MAX:
        raise OptionError(f"value out of range: {text!r}")
    return value % (_ULONG_MAX + 1)


class Module:
    """A stage of the filter chain that reads from the stage below it."""

    def __init__(self, params=None, *, source=None, dev=None):
        self.source = source
        if dev is None:
            dev = source.dev if source is not None else Device()
        self.dev = dev
        self.closed = False
        self.configure(params)

    def configure(self, params):
        """Apply every option named in a parameter string."""
        for name, value in parse_params(params):
            self._apply_option(name, value)

    def _apply_option(self, name, value):
        raise OptionError(f"{type(self).__name__}: unknown option {name!r}")

    def _lower(self):
        if self.source is None:
            raise NotImplementedError(f"{type(self).__name__} has no source to read from")
        return self.source

    def read(self, nr):
        """Return up to nr single-touch samples."""
        return self._lower().read(nr)

    def read_mt(self, max_slots, nr):
        """Return up to nr multitouch frames of max_slots slots each."""
        return self._lower().read_mt(max_slots, nr)

    def close(self):
        """Release what this module holds."""
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class SampleSource(Module):
    """A chain bottom that replays recorded samples and frames."""

    def __init__(self, samples: Iterable[Sample] = (), frames=None, *, dev=None):
        self._samples = deque(samples)
        self._frames = None if frames is None else deque(frames)
        super().__init__(None, dev=dev)

    def read(self, nr):
        result = []
        while len(result) < nr and self._samples:
            result.append(replace(self._samples.popleft()))
        return result

    def read_mt(self, max_slots, nr):
        if self._frames is None:
            raise NotImplementedError("no multitouch data available")
        result = []
        while len(result) < nr and self._frames:
            frame = [replace(s) for s in self._frames.popleft()[:max_slots]]
            frame.extend(MTSample() for _ in range(max_slots - len(frame)))
            result.append(frame)
        return result