"""Raw reader for the MK712 touchscreen controller."""

from __future__ import annotations

import os
import struct
import time

from .core import Module, Sample

_EVENT = struct.Struct("@IIII")


def _now():
    ns = time.time_ns()
    return ns // 1_000_000_000, (ns // 1_000) % 1_000_000


def _as_short(value):
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


class MK712(Module):
    """Decode 16-byte MK712 records: header, x, y, reserved."""

    def _apply_option(self, name, value):
        pass

    def read(self, nr):
        if nr <= 0:
            return []
        data = os.read(self.dev.fd, _EVENT.size * nr)
        if not data:
            raise EOFError("touchscreen device returned no data")
        samples = []
        whole = len(data) - len(data) % _EVENT.size
        for header, x, y, _reserved in _EVENT.iter_unpack(data[:whole]):
            sec, usec = _now()
            samples.append(
                Sample(
                    x=_as_short(x),
                    y=_as_short(y),
                    pressure=1 if header == 0 else 0,
                    tv_sec=sec,
                    tv_usec=usec,
                )
            )
        return samples