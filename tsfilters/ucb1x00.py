"""Raw reader for UCB1x00 style touchscreens."""

from __future__ import annotations

import os
import struct

from .core import Module, Sample

_EVENT = struct.Struct("@HHHHll")


class UCB1x00(Module):
    """Decode records of pressure, x, y, padding and a kernel timestamp."""

    def _apply_option(self, name, value):
        pass

    def read(self, nr):
        if nr <= 0:
            return []
        data = os.read(self.dev.fd, _EVENT.size * nr)
        if not data:
            raise EOFError("touchscreen device returned no data")
        whole = len(data) - len(data) % _EVENT.size
        return [
            Sample(x=x, y=y, pressure=pressure, tv_sec=sec, tv_usec=usec)
            for pressure, x, y, _pad, sec, usec in _EVENT.iter_unpack(data[:whole])
        ]