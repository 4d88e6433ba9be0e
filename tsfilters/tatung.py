"""Raw reader for the Tatung 4-byte touchscreen protocol."""

from __future__ import annotations

import os
import time

from .core import Module, Sample

_PACKET_SIZE = 4
_END_MARK = 240


def _now():
    ns = time.time_ns()
    return ns // 1_000_000_000, (ns // 1_000) % 1_000_000


class Tatung(Module):
    """Decode packets of x1, x2, y1, y2; a byte of 240 ends the batch."""

    def _apply_option(self, name, value):
        pass

    def read(self, nr):
        """Return decoded samples; a short batch is closed by a release sample."""
        if nr <= 0:
            return []
        data = os.read(self.dev.fd, _PACKET_SIZE * nr)
        if not data:
            raise EOFError("touchscreen device returned no data")
        samples = []
        for offset in range(0, len(data) - _PACKET_SIZE + 1, _PACKET_SIZE):
            x1, x2, y1, y2 = data[offset : offset + _PACKET_SIZE]
            if _END_MARK in (x1, x2, y1, y2):
                return samples
            sec, usec = _now()
            samples.append(
                Sample(
                    x=x1 * 31 + x2 - 64,
                    y=y1 * 31 + y2 - 192,
                    pressure=1,
                    tv_sec=sec,
                    tv_usec=usec,
                )
            )
        if len(samples) < nr:
            last = samples[-1] if samples else Sample()
            sec, usec = _now()
            samples.append(Sample(x=last.x, y=last.y, pressure=0, tv_sec=sec, tv_usec=usec))
        return samples