"""Raw reader for one-wire touchscreens that report a packed 32-bit status."""

from __future__ import annotations

import os
import struct
import time

from .core import Module, MTSample, Sample

_STATUS = struct.Struct("@I")


def _now():
    ns = time.time_ns()
    return ns // 1_000_000_000, (ns // 1_000) % 1_000_000


def _decode(status):
    return (status >> 16) & 0x7FFF, status & 0x7FFF, status >> 31


class OneWire(Module):
    """Decode status words: bit 31 pressure, bits 16-30 x, bits 0-14 y."""

    def _apply_option(self, name, value):
        pass

    def _statuses(self, nr):
        for _ in range(nr):
            try:
                data = os.read(self.dev.fd, _STATUS.size)
            except OSError:
                return
            if len(data) < _STATUS.size:
                return
            yield _STATUS.unpack(data)[0]

    def read(self, nr):
        samples = []
        for status in self._statuses(nr):
            x, y, pressure = _decode(status)
            sec, usec = _now()
            samples.append(Sample(x=x, y=y, pressure=pressure, tv_sec=sec, tv_usec=usec))
        return samples

    def read_mt(self, max_slots, nr):
        """Only slot 0 carries data; other slots stay invalid."""
        frames = []
        for status in self._statuses(nr):
            x, y, pressure = _decode(status)
            sec, usec = _now()
            frame = [MTSample() for _ in range(max(max_slots, 1))]
            frame[0] = MTSample(
                x=x, y=y, pressure=pressure, tv_sec=sec, tv_usec=usec, valid=True
            )
            frames.append(frame)
        return frames