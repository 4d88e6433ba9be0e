"""Raw reader for WaveShare USB touchscreens over hidraw."""

from __future__ import annotations

import errno
import fcntl
import os
import re
import struct
import time

from .core import Module, MTSample, OptionError, Sample

HIDRAW_MAX_DEVICES = 64
_MIN_RECORD = 6

_DEVINFO = struct.Struct("@Ihh")
HIDIOCGRAWINFO = (2 << 30) | (_DEVINFO.size << 16) | (ord("H") << 8) | 0x03

_HEX_PREFIX = re.compile(r"[ \t\n\r\f\v]*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]*)")
_DEC_PREFIX = re.compile(r"[ \t\n\r\f\v]*([+-]?\d+)")


def _parse_hex(text):
    match = _HEX_PREFIX.match(text)
    if not match or not match.group(2):
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


def _atoi(text):
    match = _DEC_PREFIX.match(text or "")
    return int(match.group(1)) if match else 0


def _now():
    ns = time.time_ns()
    return ns // 1_000_000_000, (ns // 1_000) % 1_000_000


def _hidraw_paths():
    return [f"/dev/hidraw{n}" for n in range(HIDRAW_MAX_DEVICES)]


def _find_in(paths, vendor, product):
    for path in paths:
        if not os.path.exists(path):
            continue
        try:
            fd = os.open(path, os.O_RDONLY)
        except OSError:
            continue
        try:
            raw = fcntl.ioctl(fd, HIDIOCGRAWINFO, bytes(_DEVINFO.size))
        except OSError:
            os.close(fd)
            continue
        _bus, dev_vendor, dev_product = _DEVINFO.unpack(raw)
        if (dev_vendor & 0xFFFF, dev_product & 0xFFFF) == (vendor, product):
            return fd
        os.close(fd)
    return None


def find_hidraw_device(vendor, product):
    """Open the first hidraw device with this vendor and product id; None if absent."""
    return _find_in(_hidraw_paths(), vendor, product)


class Waveshare(Module):
    """Decode fixed-length reports: [1] pressure, [2:4] x, [4:6] y, big-endian."""

    def __init__(self, params=None, *, source=None, dev=None, hidraw_paths=None):
        self.vendor = 0
        self.product = 0
        self.length = 25
        self._paths = hidraw_paths
        self._searched = False
        super().__init__(params, source=source, dev=dev)

    def _apply_option(self, name, value):
        if name == "vid_pid":
            if value is None or len(value) < 9:
                return
            self.vendor = _parse_hex(value[0:4])
            self.product = _parse_hex(value[5:9])
        elif name == "len":
            length = _atoi(value)
            if length < 0:
                raise OptionError(f"len must not be negative, got {value!r}")
            if length < _MIN_RECORD:
                raise OptionError(f"len must be at least {_MIN_RECORD}, got {value!r}")
            self.length = length
        else:
            super()._apply_option(name, value)

    def _locate(self):
        if self._searched:
            return
        self._searched = True
        if self.vendor > 0 and self.product > 0:
            paths = self._paths if self._paths is not None else _hidraw_paths()
            fd = _find_in(paths, self.vendor, self.product)
            if fd is None:
                raise OSError(
                    errno.ENODEV,
                    f"no hidraw device {self.vendor:04X}:{self.product:04X} found",
                )
            if self.dev.fd >= 0:
                try:
                    os.close(self.dev.fd)
                except OSError:
                    pass
            self.dev.fd = fd

    def _records(self, nr):
        self._locate()
        if nr <= 0:
            return
        data = os.read(self.dev.fd, self.length * nr)
        if not data:
            raise EOFError("touchscreen device returned no data")
        for offset in range(0, len(data) - self.length + 1, self.length):
            rec = data[offset : offset + self.length]
            yield rec[1], rec[2] << 8 | rec[3], rec[4] << 8 | rec[5]

    def read(self, nr):
        samples = []
        for pressure, x, y in self._records(nr):
            sec, usec = _now()
            samples.append(Sample(x=x, y=y, pressure=pressure, tv_sec=sec, tv_usec=usec))
        return samples

    def read_mt(self, max_slots, nr):
        """Only slot 0 carries data; other slots stay invalid."""
        frames = []
        for pressure, x, y in self._records(nr):
            sec, usec = _now()
            frame = [MTSample() for _ in range(max(max_slots, 1))]
            frame[0] = MTSample(
                x=x, y=y, pressure=pressure, tv_sec=sec, tv_usec=usec, valid=True
            )
            frames.append(frame)
        return frames