"""Raw reader for TouchKit RS232 controllers (SAT4000UR)."""

from __future__ import annotations

import os
import termios
import time

from .core import Module, Sample

PACKET_SIZE = 5
BUFFER_SIZE = 100
PACKET_SIGNATURE = 0x81


def _is_start(byte):
    return (byte | 1) == PACKET_SIGNATURE


def _now():
    ns = time.time_ns()
    return ns // 1_000_000_000, (ns // 1_000) % 1_000_000


def find_packet(buffer):
    """Look for the first complete packet in buffer.

    Returns (packet, rest): packet is the 5 packet bytes or None, rest is
    what stays buffered. Bytes before a complete packet are discarded, and a
    start byte found inside a packet restarts the search there. When only an
    incomplete packet is found, leading garbage before it is dropped.
    """
    data = bytes(buffer)
    p = 0
    while p < len(data):
        if not _is_start(data[p]):
            p += 1
            continue
        if p + PACKET_SIZE > len(data):
            return None, data[p:]
        embedded = next(
            (q for q in range(1, PACKET_SIZE) if _is_start(data[p + q])), None
        )
        if embedded is not None:
            p += embedded
            continue
        return data[p : p + PACKET_SIZE], data[p + PACKET_SIZE :]
    return None, data


def _decode(packet):
    x = (packet[1] & 0x0F) << 7 | (packet[2] & 0x7F)
    y = (packet[3] & 0x0F) << 7 | (packet[4] & 0x7F)
    pressure = 200 if packet[0] & 1 else 0
    sec, usec = _now()
    return Sample(x=x, y=y, pressure=pressure, tv_sec=sec, tv_usec=usec)


def _setup_serial(fd):
    try:
        attrs = termios.tcgetattr(fd)
    except termios.error:
        return
    attrs[0] = termios.IGNBRK | termios.IGNPAR
    attrs[1] = 0
    attrs[2] = termios.CS8 | termios.CREAD | termios.CLOCAL | termios.HUPCL | termios.B9600
    attrs[3] = 0
    attrs[4] = termios.B9600
    attrs[5] = termios.B9600
    attrs[6][termios.VTIME] = 0
    attrs[6][termios.VMIN] = 1
    try:
        termios.tcsetattr(fd, termios.TCSAFLUSH, attrs)
    except termios.error:
        pass


class TouchKit(Module):
    """Decode 5-byte position reports; at most one sample per read."""

    def __init__(self, params=None, *, source=None, dev=None):
        self._initialized = False
        self._buffer = b""
        super().__init__(params, source=source, dev=dev)

    def _apply_option(self, name, value):
        pass

    def read(self, nr):
        """Read some bytes and return the next decoded sample, if complete."""
        fd = self.dev.fd
        if not self._initialized:
            _setup_serial(fd)
            self._initialized = True
        chunk = os.read(fd, PACKET_SIZE)
        if not chunk:
            raise EOFError("touchscreen device returned no data")
        self._buffer += chunk
        if len(self._buffer) > BUFFER_SIZE:
            self._buffer = self._buffer[-BUFFER_SIZE:]
        if len(self._buffer) < PACKET_SIZE:
            return []
        packet, self._buffer = find_packet(self._buffer)
        if packet is None or nr <= 0:
            return []
        return [_decode(packet)]