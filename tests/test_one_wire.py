import os
import struct

import pytest

from tsfilters.core import Device
from tsfilters.one_wire import OneWire


@pytest.fixture
def pipe():
    r, w = os.pipe()
    fds = {"r": r, "w": w}
    yield fds
    for fd in fds.values():
        try:
            os.close(fd)
        except OSError:
            pass


def _status(pressed, x, y):
    return struct.pack("@I", (int(pressed) << 31) | (x << 16) | y)


def test_pressed_status(pipe):
    os.write(pipe["w"], _status(True, 300, 400))
    sample = OneWire(dev=Device(fd=pipe["r"])).read(1)[0]
    assert (sample.x, sample.y, sample.pressure) == (300, 400, 1)


def test_released_status(pipe):
    os.write(pipe["w"], _status(False, 300, 400))
    sample = OneWire(dev=Device(fd=pipe["r"])).read(1)[0]
    assert (sample.x, sample.y, sample.pressure) == (300, 400, 0)


def test_y_masked_to_15_bits(pipe):
    os.write(pipe["w"], struct.pack("@I", 0x8000 | 5))
    sample = OneWire(dev=Device(fd=pipe["r"])).read(1)[0]
    assert sample.y == 5
    assert sample.x == 0


def test_stops_at_end_of_data(pipe):
    os.write(pipe["w"], _status(True, 1, 2) + _status(False, 3, 4))
    os.close(pipe["w"])
    samples = OneWire(dev=Device(fd=pipe["r"])).read(5)
    assert [(s.x, s.y, s.pressure) for s in samples] == [(1, 2, 1), (3, 4, 0)]


def test_read_error_gives_empty_result():
    assert OneWire(dev=Device(fd=-1)).read(3) == []


def test_read_mt_fills_slot_zero(pipe):
    os.write(pipe["w"], _status(True, 10, 20))
    frames = OneWire(dev=Device(fd=pipe["r"])).read_mt(3, 1)
    assert len(frames) == 1
    frame = frames[0]
    assert len(frame) == 3
    assert (frame[0].x, frame[0].y, frame[0].pressure, frame[0].valid) == (10, 20, 1, True)
    assert not frame[1].valid and not frame[2].valid


def test_read_mt_stops_at_end_of_data(pipe):
    os.write(pipe["w"], _status(True, 1, 1))
    os.close(pipe["w"])
    frames = OneWire(dev=Device(fd=pipe["r"])).read_mt(1, 4)
    assert len(frames) == 1