import os

import pytest

from tsfilters.core import Device
from tsfilters.tatung import Tatung


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


def test_origin_packet(pipe):
    os.write(pipe["w"], bytes([0, 64, 0, 192]))
    samples = Tatung(dev=Device(fd=pipe["r"])).read(1)
    assert len(samples) == 1
    assert (samples[0].x, samples[0].y, samples[0].pressure) == (0, 0, 1)


def test_high_byte_weighs_31(pipe):
    os.write(pipe["w"], bytes([0, 64, 0, 192]) + bytes([1, 64, 2, 192]))
    first, second = Tatung(dev=Device(fd=pipe["r"])).read(2)
    assert second.x - first.x == 31
    assert second.y - first.y == 62


def test_low_byte_weighs_one(pipe):
    os.write(pipe["w"], bytes([3, 70, 4, 200]) + bytes([3, 71, 4, 203]))
    first, second = Tatung(dev=Device(fd=pipe["r"])).read(2)
    assert second.x - first.x == 1
    assert second.y - first.y == 3


def test_short_batch_ends_with_release(pipe):
    os.write(pipe["w"], bytes([5, 80, 6, 200]))
    samples = Tatung(dev=Device(fd=pipe["r"])).read(3)
    assert [s.pressure for s in samples] == [1, 0]
    assert (samples[1].x, samples[1].y) == (samples[0].x, samples[0].y)


def test_end_mark_stops_batch(pipe):
    os.write(pipe["w"], bytes([5, 80, 6, 200]) + bytes([240, 1, 2, 3]))
    samples = Tatung(dev=Device(fd=pipe["r"])).read(2)
    assert [s.pressure for s in samples] == [1]


def test_end_of_data_raises(pipe):
    os.close(pipe["w"])
    with pytest.raises(EOFError):
        Tatung(dev=Device(fd=pipe["r"])).read(1)