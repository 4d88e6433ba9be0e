import pytest

from tsfilters.core import MTSample, OptionError, Sample, SampleSource
from tsfilters.median import MEDIAN_DEPTH_MAX, Median


def make(samples=(), frames=None, params=None):
    return Median(params, source=SampleSource(samples, frames))


def test_default_depth():
    assert Median().size == 3


def test_depth_option():
    assert Median("depth=7").size == 7


def test_depth_too_large():
    with pytest.raises(OptionError):
        Median(f"depth={MEDIAN_DEPTH_MAX}")


def test_unknown_option():
    with pytest.raises(OptionError):
        Median("width=3")


def test_spike_is_rejected():
    samples = [Sample(10, 20, 100)] * 3 + [Sample(500, 900, 100)] + [Sample(10, 20, 100)] * 2
    out = make(samples).read(6)
    assert all((s.x, s.y) == (10, 20) for s in out[2:])


def test_output_is_a_value_from_window():
    xs = [5, 40, 17, 3, 99, 12]
    samples = [Sample(x, x, 100) for x in xs]
    out = make(samples).read(len(xs))
    for s in out:
        assert s.x in xs + [0]
        assert s.y == s.x


def test_read_preserves_count():
    samples = [Sample(i, i, 10) for i in range(1, 6)]
    assert len(make(samples).read(5)) == 5


def test_pen_up_keeps_zero_pressure():
    samples = [Sample(10, 10, 100)] * 3 + [Sample(10, 10, 0)]
    out = make(samples).read(4)
    assert out[3].pressure == 0


def test_pen_up_flushes_window():
    samples = [Sample(300, 300, 100)] * 3 + [Sample(0, 0, 0), Sample(300, 300, 100)]
    out = make(samples).read(5)
    assert (out[4].x, out[4].y) == (0, 0)


def test_read_mt_warmup_then_pen_down():
    frames = [[MTSample(x=10, y=10, pressure=50, valid=True)] for _ in range(3)]
    out = make(frames=frames).read_mt(1, 3)
    assert out[0][0].valid is False
    assert out[1][0].valid is True
    assert out[1][0].pen_down == 1
    assert out[2][0].pen_down == 1


def test_read_mt_pen_up():
    frames = [[MTSample(x=10, y=10, pressure=50, valid=True)] for _ in range(3)]
    frames.append([MTSample(x=10, y=10, pressure=0, valid=True, pen_down=1)])
    out = make(frames=frames).read_mt(1, 4)
    last = out[3][0]
    assert last.valid is True
    assert last.pressure == 0
    assert last.pen_down == 0


def test_read_mt_skips_invalid_slots():
    frames = [[MTSample(x=1, y=2, pressure=3, valid=False), MTSample(x=4, y=4, pressure=0, valid=True)]]
    out = make(frames=frames).read_mt(2, 1)
    assert (out[0][0].x, out[0][0].y, out[0][0].pressure) == (1, 2, 3)
    assert out[0][0].valid is False