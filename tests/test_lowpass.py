import pytest

from tsfilters.core import MTSample, OptionError, Sample, SampleSource
from tsfilters.lowpass import Lowpass


def make(samples=(), frames=None, params=None):
    return Lowpass(params, source=SampleSource(samples, frames))


def test_defaults():
    f = make()
    assert f.threshold == 2
    assert f.factor == pytest.approx(0.4)


def test_pen_up_passes_unchanged():
    f = make([Sample(x=7, y=9, pressure=0)])
    out = f.read(1)
    assert out == [Sample(x=7, y=9, pressure=0)]


def test_first_press_passes_unchanged():
    f = make([Sample(x=100, y=200, pressure=50)])
    assert f.read(1) == [Sample(x=100, y=200, pressure=50)]


def test_movement_within_threshold_is_held():
    f = make([Sample(100, 100, 50), Sample(102, 98, 50)])
    out = f.read(2)
    assert (out[1].x, out[1].y) == (100, 100)
    assert out[1].pressure == 50


def test_factor_one_follows_input():
    f = make([Sample(100, 100, 50), Sample(130, 60, 50)], params="factor=1 threshold=0")
    out = f.read(2)
    assert (out[1].x, out[1].y) == (130, 60)


def test_factor_zero_never_moves():
    samples = [Sample(100, 100, 50), Sample(150, 150, 50), Sample(200, 200, 50)]
    f = make(samples, params="factor=0")
    out = f.read(3)
    assert all((s.x, s.y) == (100, 100) for s in out)


def test_half_factor_moves_halfway():
    f = make([Sample(100, 100, 50), Sample(110, 100, 50)], params="factor=0.5")
    out = f.read(2)
    assert out[1].x == 105


def test_smoothed_value_stays_between_old_and_new():
    samples = [Sample(0, 0, 10)] + [Sample(1000, 500, 10)] * 5
    out = make(samples).read(6)
    xs = [s.x for s in out]
    assert xs == sorted(xs)
    assert all(0 <= x <= 1000 for x in xs)


def test_pen_up_resets_tracking():
    samples = [Sample(100, 100, 50), Sample(0, 0, 0), Sample(400, 400, 50)]
    out = make(samples, params="factor=0").read(3)
    assert (out[2].x, out[2].y) == (400, 400)


def test_read_stops_when_source_empty():
    assert len(make([Sample(1, 1, 1)]).read(5)) == 1


@pytest.mark.parametrize("value", ["1.5", "-0.1"])
def test_factor_out_of_range(value):
    with pytest.raises(OptionError):
        Lowpass(f"factor={value}")


def test_unknown_option():
    with pytest.raises(OptionError):
        Lowpass("bogus=1")


def test_threshold_option():
    assert Lowpass("threshold=7").threshold == 7


def test_read_mt_invalid_slots_untouched():
    frames = [[MTSample(x=10, y=10, pressure=5, valid=False), MTSample(x=3, y=4, pressure=0, valid=True)]]
    out = make(frames=frames).read_mt(2, 1)
    assert (out[0][0].x, out[0][0].y) == (10, 10)
    assert (out[0][1].x, out[0][1].y) == (3, 4)


def test_read_mt_first_contact_starts_from_origin():
    frames = [[MTSample(x=50, y=60, pressure=5, valid=True)]]
    out = make(frames=frames, params="factor=0").read_mt(1, 1)
    assert (out[0][0].x, out[0][0].y) == (0, 0)


def test_read_mt_after_pen_up_passes_press():
    frames = [
        [MTSample(x=1, y=1, pressure=0, valid=True)],
        [MTSample(x=300, y=200, pressure=9, valid=True)],
        [MTSample(x=900, y=900, pressure=9, valid=True)],
    ]
    out = make(frames=frames, params="factor=0").read_mt(1, 3)
    assert (out[1][0].x, out[1][0].y) == (300, 200)
    assert (out[2][0].x, out[2][0].y) == (300, 200)