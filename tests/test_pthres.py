import pytest

from tsfilters.core import MTSample, OptionError, Sample, SampleSource
from tsfilters.pthres import PressureThreshold


def test_release_without_press_is_dropped():
    assert PressureThreshold(source=SampleSource([Sample(pressure=0)])).read(1) == []


def test_press_then_release_keeps_position():
    src = SampleSource([Sample(x=10, y=20, pressure=5), Sample(x=99, y=99, pressure=0)])
    out = PressureThreshold(source=src).read(2)
    assert [(s.x, s.y, s.pressure) for s in out] == [(10, 20, 5), (10, 20, 0)]


def test_pmax_drops_heavy_samples():
    src = SampleSource([Sample(pressure=50), Sample(pressure=200), Sample(pressure=60)])
    out = PressureThreshold("pmax=100", source=src).read(3)
    assert [s.pressure for s in out] == [50, 60]


def test_pmin_turns_light_sample_into_release():
    src = SampleSource(
        [
            Sample(x=1, y=1, pressure=10),
            Sample(x=4, y=6, pressure=30),
            Sample(x=8, y=9, pressure=10),
        ]
    )
    out = PressureThreshold("pmin=20", source=src).read(3)
    assert [(s.x, s.y, s.pressure) for s in out] == [(4, 6, 30), (4, 6, 0)]


def test_state_survives_between_reads():
    src = SampleSource([Sample(x=3, y=4, pressure=9), Sample(x=0, y=0, pressure=0)])
    p = PressureThreshold(source=src)
    p.read(1)
    [release] = p.read(1)
    assert (release.x, release.y, release.pressure) == (3, 4, 0)


def test_read_mt_per_slot():
    frames = [
        [
            MTSample(x=5, y=6, pressure=40, valid=True),
            MTSample(x=1, y=1, pressure=0, valid=True),
            MTSample(x=2, y=2, pressure=0, valid=False),
        ],
        [
            MTSample(x=50, y=60, pressure=0, valid=True),
            MTSample(),
            MTSample(),
        ],
    ]
    p = PressureThreshold(source=SampleSource(frames=frames))
    first, second = p.read_mt(3, 2)
    assert first[0].valid
    assert not first[1].valid
    assert not first[2].valid
    assert (second[0].x, second[0].y, second[0].pressure) == (5, 6, 0)
    assert second[0].valid


def test_read_mt_pmax_invalidates():
    frames = [[MTSample(pressure=300, valid=True)]]
    [frame] = PressureThreshold("pmax=255", source=SampleSource(frames=frames)).read_mt(1, 1)
    assert not frame[0].valid


def test_read_mt_needs_mt_source():
    with pytest.raises(NotImplementedError):
        PressureThreshold(source=SampleSource([Sample()])).read_mt(1, 1)


def test_unknown_option():
    with pytest.raises(OptionError):
        PressureThreshold("pmid=3")