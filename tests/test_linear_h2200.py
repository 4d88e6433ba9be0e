from tsfilters.core import Sample, SampleSource
from tsfilters.linear_h2200 import LinearH2200, h2200_transform


def test_origin_maps_to_constant_terms():
    assert h2200_transform(0, 0) == (14, -11)


def test_x_increases_with_raw_x():
    xs = [h2200_transform(x, 200)[0] for x in range(0, 1000, 50)]
    assert xs == sorted(xs)
    assert xs[0] < xs[-1]


def test_y_increases_with_raw_y():
    ys = [h2200_transform(200, y)[1] for y in range(0, 1000, 50)]
    assert ys == sorted(ys)
    assert ys[0] < ys[-1]


def test_read_matches_transform_and_keeps_pressure():
    raw = [Sample(100, 200, 7, 1, 2), Sample(640, 480, 0, 3, 4)]
    expected = [h2200_transform(s.x, s.y) for s in raw]
    module = LinearH2200(source=SampleSource(raw))
    out = module.read(2)
    assert [(s.x, s.y) for s in out] == expected
    assert [s.pressure for s in out] == [7, 0]
    assert [(s.tv_sec, s.tv_usec) for s in out] == [(1, 2), (3, 4)]


def test_parameters_are_ignored():
    module = LinearH2200("anything=1 flag", source=SampleSource([Sample(0, 0, 1)]))
    out = module.read(1)
    assert (out[0].x, out[0].y) == h2200_transform(0, 0)


def test_read_stops_when_source_empty():
    module = LinearH2200(source=SampleSource([Sample(1, 1, 1)]))
    assert len(module.read(4)) == 1