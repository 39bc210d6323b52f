import numpy as np
import pytest

from linetracker import utilities as Util
from linetracker.datatypes import Point


def test_point_arithmetic():
    a = Point(1, 2, 3, 4)
    b = Point(0.5, 1, 1, 1)
    assert Util.point.add(a, b) == Point(1.5, 3, 4, 5)
    assert Util.point.subtract(a, b) == Point(0.5, 1, 2, 3)


def test_mean_of_nothing_is_zero():
    assert Util.point.mean([]) == Point(0, 0, 0, 0)
    assert Util.point.mean([Point(0, 0, 0, 0), Point(2, 4, 6, 8)]) == Point(1, 2, 3, 4)


def test_time_normalize_starts_at_zero():
    points = [Point(7, 1, 1, 1), Point(5, 0, 0, 0)]
    assert Util.point.time_normalize(points) == [Point(0, 0, 0, 0), Point(2, 1, 1, 1)]


def test_within_dr_is_inclusive():
    ds = Point(1, 1, 1, 1)
    assert Util.point.within_dr(Point(0, 0, 0, 0), Point(1, 1, 1, 1), ds)
    assert not Util.point.within_dr(Point(0, 0, 0, 0), Point(1, 1, 1, 1.5), ds)


def test_point_line_distance():
    assert Util.point.point_line_distance(Point(0, 1, 1, 0), Point(0, 0, 0, 0), Point(1, 0, 0, 1)) == pytest.approx(1.0)
    # degenerate line
    assert Util.point.point_line_distance(Point(0, 3, 4, 0), Point(0, 0, 0, 0), Point(1, 0, 0, 0)) == pytest.approx(5.0)


def test_collapse_merges_close_points():
    points = [Point(0.5, 0.5, 0, 0), Point(0, 0, 0, 0), Point(20, 100, 100, 100)]
    collapsed = Util.event.collapse(points, Point(1, 1, 1, 1))
    assert collapsed == [Point(0.25, 0.25, 0, 0), Point(20, 100, 100, 100)]


def test_collapse_is_idempotent():
    points = [Point(0, 0, 0, 0), Point(0.5, 0.5, 0, 0),
              Point(10, 50, 0, 0), Point(10.25, 50.25, 0, 0),
              Point(10.5, 0, 0, 0),
              Point(20, 100, 100, 100)]
    ds = Point(1, 1, 1, 1)
    once = Util.event.collapse(points, ds)
    assert len(once) == 4
    assert Util.event.collapse(once, ds) == once


def test_collapse_resumes_at_first_missed_point():
    # the second point is inside the time window but far away, the third joins the first
    points = [Point(0, 0, 0, 0), Point(0.25, 50, 0, 0), Point(0.5, 0.5, 0, 0)]
    collapsed = Util.event.collapse(points, Point(1, 1, 1, 1))
    assert collapsed == [Point(0.25, 0.25, 0, 0), Point(0.25, 50, 0, 0)]


def test_collapse_empty():
    assert Util.event.collapse([], Point(1, 1, 1, 1)) == []


def test_partition_layers():
    points = [Point(3, 0, 0, 100), Point(1, 0, 0, 0), Point(2, 5, 0, 4), Point(0, 9, 0, 100.5), Point(4, 0, 0, 250)]
    partition = Util.event.partition(points, 10, "z")
    assert partition.coordinate == "z"
    assert [len(layer) for layer in partition.parts] == [2, 2, 1]
    # layers are time-sorted
    assert partition.parts[1] == [Point(0, 9, 0, 100.5), Point(3, 0, 0, 100)]


def test_partition_preserves_point_count():
    rng = np.random.default_rng(1)
    points = [Point(*p) for p in rng.uniform(0, 500, size=(50, 4))]
    for coordinate in ("t", "x", "y", "z"):
        parts = Util.event.partition(points, 37, coordinate).parts
        assert sum(len(layer) for layer in parts) == len(points)


def test_partition_empty():
    assert Util.event.partition([], 10).parts == []


def test_fast_line_check():
    straight = [Point(0, 0, 0, 0), Point(1, 1, 0, 1), Point(2, 2, 0, 2)]
    bent = [Point(0, 0, 0, 0), Point(1, 10, 0, 1), Point(2, 2, 0, 2)]
    assert Util.seed.fast_line_check(straight, 0.1)
    assert not Util.seed.fast_line_check(bent, 1)


def test_order2_permutations():
    layers = [[Point(0, 0, 0, 0), Point(1, 0, 0, 0)], [Point(2, 0, 0, 10)], [Point(3, 0, 0, 20)] * 3]
    candidates = list(Util.seed.order2_permutations(2, layers))
    assert len(candidates) == 2*1 + 2*3 + 1*3
    assert all(len(c) == 2 for c in candidates)
    # generators restart
    assert len(list(Util.seed.order2_permutations(3, layers))) == 6


def test_weighted_average():
    average, error = Util.stat.weighted_average([[1.0, 0.0], [3.0, 4.0]], [[1.0, 1.0], [1.0, 1.0]])
    assert average == pytest.approx([2.0, 2.0])
    assert error == pytest.approx([1/np.sqrt(2)]*2)


def test_uniform():
    assert Util.stat.uniform(np.sqrt(12)) == pytest.approx(1.0)
    assert Util.stat.uniform([1, 2]) == pytest.approx([1/np.sqrt(12), 2/np.sqrt(12)])
