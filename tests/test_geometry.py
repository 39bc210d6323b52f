import pytest

from linetracker import geometry as Geometry
from linetracker.geometry import BoxGeometry, UnresolvablePointError
from linetracker.datatypes import Point, BoxVolume
from linetracker import config_default


@pytest.fixture
def boxes():
    return BoxGeometry({"top": ((0, 0, 10), (10, 10, 11)),
                        "bottom": BoxVolume((5, 5, 0.5), (0, 0, 0), (10, 10, 1))},
                       default_time_error=1.5,
                       time_resolution_map={"top": 0.5})


def test_volume_lookup(boxes):
    assert boxes.volume(Point(0, 5, 5, 10.5)) == "top"
    assert boxes.volume(Point(100, 5, 5, 0.5)) == "bottom"
    assert boxes.full_structure() == ["top", "bottom"]
    assert boxes.full_structure_except(["top"]) == ["bottom"]


def test_point_outside_raises(boxes):
    with pytest.raises(UnresolvablePointError):
        boxes.volume(Point(0, 5, 5, 5))
    with pytest.raises(LookupError):
        boxes.limits_of_volume(Point(0, -1, 5, 0.5))
    with pytest.raises(UnresolvablePointError):
        boxes.limits_of("side")


def test_limits_and_centers(boxes):
    top = boxes.limits_of("top")
    assert top.center == pytest.approx((5, 5, 10.5))
    assert top.min == (0, 0, 10)
    assert boxes.find_center(Point(3, 1, 2, 10.2)) == pytest.approx((3, 5, 5, 10.5))
    assert boxes.find_centers([Point(3, 1, 2, 10.2), Point(4, 9, 9, 0.9)])[1] == pytest.approx((4, 5, 5, 0.5))
    assert boxes.is_inside_volume(Point(0, 1, 1, 0.2), "bottom")
    assert not boxes.is_inside_volume(Point(0, 1, 1, 0.2), "top")


def test_time_resolution(boxes):
    assert boxes.time_resolution_of("top") == 0.5
    assert boxes.time_resolution_of("bottom") == 1.5
    assert boxes.time_resolution_of_volume(Point(0, 5, 5, 10.5)) == 0.5


def test_around_points():
    points = [Point(0, 1, 2, 3), Point(1, 11, 12, 13)]
    geometry = BoxGeometry.around_points(points, (1, 2, 4), default_time_error=0.1)
    assert geometry.volume(Point(0, 1.4, 2.9, 1.1)) == "box0"
    box = geometry.limits_of("box1")
    assert box.min == pytest.approx((10.5, 11, 11))
    assert box.max == pytest.approx((11.5, 13, 15))
    assert geometry.time_resolution_of("box1") == 0.1


def test_layered():
    geometry = BoxGeometry.layered(3, 10, 10, 1, 150, 0, 0, 100, 100)
    assert geometry.volume(Point(0, 15, 25, 150)) == "layer1_1_2"
    box = geometry.limits_of("layer1_1_2")
    assert box.min == pytest.approx((10, 20, 149.5))
    assert box.max == pytest.approx((20, 30, 150.5))
    assert box.center == pytest.approx((15, 25, 150))
    assert len(geometry.full_structure()) == 3*10*10
    with pytest.raises(UnresolvablePointError):
        geometry.volume(Point(0, 15, 25, 75))
    with pytest.raises(UnresolvablePointError):
        geometry.volume(Point(0, 150, 25, 0))
    with pytest.raises(UnresolvablePointError):
        geometry.limits_of("layer5_0_0")


def test_from_parameters():
    geometry = Geometry.from_parameters(config_default.parameters)
    assert geometry.volume(Point(0, 10005, -4995, 0)) == "layer0_0_0"
    assert geometry.time_resolution_of("layer0_0_0") == config_default.parameters["geometry_DefaultTimeError"]
