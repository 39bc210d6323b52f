"""Synthetic events shared by the tests.

Tracks start at the origin at t=0 and are sampled every 2 ns from t=2 to t=10.
The detector is one 1 cm box centered on every hit with a 0.05 ns time resolution,
so a straight line through the hits fits with zero chi-squared.
"""

import pytest

from linetracker.datatypes import Point
from linetracker.geometry import BoxGeometry
from linetracker import config_default


TIMES = (2, 4, 6, 8, 10)
BOX_WIDTHS = (1, 1, 1)
TIME_RESOLUTION = 0.05

VELOCITY_A = (10, 0, 20)
VELOCITY_B = (-10, 5, 20)


def line_event(velocity, origin=(0, 0, 0, 0), times=TIMES):
    t0, x0, y0, z0 = origin
    return [Point(float(t),
                  x0 + velocity[0]*(t - t0),
                  y0 + velocity[1]*(t - t0),
                  z0 + velocity[2]*(t - t0)) for t in times]


def box_geometry(*events):
    points = [p for event in events for p in event]
    return BoxGeometry.around_points(points, BOX_WIDTHS, default_time_error=TIME_RESOLUTION)


@pytest.fixture
def event_a():
    return line_event(VELOCITY_A)


@pytest.fixture
def event_b():
    return line_event(VELOCITY_B)


@pytest.fixture
def event_c():
    """Passes 30 cm away from the origin"""
    return line_event((0, -10, 20), origin=(0, 30, 0, 0))


@pytest.fixture
def geometry(event_a, event_b, event_c):
    return box_geometry(event_a, event_b, event_c)


@pytest.fixture
def parameters():
    return dict(config_default.parameters)
