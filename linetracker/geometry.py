import math

import numpy as np

from . import datatypes


class UnresolvablePointError(LookupError):
    """A point (or volume name) that is not part of the detector geometry"""


class Geometry:
    """
    Detector geometry made of axis-aligned boxes

    Subclasses provide volume(point), limits_of(name) and full_structure().
    Everything else is derived from those three.
    """
    def __init__(self, default_time_error=1.5, time_resolution_map=None):
        self.default_time_error = default_time_error
        self.time_resolution_map = dict(time_resolution_map) if time_resolution_map else {}

    def full_structure_except(self, names):
        return [name for name in self.full_structure() if name not in names]

    def time_resolution_of(self, name):
        return self.time_resolution_map.get(name, self.default_time_error)

    def is_inside_volume(self, point, name):
        box = self.limits_of(name)
        p = _r3(point)
        return bool(np.all(np.asarray(box.min) <= p) and np.all(p <= np.asarray(box.max)))

    def limits_of_volume(self, point):
        return self.limits_of(self.volume(point))

    def time_resolution_of_volume(self, point):
        return self.time_resolution_of(self.volume(point))

    def find_center(self, point):
        """Center of the volume enclosing the point, keeping the time of the point"""
        center = self.limits_of_volume(point).center
        return datatypes.Point(point[0], *center)

    def find_centers(self, points):
        return [self.find_center(point) for point in points]


class BoxGeometry(Geometry):
    """
    A list of named box volumes

    INPUT:
    ---
    volumes: dict
        {name: BoxVolume} or {name: (min, max)}, min/max being [x,y,z]
    default_time_error: float
        [ns] time resolution of volumes not in time_resolution_map
    time_resolution_map: dict
        {name: time resolution}
    """
    def __init__(self, volumes, default_time_error=1.5, time_resolution_map=None):
        super().__init__(default_time_error, time_resolution_map)
        self.names = list(volumes)
        self.volumes = {}
        for name, volume in volumes.items():
            if not isinstance(volume, datatypes.BoxVolume):
                box_min, box_max = volume
                center = tuple((np.asarray(box_min, dtype=float) + np.asarray(box_max, dtype=float))/2)
                volume = datatypes.BoxVolume(center, tuple(box_min), tuple(box_max))
            self.volumes[name] = volume
        self._mins = np.array([self.volumes[name].min for name in self.names], dtype=float).reshape(-1, 3)
        self._maxs = np.array([self.volumes[name].max for name in self.names], dtype=float).reshape(-1, 3)

    def full_structure(self):
        return list(self.names)

    def volume(self, point):
        p = _r3(point)
        inside = np.flatnonzero(np.all((self._mins <= p) & (p <= self._maxs), axis=1))
        if len(inside) == 0:
            raise UnresolvablePointError(f"Point {tuple(point)} is outside of all detector volumes")
        return self.names[inside[0]]

    def limits_of(self, name):
        try:
            return self.volumes[name]
        except KeyError:
            raise UnresolvablePointError(f"Unknown detector volume {name}") from None

    @classmethod
    def around_points(cls, points, widths, default_time_error=1.5, time_resolution_map=None):
        """
        Make one box centered on each point. Mostly useful for synthetic events.

        widths: [x,y,z] full width of the boxes
        """
        half = np.asarray(widths, dtype=float)/2
        volumes = {}
        for i, point in enumerate(points):
            center = _r3(point)
            volumes[f"box{i}"] = datatypes.BoxVolume(tuple(center), tuple(center - half), tuple(center + half))
        return cls(volumes, default_time_error, time_resolution_map)

    @staticmethod
    def layered(layer_count, bar_width_x, bar_width_y, bar_height, layer_spacing,
                displacement_x=0, displacement_y=0, edge_length_x=None, edge_length_y=None,
                default_time_error=1.5, time_resolution_map=None):
        return LayeredGeometry(layer_count, bar_width_x, bar_width_y, bar_height, layer_spacing,
                               displacement_x, displacement_y, edge_length_x, edge_length_y,
                               default_time_error, time_resolution_map)


class LayeredGeometry(Geometry):
    """
    Layers of scintillator bars stacked along z

    Layer k is centered at z = k*layer_spacing and has thickness bar_height.
    Each layer is a grid of bar_width_x by bar_width_y bars covering
    [displacement_x, displacement_x + edge_length_x] x [displacement_y, displacement_y + edge_length_y].
    Volumes are named "layer{k}_{i}_{j}". Lookups are computed, the bars are never listed
    unless full_structure() is called.
    """
    def __init__(self, layer_count, bar_width_x, bar_width_y, bar_height, layer_spacing,
                 displacement_x=0, displacement_y=0, edge_length_x=None, edge_length_y=None,
                 default_time_error=1.5, time_resolution_map=None):
        super().__init__(default_time_error, time_resolution_map)
        self.layer_count = layer_count
        self.bar_width = (bar_width_x, bar_width_y)
        self.bar_height = bar_height
        self.layer_spacing = layer_spacing
        self.displacement = (displacement_x, displacement_y)
        edge_length_x = bar_width_x if edge_length_x is None else edge_length_x
        edge_length_y = bar_width_y if edge_length_y is None else edge_length_y
        self.bar_count = (int(math.ceil(edge_length_x/bar_width_x)), int(math.ceil(edge_length_y/bar_width_y)))

    def full_structure(self):
        return [f"layer{k}_{i}_{j}" for k in range(self.layer_count)
                                   for i in range(self.bar_count[0])
                                   for j in range(self.bar_count[1])]

    def volume(self, point):
        x, y, z = _r3(point)
        k = int(round(z/self.layer_spacing))
        i = int(math.floor((x - self.displacement[0])/self.bar_width[0]))
        j = int(math.floor((y - self.displacement[1])/self.bar_width[1]))
        if not (0 <= k < self.layer_count and 0 <= i < self.bar_count[0] and 0 <= j < self.bar_count[1]) \
           or abs(z - k*self.layer_spacing) > self.bar_height/2:
            raise UnresolvablePointError(f"Point {tuple(point)} is outside of all detector volumes")
        return f"layer{k}_{i}_{j}"

    def limits_of(self, name):
        try:
            k, i, j = (int(index) for index in name[len("layer"):].split("_"))
        except ValueError:
            raise UnresolvablePointError(f"Unknown detector volume {name}") from None
        if not (0 <= k < self.layer_count and 0 <= i < self.bar_count[0] and 0 <= j < self.bar_count[1]):
            raise UnresolvablePointError(f"Unknown detector volume {name}")
        box_min = (self.displacement[0] + i*self.bar_width[0],
                   self.displacement[1] + j*self.bar_width[1],
                   k*self.layer_spacing - self.bar_height/2)
        box_max = (box_min[0] + self.bar_width[0],
                   box_min[1] + self.bar_width[1],
                   k*self.layer_spacing + self.bar_height/2)
        center = tuple((a + b)/2 for a, b in zip(box_min, box_max))
        return datatypes.BoxVolume(center, box_min, box_max)


def from_parameters(parameters):
    """Build the layered box detector described by the geometry_* configuration keys"""
    return BoxGeometry.layered(parameters["geometry_LayerCount"],
                               parameters["geometry_BarWidthX"],
                               parameters["geometry_BarWidthY"],
                               parameters["geometry_BarHeight"],
                               parameters["geometry_LayerSpacing"],
                               parameters["geometry_DisplacementX"],
                               parameters["geometry_DisplacementY"],
                               parameters["geometry_EdgeLengthX"],
                               parameters["geometry_EdgeLengthY"],
                               parameters["geometry_DefaultTimeError"])


def _r3(point):
    """Spatial part of a (t,x,y,z) point"""
    return np.array(point[1:4], dtype=float)
