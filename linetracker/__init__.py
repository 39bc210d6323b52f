from .datatypes import Point, Partition, BoxVolume, FitParameter, FitSettings, FitResult
from .geometry import BoxGeometry, UnresolvablePointError
from .seedfinder import seed, join, join_all, SeedFinder
from .trackfitter import Track, fit_seeds
from .vertexfitter import Vertex

__version__ = "0.1.0"
