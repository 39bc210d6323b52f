from collections import namedtuple

Point = namedtuple("Point", ["t", "x", "y", "z"])
Partition = namedtuple("Partition", ["parts", "coordinate"])
BoxVolume = namedtuple("BoxVolume", ["center", "min", "max"])
FitParameter = namedtuple("FitParameter", ["value", "error", "min", "max"])
FitSettings = namedtuple("FitSettings", ["command_name", "print_level", "error_def", "max_iterations", "strategy", "tolerance"])
FitResult = namedtuple("FitResult", ["parameters", "covariance", "status", "fval"])
