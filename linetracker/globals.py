import scipy as sp
import scipy.constants


class units:
    length = 1.0 # [cm]
    time = 1.0   # [ns]
    speed_of_light = sp.constants.c/1e7 # [cm/ns]


COORDINATES = ("t", "x", "y", "z")
