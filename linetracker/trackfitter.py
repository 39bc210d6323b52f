import numpy as np
import scipy as sp
import scipy.stats

# Internal modules
from . import utilities as Util
from . import minimizer
from . import datatypes
from .globals import units, COORDINATES


PARAMETER_NAMES = ("t0", "x0", "y0", "z0", "vx", "vy", "vz")


class chi2_track:
    """
    Squared residuals of a straight line through the detector volumes of an event

    The volume of each point is looked up once, when the objective is made.
    One instance per fit.
    """
    def __init__(self, event, geometry):
        self.event = event
        boxes = [geometry.limits_of_volume(p) for p in event]
        self.center = np.array([box.center for box in boxes], dtype=float).reshape(-1, 3)
        self.width = np.array([np.subtract(box.max, box.min) for box in boxes], dtype=float).reshape(-1, 3)
        self.time_resolution = np.array([geometry.time_resolution_of_volume(p) for p in event], dtype=float)
        self.t = np.array([p.t for p in event], dtype=float)

    def __call__(self, t0, x0, y0, z0, vx, vy, vz):
        return np.sum(self.squared_residuals(t0, x0, y0, z0, vx, vy, vz))

    def squared_residuals(self, t0, x0, y0, z0, vx, vy, vz):
        # Time of flight to the z-center of each volume
        dt = (self.center[:,2] - z0)/vz
        t_res = (dt + t0 - self.t)/self.time_resolution
        x_res = (x0 + vx*dt - self.center[:,0])/self.width[:,0]
        y_res = (y0 + vy*dt - self.center[:,1])/self.width[:,1]
        # 12 = 1/variance of a unit-width flat distribution
        return t_res**2 + 12*x_res**2 + 12*y_res**2


def guess_track(event):
    """Line through the first point with the average velocity between the first and the last point"""
    first = event[0]
    last = event[-1]
    dt = last.t - first.t
    if dt == 0:
        raise ValueError("Cannot guess a track from points with no time separation")
    error_position = 100*units.length
    error_velocity = 0.1*units.speed_of_light
    return {"t0": datatypes.FitParameter(first.t, 2*units.time, 0, 0),
            "x0": datatypes.FitParameter(first.x, error_position, 0, 0),
            "y0": datatypes.FitParameter(first.y, error_position, 0, 0),
            "z0": datatypes.FitParameter(first.z, error_position, 0, 0),
            "vx": datatypes.FitParameter((last.x - first.x)/dt, error_velocity, 0, 0),
            "vy": datatypes.FitParameter((last.y - first.y)/dt, error_velocity, 0, 0),
            "vz": datatypes.FitParameter((last.z - first.z)/dt, error_velocity, 0, 0)}


class Track:
    """
    Straight line in space-time fitted to a seed

    Parameterized by the position (t0,x0,y0,z0) and the velocity (vx,vy,vz).
    One of t0,x0,y0,z0 is kept fixed (z0 by default) since moving along the line
    does not change the fit. A track is not modified after it is made.

    INPUT:
    ---
    event: list of Point
    geometry: Geometry
        Every point has to be inside one of its volumes
    settings: FitSettings
    fixed: str
        coordinate to fix, one of {"t", "x", "y", "z"}
    """
    def __init__(self, event, geometry, settings=None, fixed="z"):
        if fixed not in COORDINATES:
            raise ValueError(f"Fixed coordinate must be one of {COORDINATES}, got {fixed}")
        self._event = [datatypes.Point(*p) for p in event]
        if len(self._event) < 2:
            raise ValueError(f"A track needs at least two points, got {len(self._event)}")
        self._geometry = geometry
        self._settings = settings or minimizer.default_settings("track")
        self._fixed = f"{fixed}0"

        objective = chi2_track(self._event, geometry)
        result = minimizer.fit(objective, guess_track(Util.event.t_sort(self._event)), self._settings, fixed=[self._fixed])

        self._parameters = result.parameters
        self._status = result.status
        self._free = tuple(name for name in PARAMETER_NAMES if name != self._fixed)
        free_index = [PARAMETER_NAMES.index(name) for name in self._free]
        self._covariance = result.covariance[np.ix_(free_index, free_index)]

        values = [self._parameters[name].value for name in PARAMETER_NAMES]
        self._squared_residuals = objective.squared_residuals(*values)
        self._detectors = [geometry.volume(p) for p in self._event]

    # Fit parameters
    @property
    def t0(self):
        return self._parameters["t0"]

    @property
    def x0(self):
        return self._parameters["x0"]

    @property
    def y0(self):
        return self._parameters["y0"]

    @property
    def z0(self):
        return self._parameters["z0"]

    @property
    def vx(self):
        return self._parameters["vx"]

    @property
    def vy(self):
        return self._parameters["vy"]

    @property
    def vz(self):
        return self._parameters["vz"]

    def parameters(self):
        return dict(self._parameters)

    @property
    def event(self):
        return list(self._event)

    @property
    def detectors(self):
        return list(self._detectors)

    @property
    def geometry(self):
        return self._geometry

    @property
    def settings(self):
        return self._settings

    @property
    def status(self):
        return self._status

    @property
    def free_parameters(self):
        return self._free

    @property
    def fixed_parameter(self):
        return self._fixed

    def fit_converged(self):
        return self._status == minimizer.FitStatus.CONVERGED

    def covariance_matrix(self):
        """Covariance of the free parameters, in the order of free_parameters"""
        return self._covariance.copy()

    # Position along the track
    def velocity(self):
        return np.array([self.vx.value, self.vy.value, self.vz.value])

    def at_t(self, t):
        dt = t - self.t0.value
        return datatypes.Point(t, self.x0.value + self.vx.value*dt, self.y0.value + self.vy.value*dt, self.z0.value + self.vz.value*dt)

    def at_z(self, z):
        dt = (z - self.z0.value)/self.vz.value
        return datatypes.Point(self.t0.value + dt, self.x0.value + self.vx.value*dt, self.y0.value + self.vy.value*dt, z)

    def __call__(self, z):
        return self.at_z(z)

    def position_jacobian(self, t):
        """
        Derivatives of the (x,y,z) position at time t with respect to the free parameters

        RETURN:
        ---
        3 x N_free numpy array
        """
        dt = t - self.t0.value
        jacobian = {"t0": -self.velocity(),
                    "x0": np.array([1.0, 0, 0]),
                    "y0": np.array([0, 1.0, 0]),
                    "z0": np.array([0, 0, 1.0]),
                    "vx": np.array([dt, 0, 0]),
                    "vy": np.array([0, dt, 0]),
                    "vz": np.array([0, 0, dt])}
        return np.column_stack([jacobian[name] for name in self._free])

    def position_covariance(self, t):
        jacobian = self.position_jacobian(t)
        return jacobian @ self._covariance @ jacobian.T

    def error_at_t(self, t):
        """Uncertainty of the track position at time t, as (0, x_err, y_err, z_err)"""
        return datatypes.Point(0.0, *(float(e) for e in np.sqrt(np.diag(self.position_covariance(t)))))

    def front(self):
        return min(self._event, key=lambda p: p.t)

    def back(self):
        return max(self._event, key=lambda p: p.t)

    def front_width(self):
        """(time resolution, x width, y width, z width) of the volume of the earliest point"""
        front = self.front()
        box = self._geometry.limits_of_volume(front)
        return datatypes.Point(self._geometry.time_resolution_of_volume(front), *np.subtract(box.max, box.min))

    # Statistics
    def squared_residual_vector(self):
        return list(self._squared_residuals)

    def residual_vector(self):
        return list(np.sqrt(self._squared_residuals))

    def squared_residual(self):
        return float(np.sum(self._squared_residuals))

    def residual(self):
        return float(np.sqrt(self.squared_residual()))

    def chi_squared_vector(self):
        return self.squared_residual_vector()

    def chi_squared(self):
        return self.squared_residual()

    def degrees_of_freedom(self):
        return 3*len(self._event) - 6

    def chi_squared_per_dof(self):
        dof = self.degrees_of_freedom()
        return self.chi_squared()/dof if dof > 0 else np.nan

    def chi_squared_p_value(self):
        dof = self.degrees_of_freedom()
        return float(sp.stats.chi2.sf(self.chi_squared(), dof)) if dof > 0 else np.nan

    def beta(self):
        return float(np.linalg.norm(self.velocity())/units.speed_of_light)

    def __len__(self):
        return len(self._event)

    def __eq__(self, other):
        if not isinstance(other, Track):
            return NotImplemented
        return self._event == other._event and self._parameters == other._parameters

    __hash__ = None

    def __str__(self):
        lines = ["Track Parameters:"]
        for name in PARAMETER_NAMES:
            par = self._parameters[name]
            fixed = " (fixed)" if name == self._fixed else ""
            lines.append(f"  {name.upper()}: {par.value:.7g}  (+/- {par.error:.7g}){fixed}")
        lines.append("Event:")
        for detector, p in zip(self._detectors, self._event):
            lines.append(f"  {detector} ({p.t:.6g}, {p.x:.6g}, {p.y:.6g}, {p.z:.6g})")
        lines.append("Statistics:")
        lines.append(f"  chi2:     {self.chi_squared():.7g} = " + " + ".join(f"{c:.7g}" for c in self._squared_residuals))
        lines.append(f"  dof:      {self.degrees_of_freedom()}")
        lines.append(f"  chi2/dof: {self.chi_squared_per_dof():.7g}")
        lines.append(f"  status:   {self._status}")
        lines.append("Dynamics:")
        lines.append(f"  beta:  {self.beta():.6g}")
        lines.append(f"  front: {tuple(self.at_z(self.front().z))}")
        lines.append(f"  back:  {tuple(self.at_z(self.back().z))}")
        return "\n".join(lines)


def fit_seeds(seeds, geometry, settings=None, fixed="z", debug=False):
    """
    Fit one track per seed

    Seeds with less than two points or no time separation cannot be fitted and are skipped.
    """
    tracks = []
    for s in seeds:
        if len(s) < 2 or Util.seed.time_span(s) == 0:
            if debug: print(f"  Seed skipped, cannot fit {len(s)} points spanning {Util.seed.time_span(s)} ns")
            continue
        tracks.append(Track(s, geometry, settings, fixed))
        if debug: print(f"  Track fitted. chi2/dof: {tracks[-1].chi_squared():.2f}/{tracks[-1].degrees_of_freedom()}, status {tracks[-1].status}")
    return tracks
