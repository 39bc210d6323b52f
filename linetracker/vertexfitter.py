import numpy as np
import scipy as sp
import scipy.stats

# Internal modules
from . import utilities as Util
from . import minimizer
from . import datatypes
from .trackfitter import Track


PARAMETER_NAMES = ("t", "x", "y", "z")
ZERO_PARAMETERS = {name: datatypes.FitParameter(0.0, 0.0, 0, 0) for name in PARAMETER_NAMES}


def distance_to_track(t, x, y, z, track):
    """Spatial distance from (x,y,z) to the track position at time t"""
    track_point = track.at_t(t)
    return float(np.linalg.norm([track_point.x - x, track_point.y - y, track_point.z - z]))


def distance_to_track_with_error(t, x, y, z, track):
    """
    Distance from the point (t,x,y,z) to the track at time t, and its uncertainty

    The uncertainty is the first order propagation of the track covariance.
    The gradient of the distance D with respect to the track parameters is
        dD/dt0 = -(v.d)/D,  dD/d(x0,y0,z0) = d/D,  dD/dv = (t-t0) d/D
    with d the track position minus the point, which is u^T J with u = d/D and
    J the position jacobian of the track. Hence sigma^2 = u^T S u, S being the
    covariance of the track position at time t.

    The direction u is meaningless once D is below the position uncertainty, there
    the error is blended into the direction average sqrt(tr(S)/3):
        sigma^2 = (d^T S d + s^4)/(D^2 + s^2),  s^2 = tr(S)/3

    RETURN:
    ---
    distance, error
    """
    track_point = track.at_t(t)
    d = np.array([track_point.x - x, track_point.y - y, track_point.z - z])
    distance = np.linalg.norm(d)
    covariance = track.position_covariance(t)
    s2 = np.trace(covariance)/3
    variance = (d @ covariance @ d + s2*s2)/(distance*distance + s2)
    return distance, np.sqrt(variance)


def vertex_squared_residual(distance, error):
    return (distance/error)**2


class nll_vertex:
    """
    Negative log likelihood of a common vertex for a list of tracks

    Sum over the tracks of 0.5*(D/sigma)^2 + log(sigma). One instance per fit.
    """
    def __init__(self, tracks):
        self.tracks = tracks

    def __call__(self, t, x, y, z):
        nll = 0
        for track in self.tracks:
            distance, error = distance_to_track_with_error(t, x, y, z, track)
            nll += 0.5*vertex_squared_residual(distance, error) + np.log(error)
        return nll


def guess_vertex(tracks):
    """
    Inverse-variance weighted average of the track positions at their earliest points

    The errors are the time resolution for t and width/sqrt(12) of the volume
    of the earliest point for x, y, z.
    """
    positions = []
    errors = []
    for track in tracks:
        front = track.front()
        positions.append(track.at_t(front.t))
        width = track.front_width()
        errors.append([width.t, *Util.stat.uniform([width.x, width.y, width.z])])

    average, error = Util.stat.weighted_average(positions, errors)
    return {name: datatypes.FitParameter(float(average[i]), float(error[i]), 0, 0) for i, name in enumerate(PARAMETER_NAMES)}


class Vertex:
    """
    Common space-time point of a list of tracks

    The vertex is refitted from scratch whenever its tracks change.
    If the fit does not converge the final parameters are all zero while the
    guess is not, see fit_diverged().

    INPUT:
    ---
    tracks: list of Track
    settings: FitSettings
    """
    def __init__(self, tracks=(), settings=None, debug=False):
        self.debug = debug
        self._settings = settings or minimizer.default_settings("vertex")
        self.reset(tracks)

    def reset(self, tracks):
        """
        Replace the tracks and refit. Returns the number of tracks.
        Every track needs a converged fit, the distance errors come from its covariance.
        """
        tracks = list(tracks)
        for track in tracks:
            if not track.fit_converged():
                raise ValueError(f"Cannot fit a vertex to a track with fit status {track.status}")
        self._tracks = tracks
        size = len(self._tracks)
        self._guess = dict(ZERO_PARAMETERS)
        self._final = dict(ZERO_PARAMETERS)
        self._covariance = np.zeros((4, 4))
        self._delta_chi2 = [0.0]*size
        self._status = None

        if size > 1:
            self._guess = guess_vertex(self._tracks)
            result = minimizer.fit(nll_vertex(self._tracks), self._guess, self._settings)
            self._status = result.status
            if result.status == minimizer.FitStatus.CONVERGED:
                self._final = result.parameters
                self._covariance = result.covariance
                self._delta_chi2 = [vertex_squared_residual(*distance_to_track_with_error(*self.point(), track))
                                    for track in self._tracks]
                if self.debug: print(f"  Vertex fitted with {size} tracks. chi2/dof: {self.chi_squared():.2f}/{self.degrees_of_freedom()}")
            elif self.debug:
                print(f"  Vertex fit with {size} tracks failed, status {result.status}. Guess: {self.guess_point()}")

        return size

    def insert(self, tracks):
        """
        Add a track (or a list of tracks) and refit.
        Tracks that are already part of the vertex are ignored.
        Returns the number of tracks.
        """
        if isinstance(tracks, Track):
            tracks = [tracks]
        tracks_new = []
        for track in tracks:
            if track not in self._tracks and track not in tracks_new:
                tracks_new.append(track)
        if len(tracks_new) == 0:
            return self.size()
        return self.reset(self._tracks + tracks_new)

    def remove(self, indices):
        """
        Remove the track at an index (or a list of indices) and refit.
        Returns the number of tracks.
        """
        if isinstance(indices, (int, np.integer)):
            if not 0 <= indices < self.size():
                return self.size()
            indices = [indices]
        indices = set(indices)
        return self.reset([track for i, track in enumerate(self._tracks) if i not in indices])

    def prune_on_chi_squared(self, max_chi_squared):
        """
        Remove every track whose current chi-squared contribution is above max_chi_squared, then refit.
        Returns the number of tracks.
        """
        chi2 = self.chi_squared_vector()
        return self.remove([i for i in range(self.size()) if chi2[i] > max_chi_squared])

    # Tracks
    @property
    def tracks(self):
        return list(self._tracks)

    def size(self):
        return len(self._tracks)

    def __len__(self):
        return self.size()

    # Fit parameters
    @property
    def t(self):
        return self._final["t"]

    @property
    def x(self):
        return self._final["x"]

    @property
    def y(self):
        return self._final["y"]

    @property
    def z(self):
        return self._final["z"]

    @property
    def status(self):
        return self._status

    def guess_fit(self):
        return dict(self._guess)

    def final_fit(self):
        return dict(self._final)

    def fit_of(self, p):
        return self._final[_parameter_name(p)]

    def value(self, p):
        return self.fit_of(p).value

    def error(self, p):
        return self.fit_of(p).error

    def point(self):
        return datatypes.Point(*(self._final[name].value for name in PARAMETER_NAMES))

    def point_error(self):
        return datatypes.Point(*(self._final[name].error for name in PARAMETER_NAMES))

    def guess_point(self):
        return datatypes.Point(*(self._guess[name].value for name in PARAMETER_NAMES))

    def fit_converged(self):
        return self._status == minimizer.FitStatus.CONVERGED

    def fit_diverged(self):
        return self._guess != self._final and self._final == ZERO_PARAMETERS

    # Statistics
    def distances(self):
        return [distance_to_track(*self.point(), track) for track in self._tracks]

    def distance_errors(self):
        return [float(distance_to_track_with_error(*self.point(), track)[1]) for track in self._tracks]

    def chi_squared_vector(self):
        return list(self._delta_chi2)

    def chi_squared(self):
        return float(np.sum(self._delta_chi2))

    def degrees_of_freedom(self):
        return 4

    def chi_squared_per_dof(self):
        return self.chi_squared()/self.degrees_of_freedom()

    def chi_squared_p_value(self):
        return float(sp.stats.chi2.sf(self.chi_squared(), self.degrees_of_freedom()))

    def covariance_matrix(self):
        """4x4 covariance in the order T, X, Y, Z"""
        return self._covariance.copy()

    def covariance(self, p, q):
        return float(self._covariance[_parameter_index(p), _parameter_index(q)])

    def variance(self, p):
        return self.covariance(p, p)

    def __str__(self):
        bar = "-"*80
        lines = [bar]
        if self.fit_diverged():
            lines.append("* Vertex Status: DIVERGED")
            lines.append("* Guess Parameters:")
            for name in PARAMETER_NAMES:
                lines.append(f"    {name.upper()}: {self._guess[name].value:.7g}  (+/- {self._guess[name].error:.7g})")
        else:
            lines.append("* Vertex Status: " + ("CONVERGED" if self.fit_converged() else "NOT FITTED"))
            lines.append("* Parameters:")
            for name in PARAMETER_NAMES:
                lines.append(f"    {name.upper()}: {self._final[name].value:.7g}  (+/- {self._final[name].error:.7g})")
            lines.append("* Tracks:")
            for track, distance, error in zip(self._tracks, self.distances(), self.distance_errors()):
                lines.append(f"    {distance:.6g}  (+/- {error:.6g})")
                lines.append("      from (" + ", ".join(f"{track.parameters()[name].value:.6g}" for name in ("t0", "x0", "y0", "z0", "vx", "vy", "vz")) + ")")
            lines.append("* Statistics:")
            lines.append(f"    dof:      {self.degrees_of_freedom()}")
            lines.append(f"    chi2:     {self.chi_squared():.7g} = " + " + ".join(f"{c:.7g}" for c in self._delta_chi2))
            lines.append(f"    chi2/dof: {self.chi_squared_per_dof():.7g}")
            lines.append(f"    p-value:  {self.chi_squared_p_value():.7g}")
            for i, row in enumerate(self._covariance):
                prefix = "    cov mat:  | " if i == 0 else "              | "
                lines.append(prefix + " ".join(f"{cell:.6g}" for cell in row) + " |")
        lines.append(bar)
        return "\n".join(lines)


def _parameter_name(p):
    if isinstance(p, (int, np.integer)):
        return PARAMETER_NAMES[p]
    return p.lower()


def _parameter_index(p):
    return PARAMETER_NAMES.index(_parameter_name(p))
