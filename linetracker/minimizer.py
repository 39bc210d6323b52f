import numpy as np
import iminuit

from . import datatypes
from . import config_default as config


class FitStatus:
    CONVERGED = 0
    CALL_LIMIT = 1
    AT_LIMIT = 2
    HESSE_FAILED = 3
    DIVERGED = 4


def settings_from(parameters, kind="track"):
    """
    Collect the fit_* configuration keys into FitSettings

    kind: str
        "track" or "vertex", selects fit_{kind}_ErrorDef
    """
    return datatypes.FitSettings(parameters["fit_CommandName"],
                                 parameters["fit_PrintLevel"],
                                 parameters[f"fit_{kind}_ErrorDef"],
                                 parameters["fit_MaxIterations"],
                                 parameters["fit_Strategy"],
                                 parameters["fit_Tolerance"])


def default_settings(kind="track"):
    return settings_from(config.parameters, kind)


def fit(objective, parameters, settings=None, fixed=()):
    """
    Minimize objective with iminuit

    INPUT:
    ---
    objective: callable
        Called with the parameters as keyword-named arguments, returns a scalar.
        Each fit should get its own objective instance.
    parameters: dict
        {name: FitParameter}, initial value, step (error) and limits.
        min=max=0 means unbounded.
    settings: FitSettings
    fixed: list of str
        names of the parameters that are kept at their initial value

    RETURN:
    ---
    FitResult(parameters, covariance, status, fval)
        parameters: {name: FitParameter} with the fitted value and error
        covariance: numpy array in the order of parameters, zero rows for fixed parameters
        status: FitStatus code
    """
    settings = settings or default_settings()
    names = list(parameters)

    m = iminuit.Minuit(objective, **{name: parameters[name].value for name in names})
    m.errordef = settings.error_def
    m.print_level = settings.print_level
    m.strategy = settings.strategy
    m.tol = settings.tolerance
    for name in names:
        par = parameters[name]
        m.errors[name] = par.error
        if not (par.min == 0 and par.max == 0):
            m.limits[name] = (par.min, par.max)
    for name in fixed:
        m.fixed[name] = True

    if settings.command_name.upper() == "SIMPLEX":
        m.simplex(ncall=settings.max_iterations)
    else:
        m.migrad(ncall=settings.max_iterations)

    status = _status(m.fmin)
    if status == FitStatus.CONVERGED:
        m.hesse()
        if m.fmin.hesse_failed or m.covariance is None:
            status = FitStatus.HESSE_FAILED

    fitted = {name: datatypes.FitParameter(float(m.values[name]), float(m.errors[name]), parameters[name].min, parameters[name].max)
              for name in names}
    covariance = np.array(m.covariance) if m.covariance is not None else np.zeros((len(names), len(names)))

    return datatypes.FitResult(fitted, covariance, status, float(m.fval))


def _status(fmin):
    if fmin.is_valid:
        return FitStatus.CONVERGED
    if fmin.has_reached_call_limit:
        return FitStatus.CALL_LIMIT
    if fmin.has_parameters_at_limit:
        return FitStatus.AT_LIMIT
    return FitStatus.DIVERGED
