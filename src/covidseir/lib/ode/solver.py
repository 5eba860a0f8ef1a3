from typing import Tuple

import numba
import numpy as np

from covidseir.lib.ode.constants import (
    COMPARTMENTS,
    TRACKING_COMPARTMENTS,
    SYSTEM_SIZE,
    GROUP_SIZE,
    INITIAL_INFECTION_SPLIT,
)
from covidseir.lib.ode.system import (
    system,
)


SOLVER_DT: float = 0.25


def steps_per_day(dt: float) -> int:
    """Number of solver steps in a day. The step must evenly divide a day."""
    steps = int(round(1 / dt))
    if steps < 1 or not np.isclose(steps * dt, 1.0):
        raise ValueError(f'Solver step {dt} must evenly divide one day.')
    return steps


def make_time_grids(n_days: int, dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """Builds the solver grid and the half-step parameter grid over ``n_days``."""
    steps = steps_per_day(dt)
    t_solve = np.arange(n_days * steps + 1) * dt
    t_params = np.arange(2 * n_days * steps + 1) * dt / 2
    return t_solve, t_params


def make_initial_condition(n_total: float, i0: float, e: float) -> np.ndarray:
    """Splits the population between the free and distancing groups at t = 0."""
    y0 = np.zeros(SYSTEM_SIZE)
    infections = i0 * INITIAL_INFECTION_SPLIT
    susceptible = n_total - i0
    for offset, share in [(0, 1 - e), (GROUP_SIZE, e)]:
        y0[offset + COMPARTMENTS.S] = share * susceptible
        y0[offset + COMPARTMENTS.E1] = share * infections[0]
        y0[offset + COMPARTMENTS.E2] = share * infections[1]
        y0[offset + COMPARTMENTS.I] = share * infections[2]
    return y0


def run_ode_model(initial_condition: np.ndarray,
                  parameters: np.ndarray,
                  n_days: int,
                  dt: float = SOLVER_DT) -> Tuple[np.ndarray, np.ndarray]:
    """Solves the system and reports on integer days.

    Parameters
    ----------
    initial_condition
        System state at t = 0, including tracking compartments.
    parameters
        Parameters evaluated on the half-step grid from :func:`make_time_grids`,
        one row per half step.
    n_days
        Number of days to solve over.
    dt
        Solver step in days.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        Compartment states at the start of each day with shape
        ``(n_days, SYSTEM_SIZE)`` and the symptomatic onsets during each day
        with shape ``(n_days,)``.

    """
    steps = steps_per_day(dt)
    expected_rows = 2 * n_days * steps + 1
    if parameters.shape[0] != expected_rows:
        raise ValueError(f'Expected {expected_rows} rows of parameters, got {parameters.shape[0]}.')

    y_solve = np.zeros((n_days * steps + 1, SYSTEM_SIZE))
    y_solve[0] = initial_condition
    y_solve = _rk4(y_solve, parameters, dt)

    daily = y_solve[::steps]
    onsets = np.diff(daily[:, TRACKING_COMPARTMENTS.NewOnset])
    return daily[:-1], onsets


@numba.njit
def _rk4(y_solve: np.ndarray,
         parameters: np.ndarray,
         dt: float):
    for time in range(1, y_solve.shape[0]):
        t = (time - 1) * dt
        k1 = system(t, y_solve[time - 1], parameters[2 * time - 2])
        k2 = system(t + dt / 2, y_solve[time - 1] + dt / 2 * k1, parameters[2 * time - 1])
        k3 = system(t + dt / 2, y_solve[time - 1] + dt / 2 * k2, parameters[2 * time - 1])
        k4 = system(t + dt, y_solve[time - 1] + dt * k3, parameters[2 * time])
        y_solve[time] = y_solve[time - 1] + dt / 6 * (k1 + 2 * k2 + 2 * k3 + k4)
    return y_solve
