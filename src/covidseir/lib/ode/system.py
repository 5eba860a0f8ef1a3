import numba
import numpy as np

from covidseir.lib.ode.constants import (
    PARAMETERS,
    COMPARTMENTS,
    TRACKING_COMPARTMENTS,
    GROUP_SIZE,
)


@numba.njit
def system(t: float, y: np.ndarray, params: np.ndarray):
    """Social distancing SEIR system with an onset tracking compartment.

    The distancing group mixes at fraction ``f`` of the baseline contact
    rate. People move into distancing at rate ``ud`` and back out at
    rate ``ur``.
    """
    beta = params[PARAMETERS.beta]
    n_total = params[PARAMETERS.N]
    f = params[PARAMETERS.f]
    ud = params[PARAMETERS.ud]
    ur = params[PARAMETERS.ur]
    k2 = params[PARAMETERS.k2]

    infectious = (
        y[COMPARTMENTS.I] + y[COMPARTMENTS.E2]
        + f * (y[COMPARTMENTS.Id] + y[COMPARTMENTS.E2d])
    )
    force_of_infection = beta * infectious / n_total

    dy = np.zeros_like(y)
    free = single_group_system(
        t, y[:GROUP_SIZE], force_of_infection, params,
    )
    distancing = single_group_system(
        t, y[GROUP_SIZE:2 * GROUP_SIZE], f * force_of_infection, params,
    )
    # Flows between the two groups.
    for i in range(GROUP_SIZE):
        moving = ud * y[i] - ur * y[GROUP_SIZE + i]
        free[i] -= moving
        distancing[i] += moving

    free[COMPARTMENTS.E1] += params[PARAMETERS.imported]

    dy[:GROUP_SIZE] = free
    dy[GROUP_SIZE:2 * GROUP_SIZE] = distancing
    dy[TRACKING_COMPARTMENTS.NewOnset] = k2 * (y[COMPARTMENTS.E2] + y[COMPARTMENTS.E2d])
    return dy


@numba.njit
def single_group_system(t: float, group_y: np.ndarray, force_of_infection: float, params: np.ndarray):
    s, e1, e2, i, q_, r = group_y
    d = params[PARAMETERS.D]
    k1 = params[PARAMETERS.k1]
    k2 = params[PARAMETERS.k2]
    q = params[PARAMETERS.q]

    new_e = force_of_infection * s

    ds = -new_e
    de1 = new_e - k1 * e1
    de2 = k1 * e1 - k2 * e2
    di = k2 * e2 - q * i - i / d
    dq = q * i - q_ / d
    dr = i / d + q_ / d

    return np.array([ds, de1, de2, di, dq, dr])
