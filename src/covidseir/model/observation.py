from typing import Optional

import numpy as np
from scipy import stats

from covidseir.model.containers import (
    RW_STEP_DAYS,
)


def expected_cases(onsets, samp_frac, pmf, xp=np):
    """Expected reported cases from daily symptomatic onsets.

    Onsets on day ``d`` are reported on day ``d + j`` with probability
    ``pmf[j]``, and a fraction ``samp_frac`` of the cases reported on a day
    are counted.
    """
    n_days = onsets.shape[0]
    reported = xp.convolve(onsets, pmf)[:n_days]
    return samp_frac * reported


def n_samp_frac_parameters(samp_frac_type: str, n_days: int, samp_frac_seg: Optional[np.ndarray] = None) -> int:
    """Number of estimated sampling fractions for a sampling fraction type."""
    if samp_frac_type == 'fixed':
        return 0
    elif samp_frac_type == 'estimated':
        return 1
    elif samp_frac_type == 'segmented':
        if samp_frac_seg is None:
            raise ValueError('samp_frac_seg is required when samp_frac_type is "segmented".')
        return int(np.max(samp_frac_seg))
    elif samp_frac_type == 'rw':
        return int(np.ceil(n_days / RW_STEP_DAYS))
    else:
        raise ValueError(f'Unknown samp_frac_type {samp_frac_type}.')


def sampling_fraction(samp_frac_type: str,
                      n_days: int,
                      samp_frac_fixed,
                      samp_frac_seg,
                      samp_frac,
                      xp=np):
    """Per day sampling fraction for the first ``n_days`` days.

    Parameters
    ----------
    samp_frac_type
        One of ``fixed``, ``estimated``, ``segmented`` or ``rw``.
    n_days
        Number of days to build the vector for.
    samp_frac_fixed
        Per day fixed sampling fractions, used by the ``fixed`` type.
    samp_frac_seg
        Per day sampling fraction segment ids starting at 1, used by the
        ``segmented`` type.
    samp_frac
        Estimated sampling fractions. One value for ``estimated``, one per
        segment for ``segmented`` and one per week for ``rw``. Days past the
        last week carry the last value forward.

    """
    if samp_frac_type == 'fixed':
        return xp.asarray(samp_frac_fixed)[:n_days]
    samp_frac = xp.asarray(samp_frac)
    if samp_frac_type == 'estimated':
        return samp_frac[0] * xp.ones(n_days)
    elif samp_frac_type == 'segmented':
        index = xp.asarray(samp_frac_seg)[:n_days] - 1
    elif samp_frac_type == 'rw':
        index = xp.minimum(xp.arange(n_days) // RW_STEP_DAYS, samp_frac.shape[0] - 1)
    else:
        raise ValueError(f'Unknown samp_frac_type {samp_frac_type}.')
    return samp_frac[index]


def sample_observations(mu: np.ndarray, phi: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Draws reported cases around ``mu``.

    A negative binomial (NB2) with dispersion ``phi`` is used where ``phi`` is
    finite and a Poisson where it is missing.
    """
    mu = np.maximum(np.asarray(mu, dtype=float), 0.)
    phi = np.broadcast_to(np.asarray(phi, dtype=float), mu.shape)
    poisson = ~np.isfinite(phi)
    safe_phi = np.where(poisson, 1.0, phi)
    nb_draws = rng.negative_binomial(n=safe_phi, p=safe_phi / (safe_phi + mu))
    poisson_draws = rng.poisson(mu)
    return np.where(poisson, poisson_draws, nb_draws)


def observation_cdf(y: np.ndarray, mu: np.ndarray, phi: np.ndarray) -> np.ndarray:
    """Cumulative probability of ``y`` under the observation model."""
    mu = np.asarray(mu, dtype=float)
    phi = np.broadcast_to(np.asarray(phi, dtype=float), mu.shape)
    poisson = ~np.isfinite(phi)
    safe_phi = np.where(poisson, 1.0, phi)
    nb_cdf = stats.nbinom.cdf(y, n=safe_phi, p=safe_phi / (safe_phi + mu))
    poisson_cdf = stats.poisson.cdf(y, mu)
    return np.where(poisson, poisson_cdf, nb_cdf)
