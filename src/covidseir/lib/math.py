from typing import Tuple

import numpy as np
from scipy import stats


def logit(p, xp=np):
    return xp.log(p / (1 - p))


def expit(x, xp=np):
    return 1 / (1 + xp.exp(-x))


def beta_shape_parameters(mean: float, sd: float) -> Tuple[float, float]:
    """Converts the mean and standard deviation of a beta distribution to its shapes.

    .. math::

        \\nu = \\frac{\\mu (1 - \\mu)}{\\sigma^2} - 1, \\quad
        a = \\mu \\nu, \\quad b = (1 - \\mu) \\nu

    Parameters
    ----------
    mean
        Mean of the distribution, strictly between 0 and 1.
    sd
        Standard deviation of the distribution. The variance must be smaller
        than ``mean * (1 - mean)``.

    """
    if not 0 < mean < 1:
        raise ValueError(f'Beta mean must be in (0, 1). Got {mean}.')
    if sd <= 0:
        raise ValueError(f'Beta sd must be positive. Got {sd}.')
    nu = mean * (1 - mean) / sd ** 2 - 1
    if nu <= 0:
        raise ValueError(f'Beta sd {sd} is too large for mean {mean}.')
    return mean * nu, (1 - mean) * nu


def weibull_delay_pmf(days_back: int, shape: float, scale: float) -> np.ndarray:
    """Discretized Weibull onset-to-report delay, normalized to sum to one.

    Entry ``j`` is the probability a case with onset on day ``d`` is
    reported on day ``d + j``.
    """
    if days_back < 1:
        raise ValueError(f'days_back must be at least 1. Got {days_back}.')
    edges = stats.weibull_min.cdf(np.arange(days_back + 1), c=shape, scale=scale)
    pmf = np.diff(edges)
    return pmf / pmf.sum()
