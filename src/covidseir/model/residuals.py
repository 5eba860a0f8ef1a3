from typing import Optional

import numpy as np
import pandas as pd
from scipy import stats

from covidseir.model.observation import (
    observation_cdf,
)

RESIDUAL_TYPES = ('raw', 'quantile')


def compute_residuals(projection: pd.DataFrame,
                      observed,
                      type: str = 'raw',
                      seed: Optional[int] = None) -> pd.DataFrame:
    """Residuals of observed cases against the projection.

    Parameters
    ----------
    projection
        Output of :func:`covidseir.project_seir`.
    observed
        Reported cases, one per data day starting at day 0. Missing days are
        ``NaN`` and are dropped.
    type
        ``raw`` for observed minus the posterior mean of ``mu`` or
        ``quantile`` for randomized quantile residuals under the observation
        model at the posterior mean ``mu`` and median ``phi``.
    seed
        Seed for the randomization of quantile residuals.

    """
    if type not in RESIDUAL_TYPES:
        raise ValueError(f'Unknown residual type {type}. Options are {RESIDUAL_TYPES}.')
    observed = np.asarray(observed, dtype=float)
    grouped = projection.groupby('day')
    mu = grouped['mu'].mean()
    phi = grouped['phi'].median()
    if len(observed) > len(mu):
        raise ValueError(f'{len(observed)} observations were given but the projection has {len(mu)} days.')

    data = pd.DataFrame({
        'day': np.arange(len(observed)),
        'observed': observed,
        'mu': mu.to_numpy()[:len(observed)],
        'phi': phi.to_numpy()[:len(observed)],
    })
    data = data[np.isfinite(data['observed'])].reset_index(drop=True)

    if type == 'raw':
        data['residual'] = data['observed'] - data['mu']
    else:
        rng = np.random.default_rng(seed)
        upper = observation_cdf(data['observed'], data['mu'], data['phi'])
        lower = observation_cdf(data['observed'] - 1, data['mu'], data['phi'])
        u = rng.uniform(lower, upper)
        # Keep the normal quantile finite when the cdf saturates.
        u = np.clip(u, 1e-12, 1 - 1e-12)
        data['residual'] = stats.norm.ppf(u)
    return data[['day', 'observed', 'mu', 'residual']]
