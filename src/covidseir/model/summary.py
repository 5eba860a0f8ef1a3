from typing import Optional

import numpy as np
import pandas as pd

from covidseir.model.observation import (
    sample_observations,
)

QUANTILES = (0.05, 0.25, 0.5, 0.75, 0.95)


def _quantile_label(q: float) -> str:
    return f'{q:.2f}'


def _summarise(data: pd.DataFrame, value_column: str) -> pd.DataFrame:
    grouped = data.groupby('day')[value_column]
    summary = grouped.quantile(list(QUANTILES)).unstack()
    summary.columns = [f'{value_column}_{_quantile_label(q)}' for q in summary.columns]
    summary[f'{value_column}_mean'] = grouped.mean()
    ordered = [f'{value_column}_{_quantile_label(q)}' for q in QUANTILES[:3]]
    ordered += [f'{value_column}_mean']
    ordered += [f'{value_column}_{_quantile_label(q)}' for q in QUANTILES[3:]]
    return summary[ordered]


def resample_observations(projection: pd.DataFrame,
                          resample_y_rep: int = 10,
                          seed: Optional[int] = None) -> pd.DataFrame:
    """Draws ``resample_y_rep`` posterior predictive observations per draw and day."""
    if resample_y_rep < 1:
        raise ValueError(f'resample_y_rep must be at least 1. Got {resample_y_rep}.')
    rng = np.random.default_rng(seed)
    mu = np.repeat(projection['mu'].to_numpy(), resample_y_rep)
    phi = np.repeat(projection['phi'].to_numpy(), resample_y_rep)
    return pd.DataFrame({
        'day': np.repeat(projection['day'].to_numpy(), resample_y_rep),
        'y_rep': sample_observations(mu, phi, rng),
    })


def tidy_seir(projection: pd.DataFrame,
              resample_y_rep: int = 10,
              seed: Optional[int] = None) -> pd.DataFrame:
    """Per day quantiles of the posterior predictive and expected cases.

    Parameters
    ----------
    projection
        Output of :func:`covidseir.project_seir`.
    resample_y_rep
        Number of observations drawn per draw and day to smooth the tails of
        the posterior predictive.
    seed
        Seed for the observation draws.

    Returns
    -------
    pd.DataFrame
        One row per day with the ``y_rep`` and ``mu`` quantiles and means.

    """
    y_rep = resample_observations(projection, resample_y_rep, seed)
    data_type = projection.groupby('day')['data_type'].first()
    summary = pd.concat([
        data_type,
        _summarise(y_rep, 'y_rep'),
        _summarise(projection, 'mu'),
    ], axis=1)
    return summary.reset_index()
