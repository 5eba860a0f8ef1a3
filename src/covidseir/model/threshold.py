"""Growth rates of projections and the contact fraction at which growth stops."""
from typing import Optional, Sequence

from loguru import logger
import numpy as np
import pandas as pd

from covidseir.model.containers import (
    SeirFit,
)
from covidseir.model.projection import (
    project_seir,
)

DEFAULT_THRESHOLD_FS = tuple(np.linspace(0.3, 0.8, 4))


def get_growth_rate(projection: pd.DataFrame) -> pd.Series:
    """Exponential growth rate of expected cases over the forecast period.

    The rate is the least squares slope of ``log(mu)`` against day across
    the forecast days of each draw.
    """
    forecast = projection[projection['data_type'] == 'forecast']
    if forecast.empty:
        raise ValueError('The projection has no forecast days to compute a growth rate over.')
    log_mu = np.log(np.maximum(forecast['mu'].to_numpy(), np.finfo(float).tiny))
    data = pd.DataFrame({
        'iteration': forecast['iteration'].to_numpy(),
        'x': forecast['day'].to_numpy(dtype=float),
        'y': log_mu,
    })
    data['x'] -= data.groupby('iteration')['x'].transform('mean')
    data['y'] -= data.groupby('iteration')['y'].transform('mean')
    data['xy'] = data['x'] * data['y']
    data['xx'] = data['x'] ** 2
    sums = data.groupby('iteration')[['xy', 'xx']].sum()
    if (sums['xx'] == 0).any():
        raise ValueError('At least two forecast days are required to compute a growth rate.')
    return (sums['xy'] / sums['xx']).rename('growth_rate')


def get_threshold(fit: SeirFit,
                  iterations: Optional[Sequence[int]] = None,
                  forecast_days: int = 30,
                  fs: Sequence[float] = DEFAULT_THRESHOLD_FS,
                  **projection_args) -> pd.Series:
    """Contact fraction at which expected cases neither grow nor shrink.

    Each draw is projected with ``f`` held at each value of ``fs`` from the
    end of the data. The growth rates are regressed linearly on ``f`` per
    draw and the regression is solved for a growth rate of zero.

    Returns
    -------
    pd.Series
        Threshold contact fraction indexed by iteration.

    """
    fs = np.asarray(fs, dtype=float)
    if fs.size < 2 or np.unique(fs).size < 2:
        raise ValueError(f'At least two distinct contact fractions are needed. Got {fs.tolist()}.')

    rates = []
    for f in fs:
        logger.debug(f'Projecting growth rate with f fixed at {f:.3f}.')
        projection = project_seir(
            fit,
            forecast_days=forecast_days,
            iterations=iterations,
            f_fixed_start=fit.n_days,
            f_fixed=f,
            **projection_args,
        )
        rates.append(get_growth_rate(projection).rename(f))
    rates = pd.concat(rates, axis=1)

    f_centered = fs - fs.mean()
    slope = rates.sub(rates.mean(axis=1), axis=0).mul(f_centered, axis=1).sum(axis=1) / (f_centered ** 2).sum()
    intercept = rates.mean(axis=1) - slope * fs.mean()
    flat = slope == 0
    if flat.any():
        logger.warning(f'Growth rate does not change with f for iterations {flat[flat].index.tolist()}. '
                       'Their threshold is undefined.')
    return (-intercept / slope.mask(flat)).rename('threshold')


def get_doubling_time(fit: SeirFit,
                      iterations: Optional[Sequence[int]] = None,
                      forecast_days: int = 30,
                      **projection_args) -> pd.Series:
    """Days for expected cases to double over the forecast, per draw.

    A negative value is a halving time.
    """
    projection = project_seir(
        fit,
        forecast_days=forecast_days,
        iterations=iterations,
        **projection_args,
    )
    return (np.log(2) / get_growth_rate(projection)).rename('doubling_time')
