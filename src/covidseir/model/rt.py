from typing import Optional, Sequence

import pandas as pd

from covidseir.model.containers import (
    SeirFit,
)
from covidseir.model.projection import (
    project_seir,
)
from covidseir.model.summary import (
    QUANTILES,
)


def rt_from_states(projection: pd.DataFrame, fit: SeirFit) -> pd.Series:
    """Effective reproduction number of a projection with states.

    The next generation matrix of the two group model has rank one, so its
    spectral radius is ``R0 * (S + f^2 Sd) / N``.
    """
    r0 = fit.posterior.loc[projection['iteration'], 'R0'].to_numpy()
    susceptible = projection['S'] + projection['f'] ** 2 * projection['Sd']
    return pd.Series(r0 * susceptible.to_numpy() / fit.settings.N_pop, index=projection.index, name='Rt')


def get_rt(fit: SeirFit,
           iterations: Optional[Sequence[int]] = None,
           forecast_days: int = 0,
           **projection_args) -> pd.DataFrame:
    """Effective reproduction number per draw and day.

    Extra keyword arguments are passed on to
    :func:`covidseir.project_seir`, so Rt can be computed under any
    projected contact scenario.
    """
    projection = project_seir(
        fit,
        forecast_days=forecast_days,
        iterations=iterations,
        return_states=True,
        **projection_args,
    )
    projection['Rt'] = rt_from_states(projection, fit)
    return projection[['day', 'data_type', 'iteration', 'Rt']]


def summarise_rt(rt: pd.DataFrame) -> pd.DataFrame:
    """Per day mean and quantiles of Rt."""
    grouped = rt.groupby('day')['Rt']
    summary = grouped.quantile(list(QUANTILES)).unstack()
    summary.columns = [f'Rt_{q:.2f}' for q in summary.columns]
    summary['Rt_mean'] = grouped.mean()
    summary['data_type'] = rt.groupby('day')['data_type'].first()
    return summary.reset_index()
