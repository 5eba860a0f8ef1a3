"""Translation of dated case data into model inputs."""
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from covidseir.model import (
    make_f_seg,
)
from covidseir.pipeline.fit.specification import (
    FitData,
    ModelParameters,
)


def prepare_cases(raw_cases: pd.DataFrame, data: FitData) -> pd.DataFrame:
    """Puts raw case data on a complete daily grid.

    Dates missing from the input get ``NaN`` cases. Omitted dates keep
    their reported value and are flagged so the fit can leave them out.

    Returns
    -------
    pd.DataFrame
        Columns ``date``, ``day``, ``value`` and ``omitted``.

    """
    for column in [data.date_column, data.value_column]:
        if column not in raw_cases:
            raise ValueError(f'Case data has no column {column}. Columns are {raw_cases.columns.tolist()}.')
    cases = pd.DataFrame({
        'date': pd.to_datetime(raw_cases[data.date_column]),
        'value': pd.to_numeric(raw_cases[data.value_column], errors='coerce'),
    })
    if cases['date'].duplicated().any():
        duplicates = cases.loc[cases['date'].duplicated(), 'date'].dt.strftime('%Y-%m-%d').tolist()
        raise ValueError(f'Case data has duplicate dates: {duplicates}.')

    cases = cases.set_index('date').sort_index()
    dates = pd.date_range(cases.index.min(), cases.index.max(), freq='D', name='date')
    cases = cases.reindex(dates).reset_index()
    cases['day'] = np.arange(len(cases))

    omitted = pd.to_datetime(pd.Series(data.omitted_dates, dtype=object))
    cases['omitted'] = cases['date'].isin(omitted)
    return cases[['date', 'day', 'value', 'omitted']]


def dates_to_days(dates: Sequence, first_date: pd.Timestamp) -> List[int]:
    """Days since ``first_date`` for each date."""
    return [(pd.Timestamp(date) - pd.Timestamp(first_date)).days for date in dates]


def day_from_date(date: Optional[str], first_date: pd.Timestamp) -> Optional[int]:
    if not date:
        return None
    return dates_to_days([date], first_date)[0]


def build_samp_frac_seg(n_total: int, breakpoints: Sequence[int]) -> np.ndarray:
    """Per day sampling fraction segment ids starting at 1."""
    return 1 + np.searchsorted(sorted(breakpoints), np.arange(n_total), side='right')


def build_fit_arguments(cases: pd.DataFrame, model: ModelParameters) -> Dict:
    """Keyword arguments for :func:`covidseir.fit_seir` from prepared cases."""
    first_date = cases['date'].iloc[0]
    n_days = len(cases)
    n_total = n_days + model.forecast_days

    f_breakpoints = dates_to_days(model.f_breakpoints, first_date)
    samp_frac_seg = None
    if model.samp_frac_type == 'segmented':
        samp_frac_breakpoints = dates_to_days(model.samp_frac_breakpoints, first_date)
        samp_frac_seg = build_samp_frac_seg(n_total, samp_frac_breakpoints)

    return {
        'daily_cases': np.where(cases['omitted'], np.nan, cases['value'].to_numpy(dtype=float)),
        'obs_model': model.obs_model,
        'forecast_days': model.forecast_days,
        'time_increment': model.time_increment,
        'samp_frac_fixed': model.samp_frac_fixed if model.samp_frac_type == 'fixed' else None,
        'samp_frac_type': model.samp_frac_type,
        'samp_frac_seg': samp_frac_seg,
        'days_back': model.days_back,
        'f_seg': make_f_seg(n_days, f_breakpoints, model.forecast_days),
        'N_pop': model.N_pop,
        'pars': model.fixed(),
        'delay_shape': model.delay_shape,
        'delay_scale': model.delay_scale,
        'rw_sigma': model.rw_sigma,
    }
