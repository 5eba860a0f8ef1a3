from typing import Dict, List, Optional

import pandas as pd

from covidseir.model import (
    SeirFit,
)
from covidseir.pipeline.fit.model import (
    day_from_date,
)
from covidseir.pipeline.forecast.specification import (
    ProjectionParameters,
)


def select_draws(fit: SeirFit, n_draws: Optional[int]) -> List[int]:
    """The first ``n_draws`` posterior iterations, or all of them."""
    iterations = fit.iterations
    if n_draws is None:
        return iterations
    if n_draws > len(iterations):
        raise ValueError(f'{n_draws} draws were requested but the fit has {len(iterations)}.')
    return iterations[:n_draws]


def build_projection_arguments(cases: pd.DataFrame, projection: ProjectionParameters) -> Dict:
    """Keyword arguments for :func:`covidseir.project_seir` shared by every projection."""
    return {
        'f_fixed_start': day_from_date(projection.f_fixed_start, cases['date'].iloc[0]),
        'f_fixed': projection.f_fixed,
        'f_multi': projection.f_multi,
        'f_multi_seg': projection.f_multi_seg,
        'imported_cases': projection.imported_cases,
        'imported_window': projection.imported_window,
        'num_cores': projection.num_cores,
        'seed': projection.seed,
    }


def add_dates(data: pd.DataFrame, cases: pd.DataFrame) -> pd.DataFrame:
    """Adds a ``date`` column to day indexed data, extending past the last data day."""
    first_date = cases['date'].iloc[0]
    data = data.copy()
    data.insert(1, 'date', first_date + pd.to_timedelta(data['day'], unit='D'))
    return data
