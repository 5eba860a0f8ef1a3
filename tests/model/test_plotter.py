import matplotlib

matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pandas
import pytest

from covidseir.model import (
    compute_residuals,
    plot_projection,
    plot_residuals,
    plot_rt,
    project_seir,
    summarise_rt,
    tidy_seir,
    write_or_show,
)
from covidseir.model.rt import rt_from_states


@pytest.fixture
def projection(fit):
    projection = project_seir(fit, forecast_days=10, return_states=True, seed=1)
    projection['Rt'] = rt_from_states(projection, fit)
    return projection


@pytest.fixture
def observed(fit):
    return pandas.DataFrame({'day': range(fit.n_days), 'value': fit.daily_cases})


def test_plot_projection(projection, observed, tmp_path):
    ax = plot_projection(tidy_seir(projection, seed=1), observed, omitted_days=[3, 4])
    # Two ribbons and two sets of points.
    assert len(ax.collections) == 4
    assert ax.get_ylabel() == 'Reported cases'
    write_or_show(ax.figure, tmp_path / 'projection.png')
    assert (tmp_path / 'projection.png').exists()


def test_plot_projection_omitted_series(projection, observed):
    omitted_days = observed.loc[observed['day'] == 3, 'day']
    ax = plot_projection(tidy_seir(projection, seed=1), observed, omitted_days=omitted_days)
    assert len(ax.collections) == 4
    plt.close(ax.figure)


def test_plot_projection_with_dates(projection, observed):
    summary = tidy_seir(projection, seed=1)
    first = pandas.Timestamp('2020-03-01')
    summary['date'] = first + pandas.to_timedelta(summary['day'], unit='D')
    observed['date'] = first + pandas.to_timedelta(observed['day'], unit='D')
    fig, ax = plt.subplots()
    result = plot_projection(summary, observed, date_column='date', ylab='Cases', ax=ax)
    assert result is ax
    assert ax.get_ylabel() == 'Cases'
    plt.close(fig)


def test_plot_projection_missing_column(projection, observed):
    with pytest.raises(ValueError):
        plot_projection(tidy_seir(projection, seed=1), observed, value_column='cases')


def test_plot_rt_and_residuals(projection, fit, tmp_path):
    rt_summary = summarise_rt(projection[['day', 'data_type', 'iteration', 'Rt']])
    ax = plot_rt(rt_summary)
    assert ax.get_ylabel() == 'Rt'
    write_or_show(ax.figure, tmp_path / 'rt.png')

    residuals = compute_residuals(projection, fit.daily_cases)
    ax = plot_residuals(residuals)
    assert ax.get_ylabel() == 'Residual'
    write_or_show(ax.figure, tmp_path / 'residuals.png')
    assert (tmp_path / 'rt.png').exists()
    assert (tmp_path / 'residuals.png').exists()
