from typing import Optional, Sequence

from matplotlib.axes import Axes
import pandas as pd

from covidseir.lib.plotting import (
    Plotter,
)

DEFAULT_COLOR = '#3182bd'


def _get_ax(plotter: Plotter, ax: Optional[Axes]) -> Axes:
    if ax is None:
        fig, axes = plotter.make_figure()
        ax = axes[0, 0]
    return ax


def _first_forecast(summary: pd.DataFrame, date_column: str):
    forecast = summary.loc[summary['data_type'] == 'forecast', date_column]
    return None if forecast.empty else forecast.iloc[0]


def plot_projection(pred_dat: pd.DataFrame,
                    obs_dat: pd.DataFrame,
                    col: str = DEFAULT_COLOR,
                    value_column: str = 'value',
                    date_column: str = 'day',
                    ylab: str = 'Reported cases',
                    omitted_days: Sequence = None,
                    ax: Axes = None) -> Axes:
    """Plots the posterior predictive of reported cases against the data.

    Parameters
    ----------
    pred_dat
        Output of :func:`covidseir.tidy_seir`, optionally with a date column
        joined on ``day``.
    obs_dat
        Observed cases with ``date_column`` and ``value_column`` columns.
    col
        Colour of the ribbons and the expected case line.
    value_column
        Column of ``obs_dat`` holding the case counts.
    date_column
        Column holding the x axis values in both data sets. Date columns
        get a date axis.
    ylab
        Label of the y axis.
    omitted_days
        Values of ``date_column`` left out of the fit. They are drawn hollow.
    ax
        Axes to draw on. A new figure is made if not given.

    """
    for name, data, column in [('pred_dat', pred_dat, date_column),
                               ('obs_dat', obs_dat, date_column),
                               ('obs_dat', obs_dat, value_column)]:
        if column not in data:
            raise ValueError(f'{name} has no column {column}.')

    plotter = Plotter(color=col)
    ax = _get_ax(plotter, ax)
    x = pred_dat[date_column]
    plotter.make_ribbon_plot(ax, x, pred_dat['y_rep_0.05'], pred_dat['y_rep_0.95'])
    plotter.make_ribbon_plot(ax, x, pred_dat['y_rep_0.25'], pred_dat['y_rep_0.75'], inner=True)
    plotter.make_line_plot(ax, x, pred_dat['mu_mean'])

    omitted = obs_dat[date_column].isin([] if omitted_days is None else list(omitted_days))
    plotter.make_observed_plot(ax, obs_dat.loc[~omitted, date_column], obs_dat.loc[~omitted, value_column])
    if omitted.any():
        plotter.make_observed_plot(ax, obs_dat.loc[omitted, date_column], obs_dat.loc[omitted, value_column],
                                   hollow=True)

    forecast_start = _first_forecast(pred_dat, date_column)
    if forecast_start is not None:
        plotter.add_vline(ax, forecast_start, label='Forecast')
    plotter.format_axes(ax, x, ylab)
    return ax


def plot_rt(rt_summary: pd.DataFrame,
            col: str = DEFAULT_COLOR,
            date_column: str = 'day',
            ax: Axes = None) -> Axes:
    """Plots the summarised effective reproduction number with a line at one."""
    plotter = Plotter(color=col)
    ax = _get_ax(plotter, ax)
    x = rt_summary[date_column]
    plotter.make_ribbon_plot(ax, x, rt_summary['Rt_0.05'], rt_summary['Rt_0.95'])
    plotter.make_ribbon_plot(ax, x, rt_summary['Rt_0.25'], rt_summary['Rt_0.75'], inner=True)
    plotter.make_line_plot(ax, x, rt_summary['Rt_0.50'])
    ax.axhline(1.0, color='black', linewidth=1)

    forecast_start = _first_forecast(rt_summary, date_column)
    if forecast_start is not None:
        plotter.add_vline(ax, forecast_start)
    plotter.format_axes(ax, x, 'Rt')
    return ax


def plot_residuals(residuals: pd.DataFrame,
                   col: str = DEFAULT_COLOR,
                   date_column: str = 'day',
                   ax: Axes = None) -> Axes:
    """Plots residuals from :func:`covidseir.compute_residuals` over time."""
    plotter = Plotter(color=col)
    ax = _get_ax(plotter, ax)
    x = residuals[date_column]
    plotter.make_line_plot(ax, x, residuals['residual'], linewidth=1, alpha=0.5)
    plotter.make_observed_plot(ax, x, residuals['residual'])
    ax.axhline(0.0, color='black', linewidth=1)
    plotter.format_axes(ax, x, 'Residual')
    return ax


write_or_show = Plotter.write_or_show
