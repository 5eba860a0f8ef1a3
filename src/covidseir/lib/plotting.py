from pathlib import Path
from typing import Optional, Tuple, Union

import matplotlib.pyplot as plt
import matplotlib.dates as mdates
from matplotlib.axes import Axes
import numpy as np
import pandas as pd
import seaborn as sns


class Plotter:
    fill_alpha = 0.2
    inner_fill_alpha = 0.4
    observed_alpha = 0.8
    ax_label_fontsize = 14
    tick_label_fontsize = 11
    fig_size = (12, 6)
    line_width = 2.0
    marker_size = 18

    def __init__(self, color: str = '#3182bd'):
        sns.set_style('whitegrid')
        self._color = color

    def make_figure(self, n_rows: int = 1, n_cols: int = 1) -> Tuple[plt.Figure, np.ndarray]:
        fig, axes = plt.subplots(
            n_rows, n_cols,
            figsize=(self.fig_size[0] * n_cols, self.fig_size[1] * n_rows),
            squeeze=False,
            tight_layout=True,
        )
        return fig, axes

    def make_ribbon_plot(self,
                         ax: Axes,
                         x: pd.Series,
                         lower: pd.Series,
                         upper: pd.Series,
                         inner: bool = False) -> None:
        alpha = self.inner_fill_alpha if inner else self.fill_alpha
        ax.fill_between(x, lower, upper, alpha=alpha, color=self._color, linewidth=0)

    def make_line_plot(self, ax: Axes, x: pd.Series, y: pd.Series, **extra_options) -> None:
        plot_options = {'linewidth': self.line_width, 'color': self._color, **extra_options}
        ax.plot(x, y, **plot_options)

    def make_observed_plot(self,
                           ax: Axes,
                           x: pd.Series,
                           y: pd.Series,
                           hollow: bool = False) -> None:
        ax.scatter(
            x, y,
            s=self.marker_size,
            facecolor='white' if hollow else 'black',
            edgecolor='black',
            alpha=self.observed_alpha,
            zorder=3,
        )

    def add_vline(self, ax: Axes, x, label: str = None) -> None:
        ax.axvline(x, linestyle='dashed', color='grey', linewidth=1)
        if label is not None:
            ax.text(x, 0.95, f' {label}', transform=ax.get_xaxis_transform(),
                    fontsize=self.tick_label_fontsize, color='grey', va='top')

    def format_axes(self, ax: Axes, x: pd.Series, ylabel: str = None) -> None:
        if is_date_like(x):
            self.format_date_axis(ax)
        else:
            ax.set_xlabel('Day', fontsize=self.ax_label_fontsize)
        if ylabel is not None:
            ax.set_ylabel(ylabel, fontsize=self.ax_label_fontsize)
        ax.tick_params(axis='both', labelsize=self.tick_label_fontsize)
        sns.despine(ax=ax, left=True, bottom=True)

    def format_date_axis(self, ax: Axes) -> None:
        date_locator = mdates.AutoDateLocator(maxticks=15)
        date_formatter = mdates.ConciseDateFormatter(date_locator, show_offset=False)
        ax.xaxis.set_major_locator(date_locator)
        ax.xaxis.set_major_formatter(date_formatter)

    @staticmethod
    def write_or_show(fig, plot_file: Optional[Union[str, Path]]) -> None:
        if plot_file:
            fig.savefig(plot_file)
            plt.close(fig)
        else:
            plt.show()


def is_date_like(values: pd.Series) -> bool:
    return pd.api.types.is_datetime64_any_dtype(values)
