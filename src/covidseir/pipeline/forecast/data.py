from pathlib import Path
from typing import Dict

import pandas as pd

from covidseir.lib import (
    io,
)
from covidseir.model import (
    SeirFit,
)
from covidseir.pipeline.fit import (
    FitDataInterface,
)
from covidseir.pipeline.forecast.specification import (
    ForecastSpecification,
)


class ForecastDataInterface:

    def __init__(self,
                 fit_data_interface: FitDataInterface,
                 forecast_root: io.ForecastRoot):
        self.fit_data_interface = fit_data_interface
        self.forecast_root = forecast_root

    @classmethod
    def from_specification(cls, specification: ForecastSpecification) -> 'ForecastDataInterface':
        fit_root = io.FitRoot(specification.data.fit_version)
        if not io.exists(fit_root.specification()):
            raise ValueError(f'{specification.data.fit_version} does not hold a fit specification.')
        fit_spec_dict = io.load(fit_root.specification())
        fit_data_interface = FitDataInterface(
            cases_file=Path(fit_spec_dict['data']['cases_file']),
            fit_root=io.FitRoot(specification.data.fit_version,
                                data_format=fit_spec_dict['data'].get('output_format', 'csv')),
        )
        return cls(
            fit_data_interface=fit_data_interface,
            forecast_root=io.ForecastRoot(specification.data.output_root,
                                          data_format=specification.data.output_format),
        )

    def make_dirs(self, make_plots: bool = True) -> None:
        extra_dirs = [self.forecast_root.plot_dir.name] if make_plots else []
        io.touch(self.forecast_root, *extra_dirs)

    ############
    # Fit data #
    ############

    def load_fit(self) -> SeirFit:
        return self.fit_data_interface.load_fit()

    def load_cases(self) -> pd.DataFrame:
        return self.fit_data_interface.load_cases()

    ###############################
    # Forecast data I/O methods #
    ###############################

    def save_metadata(self, metadata: Dict) -> None:
        io.dump(metadata, self.forecast_root.metadata(), strict=False)

    def save_specification(self, specification: ForecastSpecification) -> None:
        io.dump(specification.to_dict(), self.forecast_root.specification())

    def load_specification(self) -> ForecastSpecification:
        spec_dict = io.load(self.forecast_root.specification())
        return ForecastSpecification.from_dict(spec_dict)

    def save_projection(self, projection: pd.DataFrame) -> None:
        io.dump(projection, self.forecast_root.projection())

    def load_projection(self) -> pd.DataFrame:
        return io.load(self.forecast_root.projection())

    def save_projection_summary(self, summary: pd.DataFrame) -> None:
        io.dump(summary, self.forecast_root.projection_summary())

    def load_projection_summary(self) -> pd.DataFrame:
        return io.load(self.forecast_root.projection_summary())

    def save_rt(self, rt: pd.DataFrame) -> None:
        io.dump(rt, self.forecast_root.rt())

    def save_rt_summary(self, rt_summary: pd.DataFrame) -> None:
        io.dump(rt_summary, self.forecast_root.rt_summary())

    def load_rt_summary(self) -> pd.DataFrame:
        return io.load(self.forecast_root.rt_summary())

    def save_threshold(self, threshold: pd.Series) -> None:
        io.dump(threshold.reset_index(), self.forecast_root.threshold())

    def save_doubling_time(self, doubling_time: pd.Series) -> None:
        io.dump(doubling_time.reset_index(), self.forecast_root.doubling_time())

    def save_residuals(self, residuals: pd.DataFrame) -> None:
        io.dump(residuals, self.forecast_root.residuals())

    def plot_path(self, name: str) -> Path:
        return self.forecast_root.plot_dir / f'{name}.png'
