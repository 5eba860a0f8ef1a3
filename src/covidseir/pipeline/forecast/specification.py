from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from covidseir.lib import (
    utilities,
)
from covidseir.model.residuals import (
    RESIDUAL_TYPES,
)
from covidseir.model.threshold import (
    DEFAULT_THRESHOLD_FS,
)


@dataclass
class ForecastData:
    fit_version: str = field(default='')
    output_root: str = field(default='')
    output_format: str = field(default='csv')
    make_plots: bool = field(default=True)

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


@dataclass
class ProjectionParameters:
    forecast_days: int = field(default=100)
    f_fixed_start: str = field(default='')
    f_fixed: Optional[Union[float, List[float]]] = field(default=None)
    f_multi: Optional[Union[float, List[float]]] = field(default=None)
    f_multi_seg: Optional[int] = field(default=None)
    imported_cases: float = field(default=0.)
    imported_window: int = field(default=1)
    n_draws: Optional[int] = field(default=None)
    resample_y_rep: int = field(default=10)
    num_cores: int = field(default=1)
    seed: int = field(default=42)

    def __post_init__(self):
        if self.f_fixed is not None and self.f_multi is not None:
            raise ValueError('Only one of f_fixed and f_multi may be provided.')
        if self.n_draws is not None and self.n_draws < 1:
            raise ValueError(f'n_draws must be positive. Got {self.n_draws}.')
        self.f_fixed_start = str(self.f_fixed_start) if self.f_fixed_start else ''

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


@dataclass
class AnalysisParameters:
    threshold: bool = field(default=False)
    threshold_fs: List[float] = field(default_factory=lambda: [float(f) for f in DEFAULT_THRESHOLD_FS])
    threshold_forecast_days: int = field(default=30)
    doubling_time: bool = field(default=False)
    doubling_time_forecast_days: int = field(default=30)
    residual_type: str = field(default='quantile')

    def __post_init__(self):
        if self.residual_type not in RESIDUAL_TYPES:
            raise ValueError(f'Unknown residual_type {self.residual_type}. Options are {RESIDUAL_TYPES}.')
        self.threshold_fs = [float(f) for f in self.threshold_fs]

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


class ForecastSpecification(utilities.Specification):

    def __init__(self,
                 data: ForecastData,
                 projection: ProjectionParameters,
                 analysis: AnalysisParameters):
        self._data = data
        self._projection = projection
        self._analysis = analysis

    @classmethod
    def parse_spec_dict(cls, spec_dict: Dict) -> Tuple:
        sub_specs = {
            'data': ForecastData,
            'projection': ProjectionParameters,
            'analysis': AnalysisParameters,
        }
        for key, spec_class in list(sub_specs.items()):  # We're dynamically altering. Copy with list
            key_spec_dict = utilities.filter_to_spec_fields(
                spec_dict.get(key, {}),
                spec_class(),
            )
            sub_specs[key] = spec_class(**key_spec_dict)

        return tuple(sub_specs.values())

    @property
    def data(self) -> ForecastData:
        return self._data

    @property
    def projection(self) -> ProjectionParameters:
        return self._projection

    @property
    def analysis(self) -> AnalysisParameters:
        return self._analysis

    def to_dict(self) -> Dict:
        spec = {
            'data': self.data.to_dict(),
            'projection': self.projection.to_dict(),
            'analysis': self.analysis.to_dict(),
        }
        return spec
