from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from covidseir.lib import (
    utilities,
)
from covidseir.model.containers import (
    FIT_TYPES,
    OBS_MODELS,
    SAMP_FRAC_TYPES,
    FixedParameters,
    Priors,
)


@dataclass
class FitData:
    cases_file: str = field(default='')
    date_column: str = field(default='date')
    value_column: str = field(default='value')
    omitted_dates: List[str] = field(default_factory=list)
    output_root: str = field(default='')
    output_format: str = field(default='csv')

    def __post_init__(self):
        self.omitted_dates = [str(d) for d in self.omitted_dates]

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


@dataclass
class ModelParameters:
    N_pop: float = field(default=5.1e6)
    obs_model: str = field(default='NB2')
    f_breakpoints: List[str] = field(default_factory=list)
    forecast_days: int = field(default=0)
    samp_frac_type: str = field(default='fixed')
    samp_frac_fixed: Union[float, List[float]] = field(default=0.2)
    samp_frac_breakpoints: List[str] = field(default_factory=list)
    time_increment: float = field(default=0.25)
    days_back: int = field(default=45)
    delay_shape: float = field(default=1.73)
    delay_scale: float = field(default=9.85)
    rw_sigma: float = field(default=0.1)
    fixed_parameters: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        if self.obs_model not in OBS_MODELS:
            raise ValueError(f'Unknown obs_model {self.obs_model}. Options are {OBS_MODELS}.')
        if self.samp_frac_type not in SAMP_FRAC_TYPES:
            raise ValueError(f'Unknown samp_frac_type {self.samp_frac_type}. Options are {SAMP_FRAC_TYPES}.')
        self.f_breakpoints = [str(d) for d in self.f_breakpoints]
        self.samp_frac_breakpoints = [str(d) for d in self.samp_frac_breakpoints]
        self.fixed_parameters = utilities.filter_to_spec_fields(self.fixed_parameters, FixedParameters())

    def fixed(self) -> FixedParameters:
        return FixedParameters(**self.fixed_parameters)

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


@dataclass
class SamplerParameters:
    fit_type: str = field(default='NUTS')
    chains: int = field(default=4)
    n_iter: int = field(default=1000)
    seed: int = field(default=42)
    optim_steps: int = field(default=4000)
    learning_rate: float = field(default=0.005)
    progress_bar: bool = field(default=True)

    def __post_init__(self):
        if self.fit_type not in FIT_TYPES:
            raise ValueError(f'Unknown fit_type {self.fit_type}. Options are {FIT_TYPES}.')

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


class FitSpecification(utilities.Specification):

    def __init__(self,
                 data: FitData,
                 model: ModelParameters,
                 priors: Priors,
                 sampler: SamplerParameters):
        self._data = data
        self._model = model
        self._priors = priors
        self._sampler = sampler

    @classmethod
    def parse_spec_dict(cls, spec_dict: Dict) -> Tuple:
        sub_specs = {
            'data': FitData,
            'model': ModelParameters,
            'priors': Priors,
            'sampler': SamplerParameters,
        }
        for key, spec_class in list(sub_specs.items()):  # We're dynamically altering. Copy with list
            key_spec_dict = utilities.filter_to_spec_fields(
                spec_dict.get(key, {}),
                spec_class(),
            )
            sub_specs[key] = spec_class(**key_spec_dict)

        return tuple(sub_specs.values())

    @property
    def data(self) -> FitData:
        return self._data

    @property
    def model(self) -> ModelParameters:
        return self._model

    @property
    def priors(self) -> Priors:
        return self._priors

    @property
    def sampler(self) -> SamplerParameters:
        return self._sampler

    def to_dict(self) -> Dict:
        spec = {
            'data': self.data.to_dict(),
            'model': self.model.to_dict(),
            'priors': self.priors.to_dict(),
            'sampler': self.sampler.to_dict(),
        }
        return spec
