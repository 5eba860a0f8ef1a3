"""Containers for model settings, priors and fitted posteriors."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from covidseir.lib import (
    io,
    utilities,
)

OBS_MODELS = ('NB2', 'Poisson')
FIT_TYPES = ('NUTS', 'VB', 'optimizing')
SAMP_FRAC_TYPES = ('fixed', 'estimated', 'segmented', 'rw')

# Number of days in each step of the sampling fraction random walk.
RW_STEP_DAYS = 7


@dataclass
class FixedParameters:
    """Parameters held fixed during the fit.

    ``ur`` is recomputed from the distancing fraction ``e`` so the share of
    the population distancing stays at equilibrium. The value here is only
    used when no ``e`` is available.
    """
    D: float = field(default=5.0)
    k1: float = field(default=1 / 5)
    k2: float = field(default=1.0)
    q: float = field(default=0.05)
    ud: float = field(default=0.1)
    ur: float = field(default=0.02)
    f0: float = field(default=1.0)

    def __post_init__(self):
        for name in ['D', 'k1', 'k2', 'ud']:
            if getattr(self, name) <= 0:
                raise ValueError(f'Fixed parameter {name} must be positive.')
        if self.q < 0:
            raise ValueError('Fixed parameter q must be non-negative.')

    def infectious_duration(self) -> float:
        """Mean time spent infectious in the pre-symptomatic and symptomatic stages."""
        return 1 / self.k2 + 1 / (self.q + 1 / self.D)

    def beta(self, r0):
        return r0 / self.infectious_duration()

    def ur_from_e(self, e):
        return self.ud * (1 - e) / e

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


@dataclass
class Priors:
    """Prior parameter pairs.

    Log-normal priors are given as ``(log mean, sd)`` and beta priors as
    ``(mean, sd)``. ``phi_prior`` is the scale of a half-normal prior on
    ``1 / sqrt(phi)``.
    """
    R0_prior: Tuple[float, float] = field(default=(float(np.log(2.6)), 0.2))
    i0_prior: Tuple[float, float] = field(default=(float(np.log(8)), 1.0))
    f_prior: Tuple[float, float] = field(default=(0.4, 0.2))
    e_prior: Tuple[float, float] = field(default=(0.8, 0.05))
    samp_frac_prior: Tuple[float, float] = field(default=(0.4, 0.2))
    start_decline_prior: Tuple[float, float] = field(default=(float(np.log(15)), 0.05))
    end_decline_prior: Tuple[float, float] = field(default=(float(np.log(22)), 0.05))
    phi_prior: float = field(default=1.0)

    def __post_init__(self):
        for name in ['R0_prior', 'i0_prior', 'f_prior', 'e_prior', 'samp_frac_prior',
                     'start_decline_prior', 'end_decline_prior']:
            value = tuple(float(v) for v in getattr(self, name))
            if len(value) != 2:
                raise ValueError(f'{name} must be a (location, scale) pair. Got {value}.')
            if value[1] <= 0:
                raise ValueError(f'{name} must have a positive scale. Got {value}.')
            setattr(self, name, value)
        self.phi_prior = float(self.phi_prior)
        if self.phi_prior <= 0:
            raise ValueError(f'phi_prior must be positive. Got {self.phi_prior}.')

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


@dataclass
class SeirSettings:
    """Model settings frozen at fit time."""
    N_pop: float = field(default=5.1e6)
    obs_model: str = field(default='NB2')
    samp_frac_type: str = field(default='fixed')
    time_increment: float = field(default=0.25)
    days_back: int = field(default=45)
    delay_shape: float = field(default=1.73)
    delay_scale: float = field(default=9.85)
    rw_sigma: float = field(default=0.1)
    forecast_days: int = field(default=0)
    fit_type: str = field(default='NUTS')

    def __post_init__(self):
        if self.N_pop <= 0:
            raise ValueError(f'N_pop must be positive. Got {self.N_pop}.')
        if self.obs_model not in OBS_MODELS:
            raise ValueError(f'Unknown obs_model {self.obs_model}. Options are {OBS_MODELS}.')
        if self.samp_frac_type not in SAMP_FRAC_TYPES:
            raise ValueError(f'Unknown samp_frac_type {self.samp_frac_type}. Options are {SAMP_FRAC_TYPES}.')
        if self.fit_type not in FIT_TYPES:
            raise ValueError(f'Unknown fit_type {self.fit_type}. Options are {FIT_TYPES}.')
        if self.forecast_days < 0:
            raise ValueError(f'forecast_days must be non-negative. Got {self.forecast_days}.')

    def to_dict(self) -> Dict:
        return utilities.asdict(self)


class SeirFit:
    """A fitted social distancing SEIR model.

    Holds the posterior draws, one row per draw, along with everything
    needed to re-simulate the model: the data, the contact segments, the
    sampling fraction inputs, the fixed parameters, the priors and the
    settings.
    """

    def __init__(self,
                 posterior: pd.DataFrame,
                 daily_cases: np.ndarray,
                 f_seg: np.ndarray,
                 samp_frac_fixed: np.ndarray,
                 samp_frac_seg: Optional[np.ndarray],
                 settings: SeirSettings,
                 pars: FixedParameters,
                 priors: Priors,
                 diagnostics: pd.DataFrame = None):
        self.posterior = posterior
        self.daily_cases = np.asarray(daily_cases, dtype=float)
        self.f_seg = np.asarray(f_seg, dtype=int)
        self.samp_frac_fixed = np.asarray(samp_frac_fixed, dtype=float)
        self.samp_frac_seg = None if samp_frac_seg is None else np.asarray(samp_frac_seg, dtype=int)
        self.settings = settings
        self.pars = pars
        self.priors = priors
        self.diagnostics = diagnostics

    @property
    def n_days(self) -> int:
        return len(self.daily_cases)

    @property
    def n_segments(self) -> int:
        return int(self.f_seg.max())

    @property
    def iterations(self) -> List[int]:
        return self.posterior.index.tolist()

    def f_columns(self) -> List[str]:
        return [f'f_{k}' for k in range(1, self.n_segments + 1)]

    def samp_frac_columns(self) -> List[str]:
        return [c for c in self.posterior.columns if c.startswith('samp_frac_')]

    def draw(self, iteration: int) -> pd.Series:
        return self.posterior.loc[iteration]

    def summary(self, quantiles: Tuple[float, ...] = (0.05, 0.5, 0.95)) -> pd.DataFrame:
        """Posterior mean, sd and quantiles for every estimated quantity."""
        summary = pd.concat([
            self.posterior.mean().rename('mean'),
            self.posterior.std().rename('sd'),
            self.posterior.quantile(list(quantiles)).T.rename(columns=lambda q: f'q{100 * q:g}'),
        ], axis=1)
        if self.diagnostics is not None:
            summary = summary.join(self.diagnostics[['n_eff', 'r_hat']], how='left')
        return summary

    def model_data(self) -> pd.DataFrame:
        """Per day model inputs in long format."""
        n_total = len(self.f_seg)
        data = pd.DataFrame({
            'day': np.arange(n_total),
            'cases': np.pad(self.daily_cases, (0, n_total - self.n_days), constant_values=np.nan),
            'f_seg': self.f_seg,
            'samp_frac_fixed': self.samp_frac_fixed,
        })
        if self.samp_frac_seg is not None:
            data['samp_frac_seg'] = self.samp_frac_seg
        return data

    def save(self, fit_root: Union[io.FitRoot, str, Path]) -> None:
        """Writes the fit to a directory."""
        if not isinstance(fit_root, io.FitRoot):
            fit_root = io.FitRoot(fit_root)
        io.touch(fit_root)
        settings = {
            'n_days': self.n_days,
            'settings': self.settings.to_dict(),
            'pars': self.pars.to_dict(),
            'priors': self.priors.to_dict(),
        }
        io.dump(settings, fit_root.settings())
        io.dump(self.model_data(), fit_root.model_data())
        io.dump(self.posterior.reset_index(), fit_root.posterior())
        if self.diagnostics is not None:
            io.dump(self.diagnostics.reset_index(), fit_root.diagnostics())

    @classmethod
    def load(cls, fit_root: Union[io.FitRoot, str, Path]) -> SeirFit:
        """Reads a fit written by :meth:`save`."""
        if not isinstance(fit_root, io.FitRoot):
            fit_root = io.FitRoot(fit_root)
        settings = io.load(fit_root.settings())
        model_data = io.load(fit_root.model_data())
        posterior = io.load(fit_root.posterior()).set_index('iteration')
        diagnostics = None
        if io.exists(fit_root.diagnostics()):
            diagnostics = io.load(fit_root.diagnostics()).set_index('parameter')

        n_days = settings['n_days']
        samp_frac_seg = None
        if 'samp_frac_seg' in model_data:
            samp_frac_seg = model_data['samp_frac_seg'].to_numpy()
        return cls(
            posterior=posterior,
            daily_cases=model_data['cases'].to_numpy()[:n_days],
            f_seg=model_data['f_seg'].to_numpy(),
            samp_frac_fixed=model_data['samp_frac_fixed'].to_numpy(),
            samp_frac_seg=samp_frac_seg,
            settings=SeirSettings(**settings['settings']),
            pars=FixedParameters(**settings['pars']),
            priors=Priors(**settings['priors']),
            diagnostics=diagnostics,
        )

    def __repr__(self):
        return (f'{type(self).__name__}(fit_type={self.settings.fit_type}, n_days={self.n_days}, '
                f'n_segments={self.n_segments}, n_draws={len(self.posterior)})')
