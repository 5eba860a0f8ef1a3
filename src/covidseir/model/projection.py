import functools
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

from loguru import logger
import numpy as np
import pandas as pd

from covidseir.lib import (
    math,
    ode,
    parallel,
)
from covidseir.lib.ode import (
    PARAMETERS,
    COMPARTMENTS_NAMES,
)
from covidseir.model.containers import (
    SeirFit,
)
from covidseir.model.contact import (
    contact_fraction,
)
from covidseir.model.observation import (
    expected_cases,
    sample_observations,
    sampling_fraction,
)


class ProjectionInputs(NamedTuple):
    """Draw independent inputs shared by every projected draw."""
    n_days: int
    n_total: int
    f_seg: np.ndarray
    samp_frac_fixed: np.ndarray
    samp_frac_seg: Optional[np.ndarray]
    t_params: np.ndarray
    pmf: np.ndarray
    f_override: Optional[np.ndarray]
    f_multi: Optional[np.ndarray]
    f_multi_seg: int
    f_fixed_start: int
    imported: np.ndarray
    return_states: bool


def _extend_to(values: np.ndarray, n_total: int) -> np.ndarray:
    """Truncates or carries the last value of a per day vector forward to ``n_total`` days."""
    values = np.asarray(values)
    if values.size >= n_total:
        return values[:n_total]
    return np.concatenate([values, np.full(n_total - values.size, values[-1], dtype=values.dtype)])


def _per_day_override(values, n_days: int, name: str) -> np.ndarray:
    values = np.atleast_1d(np.asarray(values, dtype=float))
    if values.size == 1:
        return np.full(n_days, values[0])
    if values.size != n_days:
        raise ValueError(f'{name} must be a scalar or have one entry per day from f_fixed_start '
                         f'({n_days}). Got {values.size}.')
    return values


def build_projection_inputs(fit: SeirFit,
                            forecast_days: int,
                            f_fixed_start: Optional[int] = None,
                            f_fixed: Union[float, Sequence[float]] = None,
                            f_multi: Union[float, Sequence[float]] = None,
                            f_multi_seg: Optional[int] = None,
                            imported_cases: float = 0.,
                            imported_window: int = 1,
                            return_states: bool = False) -> ProjectionInputs:
    if forecast_days < 0:
        raise ValueError(f'forecast_days must be non-negative. Got {forecast_days}.')
    if f_fixed is not None and f_multi is not None:
        raise ValueError('Only one of f_fixed and f_multi may be provided.')
    if imported_cases < 0:
        raise ValueError(f'imported_cases must be non-negative. Got {imported_cases}.')
    if imported_window < 1:
        raise ValueError(f'imported_window must be at least one day. Got {imported_window}.')

    n_days = fit.n_days
    n_total = n_days + forecast_days
    f_fixed_start = n_days if f_fixed_start is None else int(f_fixed_start)
    if (f_fixed is not None or f_multi is not None) and not 0 < f_fixed_start < n_total:
        raise ValueError(f'f_fixed_start must be a day between 1 and {n_total - 1}. Got {f_fixed_start}.')

    f_override = None
    if f_fixed is not None:
        f_override = _per_day_override(f_fixed, n_total - f_fixed_start, 'f_fixed')
        if np.any(f_override < 0):
            raise ValueError('f_fixed must be non-negative.')
    if f_multi is not None:
        f_multi = _per_day_override(f_multi, n_total - f_fixed_start, 'f_multi')
    f_multi_seg = fit.n_segments if f_multi_seg is None else int(f_multi_seg)
    if not 1 <= f_multi_seg <= fit.n_segments:
        raise ValueError(f'f_multi_seg must be a segment between 1 and {fit.n_segments}. Got {f_multi_seg}.')

    imported = np.zeros(n_total)
    imported[n_days:n_days + imported_window] = imported_cases / imported_window

    _, t_params = ode.make_time_grids(n_total, fit.settings.time_increment)
    samp_frac_seg = None if fit.samp_frac_seg is None else _extend_to(fit.samp_frac_seg, n_total)
    return ProjectionInputs(
        n_days=n_days,
        n_total=n_total,
        f_seg=_extend_to(fit.f_seg, n_total),
        samp_frac_fixed=_extend_to(fit.samp_frac_fixed, n_total),
        samp_frac_seg=samp_frac_seg,
        t_params=t_params,
        pmf=math.weibull_delay_pmf(fit.settings.days_back, fit.settings.delay_shape, fit.settings.delay_scale),
        f_override=f_override,
        f_multi=f_multi,
        f_multi_seg=f_multi_seg,
        f_fixed_start=f_fixed_start,
        imported=imported,
        return_states=return_states,
    )


def contact_path(draw: pd.Series, fit: SeirFit, inputs: ProjectionInputs) -> np.ndarray:
    """Contact fraction on the half step grid for a single posterior draw."""
    f_s = draw[fit.f_columns()].to_numpy(dtype=float)
    f = contact_fraction(inputs.t_params, inputs.f_seg, f_s,
                         draw['start_decline'], draw['end_decline'], fit.pars.f0)
    day = np.minimum(np.floor(inputs.t_params).astype(int), inputs.n_total - 1)
    overridden = day >= inputs.f_fixed_start
    if inputs.f_override is not None:
        f[overridden] = inputs.f_override[day[overridden] - inputs.f_fixed_start]
    elif inputs.f_multi is not None:
        f[overridden] = f_s[inputs.f_multi_seg - 1] * inputs.f_multi[day[overridden] - inputs.f_fixed_start]
    return f


def _project_draw(draw_info: Tuple[int, pd.Series, int],
                  fit: SeirFit,
                  inputs: ProjectionInputs) -> pd.DataFrame:
    iteration, draw, seed = draw_info
    pars = fit.pars
    n_total = inputs.n_total

    parameters = np.zeros((inputs.t_params.size, len(PARAMETERS)))
    parameters[:, PARAMETERS.beta] = pars.beta(draw['R0'])
    parameters[:, PARAMETERS.N] = fit.settings.N_pop
    parameters[:, PARAMETERS.D] = pars.D
    parameters[:, PARAMETERS.k1] = pars.k1
    parameters[:, PARAMETERS.k2] = pars.k2
    parameters[:, PARAMETERS.q] = pars.q
    parameters[:, PARAMETERS.ud] = pars.ud
    parameters[:, PARAMETERS.ur] = pars.ur_from_e(draw['e'])
    f_half = contact_path(draw, fit, inputs)
    parameters[:, PARAMETERS.f] = f_half
    day = np.minimum(np.floor(inputs.t_params).astype(int), n_total - 1)
    parameters[:, PARAMETERS.imported] = inputs.imported[day]

    initial_condition = ode.make_initial_condition(fit.settings.N_pop, draw['i0'], draw['e'])
    states, onsets = ode.run_ode_model(initial_condition, parameters, n_total, fit.settings.time_increment)

    samp_frac = sampling_fraction(
        fit.settings.samp_frac_type, n_total, inputs.samp_frac_fixed, inputs.samp_frac_seg,
        draw[fit.samp_frac_columns()].to_numpy(dtype=float),
    )
    mu = expected_cases(onsets, samp_frac, inputs.pmf)
    phi = draw['phi'] if 'phi' in draw.index else np.nan
    rng = np.random.default_rng(seed)

    days = np.arange(n_total)
    result = pd.DataFrame({
        'day': days,
        'data_type': np.where(days < inputs.n_days, 'observed', 'forecast'),
        'mu': mu,
        'y': sample_observations(mu, np.full(n_total, phi), rng),
        'phi': phi,
        # Contact fraction at the start of each day.
        'f': f_half[::2 * ode.steps_per_day(fit.settings.time_increment)][:n_total],
        'samp_frac': samp_frac,
        'iteration': iteration,
    })
    if inputs.return_states:
        states = pd.DataFrame(states[:, :len(COMPARTMENTS_NAMES)], columns=COMPARTMENTS_NAMES)
        result = pd.concat([result, states], axis=1)
    return result


def select_iterations(fit: SeirFit, iterations: Optional[Sequence[int]]) -> List[int]:
    if iterations is None:
        return fit.iterations
    iterations = list(iterations)
    missing = set(iterations).difference(fit.iterations)
    if missing:
        raise ValueError(f'Iterations {sorted(missing)} are not in the posterior.')
    return iterations


def project_seir(fit: SeirFit,
                 forecast_days: int = 100,
                 f_fixed_start: Optional[int] = None,
                 f_fixed: Union[float, Sequence[float]] = None,
                 f_multi: Union[float, Sequence[float]] = None,
                 f_multi_seg: Optional[int] = None,
                 iterations: Optional[Sequence[int]] = None,
                 return_states: bool = False,
                 imported_cases: float = 0.,
                 imported_window: int = 1,
                 num_cores: int = 1,
                 seed: Optional[int] = None,
                 progress_bar: bool = False) -> pd.DataFrame:
    """Projects the fitted model forward for each posterior draw.

    Parameters
    ----------
    fit
        The fitted model.
    forecast_days
        Number of days to project past the data.
    f_fixed_start
        First day, counted from the first data day, on which ``f_fixed`` or
        ``f_multi`` applies. Defaults to the first forecast day.
    f_fixed
        Contact fraction from ``f_fixed_start`` on, as a scalar or one value
        per day.
    f_multi
        Multipliers on the estimated contact fraction of segment
        ``f_multi_seg`` from ``f_fixed_start`` on, as a scalar or one value
        per day.
    f_multi_seg
        Segment whose contact fraction ``f_multi`` scales. Defaults to the
        last segment.
    iterations
        Posterior draws to project. Defaults to all of them.
    return_states
        Whether to include the compartment states at the start of each day.
    imported_cases
        Exposures added to the non-distancing group, spread evenly over
        ``imported_window`` days from the first forecast day.
    imported_window
        Number of days over which imported cases arrive.
    num_cores
        Number of processes to project draws with.
    seed
        Seed for the observation draws.
    progress_bar
        Whether to display a progress bar.

    Returns
    -------
    pd.DataFrame
        One row per draw and day with the expected cases ``mu``, a draw of
        reported cases ``y``, the dispersion ``phi``, the contact fraction
        ``f`` and the sampling fraction.

    """
    inputs = build_projection_inputs(
        fit, forecast_days,
        f_fixed_start=f_fixed_start,
        f_fixed=f_fixed,
        f_multi=f_multi,
        f_multi_seg=f_multi_seg,
        imported_cases=imported_cases,
        imported_window=imported_window,
        return_states=return_states,
    )
    iterations = select_iterations(fit, iterations)
    seeds = np.random.default_rng(seed).integers(0, 2 ** 32 - 1, size=len(iterations))
    arg_list = [(iteration, fit.draw(iteration), draw_seed) for iteration, draw_seed in zip(iterations, seeds)]

    logger.debug(f'Projecting {len(iterations)} draws {forecast_days} days past the data.')
    runner = functools.partial(_project_draw, fit=fit, inputs=inputs)
    results = parallel.run_parallel(
        runner,
        arg_list=arg_list,
        num_cores=num_cores,
        progress_bar=progress_bar,
        description='Projecting draws',
    )
    return pd.concat(results, ignore_index=True)
