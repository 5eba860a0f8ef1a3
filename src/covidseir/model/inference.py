"""Bayesian fit of the social distancing SEIR model.

The model is expressed in numpyro. The ode system is integrated with a
fixed step RK4 in :mod:`jax` so the posterior can be explored with
gradient based methods: MAP optimization with a Laplace approximation,
mean-field variational Bayes and NUTS.

"""
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

import jax
from jax import lax
import jax.numpy as jnp
from loguru import logger
import numpy as np
import numpyro
from numpyro import diagnostics as numpyro_diagnostics
import numpyro.distributions as dist
from numpyro import optim
from numpyro.infer import MCMC, NUTS, SVI, Predictive, Trace_ELBO, init_to_median
from numpyro.infer.autoguide import AutoLaplaceApproximation, AutoNormal
import pandas as pd

from covidseir.lib import (
    math,
    ode,
)
from covidseir.lib.ode import (
    COMPARTMENTS,
    TRACKING_COMPARTMENTS,
    GROUP_SIZE,
)
from covidseir.model.containers import (
    FixedParameters,
    Priors,
    SeirFit,
    SeirSettings,
)
from covidseir.model.contact import (
    contact_fraction,
    make_f_seg,
    validate_f_seg,
)
from covidseir.model.observation import (
    expected_cases,
    n_samp_frac_parameters,
    sampling_fraction,
)

# Floor on expected cases so the likelihood stays defined early in the epidemic.
MIN_EXPECTED_CASES = 1e-8


class ModelInputs(NamedTuple):
    """Everything the numpyro model needs besides the parameters."""
    cases: jnp.ndarray
    observed: jnp.ndarray
    f_seg: jnp.ndarray
    t_params: jnp.ndarray
    pmf: jnp.ndarray
    samp_frac_fixed: jnp.ndarray
    samp_frac_seg: Optional[jnp.ndarray]
    n_days: int
    steps_per_day: int
    n_segments: int
    n_samp_frac: int
    settings: SeirSettings
    pars: FixedParameters
    priors: Priors


############################
# Differentiable ode model #
############################

def _group_system(group_y: jnp.ndarray, force_of_infection, pars: FixedParameters) -> jnp.ndarray:
    s = group_y[COMPARTMENTS.S]
    e1 = group_y[COMPARTMENTS.E1]
    e2 = group_y[COMPARTMENTS.E2]
    i = group_y[COMPARTMENTS.I]
    q_ = group_y[COMPARTMENTS.Q]

    new_e = force_of_infection * s
    return jnp.stack([
        -new_e,
        new_e - pars.k1 * e1,
        pars.k1 * e1 - pars.k2 * e2,
        pars.k2 * e2 - pars.q * i - i / pars.D,
        pars.q * i - q_ / pars.D,
        i / pars.D + q_ / pars.D,
    ])


def _system(y: jnp.ndarray, f, beta, ur, n_total: float, pars: FixedParameters) -> jnp.ndarray:
    infectious = (
        y[COMPARTMENTS.I] + y[COMPARTMENTS.E2]
        + f * (y[COMPARTMENTS.Id] + y[COMPARTMENTS.E2d])
    )
    force_of_infection = beta * infectious / n_total
    free = _group_system(y[:GROUP_SIZE], force_of_infection, pars)
    distancing = _group_system(y[GROUP_SIZE:2 * GROUP_SIZE], f * force_of_infection, pars)
    moving = pars.ud * y[:GROUP_SIZE] - ur * y[GROUP_SIZE:2 * GROUP_SIZE]
    onsets = pars.k2 * (y[COMPARTMENTS.E2] + y[COMPARTMENTS.E2d])
    return jnp.concatenate([free - moving, distancing + moving, jnp.atleast_1d(onsets)])


def _initial_condition(n_total: float, i0, e) -> jnp.ndarray:
    infections = i0 * jnp.asarray(ode.INITIAL_INFECTION_SPLIT)
    susceptible = n_total - i0
    groups = []
    for share in [1 - e, e]:
        groups.append(share * jnp.concatenate([
            jnp.atleast_1d(susceptible), infections, jnp.zeros(2),
        ]))
    return jnp.concatenate(groups + [jnp.zeros(len(TRACKING_COMPARTMENTS))])


def solve_onsets(r0, i0, e, f_s, start_decline, end_decline, inputs: ModelInputs) -> jnp.ndarray:
    """Integrates the system over the data period and returns daily onsets."""
    pars = inputs.pars
    n_total = inputs.settings.N_pop
    dt = inputs.settings.time_increment
    beta = pars.beta(r0)
    ur = pars.ur_from_e(e)
    f_half = contact_fraction(inputs.t_params, inputs.f_seg, f_s,
                              start_decline, end_decline, pars.f0, xp=jnp)

    def rk4_step(y, f_step):
        f_start, f_mid, f_end = f_step
        k1 = _system(y, f_start, beta, ur, n_total, pars)
        k2 = _system(y + dt / 2 * k1, f_mid, beta, ur, n_total, pars)
        k3 = _system(y + dt / 2 * k2, f_mid, beta, ur, n_total, pars)
        k4 = _system(y + dt * k3, f_end, beta, ur, n_total, pars)
        y_next = y + dt / 6 * (k1 + 2 * k2 + 2 * k3 + k4)
        return y_next, y_next[TRACKING_COMPARTMENTS.NewOnset]

    y0 = _initial_condition(n_total, i0, e)
    _, cumulative_onsets = lax.scan(rk4_step, y0, (f_half[:-1:2], f_half[1::2], f_half[2::2]))
    cumulative_onsets = jnp.concatenate([
        jnp.atleast_1d(y0[TRACKING_COMPARTMENTS.NewOnset]), cumulative_onsets,
    ])
    return jnp.diff(cumulative_onsets[::inputs.steps_per_day])


#################
# numpyro model #
#################

def _beta_prior(mean_sd: Tuple[float, float]) -> dist.Beta:
    return dist.Beta(*math.beta_shape_parameters(*mean_sd))


def _sample_sampling_fraction(inputs: ModelInputs) -> jnp.ndarray:
    samp_frac_type = inputs.settings.samp_frac_type
    prior = _beta_prior(inputs.priors.samp_frac_prior)
    if samp_frac_type == 'fixed':
        samp_frac = None
    elif samp_frac_type in ['estimated', 'segmented']:
        with numpyro.plate('samp_frac_segments', inputs.n_samp_frac):
            samp_frac = numpyro.sample('samp_frac', prior)
    else:  # Weekly random walk on the logit scale.
        start = numpyro.sample('samp_frac_start', prior)
        logit_path = jnp.atleast_1d(math.logit(start, xp=jnp))
        if inputs.n_samp_frac > 1:
            with numpyro.plate('samp_frac_steps', inputs.n_samp_frac - 1):
                steps = numpyro.sample('samp_frac_step', dist.Normal(0., 1.))
            logit_path = jnp.concatenate([logit_path, logit_path[0] + jnp.cumsum(inputs.settings.rw_sigma * steps)])
        samp_frac = numpyro.deterministic('samp_frac', math.expit(logit_path, xp=jnp))

    return sampling_fraction(samp_frac_type, inputs.n_days, inputs.samp_frac_fixed,
                             inputs.samp_frac_seg, samp_frac, xp=jnp)


def seir_model(inputs: ModelInputs):
    priors = inputs.priors
    r0 = numpyro.sample('R0', dist.LogNormal(*priors.R0_prior))
    i0 = numpyro.sample('i0', dist.LogNormal(*priors.i0_prior))
    e = numpyro.sample('e', _beta_prior(priors.e_prior))
    start_decline = numpyro.sample('start_decline', dist.LogNormal(*priors.start_decline_prior))
    end_decline = numpyro.sample('end_decline', dist.LogNormal(*priors.end_decline_prior))
    with numpyro.plate('segments', inputs.n_segments):
        f_s = numpyro.sample('f', _beta_prior(priors.f_prior))

    samp_frac = _sample_sampling_fraction(inputs)
    onsets = solve_onsets(r0, i0, e, f_s, start_decline, end_decline, inputs)
    mu = jnp.maximum(expected_cases(onsets, samp_frac, inputs.pmf, xp=jnp), MIN_EXPECTED_CASES)

    if inputs.settings.obs_model == 'NB2':
        inv_sqrt_phi = numpyro.sample('inv_sqrt_phi', dist.HalfNormal(priors.phi_prior))
        phi = numpyro.deterministic('phi', 1 / inv_sqrt_phi ** 2)
        likelihood = dist.NegativeBinomial2(mu, phi)
    else:
        likelihood = dist.Poisson(mu)

    with numpyro.handlers.mask(mask=inputs.observed):
        numpyro.sample('y', likelihood, obs=inputs.cases)


def posterior_sites(settings: SeirSettings) -> List[str]:
    """Sites reported in the posterior, in column order."""
    sites = ['R0', 'i0', 'e', 'start_decline', 'end_decline', 'f']
    if settings.obs_model == 'NB2':
        sites.append('phi')
    if settings.samp_frac_type != 'fixed':
        sites.append('samp_frac')
    return sites


###########
# Fitters #
###########

def _run_nuts(inputs: ModelInputs, rng_key, chains: int, n_iter: int,
              progress_bar: bool, **_) -> Tuple[Dict[str, np.ndarray], pd.DataFrame]:
    num_warmup = n_iter // 2
    kernel = NUTS(seir_model, init_strategy=init_to_median(num_samples=15))
    mcmc = MCMC(
        kernel,
        num_warmup=num_warmup,
        num_samples=n_iter - num_warmup,
        num_chains=chains,
        chain_method='sequential',
        progress_bar=progress_bar,
    )
    mcmc.run(rng_key, inputs, extra_fields=('diverging',))
    divergences = int(np.asarray(mcmc.get_extra_fields()['diverging']).sum())
    if divergences:
        logger.warning(f'{divergences} divergent transitions after warmup.')

    sites = posterior_sites(inputs.settings)
    grouped = {k: np.asarray(v) for k, v in mcmc.get_samples(group_by_chain=True).items() if k in sites}
    diagnostics = _summarize_chains(grouped)
    bad_rhat = diagnostics.index[diagnostics['r_hat'] > 1.05].tolist()
    if bad_rhat:
        logger.warning(f'Chains have not mixed for {bad_rhat} (r_hat > 1.05).')
    samples = {k: v.reshape((-1,) + v.shape[2:]) for k, v in grouped.items()}
    return samples, diagnostics


def _run_svi(guide_class: Callable, inputs: ModelInputs, rng_key, n_iter: int,
             optim_steps: int, learning_rate: float, progress_bar: bool, **_):
    guide = guide_class(seir_model, init_loc_fn=init_to_median(num_samples=15))
    svi = SVI(seir_model, guide, optim.Adam(learning_rate), Trace_ELBO())
    fit_key, draw_key = jax.random.split(rng_key)
    result = svi.run(fit_key, optim_steps, inputs, progress_bar=progress_bar)

    losses = np.asarray(result.losses)
    if not np.isfinite(losses[-1]):
        raise RuntimeError(f'{guide_class.__name__} optimization diverged. '
                           'Try a smaller learning rate or more informative priors.')
    logger.debug(f'Final loss after {optim_steps} steps: {losses[-1]:.2f}.')

    predictive = Predictive(seir_model, guide=guide, params=result.params,
                            num_samples=n_iter, return_sites=posterior_sites(inputs.settings))
    samples = {k: np.asarray(v) for k, v in predictive(draw_key, inputs).items()}
    return samples, None


def _run_optimizing(inputs: ModelInputs, rng_key, **kwargs):
    return _run_svi(AutoLaplaceApproximation, inputs, rng_key, **kwargs)


def _run_vb(inputs: ModelInputs, rng_key, **kwargs):
    return _run_svi(AutoNormal, inputs, rng_key, **kwargs)


FITTERS = {
    'NUTS': _run_nuts,
    'VB': _run_vb,
    'optimizing': _run_optimizing,
}


def _summarize_chains(grouped: Dict[str, np.ndarray]) -> pd.DataFrame:
    """Per parameter mean, sd, effective sample size and r_hat."""
    summary = numpyro_diagnostics.summary(grouped, group_by_chain=True)
    rows = []
    for site, stats in summary.items():
        names = _column_names(site, grouped[site].ndim > 2, np.atleast_1d(stats['mean']).size)
        for i, name in enumerate(names):
            rows.append({
                'parameter': name,
                'mean': np.atleast_1d(stats['mean'])[i],
                'sd': np.atleast_1d(stats['std'])[i],
                'n_eff': np.atleast_1d(stats['n_eff'])[i],
                'r_hat': np.atleast_1d(stats['r_hat'])[i],
            })
    return pd.DataFrame(rows).set_index('parameter')


def _column_names(site: str, is_vector: bool, size: int) -> List[str]:
    if is_vector:
        return [f'{site}_{k}' for k in range(1, size + 1)]
    return [site]


def _to_posterior(samples: Dict[str, np.ndarray], sites: Sequence[str]) -> pd.DataFrame:
    columns = {}
    for site in sites:
        values = np.asarray(samples[site])
        if values.ndim == 1:
            columns[site] = values
        else:
            for name, column in zip(_column_names(site, True, values.shape[1]), values.T):
                columns[name] = column
    posterior = pd.DataFrame(columns)
    posterior.index.name = 'iteration'
    return posterior


##############
# Public api #
##############

def _validate_cases(daily_cases) -> np.ndarray:
    cases = np.asarray(daily_cases, dtype=float)
    if cases.ndim != 1:
        raise ValueError(f'daily_cases must be one dimensional. Got shape {cases.shape}.')
    if cases.size < 2:
        raise ValueError('daily_cases must have at least two days of data.')
    observed = np.isfinite(cases)
    if not observed.any():
        raise ValueError('daily_cases has no observed days.')
    if np.any(cases[observed] < 0):
        raise ValueError('daily_cases must be non-negative.')
    return cases


def _extend(values, n_days: int, n_total: int, name: str) -> np.ndarray:
    """Broadcasts a scalar or carries a data-period vector forward over forecast days."""
    values = np.atleast_1d(np.asarray(values, dtype=float))
    if values.size == 1:
        return np.full(n_total, values[0])
    if values.size == n_days:
        return np.concatenate([values, np.full(n_total - n_days, values[-1])])
    if values.size == n_total:
        return values
    raise ValueError(f'{name} must be a scalar or have {n_days} or {n_total} entries. Got {values.size}.')


def build_model_inputs(cases: np.ndarray,
                       f_seg: np.ndarray,
                       samp_frac_fixed: np.ndarray,
                       samp_frac_seg: Optional[np.ndarray],
                       settings: SeirSettings,
                       pars: FixedParameters,
                       priors: Priors) -> ModelInputs:
    """Packs validated data for the numpyro model. ``NaN`` cases are masked."""
    n_days = cases.size
    _, t_params = ode.make_time_grids(n_days, settings.time_increment)
    pmf = math.weibull_delay_pmf(settings.days_back, settings.delay_shape, settings.delay_scale)
    observed = np.isfinite(cases)
    return ModelInputs(
        cases=jnp.asarray(np.where(observed, cases, 0.)),
        observed=jnp.asarray(observed),
        f_seg=jnp.asarray(f_seg[:n_days]),
        t_params=jnp.asarray(t_params),
        pmf=jnp.asarray(pmf),
        samp_frac_fixed=jnp.asarray(samp_frac_fixed),
        samp_frac_seg=None if samp_frac_seg is None else jnp.asarray(samp_frac_seg),
        n_days=n_days,
        steps_per_day=ode.steps_per_day(settings.time_increment),
        n_segments=int(f_seg.max()),
        n_samp_frac=n_samp_frac_parameters(settings.samp_frac_type, n_days, samp_frac_seg),
        settings=settings,
        pars=pars,
        priors=priors,
    )


def fit_seir(daily_cases,
             obs_model: str = 'NB2',
             forecast_days: int = 0,
             time_increment: float = 0.25,
             samp_frac_fixed: Union[float, Sequence[float]] = None,
             samp_frac_type: str = 'fixed',
             samp_frac_seg: Sequence[int] = None,
             days_back: int = 45,
             R0_prior: Tuple[float, float] = (float(np.log(2.6)), 0.2),
             phi_prior: float = 1.0,
             f_prior: Tuple[float, float] = (0.4, 0.2),
             e_prior: Tuple[float, float] = (0.8, 0.05),
             samp_frac_prior: Tuple[float, float] = (0.4, 0.2),
             start_decline_prior: Tuple[float, float] = (float(np.log(15)), 0.05),
             end_decline_prior: Tuple[float, float] = (float(np.log(22)), 0.05),
             f_seg: Sequence[int] = None,
             i0_prior: Tuple[float, float] = (float(np.log(8)), 1.0),
             N_pop: float = 5.1e6,
             pars: Union[FixedParameters, Dict[str, float]] = None,
             fit_type: str = 'NUTS',
             chains: int = 4,
             n_iter: int = 1000,
             seed: int = 42,
             delay_shape: float = 1.73,
             delay_scale: float = 9.85,
             rw_sigma: float = 0.1,
             optim_steps: int = 4000,
             learning_rate: float = 0.005,
             progress_bar: bool = False) -> SeirFit:
    """Fits the social distancing SEIR model to daily reported cases.

    Parameters
    ----------
    daily_cases
        Daily reported case counts. ``NaN`` marks days left out of the
        likelihood.
    obs_model
        ``NB2`` for a negative binomial observation model or ``Poisson``.
    forecast_days
        Days past the data covered by ``f_seg`` and ``samp_frac_fixed``.
    time_increment
        Step of the ode solver in days.
    samp_frac_fixed
        Fraction of symptomatic cases reported, per day or as a scalar.
        Required when ``samp_frac_type`` is ``fixed``.
    samp_frac_type
        ``fixed``, ``estimated`` (one fraction), ``segmented`` (one fraction
        per ``samp_frac_seg`` id) or ``rw`` (weekly logit random walk).
    samp_frac_seg
        Per day sampling fraction segment ids starting at 1.
    days_back
        Length of the onset-to-report delay kernel in days.
    R0_prior, i0_prior, start_decline_prior, end_decline_prior
        Log-normal priors as ``(log mean, sd)``.
    f_prior, e_prior, samp_frac_prior
        Beta priors as ``(mean, sd)``.
    phi_prior
        Scale of the half-normal prior on ``1 / sqrt(phi)``.
    f_seg
        Per day contact segment ids over data and forecast days. Defaults to
        a single segment after day 0.
    N_pop
        Population size.
    pars
        Fixed parameters, see :class:`FixedParameters`.
    fit_type
        ``NUTS``, ``VB`` or ``optimizing``.
    chains
        Number of NUTS chains.
    n_iter
        NUTS iterations per chain, half of which are warmup. For ``VB`` and
        ``optimizing``, the number of draws from the approximate posterior.
    seed
        Random seed.
    delay_shape, delay_scale
        Weibull onset-to-report delay.
    rw_sigma
        Step sd of the sampling fraction random walk.
    optim_steps, learning_rate
        Settings of the optimizer used by ``VB`` and ``optimizing``.
    progress_bar
        Whether to display sampler progress.

    Returns
    -------
    SeirFit
        The posterior draws with the model inputs.

    """
    settings = SeirSettings(
        N_pop=float(N_pop),
        obs_model=obs_model,
        samp_frac_type=samp_frac_type,
        time_increment=float(time_increment),
        days_back=int(days_back),
        delay_shape=float(delay_shape),
        delay_scale=float(delay_scale),
        rw_sigma=float(rw_sigma),
        forecast_days=int(forecast_days),
        fit_type=fit_type,
    )
    priors = Priors(
        R0_prior=R0_prior,
        i0_prior=i0_prior,
        f_prior=f_prior,
        e_prior=e_prior,
        samp_frac_prior=samp_frac_prior,
        start_decline_prior=start_decline_prior,
        end_decline_prior=end_decline_prior,
        phi_prior=phi_prior,
    )
    if pars is None:
        pars = FixedParameters()
    elif isinstance(pars, dict):
        pars = FixedParameters(**pars)

    cases = _validate_cases(daily_cases)
    n_days = cases.size
    n_total = n_days + settings.forecast_days

    if f_seg is None:
        f_seg = make_f_seg(n_days, forecast_days=settings.forecast_days)
    f_seg = validate_f_seg(f_seg, n_total)

    if samp_frac_fixed is None:
        if samp_frac_type == 'fixed':
            raise ValueError('samp_frac_fixed is required when samp_frac_type is "fixed".')
        samp_frac_fixed = np.full(n_total, np.nan)
    else:
        samp_frac_fixed = _extend(samp_frac_fixed, n_days, n_total, 'samp_frac_fixed')
        if samp_frac_type == 'fixed' and not np.all((samp_frac_fixed > 0) & (samp_frac_fixed <= 1)):
            raise ValueError('samp_frac_fixed must be in (0, 1].')

    if samp_frac_seg is not None:
        samp_frac_seg = _extend(samp_frac_seg, n_days, n_total, 'samp_frac_seg').astype(int)
        if samp_frac_seg.min() < 1:
            raise ValueError('samp_frac_seg ids must start at 1.')
    inputs = build_model_inputs(cases, f_seg, samp_frac_fixed, samp_frac_seg, settings, pars, priors)

    logger.info(f'Fitting {n_days} days of cases with {fit_type} '
                f'({inputs.n_segments} contact segments, {samp_frac_type} sampling fraction).')
    samples, diagnostics = FITTERS[fit_type](
        inputs,
        jax.random.PRNGKey(seed),
        chains=chains,
        n_iter=n_iter,
        optim_steps=optim_steps,
        learning_rate=learning_rate,
        progress_bar=progress_bar,
    )
    posterior = _to_posterior(samples, posterior_sites(settings))
    logger.info(f'Fit complete with {len(posterior)} posterior draws. '
                f'Median R0 {posterior["R0"].median():.2f}.')

    return SeirFit(
        posterior=posterior,
        daily_cases=cases,
        f_seg=f_seg,
        samp_frac_fixed=samp_frac_fixed,
        samp_frac_seg=samp_frac_seg,
        settings=settings,
        pars=pars,
        priors=priors,
        diagnostics=diagnostics,
    )
