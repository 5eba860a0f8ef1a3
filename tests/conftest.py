import numpy as np
import pandas
import pytest

from covidseir.model import (
    FixedParameters,
    Priors,
    SeirFit,
    SeirSettings,
    make_f_seg,
    project_seir,
)

N_DAYS = 42
N_DRAWS = 6
TRUTH = {
    'R0': 2.6,
    'i0': 8.0,
    'e': 0.8,
    'start_decline': 15.0,
    'end_decline': 22.0,
    'phi': 20.0,
    'f_1': 0.4,
}


def make_fit(posterior: pandas.DataFrame,
             daily_cases: np.ndarray = None,
             obs_model: str = 'NB2',
             samp_frac_type: str = 'fixed',
             samp_frac_seg: np.ndarray = None,
             f_seg: np.ndarray = None,
             n_days: int = N_DAYS) -> SeirFit:
    """Builds a fit from hand picked draws, skipping the sampler."""
    if daily_cases is None:
        daily_cases = np.ones(n_days)
    if f_seg is None:
        f_seg = make_f_seg(n_days)
    posterior = posterior.copy()
    posterior.index.name = 'iteration'
    return SeirFit(
        posterior=posterior,
        daily_cases=daily_cases,
        f_seg=f_seg,
        samp_frac_fixed=np.full(len(f_seg), 0.2),
        samp_frac_seg=samp_frac_seg,
        settings=SeirSettings(N_pop=5.1e6, obs_model=obs_model, samp_frac_type=samp_frac_type),
        pars=FixedParameters(),
        priors=Priors(),
    )


@pytest.fixture
def truth_posterior():
    "A posterior holding the true parameters in every draw."
    return pandas.DataFrame([TRUTH] * N_DRAWS)


@pytest.fixture
def jittered_posterior():
    "A posterior with spread around the true parameters."
    rng = np.random.default_rng(12345)
    posterior = pandas.DataFrame([TRUTH] * N_DRAWS)
    posterior['R0'] *= rng.uniform(0.9, 1.1, N_DRAWS)
    posterior['f_1'] *= rng.uniform(0.8, 1.2, N_DRAWS)
    posterior['e'] = rng.uniform(0.75, 0.85, N_DRAWS)
    return posterior


@pytest.fixture
def simulated_cases(truth_posterior):
    "Reported cases drawn around the expected cases of the true parameters."
    fit = make_fit(truth_posterior.iloc[:1])
    projection = project_seir(fit, forecast_days=0)
    rng = np.random.default_rng(42)
    return rng.poisson(projection['mu'].to_numpy()).astype(float)


@pytest.fixture
def fit(jittered_posterior, simulated_cases):
    return make_fit(jittered_posterior, daily_cases=simulated_cases)


@pytest.fixture
def case_data(simulated_cases):
    "Dated raw case data as it would be read from a csv."
    return pandas.DataFrame({
        'date': pandas.date_range('2020-03-01', periods=len(simulated_cases)).strftime('%Y-%m-%d'),
        'value': simulated_cases,
    })
