import numpy as np
import pytest

from covidseir.model import (
    fit_seir,
    project_seir,
)
from covidseir.model.inference import (
    build_model_inputs,
    posterior_sites,
    solve_onsets,
)
from covidseir.model.observation import expected_cases

from conftest import N_DAYS, TRUTH, make_fit


def test_differentiable_solver_matches_projection(truth_posterior):
    fit = make_fit(truth_posterior.iloc[:1])
    inputs = build_model_inputs(fit.daily_cases, fit.f_seg, fit.samp_frac_fixed, None,
                                fit.settings, fit.pars, fit.priors)
    onsets = solve_onsets(TRUTH['R0'], TRUTH['i0'], TRUTH['e'], np.array([TRUTH['f_1']]),
                          TRUTH['start_decline'], TRUTH['end_decline'], inputs)
    mu = expected_cases(np.asarray(onsets), fit.samp_frac_fixed[:N_DAYS], np.asarray(inputs.pmf))

    projection = project_seir(fit, forecast_days=0)
    np.testing.assert_allclose(mu, projection['mu'], rtol=1e-6)


def test_model_inputs_mask_missing_days(truth_posterior, simulated_cases):
    cases = simulated_cases.copy()
    cases[[4, 9]] = np.nan
    fit = make_fit(truth_posterior, daily_cases=cases)
    inputs = build_model_inputs(cases, fit.f_seg, fit.samp_frac_fixed, None, fit.settings, fit.pars, fit.priors)
    assert not np.asarray(inputs.observed)[[4, 9]].any()
    assert np.asarray(inputs.observed).sum() == N_DAYS - 2
    assert np.all(np.isfinite(np.asarray(inputs.cases)))
    assert inputs.n_segments == 1
    assert inputs.n_samp_frac == 0


def test_posterior_sites(truth_posterior):
    fit = make_fit(truth_posterior, obs_model='Poisson', samp_frac_type='rw')
    assert posterior_sites(fit.settings) == ['R0', 'i0', 'e', 'start_decline', 'end_decline', 'f', 'samp_frac']


@pytest.mark.parametrize('kwargs', [
    {'daily_cases': -np.ones(N_DAYS)},
    {'daily_cases': np.full(N_DAYS, np.nan)},
    {'daily_cases': np.ones((N_DAYS, 2))},
    {'f_seg': np.ones(N_DAYS - 3, dtype=int)},
    {'obs_model': 'NB1'},
    {'fit_type': 'MCMC'},
    {'samp_frac_type': 'weekly'},
    {'samp_frac_type': 'segmented'},
    {'N_pop': 0},
    {'samp_frac_fixed': None},
    {'samp_frac_fixed': 1.5},
    {'samp_frac_type': 'segmented', 'samp_frac_seg': np.zeros(N_DAYS)},
])
def test_fit_seir_invalid_arguments(simulated_cases, kwargs):
    arguments = {'daily_cases': simulated_cases, 'samp_frac_fixed': 0.2, **kwargs}
    with pytest.raises(ValueError):
        fit_seir(**arguments)


class TestFitters:

    def test_optimizing(self, simulated_cases):
        fit = fit_seir(simulated_cases, samp_frac_fixed=0.2, fit_type='optimizing',
                       n_iter=50, optim_steps=1000, learning_rate=0.01, seed=1)
        assert list(fit.posterior.columns) == ['R0', 'i0', 'e', 'start_decline', 'end_decline', 'f_1', 'phi']
        assert len(fit.posterior) == 50
        assert fit.diagnostics is None
        assert fit.settings.fit_type == 'optimizing'

    def test_vb_with_random_walk_sampling_fraction(self, simulated_cases):
        fit = fit_seir(simulated_cases, obs_model='Poisson', samp_frac_type='rw', fit_type='VB',
                       n_iter=40, optim_steps=300, seed=2)
        n_weeks = int(np.ceil(N_DAYS / 7))
        assert fit.samp_frac_columns() == [f'samp_frac_{k}' for k in range(1, n_weeks + 1)]
        assert 'phi' not in fit.posterior
        assert np.isfinite(fit.posterior.to_numpy()).all()
        assert fit.posterior[fit.samp_frac_columns()].gt(0).all().all()
        assert fit.posterior[fit.samp_frac_columns()].lt(1).all().all()

    def test_nuts(self, simulated_cases):
        fit = fit_seir(simulated_cases, samp_frac_fixed=0.2, obs_model='Poisson',
                       chains=2, n_iter=20, seed=3)
        # Half of each chain is warmup.
        assert len(fit.posterior) == 20
        assert {'mean', 'sd', 'n_eff', 'r_hat'}.issubset(fit.diagnostics.columns)
        assert {'R0', 'e', 'f_1'}.issubset(fit.diagnostics.index)
        assert 'r_hat' in fit.summary()

    def test_fit_projects(self, simulated_cases):
        fit = fit_seir(simulated_cases, samp_frac_fixed=0.2, fit_type='VB',
                       n_iter=10, optim_steps=200, seed=4)
        projection = project_seir(fit, forecast_days=5)
        assert len(projection) == 10 * (N_DAYS + 5)
