import numpy as np
import pandas
import pytest

from covidseir.model import (
    compute_residuals,
    get_doubling_time,
    get_growth_rate,
    get_threshold,
    project_seir,
)

from conftest import N_DAYS, make_fit


def test_growth_rate_of_exponential():
    days = np.arange(20)
    projection = pandas.DataFrame({
        'day': np.tile(days, 2),
        'data_type': np.tile(np.where(days < 10, 'observed', 'forecast'), 2),
        'mu': np.concatenate([np.exp(0.1 * days), 5 * np.exp(-0.05 * days)]),
        'iteration': np.repeat([0, 1], 20),
    })
    growth_rate = get_growth_rate(projection)
    np.testing.assert_allclose(growth_rate.loc[[0, 1]], [0.1, -0.05])


def test_growth_rate_needs_forecast():
    projection = pandas.DataFrame({'day': [0, 1], 'data_type': ['observed'] * 2, 'mu': [1., 2.], 'iteration': 0})
    with pytest.raises(ValueError):
        get_growth_rate(projection)


def test_threshold_near_analytic_value(truth_posterior):
    fit = make_fit(truth_posterior.iloc[:2])
    threshold = get_threshold(fit, forecast_days=30)
    assert list(threshold.index) == [0, 1]
    # R0 * ((1 - e) + f^2 * e) = 1 at f ~ 0.48.
    assert threshold.between(0.35, 0.65).all()


def test_threshold_needs_two_fs(fit):
    with pytest.raises(ValueError):
        get_threshold(fit, fs=[0.5])
    with pytest.raises(ValueError):
        get_threshold(fit, fs=[0.5, 0.5])


def test_doubling_time_sign(truth_posterior):
    fit = make_fit(truth_posterior.iloc[:2])
    halving = get_doubling_time(fit, forecast_days=30)
    doubling = get_doubling_time(fit, forecast_days=30, f_fixed=0.9)
    assert (halving < 0).all()
    assert (doubling > 0).all()
    assert doubling.name == 'doubling_time'


class TestResiduals:

    @pytest.fixture
    def poisson_fit(self, truth_posterior, simulated_cases):
        return make_fit(truth_posterior.drop(columns='phi'), daily_cases=simulated_cases, obs_model='Poisson')

    def test_raw_residuals(self, poisson_fit):
        projection = project_seir(poisson_fit, forecast_days=5)
        observed = poisson_fit.daily_cases.copy()
        observed[5] = np.nan
        residuals = compute_residuals(projection, observed)
        assert list(residuals.columns) == ['day', 'observed', 'mu', 'residual']
        assert len(residuals) == N_DAYS - 1
        assert 5 not in residuals['day'].tolist()
        np.testing.assert_allclose(residuals['residual'], residuals['observed'] - residuals['mu'])

    def test_quantile_residuals_are_standard_normal(self, poisson_fit):
        projection = project_seir(poisson_fit, forecast_days=0)
        residuals = compute_residuals(projection, poisson_fit.daily_cases, type='quantile', seed=3)
        assert np.isfinite(residuals['residual']).all()
        assert abs(residuals['residual'].mean()) < 0.6
        assert 0.5 < residuals['residual'].std() < 1.6

    def test_invalid(self, poisson_fit):
        projection = project_seir(poisson_fit, forecast_days=0)
        with pytest.raises(ValueError):
            compute_residuals(projection, poisson_fit.daily_cases, type='pearson')
        with pytest.raises(ValueError):
            compute_residuals(projection, np.ones(N_DAYS + 1))


def test_threshold_undefined_for_flat_growth(fit, mocker):
    rates = iter([
        pandas.Series([0.1, 0.05], index=[0, 1]),
        pandas.Series([-0.1, 0.05], index=[0, 1]),
    ])
    mocker.patch('covidseir.model.threshold.project_seir')
    mocker.patch('covidseir.model.threshold.get_growth_rate', side_effect=lambda projection: next(rates))
    threshold = get_threshold(fit, fs=[0.3, 0.8])
    assert threshold.loc[0] == pytest.approx(0.55)
    assert np.isnan(threshold.loc[1])
