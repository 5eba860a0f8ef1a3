import numpy as np
import pytest

from covidseir.lib import ode
from covidseir.lib.ode import (
    PARAMETERS,
    COMPARTMENTS,
    TRACKING_COMPARTMENTS,
    SYSTEM_SIZE,
    GROUP_SIZE,
)
from covidseir.model import FixedParameters


def make_parameters(n_days, dt=0.25, f=0.4, imported=0.0, r0=2.6, e=0.8, n_total=1e5):
    pars = FixedParameters()
    _, t_params = ode.make_time_grids(n_days, dt)
    params = np.zeros((t_params.size, len(PARAMETERS)))
    params[:, PARAMETERS.beta] = pars.beta(r0)
    params[:, PARAMETERS.N] = n_total
    params[:, PARAMETERS.D] = pars.D
    params[:, PARAMETERS.k1] = pars.k1
    params[:, PARAMETERS.k2] = pars.k2
    params[:, PARAMETERS.q] = pars.q
    params[:, PARAMETERS.ud] = pars.ud
    params[:, PARAMETERS.ur] = pars.ur_from_e(e)
    params[:, PARAMETERS.f] = f
    params[:, PARAMETERS.imported] = imported
    return params


def test_time_grids():
    t_solve, t_params = ode.make_time_grids(10, 0.25)
    assert t_solve.size == 41
    assert t_params.size == 81
    assert t_solve[-1] == 10
    assert t_params[-1] == 10
    np.testing.assert_allclose(t_params[::2], t_solve)


@pytest.mark.parametrize('dt', [0.3, 0.0, 2.0])
def test_steps_per_day_rejects_uneven_steps(dt):
    with pytest.raises((ValueError, ZeroDivisionError)):
        ode.steps_per_day(dt)


def test_initial_condition_split():
    y0 = ode.make_initial_condition(1000., 10., 0.8)
    assert y0.size == SYSTEM_SIZE
    assert y0[:2 * GROUP_SIZE].sum() == pytest.approx(1000.)
    free, distancing = y0[:GROUP_SIZE], y0[GROUP_SIZE:2 * GROUP_SIZE]
    assert free.sum() == pytest.approx(200.)
    assert distancing.sum() == pytest.approx(800.)
    assert free[COMPARTMENTS.I] == pytest.approx(0.2 * 10 * 0.5)
    assert distancing[COMPARTMENTS.E1] == pytest.approx(0.8 * 10 * 0.4)
    assert y0[TRACKING_COMPARTMENTS.NewOnset] == 0.


def test_population_is_conserved():
    n_days = 60
    y0 = ode.make_initial_condition(1e5, 20., 0.8)
    states, onsets = ode.run_ode_model(y0, make_parameters(n_days), n_days)
    assert states.shape == (n_days, SYSTEM_SIZE)
    assert onsets.shape == (n_days,)
    np.testing.assert_allclose(states[:, :2 * GROUP_SIZE].sum(axis=1), 1e5, rtol=1e-8)
    assert np.all(onsets >= 0)
    assert np.all(np.diff(states[:, TRACKING_COMPARTMENTS.NewOnset]) >= 0)


def test_compartments_stay_non_negative():
    n_days = 200
    y0 = ode.make_initial_condition(1e5, 20., 0.8)
    states, onsets = ode.run_ode_model(y0, make_parameters(n_days, f=1.0), n_days)
    # The epidemic burns through most of the susceptibles.
    assert states[-1, COMPARTMENTS.S] < 0.5 * states[0, COMPARTMENTS.S]
    assert np.all(states[:, :2 * GROUP_SIZE] >= -1e-6)
    assert np.all(onsets >= 0)


def test_importation_adds_exposures():
    n_days = 20
    y0 = ode.make_initial_condition(1e5, 20., 0.8)
    states, _ = ode.run_ode_model(y0, make_parameters(n_days, imported=5.), n_days)
    # Five imported exposures a day for every completed day.
    expected = 1e5 + 5. * np.arange(n_days)
    np.testing.assert_allclose(states[:, :2 * GROUP_SIZE].sum(axis=1), expected, rtol=1e-8)


def test_lower_contact_slows_growth():
    n_days = 40
    y0 = ode.make_initial_condition(1e5, 20., 0.8)
    _, high = ode.run_ode_model(y0, make_parameters(n_days, f=1.0), n_days)
    _, low = ode.run_ode_model(y0, make_parameters(n_days, f=0.2), n_days)
    assert low[-1] < high[-1]


def test_run_ode_model_rejects_wrong_grid():
    y0 = ode.make_initial_condition(1e5, 20., 0.8)
    with pytest.raises(ValueError):
        ode.run_ode_model(y0, make_parameters(10), 11)
