import jax.numpy as jnp
import numpy as np
import pytest

from covidseir.model.contact import (
    contact_fraction,
    make_f_seg,
    validate_f_seg,
)


def test_make_f_seg_single_segment():
    f_seg = make_f_seg(5)
    np.testing.assert_array_equal(f_seg, [0, 1, 1, 1, 1])


def test_make_f_seg_breakpoints_and_forecast():
    f_seg = make_f_seg(6, breakpoints=[3], forecast_days=2)
    np.testing.assert_array_equal(f_seg, [0, 1, 1, 2, 2, 2, 2, 2])


@pytest.mark.parametrize('breakpoints', [[0], [10], [3, 3]])
def test_make_f_seg_invalid_breakpoints(breakpoints):
    with pytest.raises(ValueError):
        make_f_seg(6, breakpoints=breakpoints)


def test_validate_f_seg():
    np.testing.assert_array_equal(validate_f_seg([0, 1, 1, 2], 4), [0, 1, 1, 2])
    with pytest.raises(ValueError):
        validate_f_seg([0, 1, 1], 4)
    with pytest.raises(ValueError):
        validate_f_seg([0, 1, 3, 3], 4)
    with pytest.raises(ValueError):
        validate_f_seg([0, 0, 0, 0], 4)
    with pytest.raises(ValueError):
        validate_f_seg([0, 1.5, 1, 1], 4)


def test_contact_fraction_ramp():
    f_seg = make_f_seg(30)
    t = np.array([0., 5., 10., 12.5, 15., 20., 29.])
    f = contact_fraction(t, f_seg, [0.4], start_decline=10., end_decline=15.)
    np.testing.assert_allclose(f, [1., 1., 1., 0.7, 0.4, 0.4, 0.4])


def test_contact_fraction_segments():
    f_seg = make_f_seg(30, breakpoints=[20])
    f = contact_fraction(np.array([18., 25.]), f_seg, [0.4, 0.7], start_decline=5., end_decline=10.)
    np.testing.assert_allclose(f, [0.4, 0.7])


def test_contact_fraction_past_end_uses_last_day():
    f_seg = make_f_seg(10)
    f = contact_fraction(np.array([10.]), f_seg, [0.3], start_decline=2., end_decline=4.)
    np.testing.assert_allclose(f, [0.3])


def test_contact_fraction_jax_matches_numpy():
    f_seg = make_f_seg(30, breakpoints=[20])
    t = np.linspace(0, 30, 121)
    expected = contact_fraction(t, f_seg, [0.4, 0.6], 12., 18.)
    result = contact_fraction(jnp.asarray(t), jnp.asarray(f_seg), jnp.asarray([0.4, 0.6]),
                              12., 18., xp=jnp)
    np.testing.assert_allclose(np.asarray(result), expected, rtol=1e-6)
