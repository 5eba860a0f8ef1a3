import functools

import numpy as np
import pytest

from covidseir.lib import (
    parallel,
    utilities,
)
from covidseir.model import Priors


def test_filter_to_spec_fields_drops_unknown_keys():
    spec_dict = {'R0_prior': [1.0, 0.2], 'not_a_prior': 3}
    filtered = utilities.filter_to_spec_fields(spec_dict, Priors())
    assert filtered == {'R0_prior': [1.0, 0.2]}


def test_filter_to_spec_fields_handles_missing_section():
    assert utilities.filter_to_spec_fields(None, Priors()) == {}


def test_asdict_coerces_containers():
    priors = Priors(f_prior=np.array([0.5, 0.1]))
    d = utilities.asdict(priors)
    assert d['f_prior'] == [0.5, 0.1]
    assert isinstance(d['R0_prior'], list)


def _scale(x, factor):
    return factor * x


def test_run_parallel_serial():
    runner = functools.partial(_scale, factor=3)
    assert parallel.run_parallel(runner, [1, 2, 3], num_cores=1) == [3, 6, 9]


def test_run_parallel_uses_process_pool(mocker):
    pool = mocker.patch('covidseir.lib.parallel.multiprocessing.ProcessPool')
    pool.return_value.__enter__.return_value.imap.side_effect = lambda f, args: map(f, args)
    runner = functools.partial(_scale, factor=2)
    assert parallel.run_parallel(runner, [1, 2], num_cores=2) == [2, 4]
    pool.assert_called_once_with(2)


def test_run_parallel_needs_a_core():
    with pytest.raises(ValueError):
        parallel.run_parallel(abs, [1], num_cores=0)
