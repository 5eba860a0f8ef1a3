import pandas
import pytest

from covidseir.lib import io
from covidseir.lib.io.marshall import (
    CSVMarshall,
    YamlMarshall,
)


@pytest.fixture
def posterior():
    "Example posterior draws from a fit."
    return pandas.DataFrame({
        'iteration': [0, 1, 2],
        'R0': [2.5, 2.7, 2.6],
        'e': [0.79, 0.81, 0.8],
        'f_1': [0.41, 0.38, 0.44],
    })


@pytest.fixture
def fit_root(tmpdir):
    return io.FitRoot(tmpdir)


class TestCSVMarshall:

    def test_load_dump_round_trip(self, fit_root, posterior):
        key = fit_root.posterior()
        assert CSVMarshall.dump(posterior, key=key) is None, ".dump() returns non-None value"
        pandas.testing.assert_frame_equal(posterior, CSVMarshall.load(key=key))

    def test_no_accidental_overwrites(self, fit_root, posterior):
        key = fit_root.posterior()
        CSVMarshall.dump(posterior, key=key)
        with pytest.raises(LookupError):
            CSVMarshall.dump(posterior, key=key)
        CSVMarshall.dump(posterior, key=key, strict=False)

    def test_exists(self, fit_root, posterior):
        key = fit_root.posterior()
        assert not CSVMarshall.exists(key)
        CSVMarshall.dump(posterior, key=key)
        assert CSVMarshall.exists(key)


class TestYamlMarshall:

    def test_load_dump_round_trip(self, fit_root):
        settings = {'n_days': 42, 'settings': {'obs_model': 'NB2'}, 'priors': {'f_prior': [0.4, 0.2]}}
        YamlMarshall.dump(settings, key=fit_root.settings())
        assert YamlMarshall.load(key=fit_root.settings()) == settings

    def test_no_accidental_overwrites(self, fit_root):
        YamlMarshall.dump({'a': 1}, key=fit_root.metadata())
        with pytest.raises(LookupError):
            YamlMarshall.dump({'a': 2}, key=fit_root.metadata())


def test_forecast_root_keys(tmpdir):
    forecast_root = io.ForecastRoot(tmpdir)
    assert 'projection' in forecast_root.dataset_types
    assert 'specification' in forecast_root.metadata_types
    key = forecast_root.rt_summary()
    assert key.data_type == 'rt_summary'
    assert key.disk_format == 'csv'
    assert forecast_root.plot_dir == forecast_root.root / 'plots'


def test_data_root_rejects_unknown_formats(tmpdir):
    with pytest.raises(ValueError):
        io.FitRoot(tmpdir, data_format='parquet')
    with pytest.raises(ValueError):
        io.FitRoot(tmpdir, metadata_format='json')


def test_touch_makes_extra_dirs(tmpdir):
    forecast_root = io.ForecastRoot(tmpdir / 'forecast')
    io.touch(forecast_root, 'plots')
    assert forecast_root.plot_dir.is_dir()


def test_data_root_keys(tmp_path):
    fit_root = io.FitRoot(tmp_path)
    assert fit_root.posterior() == io.DatasetKey(tmp_path, 'csv', 'posterior')
    assert fit_root.specification() == io.MetadataKey(tmp_path, 'yaml', 'fit_specification')
    assert 'posterior' in fit_root.dataset_types
    assert 'settings' in fit_root.metadata_types
    with pytest.raises(TypeError):
        io.FitRoot.posterior()
    with pytest.raises(ValueError):
        io.FitRoot(tmp_path, data_format='parquet')
