from pathlib import Path
import re

from loguru import logger
import pytest

from covidseir.lib.cli_tools.utilities import (
    get_input_root,
    get_output_root,
    handle_exceptions,
    make_run_directory,
)


def test_get_input_root(tmp_path):
    cli_root = tmp_path / 'cli'
    spec_root = tmp_path / 'spec'
    cli_root.mkdir()
    spec_root.mkdir()

    assert get_input_root(str(cli_root), str(spec_root)) == cli_root.resolve()
    assert get_input_root(None, str(spec_root)) == spec_root.resolve()
    assert get_input_root(str(cli_root), None) == cli_root.resolve()

    with pytest.raises(ValueError):
        get_input_root(None, None)
    with pytest.raises(ValueError):
        get_input_root(str(tmp_path / 'missing'), None)


def test_get_output_root():
    assert get_output_root(None, None) == Path('outputs').resolve()
    assert get_output_root(None, '/my/full/test/root') == Path('/my/full/test/root')
    assert get_output_root('/my/full/cli/test/root', '/my/full/test/root') == Path('/my/full/cli/test/root')
    assert get_output_root('', '', default='/default') == Path('/default')


def test_make_run_directory(tmp_path):
    first = make_run_directory(tmp_path)
    second = make_run_directory(tmp_path)
    assert first.is_dir()
    assert second.is_dir()
    assert re.fullmatch(r'\d{4}_\d{2}_\d{2}\.01', first.name)
    assert second.name == first.name[:-2] + '02'


def test_handle_exceptions_logs_and_reraises(mocker):
    log_exception = mocker.patch.object(logger, 'exception')

    def broken():
        raise RuntimeError('boom')

    wrapped = handle_exceptions(broken, logger, with_debugger=False)
    with pytest.raises(RuntimeError):
        wrapped()
    log_exception.assert_called_once()


def test_handle_exceptions_passes_through_results():
    wrapped = handle_exceptions(lambda x: 2 * x, logger, with_debugger=False)
    assert wrapped(4) == 8
