from bdb import BdbQuit
import datetime
import functools
from pathlib import Path
from typing import Any, Callable, Optional, Union


def handle_exceptions(func: Callable, logger: Any, with_debugger: bool) -> Callable:
    """Drops a user into an interactive debugger if func raises an error."""

    @functools.wraps(func)
    def wrapped(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (BdbQuit, KeyboardInterrupt):
            raise
        except Exception as e:
            logger.exception("Uncaught exception {}".format(e))
            if with_debugger:
                import pdb
                import traceback
                traceback.print_exc()
                pdb.post_mortem()
            else:
                raise

    return wrapped


def get_input_root(cli_argument: Optional[str], specification_value: Optional[str]) -> Path:
    """Determine the input version to use hierarchically.

    CLI args override spec args. There is no default; one of the two
    must point to an existing run directory.

    """
    version = _get_argument_hierarchically(cli_argument, specification_value, None)
    if version is None:
        raise ValueError('No input version was provided on the command line or in the specification.')
    root = Path(version).resolve()
    if not root.exists():
        raise ValueError(f'Input version {root} does not exist.')
    return root


def get_output_root(cli_argument: Optional[str], specification_value: Optional[str],
                    default: Union[str, Path] = 'outputs') -> Path:
    """Determine the output root hierarchically.

    CLI arguments override specification args.  Specification args override
    the default.

    """
    version = _get_argument_hierarchically(cli_argument, specification_value, default)
    return Path(version).resolve()


def make_run_directory(output_root: Union[str, Path]) -> Path:
    """Makes a new dated run directory ``YYYY_MM_DD.VV`` under the output root."""
    output_root = Path(output_root)
    output_root.mkdir(parents=True, exist_ok=True)
    today = datetime.date.today().strftime('%Y_%m_%d')
    existing = [int(p.suffix[1:]) for p in output_root.glob(f'{today}.*')
                if p.is_dir() and p.suffix[1:].isdigit()]
    launch_version = max(existing, default=0) + 1
    run_directory = output_root / f'{today}.{launch_version:02d}'
    run_directory.mkdir()
    return run_directory


def _get_argument_hierarchically(cli_argument: Optional,
                                 specification_value: Optional,
                                 default: Any) -> Any:
    """Determine the argument to use hierarchically.

    Prefer cli args over values in a specification file over the default.
    """
    if cli_argument:
        output = cli_argument
    elif specification_value:
        output = specification_value
    else:
        output = default
    return output
