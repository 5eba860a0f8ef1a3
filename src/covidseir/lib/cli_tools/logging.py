from pathlib import Path
import sys
from typing import Union

from loguru import logger

LOG_FORMATS = {
    # Keys are verbosity.  Specify special log formats here.
    0: ("ERROR", "<level>{message}</level>"),
    1: ("INFO", "<level>{message}</level>"),
    2: ("DEBUG", "<green>{time:HH:mm:ss.SSS}</green> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:"
                 "<cyan>{line}</cyan> - <level>{message}</level>"),
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging_to_terminal(verbose: int) -> None:
    """Setup logging to sys.stdout.

    This is presumed to be one of the first calls made in an
    application entry point. Any logging that occurs before this
    call won't be intercepted or handled with the standard logging
    configuration.

    """
    logger.remove()  # Clear default configuration
    add_logging_sink(sys.stdout, verbose, colorize=True)


def configure_logging_to_files(output_path: Union[str, Path]) -> None:
    """Sets up logging to a file in an output directory.

    Logs to files are done with the highest verbosity to allow
    for debugging if necessary.

    """
    log_path = Path(output_path) / 'logs'
    log_path.mkdir(parents=True, exist_ok=True)
    add_logging_sink(log_path / 'main.log', verbose=1, serialize=False)
    add_logging_sink(log_path / 'debug.log', verbose=2, serialize=False, file_format=True)


def add_logging_sink(sink, verbose: int, colorize: bool = False,
                     serialize: bool = False, file_format: bool = False) -> int:
    """Adds a new output sink to the logger.

    Parameters
    ----------
    sink
        An object that can be used as a logging sink. E.g. ``sys.stdout``
        or a file path.
    verbose
        Verbosity level. Counts above 2 are treated as 2.
    colorize
        Whether to use the colorization options from :mod:`loguru`.
    serialize
        Whether the logs should be converted to JSON before they're dumped
        to the logging sink.
    file_format
        Whether to use the full timestamped file format.

    Returns
    -------
    int
        The loguru handler id, which can be used to remove the sink.

    """
    verbose = min(verbose, max(LOG_FORMATS))
    level, message_format = LOG_FORMATS[verbose]
    if file_format:
        message_format = FILE_FORMAT
    return logger.add(sink, colorize=colorize, level=level,
                      format=message_format, serialize=serialize)
