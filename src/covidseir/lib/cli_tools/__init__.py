# This is just exposing the api from this namespace.
from covidseir.lib.cli_tools.decorators import (
    with_specification,
    with_fit_version,
    add_output_options,
    add_preprocess_only,
    add_verbose_and_with_debugger,
)
from covidseir.lib.cli_tools.logging import (
    configure_logging_to_terminal,
    configure_logging_to_files,
)
from covidseir.lib.cli_tools.utilities import (
    handle_exceptions,
    get_input_root,
    get_output_root,
    make_run_directory,
)
