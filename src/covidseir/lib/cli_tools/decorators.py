import click

###########################
# Specification arguments #
###########################


def with_specification(specification_class):
    def _callback(ctx, param, value):
        return specification_class.from_path(value)
    return click.argument(
        'specification',
        type=click.Path(exists=True, dir_okay=False),
        callback=_callback
    )

###########################
# Main input data options #
###########################


with_fit_version = click.option(
    '--fit-version', '-i',
    type=click.Path(exists=True, file_okay=False),
    help='Full path to an existing directory containing a '
         '"fit_specification.yaml". Overrides the version in the specification.',
)

######################
# Other main options #
######################

add_output_options = click.option(
    '--output-root', '-o',
    type=click.Path(file_okay=False),
    help='Directory in which to create a new versioned run directory. '
         'Overrides the output root in the specification.',
)

add_preprocess_only = click.option(
    '--preprocess-only',
    is_flag=True,
    help='Only make the directory and set up the metadata. '
         'Useful for checking a specification before a long run.',
)


def add_verbose_and_with_debugger(func):
    """Adds standard verbosity and debugging options to a command."""
    func = click.option(
        '-v', 'verbose',
        count=True,
        help='Configure logging verbosity.',
    )(func)
    func = click.option(
        '--pdb', 'with_debugger',
        is_flag=True,
        help='Drop into python debugger if an error occurs.',
    )(func)
    return func
