import datetime
from typing import Optional

import click
from loguru import logger

import covidseir
from covidseir.lib import (
    cli_tools,
)
from covidseir.model import (
    fit_seir,
)
from covidseir.pipeline.fit.specification import FitSpecification
from covidseir.pipeline.fit.data import FitDataInterface
from covidseir.pipeline.fit import model


def do_fit(specification: FitSpecification,
           output_root: Optional[str],
           preprocess_only: bool,
           with_debugger: bool) -> FitSpecification:
    output_root = cli_tools.get_output_root(output_root, specification.data.output_root)
    run_directory = cli_tools.make_run_directory(output_root)
    specification.data.output_root = str(run_directory)

    cli_tools.configure_logging_to_files(run_directory)
    # noinspection PyTypeChecker
    main = cli_tools.handle_exceptions(fit_main, logger, with_debugger)
    main(specification, preprocess_only)
    return specification


def fit_main(specification: FitSpecification, preprocess_only: bool) -> None:
    logger.info(f'Starting fit for version {specification.data.output_root}.')
    metadata = {
        'covidseir_version': covidseir.__version__,
        'start_time': datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'output_path': specification.data.output_root,
    }

    data_interface = FitDataInterface.from_specification(specification)
    data_interface.make_dirs()
    data_interface.save_specification(specification)

    cases = model.prepare_cases(data_interface.load_input_cases(), specification.data)
    data_interface.save_cases(cases)
    logger.info(f'Loaded {len(cases)} days of cases from {cases["date"].min():%Y-%m-%d} '
                f'to {cases["date"].max():%Y-%m-%d}. {int(cases["value"].isna().sum())} days are missing '
                f'and {int(cases["omitted"].sum())} are omitted.')

    if not preprocess_only:
        fit_arguments = model.build_fit_arguments(cases, specification.model)
        sampler = specification.sampler
        fit = fit_seir(
            **fit_arguments,
            **specification.priors.to_dict(),
            fit_type=sampler.fit_type,
            chains=sampler.chains,
            n_iter=sampler.n_iter,
            seed=sampler.seed,
            optim_steps=sampler.optim_steps,
            learning_rate=sampler.learning_rate,
            progress_bar=sampler.progress_bar,
        )
        data_interface.save_fit(fit)
        logger.info(f'Posterior summary:\n{fit.summary().round(3)}')

    metadata['end_time'] = datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    data_interface.save_metadata(metadata)
    logger.info(f'Fit version {specification.data.output_root} complete.')


@click.command()
@cli_tools.with_specification(FitSpecification)
@cli_tools.add_output_options
@cli_tools.add_preprocess_only
@cli_tools.add_verbose_and_with_debugger
def fit(specification: FitSpecification,
        output_root: str,
        preprocess_only: bool,
        verbose: int, with_debugger: bool):
    """Fit the model to a daily case time series."""
    cli_tools.configure_logging_to_terminal(verbose)
    do_fit(
        specification=specification,
        output_root=output_root,
        preprocess_only=preprocess_only,
        with_debugger=with_debugger,
    )

    logger.info('**Done**')
