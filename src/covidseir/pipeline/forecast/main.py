import datetime
from typing import Optional

import click
from loguru import logger

import covidseir
from covidseir.lib import (
    cli_tools,
)
from covidseir.model import (
    compute_residuals,
    get_doubling_time,
    get_threshold,
    plot_projection,
    plot_residuals,
    plot_rt,
    project_seir,
    summarise_rt,
    tidy_seir,
    write_or_show,
)
from covidseir.model.rt import (
    rt_from_states,
)
from covidseir.pipeline.forecast.specification import ForecastSpecification
from covidseir.pipeline.forecast.data import ForecastDataInterface
from covidseir.pipeline.forecast import model


def do_forecast(specification: ForecastSpecification,
                fit_version: Optional[str],
                output_root: Optional[str],
                preprocess_only: bool,
                with_debugger: bool) -> ForecastSpecification:
    specification.data.fit_version = str(cli_tools.get_input_root(fit_version, specification.data.fit_version))

    output_root = cli_tools.get_output_root(output_root, specification.data.output_root)
    run_directory = cli_tools.make_run_directory(output_root)
    specification.data.output_root = str(run_directory)

    cli_tools.configure_logging_to_files(run_directory)
    # noinspection PyTypeChecker
    main = cli_tools.handle_exceptions(forecast_main, logger, with_debugger)
    main(specification, preprocess_only)
    return specification


def forecast_main(specification: ForecastSpecification, preprocess_only: bool) -> None:
    logger.info(f'Starting forecast for version {specification.data.output_root} '
                f'from fit {specification.data.fit_version}.')
    metadata = {
        'covidseir_version': covidseir.__version__,
        'start_time': datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'output_path': specification.data.output_root,
        'fit_version': specification.data.fit_version,
    }

    data_interface = ForecastDataInterface.from_specification(specification)
    data_interface.make_dirs(specification.data.make_plots)
    data_interface.save_specification(specification)

    if not preprocess_only:
        run_forecast(specification, data_interface)

    metadata['end_time'] = datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    data_interface.save_metadata(metadata)
    logger.info(f'Forecast version {specification.data.output_root} complete.')


def run_forecast(specification: ForecastSpecification, data_interface: ForecastDataInterface) -> None:
    fit = data_interface.load_fit()
    cases = data_interface.load_cases()
    projection_spec = specification.projection
    analysis_spec = specification.analysis

    iterations = model.select_draws(fit, projection_spec.n_draws)
    projection_args = model.build_projection_arguments(cases, projection_spec)

    logger.info(f'Projecting {len(iterations)} draws {projection_spec.forecast_days} days forward.')
    projection = project_seir(
        fit,
        forecast_days=projection_spec.forecast_days,
        iterations=iterations,
        return_states=True,
        progress_bar=True,
        **projection_args,
    )
    projection['Rt'] = rt_from_states(projection, fit)
    data_interface.save_projection(model.add_dates(projection, cases))

    summary = model.add_dates(
        tidy_seir(projection, projection_spec.resample_y_rep, projection_spec.seed),
        cases,
    )
    data_interface.save_projection_summary(summary)

    rt = projection[['day', 'data_type', 'iteration', 'Rt']]
    data_interface.save_rt(model.add_dates(rt, cases))
    rt_summary = model.add_dates(summarise_rt(rt), cases)
    data_interface.save_rt_summary(rt_summary)

    residuals = model.add_dates(
        compute_residuals(projection, fit.daily_cases, analysis_spec.residual_type, projection_spec.seed),
        cases,
    )
    data_interface.save_residuals(residuals)

    if analysis_spec.threshold:
        logger.info(f'Computing threshold contact fractions over {analysis_spec.threshold_fs}.')
        threshold = get_threshold(
            fit,
            iterations=iterations,
            forecast_days=analysis_spec.threshold_forecast_days,
            fs=analysis_spec.threshold_fs,
            num_cores=projection_spec.num_cores,
            seed=projection_spec.seed,
        )
        logger.info(f'Median threshold contact fraction {threshold.median():.3f}.')
        data_interface.save_threshold(threshold)

    if analysis_spec.doubling_time:
        logger.info('Computing doubling times.')
        doubling_time = get_doubling_time(
            fit,
            iterations=iterations,
            forecast_days=analysis_spec.doubling_time_forecast_days,
            **projection_args,
        )
        logger.info(f'Median doubling time {doubling_time.median():.1f} days.')
        data_interface.save_doubling_time(doubling_time)

    if specification.data.make_plots:
        logger.info('Making plots.')
        omitted_dates = cases.loc[cases['omitted'], 'date']
        ax = plot_projection(summary, cases, value_column='value', date_column='date',
                             omitted_days=omitted_dates)
        write_or_show(ax.figure, data_interface.plot_path('projection'))
        ax = plot_rt(rt_summary, date_column='date')
        write_or_show(ax.figure, data_interface.plot_path('rt'))
        ax = plot_residuals(residuals, date_column='date')
        write_or_show(ax.figure, data_interface.plot_path('residuals'))


@click.command()
@cli_tools.with_specification(ForecastSpecification)
@cli_tools.with_fit_version
@cli_tools.add_output_options
@cli_tools.add_preprocess_only
@cli_tools.add_verbose_and_with_debugger
def forecast(specification: ForecastSpecification,
             fit_version: str,
             output_root: str,
             preprocess_only: bool,
             verbose: int, with_debugger: bool):
    """Project a fitted model forward and summarise the projections."""
    cli_tools.configure_logging_to_terminal(verbose)
    do_forecast(
        specification=specification,
        fit_version=fit_version,
        output_root=output_root,
        preprocess_only=preprocess_only,
        with_debugger=with_debugger,
    )

    logger.info('**Done**')
