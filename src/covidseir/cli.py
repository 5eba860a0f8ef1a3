import importlib
import pkgutil

import click

from covidseir import (
    pipeline,
)


@click.group()
def covidseir():
    """Top level entry point for running covidseir pipeline stages."""
    pass


# Loops over every pipeline stage and adds its command to `covidseir`.
for _, modname, is_pkg in pkgutil.iter_modules(pipeline.__path__):
    if is_pkg:
        stage = importlib.import_module(f'{pipeline.__name__}.{modname}')
        covidseir.add_command(stage.COMMAND)
