__all__ = [
    "__title__",
    "__summary__",
    "__uri__",
    "__version__",
    "__author__",
    "__email__",
    "__license__",
    "__copyright__",
]

__title__ = "covidseir"
__summary__ = "Bayesian SEIR model with social distancing for COVID-19 case counts."
__uri__ = ""

__version__ = "0.1.0"

__author__ = "The covidseir developers"
__email__ = ""

__license__ = "GNU GPLv3"
__copyright__ = f"Copyright 2020 {__author__}"
