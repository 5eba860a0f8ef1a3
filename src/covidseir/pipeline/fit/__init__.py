from covidseir.pipeline.fit.specification import (
    FitSpecification,
)
from covidseir.pipeline.fit.data import (
    FitDataInterface,
)
from covidseir.pipeline.fit.main import (
    do_fit,
    fit,
)

SPECIFICATION = FitSpecification
COMMAND = fit
APPLICATION_MAIN = do_fit
