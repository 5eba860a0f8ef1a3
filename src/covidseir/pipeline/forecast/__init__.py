from covidseir.pipeline.forecast.specification import (
    ForecastSpecification,
)
from covidseir.pipeline.forecast.data import (
    ForecastDataInterface,
)
from covidseir.pipeline.forecast.main import (
    do_forecast,
    forecast,
)

SPECIFICATION = ForecastSpecification
COMMAND = forecast
APPLICATION_MAIN = do_forecast
