from .fit import FitSpecification
from .fit.main import do_fit
from .forecast import ForecastSpecification
from .forecast.main import do_forecast
