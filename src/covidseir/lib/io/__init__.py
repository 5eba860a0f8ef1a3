from covidseir.lib.io.keys import (
    DatasetKey,
    MetadataKey,
)
from covidseir.lib.io.data_roots import (
    DataRoot,
    FitRoot,
    ForecastRoot,
)
from covidseir.lib.io.api import (
    load,
    dump,
    exists,
    touch,
)
