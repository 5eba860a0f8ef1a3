from covidseir.model.containers import (
    FixedParameters,
    Priors,
    SeirSettings,
    SeirFit,
)
from covidseir.model.contact import (
    make_f_seg,
    contact_fraction,
)
from covidseir.model.inference import (
    fit_seir,
)
from covidseir.model.projection import (
    project_seir,
)
from covidseir.model.summary import (
    tidy_seir,
)
from covidseir.model.rt import (
    get_rt,
    summarise_rt,
)
from covidseir.model.threshold import (
    get_growth_rate,
    get_threshold,
    get_doubling_time,
)
from covidseir.model.residuals import (
    compute_residuals,
)
from covidseir.model.plotter import (
    plot_projection,
    plot_rt,
    plot_residuals,
    write_or_show,
)
