from .__about__ import *

import warnings

warnings.filterwarnings('ignore', category=UserWarning, module='matplotlib')
warnings.filterwarnings('ignore', category=FutureWarning, module='numpyro')

del warnings

import numpyro

# The ode solve and the likelihood need double precision.
numpyro.enable_x64()

del numpyro

from covidseir.model import (
    FixedParameters,
    Priors,
    SeirSettings,
    SeirFit,
    make_f_seg,
    contact_fraction,
    fit_seir,
    project_seir,
    tidy_seir,
    get_rt,
    summarise_rt,
    get_growth_rate,
    get_threshold,
    get_doubling_time,
    compute_residuals,
    plot_projection,
    plot_rt,
    plot_residuals,
    write_or_show,
)
