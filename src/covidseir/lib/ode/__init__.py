from covidseir.lib.ode.constants import (
    PARAMETERS,
    PARAMETERS_NAMES,
    COMPARTMENTS,
    COMPARTMENTS_NAMES,
    TRACKING_COMPARTMENTS,
    TRACKING_COMPARTMENTS_NAMES,
    SYSTEM_SIZE,
    GROUP_SIZE,
    INITIAL_INFECTION_SPLIT,
)
from covidseir.lib.ode.solver import (
    SOLVER_DT,
    steps_per_day,
    make_time_grids,
    make_initial_condition,
    run_ode_model,
)
