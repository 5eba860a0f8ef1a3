"""Index orderings for the social distancing SEIR system.

The ode system is written under numba for speed. We statically define
some named tuples here that correspond to the parameters and compartments
in the system and construct instances of those tuples to serve as maps
between semantically meaningful names and indices, since numba plays nicely
with named tuples.

"""
from collections import namedtuple

import numpy as np


########################################
# Private static container definitions #
########################################

_Parameters = namedtuple(
    'Parameters', [
        'beta', 'N', 'D', 'k1', 'k2', 'q', 'ud', 'ur', 'f', 'imported',
    ]
)

_Compartments = namedtuple(
    'Compartments', [
        'S',  'E1',  'E2',  'I',  'Q',  'R',
        'Sd', 'E1d', 'E2d', 'Id', 'Qd', 'Rd',
    ]
)

_TrackingCompartments = namedtuple(
    'TrackingCompartments', [
        'NewOnset',
    ]
)

#####################
# Public index maps #
#####################

PARAMETERS = _Parameters(*list(range(len(_Parameters._fields))))
COMPARTMENTS = _Compartments(*list(range(len(_Compartments._fields))))
TRACKING_COMPARTMENTS = _TrackingCompartments(*[
    i + len(COMPARTMENTS) for i in range(len(_TrackingCompartments._fields))
])

PARAMETERS_NAMES = list(_Parameters._fields)
COMPARTMENTS_NAMES = list(_Compartments._fields)
TRACKING_COMPARTMENTS_NAMES = list(_TrackingCompartments._fields)

SYSTEM_SIZE = len(COMPARTMENTS) + len(TRACKING_COMPARTMENTS)

##############################
# Public component groupings #
##############################

# Each group holds S, E1, E2, I, Q, R in order.
GROUP_SIZE = 6

# Share of initial infections placed in E1, E2 and I.
INITIAL_INFECTION_SPLIT = np.array([0.4, 0.1, 0.5])
