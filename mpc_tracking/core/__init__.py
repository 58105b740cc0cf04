"""
MPC Core - kinematic model predictive controller for path tracking.

Fits a polynomial to the reference waypoints and solves a constrained
nonlinear program (CasADi + Ipopt) every control tick for the steering
and speed commands.

Key components:
- polyfit / polyeval / polyeval_diff: reference curve fitting and evaluation
- KinematicModel: bicycle model with cross-track/heading error dynamics
- Indexer: offsets into the flat decision-variable vector
- FGEval: cost and constraint evaluator
- MPCSolver: builds and solves the NLP, returns a SolverResult
"""

from .errors import MPCError, InputError, FitError, ConfigurationError
from .params import MPCParams, VehicleState
from .polyfit import polyfit, polyeval, polyeval_diff, reference_heading
from .indexer import Indexer
from .dynamics import KinematicModel
from .fg_eval import FGEval
from .solver import MPCSolver, SolverResult

__all__ = [
    'MPCError',
    'InputError',
    'FitError',
    'ConfigurationError',
    'MPCParams',
    'VehicleState',
    'polyfit',
    'polyeval',
    'polyeval_diff',
    'reference_heading',
    'Indexer',
    'KinematicModel',
    'FGEval',
    'MPCSolver',
    'SolverResult',
]
