"""Kinematic model predictive controller for waypoint path tracking."""

from .core import (
    MPCError, InputError, FitError, ConfigurationError,
    MPCParams, VehicleState, MPCSolver, SolverResult,
)
from .controller import MPCController
from .param_loader import load_params, params_from_args

__all__ = [
    'MPCError',
    'InputError',
    'FitError',
    'ConfigurationError',
    'MPCParams',
    'VehicleState',
    'MPCSolver',
    'SolverResult',
    'MPCController',
    'load_params',
    'params_from_args',
]
