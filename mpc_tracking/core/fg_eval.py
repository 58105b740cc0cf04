"""
Objective and constraint evaluator for the tracking NLP.

FGEval maps the flat decision vector to (cost, g), where g holds the
5N constraint residuals laid out like the state trajectories:
    g[*_start]       = var[*_start]                 (pinned to the current state)
    g[*_start + t]   = var[*_start + t] - model(t-1) (t = 1..N-1, bounded to 0)

The evaluator only captures immutable data (coefficients, params, indexer,
reference speed), so the solver may call it any number of times.
"""

import numpy as np

import casadi as ca

from .dynamics import KinematicModel, is_symbolic
from .indexer import Indexer
from .params import MPCParams


class FGEval:
    """Cost and constraints for one tick's reference polynomial."""

    def __init__(self, coeffs, params: MPCParams, indexer: Indexer, ref_v: float):
        self.coeffs = tuple(float(c) for c in coeffs)
        self.params = params
        self.indexer = indexer
        self.ref_v = float(ref_v)
        self.model = KinematicModel(lf=params.lf, dt=params.dt)

    def __call__(self, vars):
        return self.cost(vars), self.constraints(vars)

    def cost(self, vars):
        p = self.params
        ix = self.indexer
        N = p.steps_ahead

        cost = 0.0

        # Reference state tracking
        for t in range(N):
            cost += p.cte_coeff * vars[ix.cte_start + t] ** 2
            cost += p.epsi_coeff * vars[ix.epsi_start + t] ** 2

        # Speed tracking and actuator use
        for t in range(N - 1):
            cost += p.speed_coeff * (vars[ix.v_start + t] - self.ref_v) ** 2
            cost += p.steer_coeff * vars[ix.delta_start + t] ** 2

        # Gap between sequential actuations
        for t in range(N - 2):
            cost += p.consec_steer_coeff * (
                vars[ix.delta_start + t + 1] - vars[ix.delta_start + t]) ** 2
            cost += p.consec_speed_coeff * (
                vars[ix.v_start + t + 1] - vars[ix.v_start + t]) ** 2

        return cost

    def constraints(self, vars):
        ix = self.indexer
        N = self.params.steps_ahead
        starts = ix.state_starts()

        g = [None] * ix.n_constraints

        # Initial state
        for start in starts:
            g[start] = vars[start]

        # Model residuals
        for t in range(1, N):
            state0 = tuple(vars[start + t - 1] for start in starts)
            state1 = tuple(vars[start + t] for start in starts)
            delta0 = vars[ix.delta_start + t - 1]
            v0 = vars[ix.v_start + t - 1]

            predicted = self.model.step(state0, delta0, v0, self.coeffs)
            for start, actual, pred in zip(starts, state1, predicted):
                g[start + t] = actual - pred

        if is_symbolic(vars):
            return ca.vertcat(*g)
        return np.array([float(r) for r in g])
