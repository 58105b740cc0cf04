"""
MPC Solver - kinematic tracking MPC solved with CasADi + Ipopt.

Every solve() builds a fresh symbolic NLP over the flat decision vector
(see indexer.py), so nothing is shared between calls:

    minimize    f(vars)
    subject to  lbx <= vars <= ubx
                lbg <= g(vars) <= ubg

where f and g come from FGEval. CasADi's expression graph gives Ipopt
exact sparse gradients, Jacobians and Hessians.

A solve that hits the time budget (or otherwise fails to converge) is not
an error: the best iterate is returned with converged=False.

The budget is Ipopt's max_cpu_time, i.e. CPU seconds spent inside Ipopt.
It is not a wall-clock deadline: time spent building the NLP, or waiting
for the CPU on a loaded machine, is not counted.
"""

import logging
import math
import time
import numpy as np
from dataclasses import dataclass, field
from typing import Optional

import casadi as ca

from .errors import InputError
from .fg_eval import FGEval
from .indexer import Indexer
from .params import MPCParams, VehicleState, NO_BOUND

logger = logging.getLogger(__name__)


@dataclass
class SolverResult:
    """Result from MPC solver."""
    steering: float = 0.0
    speed: float = 0.0
    x_pred: np.ndarray = field(default_factory=lambda: np.zeros(0))
    y_pred: np.ndarray = field(default_factory=lambda: np.zeros(0))
    psi_pred: np.ndarray = field(default_factory=lambda: np.zeros(0))
    cte_pred: np.ndarray = field(default_factory=lambda: np.zeros(0))
    epsi_pred: np.ndarray = field(default_factory=lambda: np.zeros(0))
    cost: float = float('inf')
    status: str = ''
    converged: bool = False
    solve_time: float = 0.0

    @property
    def predicted_trajectory(self) -> np.ndarray:
        """Predicted positions as an [N, 2] array."""
        return np.column_stack([self.x_pred, self.y_pred])


class MPCSolver:
    """Builds and solves the tracking NLP for one control tick."""

    def __init__(self, params: MPCParams):
        self.params = params
        self.indexer = Indexer.from_horizon(params.steps_ahead)
        self._lbx, self._ubx = self._variable_bounds()

    def _variable_bounds(self):
        p = self.params
        ix = self.indexer
        lbx = np.full(ix.n_vars, -NO_BOUND)
        ubx = np.full(ix.n_vars, NO_BOUND)

        # Actuator limits
        lbx[ix.delta_start:ix.v_start] = -p.max_steering_angle
        ubx[ix.delta_start:ix.v_start] = p.max_steering_angle
        lbx[ix.v_start:] = 0.0
        ubx[ix.v_start:] = p.max_speed
        return lbx, ubx

    def _solver_options(self) -> dict:
        p = self.params
        return {
            'ipopt.print_level': 5 if p.verbose else 0,
            'print_time': bool(p.verbose),
            'ipopt.sb': 'yes',
            'ipopt.max_cpu_time': p.max_cpu_time,
            'error_on_fail': False,
        }

    def _validate(self, state: VehicleState, coeffs, target_speed: float):
        if not state.is_finite():
            raise InputError(f"State contains non-finite values: {state}")
        if len(coeffs) == 0:
            raise InputError("Empty polynomial coefficients")
        if not np.all(np.isfinite(coeffs)):
            raise InputError(f"Polynomial coefficients are not finite: {coeffs}")
        if not math.isfinite(target_speed) or not 0.0 <= target_speed <= self.params.max_speed:
            raise InputError(
                f"Target speed {target_speed} outside [0, {self.params.max_speed}]")

    def solve(
        self,
        state: VehicleState,
        coeffs,
        target_speed: Optional[float] = None,
    ) -> SolverResult:
        """
        Solve the MPC problem.

        Args:
            state: Current (latency-projected) state
            coeffs: Reference polynomial, lowest degree first
            target_speed: Per-tick override of params.ref_v

        Returns:
            SolverResult with the first-step actuation and the predicted path
        """
        coeffs = np.asarray(coeffs, dtype=np.float64).ravel()
        ref_v = self.params.ref_v if target_speed is None else float(target_speed)
        self._validate(state, coeffs, ref_v)

        p = self.params
        ix = self.indexer
        t_start = time.time()

        # Initial value of the decision variables: zero, the equality
        # constraints pin the initial state.
        vars0 = np.zeros(ix.n_vars)

        # Constraint bounds: zero except the initial state
        lbg = np.zeros(ix.n_constraints)
        ubg = np.zeros(ix.n_constraints)
        initial = (state.x, state.y, state.psi, state.cte, state.epsi)
        for start, value in zip(ix.state_starts(), initial):
            lbg[start] = value
            ubg[start] = value

        fg_eval = FGEval(coeffs, p, ix, ref_v)
        vars_sym = ca.SX.sym('vars', ix.n_vars)
        cost_sym, g_sym = fg_eval(vars_sym)
        nlp = {'x': vars_sym, 'f': cost_sym, 'g': g_sym}

        try:
            nlp_solver = ca.nlpsol('mpc', 'ipopt', nlp, self._solver_options())
            sol = nlp_solver(x0=vars0, lbx=self._lbx, ubx=self._ubx, lbg=lbg, ubg=ubg)
        except RuntimeError as e:
            logger.warning("Ipopt raised during solve: %s", e)
            result = self._unsolved_result(state, status=f'error: {e}')
            result.solve_time = time.time() - t_start
            return result

        stats = nlp_solver.stats()
        status = str(stats.get('return_status', 'unknown'))
        converged = bool(stats.get('success', False))

        solution = sol['x'].full().flatten()
        cost = float(sol['f'])

        if converged:
            logger.debug("COST: %.2f, status: %s", cost, status)
        else:
            logger.warning("MPC did not converge (status: %s, cost: %.2f)", status, cost)

        result = SolverResult(
            steering=float(np.clip(solution[ix.delta_start],
                                   -p.max_steering_angle, p.max_steering_angle)),
            speed=float(np.clip(solution[ix.v_start], 0.0, p.max_speed)),
            x_pred=solution[ix.x_start:ix.x_start + p.steps_ahead].copy(),
            y_pred=solution[ix.y_start:ix.y_start + p.steps_ahead].copy(),
            psi_pred=solution[ix.psi_start:ix.psi_start + p.steps_ahead].copy(),
            cte_pred=solution[ix.cte_start:ix.cte_start + p.steps_ahead].copy(),
            epsi_pred=solution[ix.epsi_start:ix.epsi_start + p.steps_ahead].copy(),
            cost=cost,
            status=status,
            converged=converged,
        )
        result.solve_time = time.time() - t_start
        return result

    def _unsolved_result(self, state: VehicleState, status: str) -> SolverResult:
        """Result used when Ipopt produced no iterate at all: hold position, zero actuation."""
        N = self.params.steps_ahead
        return SolverResult(
            steering=0.0,
            speed=0.0,
            x_pred=np.full(N, state.x),
            y_pred=np.full(N, state.y),
            psi_pred=np.full(N, state.psi),
            cte_pred=np.full(N, state.cte),
            epsi_pred=np.full(N, state.epsi),
            status=status,
            converged=False,
        )
