"""
MPC controller: one control tick from (state, waypoints) to a command.

Bridges the caller's telemetry to mpc_tracking.core:
    waypoints -> polyfit -> latency projection -> MPCSolver.solve

Frame handling, message I/O and tick scheduling stay with the caller.
"""

import logging
import numpy as np
from typing import Optional

from .core.dynamics import KinematicModel
from .core.errors import InputError
from .core.params import MPCParams, VehicleState
from .core.polyfit import polyfit, polyeval, reference_heading
from .core.solver import MPCSolver, SolverResult

logger = logging.getLogger(__name__)


class MPCController:
    """
    Kinematic path-tracking MPC.

    Configuration is fixed at construction. Each step() is independent;
    the only thing kept between ticks is the last converged result, for
    callers that want to hold a known-good command.
    """

    def __init__(self, params: Optional[MPCParams] = None):
        self.params = params if params is not None else MPCParams()
        self.solver = MPCSolver(self.params)
        self.model = KinematicModel(lf=self.params.lf, dt=self.params.dt)
        self.last_good: Optional[SolverResult] = None

        logger.info("MPC controller initialized")
        logger.info("  Horizon: %d x %.3fs", self.params.steps_ahead, self.params.dt)
        logger.info("  Latency: %.3fs", self.params.latency)
        logger.info("  Reference speed: %.2f (max %.2f)", self.params.ref_v, self.params.max_speed)
        logger.info("  Solver budget: %.3fs", self.params.max_cpu_time)

    def fit_waypoints(self, waypoints) -> np.ndarray:
        """Fit the reference polynomial to an [M, 2] array of (x, y) waypoints."""
        waypoints = np.asarray(waypoints, dtype=np.float64)
        if waypoints.ndim != 2 or waypoints.shape[1] != 2:
            raise InputError(f"Waypoints must have shape (M, 2), got {waypoints.shape}")
        return polyfit(waypoints[:, 0], waypoints[:, 1], self.params.poly_degree)

    @staticmethod
    def initial_errors(coeffs, x: float, y: float, psi: float):
        """
        Cross-track and heading error of a pose relative to the reference.

        Returns:
            (cte, epsi) with cte = f(x) - y and epsi = psi - atan(f'(x))
        """
        cte = float(polyeval(coeffs, x)) - y
        epsi = psi - reference_heading(coeffs, x)
        return cte, epsi

    def state_from_pose(self, coeffs, x: float, y: float, psi: float,
                        v: float) -> VehicleState:
        """Build the tick state for a pose, filling cte and epsi from the reference."""
        cte, epsi = self.initial_errors(coeffs, x, y, psi)
        return VehicleState(x=x, y=y, psi=psi, v=v, cte=cte, epsi=epsi)

    def step(
        self,
        state: VehicleState,
        waypoints,
        target_speed: Optional[float] = None,
        last_steering: float = 0.0,
    ) -> SolverResult:
        """
        Run one control tick.

        Args:
            state: Sensed state, same frame as the waypoints
            waypoints: [M, 2] reference points, M >= poly_degree + 1
            target_speed: Per-tick override of params.ref_v
            last_steering: Steering currently being applied, used for the
                latency projection

        Returns:
            SolverResult (converged=False if the solver did not converge)

        Raises:
            InputError: malformed state or waypoints (FitError for fitting)
        """
        if not state.is_finite():
            raise InputError(f"State contains non-finite values: {state}")

        coeffs = self.fit_waypoints(waypoints)
        projected = self.model.project(state, last_steering, self.params.latency)

        result = self.solver.solve(projected, coeffs, target_speed)

        if result.converged:
            self.last_good = result
        else:
            logger.warning(
                "Tick did not converge (%s); last converged command: %s",
                result.status,
                'none' if self.last_good is None else
                f"steering={self.last_good.steering:.3f} speed={self.last_good.speed:.2f}")
        logger.debug(
            "steering=%.4f speed=%.3f cost=%.2f solve=%.1fms",
            result.steering, result.speed, result.cost, result.solve_time * 1000.0)
        return result

    def reset(self):
        """Forget the last converged result."""
        self.last_good = None
