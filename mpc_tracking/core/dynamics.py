"""
Kinematic bicycle model with cross-track and heading error dynamics.

State:   [x, y, psi, cte, epsi]  (plus speed v, which is an actuation here)
Control: [delta, v]
  delta - steering angle
  v     - speed

Discrete update over dt:
    x'    = x + v * cos(psi) * dt
    y'    = y + v * sin(psi) * dt
    psi'  = psi - v * delta / Lf * dt
    cte'  = f(x) - y + v * sin(epsi) * dt
    epsi' = psi - atan(f'(x)) - v * delta / Lf * dt

The minus signs on the steering terms match the simulator's steering
convention (positive delta turns right) and must not be flipped.
"""

import numpy as np
from typing import Optional

import casadi as ca

from .params import VehicleState
from .polyfit import polyeval, polyeval_diff


def is_symbolic(value) -> bool:
    return isinstance(value, (ca.SX, ca.MX))


def _sin(value):
    return ca.sin(value) if is_symbolic(value) else np.sin(value)


def _cos(value):
    return ca.cos(value) if is_symbolic(value) else np.cos(value)


def _atan(value):
    return ca.atan(value) if is_symbolic(value) else np.arctan(value)


class KinematicModel:
    """
    Discrete kinematic model shared by the latency projection and the
    NLP equality constraints.
    """

    def __init__(self, lf: float = 0.325, dt: float = 0.05):
        self.lf = lf
        self.dt = dt
        self.nx = 5  # [x, y, psi, cte, epsi]
        self.nu = 2  # [delta, v]

    def step(self, state, delta, v, coeffs, dt: Optional[float] = None):
        """
        Advance (x, y, psi, cte, epsi) by one step.

        Works on floats/numpy values and on CasADi symbols.

        Returns:
            Tuple (x, y, psi, cte, epsi) at the next step
        """
        h = dt if dt is not None else self.dt
        x0, y0, psi0, cte0, epsi0 = state

        f0 = polyeval(coeffs, x0)
        psides0 = _atan(polyeval_diff(coeffs, x0))
        turn = v * delta / self.lf * h

        return (
            x0 + v * _cos(psi0) * h,
            y0 + v * _sin(psi0) * h,
            psi0 - turn,
            f0 - y0 + v * _sin(epsi0) * h,
            psi0 - psides0 - turn,
        )

    def project(self, state: VehicleState, delta: float,
                latency: float) -> VehicleState:
        """
        Project a sensed state forward by the actuation latency.

        Uses the model equations with dt = latency, taking the reference
        terms f(x) - y and psi - psi_des from the state's own cte and epsi.
        Speed is held constant over the latency period.
        """
        turn = state.v * delta / self.lf * latency
        return VehicleState(
            x=state.x + state.v * np.cos(state.psi) * latency,
            y=state.y + state.v * np.sin(state.psi) * latency,
            psi=state.psi - turn,
            v=state.v,
            cte=state.cte + state.v * np.sin(state.epsi) * latency,
            epsi=state.epsi - turn,
        )

    def simulate(self, state, controls: np.ndarray, coeffs) -> np.ndarray:
        """
        Roll the model out from state for a control sequence.

        Args:
            state: Initial [x, y, psi, cte, epsi]
            controls: Control sequence [K, 2] of (delta, v)
            coeffs: Reference polynomial

        Returns:
            States trajectory [K+1, 5]
        """
        controls = np.atleast_2d(controls)
        K = controls.shape[0]
        states = np.zeros((K + 1, self.nx))
        states[0] = state
        for k in range(K):
            states[k + 1] = self.step(states[k], controls[k, 0], controls[k, 1], coeffs)
        return states
