"""
Controller parameters and the per-tick vehicle state.

MPCParams is loaded once at startup and never mutated afterwards; every
field is validated in __post_init__ so that an invalid configuration is
rejected before a controller can be built from it.
"""

import math
import numpy as np
from dataclasses import dataclass, fields

from .errors import ConfigurationError


# Bound used for "unbounded" decision variables (Ipopt treats |x| >= 1e19 as infinite)
NO_BOUND = 1.0e19


@dataclass(frozen=True)
class MPCParams:
    """MPC configuration."""
    # Horizon
    steps_ahead: int = 20
    dt: float = 0.05
    latency: float = 0.05

    # Cost weights
    cte_coeff: float = 100.0
    epsi_coeff: float = 100.0
    speed_coeff: float = 2.0
    steer_coeff: float = 2.0
    # Accepted from the launch arguments but not part of the cost: the
    # speed actuation is already tracked against ref_v by speed_coeff.
    throttle_coeff: float = 0.0

    # Smoothing weights (consecutive actuations)
    consec_steer_coeff: float = 1000.0
    consec_speed_coeff: float = 5.0

    # Reference speed
    ref_v: float = 10.0

    # Vehicle
    # Front axle to CoG, tuned so the model's turning radius matches the
    # circle driven in the simulator at constant steering and speed.
    lf: float = 0.325
    max_steering_angle: float = math.radians(25.0)
    max_speed: float = 20.0

    # Reference polynomial
    poly_degree: int = 3

    # Solver
    max_cpu_time: float = 0.5
    verbose: bool = False

    def __post_init__(self):
        if not isinstance(self.steps_ahead, (int, np.integer)) or isinstance(self.steps_ahead, bool):
            raise ConfigurationError(
                f"steps_ahead must be an integer, got {self.steps_ahead!r}")
        if self.steps_ahead < 2:
            raise ConfigurationError(
                f"steps_ahead must be >= 2, got {self.steps_ahead}")
        if not isinstance(self.poly_degree, (int, np.integer)) or isinstance(self.poly_degree, bool):
            raise ConfigurationError(
                f"poly_degree must be an integer, got {self.poly_degree!r}")
        if self.poly_degree < 1:
            raise ConfigurationError(
                f"poly_degree must be >= 1, got {self.poly_degree}")

        for f in fields(self):
            if f.name in ('steps_ahead', 'poly_degree', 'verbose'):
                continue
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float, np.floating, np.integer)):
                raise ConfigurationError(f"{f.name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ConfigurationError(f"{f.name} must be finite, got {value}")

        if self.dt <= 0.0:
            raise ConfigurationError(f"dt must be > 0, got {self.dt}")
        if self.latency < 0.0:
            raise ConfigurationError(f"latency must be >= 0, got {self.latency}")
        if self.lf <= 0.0:
            raise ConfigurationError(f"lf must be > 0, got {self.lf}")
        if self.max_steering_angle <= 0.0:
            raise ConfigurationError(
                f"max_steering_angle must be > 0, got {self.max_steering_angle}")
        if self.max_speed <= 0.0:
            raise ConfigurationError(f"max_speed must be > 0, got {self.max_speed}")
        if self.max_cpu_time <= 0.0:
            raise ConfigurationError(f"max_cpu_time must be > 0, got {self.max_cpu_time}")

        for name in self.weight_names():
            if getattr(self, name) < 0.0:
                raise ConfigurationError(f"{name} must be >= 0, got {getattr(self, name)}")

        if not 0.0 <= self.ref_v < self.max_speed:
            raise ConfigurationError(
                f"ref_v must lie in [0, max_speed={self.max_speed}), got {self.ref_v}")

        if not isinstance(self.verbose, (bool, np.bool_)):
            raise ConfigurationError(f"verbose must be a bool, got {self.verbose!r}")

    @staticmethod
    def weight_names():
        return ('cte_coeff', 'epsi_coeff', 'speed_coeff', 'steer_coeff',
                'throttle_coeff', 'consec_steer_coeff', 'consec_speed_coeff')

    @classmethod
    def field_names(cls):
        return tuple(f.name for f in fields(cls))


@dataclass(frozen=True)
class VehicleState:
    """Vehicle state for one control tick.

    x, y, psi and v are the pose and speed; cte and epsi are the cross-track
    and heading errors with respect to the reference polynomial. All six
    values must be expressed in the same frame as the waypoints.
    """
    x: float = 0.0
    y: float = 0.0
    psi: float = 0.0
    v: float = 0.0
    cte: float = 0.0
    epsi: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.psi, self.v, self.cte, self.epsi])

    @classmethod
    def from_array(cls, arr) -> 'VehicleState':
        return cls(*(float(a) for a in arr[:6]))

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.as_array())))
