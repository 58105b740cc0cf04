"""
Offsets of the state and actuation trajectories inside the flat
decision-variable vector.

Layout for a horizon of N steps:
    [x(N) | y(N) | psi(N) | cte(N) | epsi(N) | delta(N-1) | v(N-1)]
"""

from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass(frozen=True)
class Indexer:
    steps_ahead: int
    x_start: int
    y_start: int
    psi_start: int
    cte_start: int
    epsi_start: int
    delta_start: int
    v_start: int

    @classmethod
    def from_horizon(cls, steps_ahead: int) -> 'Indexer':
        if steps_ahead < 2:
            raise ConfigurationError(
                f"Horizon must contain at least 2 steps, got {steps_ahead}")
        n = steps_ahead
        # Non-actuators
        x_start = 0
        y_start = x_start + n
        psi_start = y_start + n
        cte_start = psi_start + n
        epsi_start = cte_start + n
        # Actuators
        delta_start = epsi_start + n
        v_start = delta_start + n - 1
        return cls(n, x_start, y_start, psi_start, cte_start, epsi_start,
                   delta_start, v_start)

    @property
    def n_vars(self) -> int:
        return self.v_start + self.steps_ahead - 1

    @property
    def n_constraints(self) -> int:
        return 5 * self.steps_ahead

    def state_starts(self):
        """Offsets of the five pinned state trajectories, in state-vector order."""
        return (self.x_start, self.y_start, self.psi_start,
                self.cte_start, self.epsi_start)

    def ranges(self):
        """Map of trajectory name -> range of flat indices."""
        n = self.steps_ahead
        return {
            'x': range(self.x_start, self.x_start + n),
            'y': range(self.y_start, self.y_start + n),
            'psi': range(self.psi_start, self.psi_start + n),
            'cte': range(self.cte_start, self.cte_start + n),
            'epsi': range(self.epsi_start, self.epsi_start + n),
            'delta': range(self.delta_start, self.delta_start + n - 1),
            'v': range(self.v_start, self.v_start + n - 1),
        }
