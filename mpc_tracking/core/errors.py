"""Exception types raised by the MPC core."""


class MPCError(Exception):
    """Base class for all MPC core errors."""


class InputError(MPCError, ValueError):
    """Malformed per-tick input (state, waypoints, target speed)."""


class FitError(InputError):
    """Reference polynomial could not be fitted to the waypoints."""


class ConfigurationError(MPCError, ValueError):
    """Invalid controller parameters. Raised at construction time."""
