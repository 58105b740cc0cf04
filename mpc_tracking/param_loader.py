"""
Parameter loader for the MPC controller.

Loads config/params.yaml (or a given file) into an MPCParams. Keys are the
MPCParams field names; missing keys keep their defaults. Unlike a missing
file, a malformed one is fatal: the controller must not start on a
configuration it could not read.

Usage:
    from mpc_tracking.param_loader import load_params
    params = load_params()
    print(params.steps_ahead)  # 20

    # Positional launch arguments
    params = params_from_args(['20', '0.05', '0.05', '100', '100',
                               '2', '2', '2', '5', '1000', 'true'])
"""

import logging
import os
import yaml

from .core.errors import ConfigurationError
from .core.params import MPCParams

logger = logging.getLogger(__name__)


def _parse_bool(raw) -> bool:
    text = str(raw).strip().lower()
    if text in ('1', 'true', 'yes', 'on'):
        return True
    if text in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(raw)


# Positional order of the controller's launch arguments
_ARG_ORDER = (
    ('steps_ahead', int),
    ('dt', float),
    ('latency', float),
    ('cte_coeff', float),
    ('epsi_coeff', float),
    ('speed_coeff', float),
    ('throttle_coeff', float),
    ('steer_coeff', float),
    ('consec_speed_coeff', float),
    ('consec_steer_coeff', float),
    ('verbose', _parse_bool),
)


def params_from_dict(values) -> MPCParams:
    """Build MPCParams from a mapping of field names.

    Raises:
        ConfigurationError: unknown keys or invalid values
    """
    if values is None:
        values = {}
    if not isinstance(values, dict):
        raise ConfigurationError(
            f"Parameter config must be a mapping, got {type(values).__name__}")

    known = set(MPCParams.field_names())
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown parameter(s): {', '.join(unknown)}")

    try:
        return MPCParams(**values)
    except TypeError as e:
        raise ConfigurationError(str(e)) from e


def load_params(config_path=None) -> MPCParams:
    """Load MPC parameters from YAML.

    Args:
        config_path: Path to params.yaml. If None, searches the source
            tree config/ directory; defaults are used if nothing is found.

    Returns:
        Validated MPCParams.
    """
    if config_path is None:
        config_path = _find_config_file('params.yaml')
        if config_path is None:
            logger.info("No params.yaml found, using defaults")
            return MPCParams()
    elif not os.path.isfile(config_path):
        raise ConfigurationError(f"Parameter file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            file_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {config_path}: {e}") from e

    params = params_from_dict(file_config)
    logger.info("Loaded MPC parameters from %s", config_path)
    return params


def params_from_args(argv) -> MPCParams:
    """Build MPCParams from positional launch arguments.

    Order: steps_ahead dt latency cte_coeff epsi_coeff speed_coeff
    acc_coeff steer_coeff consec_acc_coeff consec_steer_coeff debug
    """
    if len(argv) != len(_ARG_ORDER):
        raise ConfigurationError(
            f"Expected {len(_ARG_ORDER)} arguments "
            f"({' '.join(name for name, _ in _ARG_ORDER)}), got {len(argv)}")

    values = {}
    for (name, convert), raw in zip(_ARG_ORDER, argv):
        try:
            values[name] = convert(raw)
        except ValueError as e:
            raise ConfigurationError(f"Bad value for {name}: {raw!r}") from e
    return params_from_dict(values)


def _find_config_file(filename):
    """Search for a config file in standard locations."""
    # 1. Environment override
    env_dir = os.environ.get('MPC_TRACKING_CONFIG_DIR')
    if env_dir:
        candidate = os.path.join(env_dir, filename)
        if os.path.isfile(candidate):
            return candidate

    # 2. Source tree (development)
    source_dir = os.path.join(os.path.dirname(__file__), '..', 'config', filename)
    if os.path.isfile(source_dir):
        return os.path.abspath(source_dir)

    return None
