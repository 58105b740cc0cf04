"""
Closed-loop simulation of the MPC controller on a synthetic track.

The plant is the same kinematic model the controller uses (speed is set
directly from the command). Each tick the waypoints ahead of the vehicle
are moved into the vehicle frame, so the controller always sees the
vehicle at the origin with zero heading.
"""

import csv
import logging
import numpy as np
from typing import Dict, List, Optional, Tuple

from .controller import MPCController

logger = logging.getLogger(__name__)

LOG_FIELDS = [
    'tick', 'x', 'y', 'psi', 'v', 'cte', 'epsi',
    'steering', 'speed', 'cost', 'converged', 'solve_ms',
]


def sinusoid_track(length: float = 200.0, spacing: float = 2.0,
                   amplitude: float = 2.0, wavelength: float = 150.0) -> np.ndarray:
    """Waypoints [M, 2] along y = amplitude * sin(2 pi x / wavelength)."""
    xs = np.arange(0.0, length + spacing, spacing)
    ys = amplitude * np.sin(2.0 * np.pi * xs / wavelength)
    return np.column_stack([xs, ys])


def to_vehicle_frame(waypoints: np.ndarray, x: float, y: float, psi: float) -> np.ndarray:
    """Express world-frame waypoints relative to the pose (x, y, psi)."""
    dx = waypoints[:, 0] - x
    dy = waypoints[:, 1] - y
    cos_p = np.cos(psi)
    sin_p = np.sin(psi)
    return np.column_stack([dx * cos_p + dy * sin_p, -dx * sin_p + dy * cos_p])


def waypoints_ahead(track: np.ndarray, x: float, y: float,
                    count: int) -> Optional[np.ndarray]:
    """Next `count` waypoints starting at the one closest to (x, y)."""
    dists = np.hypot(track[:, 0] - x, track[:, 1] - y)
    idx = int(np.argmin(dists))
    ahead = track[idx:idx + count]
    if len(ahead) < count:
        return None
    return ahead


def plant_step(pose: Tuple[float, float, float], steering: float, speed: float,
               lf: float, dt: float) -> Tuple[float, float, float]:
    x, y, psi = pose
    return (
        x + speed * np.cos(psi) * dt,
        y + speed * np.sin(psi) * dt,
        psi - speed * steering / lf * dt,
    )


def run_closed_loop(
    controller: MPCController,
    track: np.ndarray,
    initial_pose: Tuple[float, float, float] = (0.0, 0.0, 0.0),
    initial_speed: float = 0.0,
    n_ticks: int = 100,
    lookahead: int = 10,
) -> List[Dict[str, float]]:
    """
    Drive the controller around the track.

    Stops early when fewer than `lookahead` waypoints remain ahead.

    Returns:
        One row per tick, keyed by LOG_FIELDS
    """
    params = controller.params
    pose = tuple(float(p) for p in initial_pose)
    speed = float(initial_speed)
    steering = 0.0
    rows = []

    for tick in range(n_ticks):
        ahead = waypoints_ahead(track, pose[0], pose[1], lookahead)
        if ahead is None:
            logger.info("End of track reached after %d ticks", tick)
            break

        local = to_vehicle_frame(ahead, *pose)
        coeffs = controller.fit_waypoints(local)
        # Vehicle frame: the car sits at the origin facing +x
        state = controller.state_from_pose(coeffs, 0.0, 0.0, 0.0, speed)

        result = controller.step(state, local, last_steering=steering)

        rows.append({
            'tick': tick,
            'x': pose[0],
            'y': pose[1],
            'psi': pose[2],
            'v': speed,
            'cte': state.cte,
            'epsi': state.epsi,
            'steering': result.steering,
            'speed': result.speed,
            'cost': result.cost,
            'converged': int(result.converged),
            'solve_ms': result.solve_time * 1000.0,
        })

        steering = result.steering
        speed = result.speed
        pose = plant_step(pose, steering, speed, params.lf, params.dt)

    return rows


def track_errors(rows: List[Dict[str, float]]) -> np.ndarray:
    """Absolute cross-track error per tick."""
    return np.array([abs(r['cte']) for r in rows])


def write_csv(rows: List[Dict[str, float]], path: str):
    with open(path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=LOG_FIELDS)
        writer.writeheader()
        writer.writerows(rows)
