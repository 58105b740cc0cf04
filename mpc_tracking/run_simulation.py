#!/usr/bin/env python3
"""Run the MPC controller in closed loop on a sinusoidal track.

Usage:
    mpc-simulate --config config/params.yaml --ticks 200 --csv run.csv --plot run.png
"""

import argparse
import logging
import sys

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

from .controller import MPCController
from .core.errors import MPCError
from .param_loader import load_params
from .simulation import run_closed_loop, sinusoid_track, track_errors, write_csv

logger = logging.getLogger(__name__)


def plot_run(rows, track, outfile):
    """Bird's-eye view plus cte / steering / speed traces."""
    ticks = [r['tick'] for r in rows]

    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle('MPC closed-loop simulation', fontsize=14)

    ax = axes[0, 0]
    ax.plot(track[:, 0], track[:, 1], 'k--', linewidth=1, label='Reference')
    ax.plot([r['x'] for r in rows], [r['y'] for r in rows], 'b-', linewidth=1.5, label='Vehicle')
    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title('Trajectory')
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[0, 1]
    ax.plot(ticks, [r['cte'] for r in rows], 'r-')
    ax.set_xlabel('tick')
    ax.set_ylabel('cte')
    ax.set_title('Cross-track error')
    ax.grid(True, alpha=0.3)

    ax = axes[1, 0]
    ax.plot(ticks, np.degrees([r['steering'] for r in rows]), 'g-')
    ax.set_xlabel('tick')
    ax.set_ylabel('steering [deg]')
    ax.set_title('Steering command')
    ax.grid(True, alpha=0.3)

    ax = axes[1, 1]
    ax.plot(ticks, [r['speed'] for r in rows], 'm-')
    ax.set_xlabel('tick')
    ax.set_ylabel('speed')
    ax.set_title('Speed command')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(outfile, dpi=120)
    plt.close(fig)


def main() -> int:
    parser = argparse.ArgumentParser(description="Closed-loop MPC tracking simulation")
    parser.add_argument("--config", default=None, help="Path to params.yaml")
    parser.add_argument("--ticks", type=int, default=200, help="Number of control ticks")
    parser.add_argument("--lookahead", type=int, default=10, help="Waypoints passed per tick")
    parser.add_argument("--amplitude", type=float, default=2.0, help="Track amplitude")
    parser.add_argument("--wavelength", type=float, default=150.0, help="Track wavelength")
    parser.add_argument("--csv", default="", help="Optional output CSV path")
    parser.add_argument("--plot", default="", help="Optional output PNG path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        params = load_params(args.config)
        controller = MPCController(params)
    except MPCError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    track = sinusoid_track(amplitude=args.amplitude, wavelength=args.wavelength)
    rows = run_closed_loop(
        controller, track,
        initial_pose=(0.0, 0.0, 0.0),
        initial_speed=params.ref_v,
        n_ticks=args.ticks,
        lookahead=args.lookahead,
    )
    if not rows:
        logger.error("Simulation produced no ticks")
        return 1

    errors = track_errors(rows)
    converged = sum(r['converged'] for r in rows)
    print(f"Ticks:          {len(rows)}")
    print(f"Converged:      {converged}/{len(rows)}")
    print(f"Mean |cte|:     {errors.mean():.3f}")
    print(f"Max |cte|:      {errors.max():.3f}")
    print(f"Mean solve:     {np.mean([r['solve_ms'] for r in rows]):.1f} ms")

    if args.csv:
        write_csv(rows, args.csv)
        print(f"Wrote {args.csv}")
    if args.plot:
        plot_run(rows, track, args.plot)
        print(f"Wrote {args.plot}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
