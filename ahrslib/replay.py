#!/usr/bin/env python3
"""
Replay a recorded IMU CSV through the attitude filter.

The input CSV needs columns gx, gy, gz, ax, ay, az (one row per sample at
a fixed rate).

Usage:
    ahrs-replay recording.csv --sample-rate 100 --output history.csv
    ahrs-replay recording.csv --config config/default.yaml --reposition-at 500 1500
"""

import argparse
import logging
import sys
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from .config import ConfigLoadError, ConfigValidationError, FilterConfig, load_config
from .filter import AttitudeFilter

logger = logging.getLogger(__name__)

SAMPLE_COLUMNS = ['gx', 'gy', 'gz', 'ax', 'ay', 'az']


def replay_frame(df: pd.DataFrame,
                 filt: AttitudeFilter,
                 reposition_at: Iterable[int] = ()) -> AttitudeFilter:
    """Feed every row of `df` to `filt`, calling reposition() before listed row indices."""
    missing = [c for c in SAMPLE_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f"Missing columns: {', '.join(missing)}")

    reposition_at = set(reposition_at)
    samples = df[SAMPLE_COLUMNS].to_numpy(dtype=float)
    for i, row in enumerate(samples):
        if i in reposition_at:
            filt.reposition()
        filt.update(*row)
    return filt


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Replay IMU samples through the attitude filter')
    parser.add_argument('input', help='CSV with columns gx, gy, gz, ax, ay, az')
    parser.add_argument('--sample-rate', type=float, default=100.0, help='Sampling rate in Hz')
    parser.add_argument('--config', default=None, help='YAML filter configuration')
    parser.add_argument('--output', default=None, help='Write the history export to this CSV')
    parser.add_argument('--reposition-at', type=int, nargs='*', default=[],
                        help='Row indices before which reposition() is called')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        config = load_config(args.config) if args.config else FilterConfig()
    except (ConfigLoadError, ConfigValidationError) as e:
        logger.error(str(e))
        return 2

    try:
        df = pd.read_csv(args.input)
    except FileNotFoundError:
        logger.error(f"Input file not found: {args.input}")
        return 2

    filt = AttitudeFilter(args.sample_rate, config=config, history=args.output is not None)
    try:
        replay_frame(df, filt, args.reposition_at)
    except KeyError as e:
        logger.error(e.args[0])
        return 2

    logger.info(f"Replayed {filt.ticks} samples ({filt.rejected_ticks} rejected)")
    logger.info(f"Orientation: {np.round(filt.current_orientation(), 5)}")
    logger.info(f"Euler (deg): {np.round(np.degrees(filt.current_euler_angles()), 3)}")
    logger.info(f"Gyro bias (rad/s): {np.round(filt.bias, 5)}")

    if args.output:
        path = filt.history_log.to_csv(args.output)
        logger.info(f"History written to {path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
