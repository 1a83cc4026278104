#!/usr/bin/env python3
"""
PI NORMALITY: HEADLESS RUNNER
=============================

Generates digits of π with exponentially growing precision and tracks how
closely their distribution matches a normal number.

Usage:
    pinormal                         # Run until Ctrl-C
    pinormal --duration 30           # Stop after 30 seconds
    pinormal --cap 100000 --exit-at-cap  # Stop once 100K digits are analyzed
    pinormal --log-file run.log      # Also log to a file (DEBUG)
"""

import sys
import time
import logging
import argparse
from datetime import timedelta
from pathlib import Path
from typing import Optional

from . import __version__
from .config import PipelineConfig, SchedulerConfig
from .pipeline import NormalityPipeline
from .stats import DigitStats, MAX_ENTROPY, sparkline

LOGGER_NAME = "pinormal"


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(log_file: Optional[Path] = None, verbose: bool = False) -> logging.Logger:
    """Set up console logging, plus a DEBUG file log when requested."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    # Console handler
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_fmt = logging.Formatter('[%(asctime)s] %(message)s', datefmt='%H:%M:%S')
    console.setFormatter(console_fmt)
    logger.addHandler(console)

    # File handler
    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_fmt = logging.Formatter('[%(asctime)s] %(levelname)s: %(message)s')
        file_handler.setFormatter(file_fmt)
        logger.addHandler(file_handler)

    return logger


# =============================================================================
# PROGRESS REPORTER
# =============================================================================

class LogReporter:
    """Refresh callback that logs a one-line status every interval seconds."""

    def __init__(self, logger: logging.Logger, interval: float = 2.0):
        self.logger = logger
        self.interval = interval
        self._last = 0.0
        self._last_total = -1

    def __call__(self, stats: DigitStats):
        now = time.time()
        if now - self._last < self.interval or stats.total == self._last_total:
            return
        self._last = now
        self._last_total = stats.total

        snap = stats.snapshot()
        self.logger.info(
            f"Digits: {snap.total:>12,} | Rate: {snap.throughput:>10,.0f}/sec | "
            f"chi²: {snap.chi_squared:8.3f} | H: {snap.entropy:.6f}/{MAX_ENTROPY:.6f} | "
            f"max dev: {snap.max_deviation:.4f}% "
            f"{sparkline([v for _, v in snap.max_dev_history], 30)}"
        )


def log_summary(logger: logging.Logger, stats: DigitStats):
    snap = stats.snapshot()
    logger.info("=" * 70)
    logger.info("RUN COMPLETE")
    logger.info("=" * 70)
    logger.info(f"Digits analyzed: {snap.total:,}")
    logger.info(f"Elapsed: {timedelta(seconds=int(snap.elapsed))}")
    logger.info(f"Average rate: {snap.throughput:,.0f} digits/sec")
    logger.info(f"Pi = {snap.pi_prefix[:52]}...")
    logger.info("-" * 70)
    for digit, (count, pct) in enumerate(zip(snap.counts, snap.percentages())):
        logger.info(f"  {digit} │ {count:>10,} ({pct:5.2f}% {pct - 10.0:+6.2f}%)")
    logger.info("-" * 70)
    logger.info(f"Chi-squared (9 dof): {snap.chi_squared:.4f}")
    logger.info(f"Entropy: {snap.entropy:.6f} bits (max {MAX_ENTROPY:.6f})")
    logger.info(f"Max deviation: {snap.max_deviation:.4f}%")
    logger.info("-" * 70)
    for history in stats.histories:
        logger.info(
            f"  {history.name:<14} {len(history):>4} samples "
            f"{sparkline(history.values, 40)}"
        )
    logger.info("=" * 70)


# =============================================================================
# CLI
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pinormal",
        description="Pi normal number test (Chudnovsky binary splitting)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pinormal                    # Run until Ctrl-C
  pinormal --duration 60      # One minute run
  pinormal --start 500 --cap 64000
        """
    )
    parser.add_argument("--duration", type=float, default=None,
                        help="Stop after this many seconds")
    parser.add_argument("--start", type=int, default=1_000,
                        help="Digits requested in the first round")
    parser.add_argument("--cap", type=int, default=2_000_000,
                        help="Largest precision target in digits")
    parser.add_argument("--exit-at-cap", action="store_true",
                        help="Exit once every digit up to the cap is analyzed")
    parser.add_argument("--report-interval", type=float, default=2.0,
                        help="Seconds between progress lines")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Also write a DEBUG log to this file")
    parser.add_argument("--verbose", action="store_true",
                        help="DEBUG output on the console")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.log_file, args.verbose)

    try:
        config = PipelineConfig(
            scheduler=SchedulerConfig(start_target=args.start, max_target=args.cap),
        ).validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    pipeline = NormalityPipeline(
        config,
        refresh=LogReporter(logger, interval=args.report_interval),
    )

    logger.info("=" * 70)
    logger.info("PI NORMAL NUMBER TEST  [Chudnovsky Binary Splitting]")
    logger.info("=" * 70)

    try:
        pipeline.run(duration=args.duration, stop_at_cap=args.exit_at_cap)
    except KeyboardInterrupt:
        pipeline.stop()
        logger.info("Interrupted! Stopping...")

    log_summary(logger, pipeline.stats)
    return 0


if __name__ == "__main__":
    sys.exit(main())
