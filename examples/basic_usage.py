#!/usr/bin/env python3
"""
Basic pinormal Usage Example

Demonstrates:
1. Generating exact digits of π
2. Feeding them to the streaming statistics
3. Running the live pipeline with a custom refresh
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pinormal import (
    DigitStats,
    NormalityPipeline,
    PipelineConfig,
    SchedulerConfig,
    generate_digits,
    sparkline,
    verify_digits,
)


def main():
    print("=" * 60)
    print("pinormal Basic Usage Example")
    print("=" * 60)

    # 1. Exact digits
    print("\n[1] Chudnovsky Digits")
    print("-" * 40)

    digits = generate_digits(100)
    print(f"π = 3.{''.join(map(str, digits))}")
    print(f"First 50 verified: {'✓' if verify_digits(digits) else '✗'}")

    # 2. Statistics over a fixed prefix
    print("\n[2] Digit Statistics (10,000 digits)")
    print("-" * 40)

    stats = DigitStats()
    stats.add_digits(generate_digits(10_000))
    for d, pct in enumerate(stats.percentages()):
        print(f"  {d} │ {pct:5.2f}% ({pct - 10.0:+.2f})")
    print(f"Chi-squared:   {stats.chi_squared():.4f}")
    print(f"Entropy:       {stats.entropy():.6f} bits")
    print(f"Max deviation: {stats.max_deviation():.4f}%")
    print(f"Trend:         {sparkline(stats.max_dev_history.values, 40)}")

    # 3. Live pipeline
    print("\n[3] Live Pipeline (up to 64,000 digits)")
    print("-" * 40)

    def refresh(live):
        print(f"\r  {live.total:>8,} digits  H={live.entropy():.6f}", end="", flush=True)

    config = PipelineConfig(scheduler=SchedulerConfig(max_target=64_000))
    result = NormalityPipeline(config, refresh=refresh).run(duration=60.0, stop_at_cap=True)
    print()
    print(f"Final: {result.total:,} digits, chi² = {result.chi_squared():.4f}")


if __name__ == "__main__":
    main()
