#!/usr/bin/env python3
"""
Chudnovsky generator benchmark.

Times full recomputation at the precision targets the scheduler visits and
verifies the first 50 digits of each result.

Usage:
    python scripts/benchmark_generator.py            # up to 256K digits
    python scripts/benchmark_generator.py --max 2000000
"""

import sys
import os
import time
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pinormal.chudnovsky import generate_digits, num_terms, verify_digits


def benchmark(max_digits: int):
    print("=" * 70)
    print("CHUDNOVSKY BINARY SPLITTING BENCHMARK")
    print("=" * 70)

    n = 1000
    while n <= max_digits:
        t0 = time.time()
        digits = generate_digits(n)
        elapsed = time.time() - t0

        verified = "✓" if verify_digits(digits) else "✗"
        rate = n / elapsed if elapsed > 0 else 0.0
        print(f"  {n:>10,} digits ({num_terms(n):>7,} terms): "
              f"{elapsed:8.3f}s ({rate:>12,.0f} d/s) {verified}")
        n *= 2

    print("=" * 70)
    print("BENCHMARK COMPLETE")
    print("=" * 70)


def main():
    parser = argparse.ArgumentParser(description="Chudnovsky generator benchmark")
    parser.add_argument("--max", type=int, default=256_000,
                        help="Largest digit count to time")
    args = parser.parse_args()
    benchmark(args.max)


if __name__ == "__main__":
    main()
