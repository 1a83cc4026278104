"""
pinormal - Is π a Normal Number?

Generates decimal digits of π to growing precision and tests the stream,
live, against what a normal number predicts: every digit at 10%, entropy
at log2(10) bits, chi-squared near its degrees of freedom.

Quick Start - Digits:
    from pinormal import generate_digits

    digits = generate_digits(50)   # [1, 4, 1, 5, 9, 2, 6, ...]

Quick Start - Statistics:
    from pinormal import DigitStats

    stats = DigitStats()
    stats.add_digits(digits)
    stats.entropy(), stats.chi_squared(), stats.max_deviation()

Full Pipeline:
    from pinormal import NormalityPipeline

    stats = NormalityPipeline().run(duration=10.0)

Core Principle:
    Don't fetch the digits. Manufacture them.
    Exact digits, never retracted.
    Bounded memory, unbounded stream.

Normality of π in base 10 is conjectured, not proven; this is a heuristic.
"""

__version__ = "0.1.0"

# =============================================================================
# GENERATOR: Chudnovsky binary splitting over GMP integers
# =============================================================================

from .chudnovsky import (
    binary_split,
    merge_splits,
    isqrt,
    num_terms,
    compute_pi_scaled,
    generate_digits,
    verify_digits,
    ChudnovskyGenerator,
)

# =============================================================================
# STATISTICS: Streaming normality metrics
# =============================================================================

from .stats import (
    DigitStats,
    StatsSnapshot,
    History,
    sample_interval,
    sparkline,
)

# =============================================================================
# PIPELINE: Scheduler, hand-off, producer/consumer
# =============================================================================

from .config import (
    PipelineConfig,
    SchedulerConfig,
    StatsConfig,
)

from .scheduler import (
    PrecisionScheduler,
    Round,
)

from .pipeline import (
    CancellationToken,
    DigitChannel,
    DigitProducer,
    DigitConsumer,
    NormalityPipeline,
)

__all__ = [
    # Version
    "__version__",

    # Generator
    "binary_split",
    "merge_splits",
    "isqrt",
    "num_terms",
    "compute_pi_scaled",
    "generate_digits",
    "verify_digits",
    "ChudnovskyGenerator",

    # Statistics
    "DigitStats",
    "StatsSnapshot",
    "History",
    "sample_interval",
    "sparkline",

    # Pipeline
    "PipelineConfig",
    "SchedulerConfig",
    "StatsConfig",
    "PrecisionScheduler",
    "Round",
    "CancellationToken",
    "DigitChannel",
    "DigitProducer",
    "DigitConsumer",
    "NormalityPipeline",
]
