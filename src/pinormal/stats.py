"""
Streaming Normality Statistics

Consumes an unbounded digit stream one digit at a time under fixed memory:

- counts[0..9] and total are exact
- chi-squared, entropy and max deviation are pure functions of the counts
- three trend histories are sampled at adaptive intervals and decimated
  (every second sample kept) whenever they outgrow their limit
- the recent-digits window is trimmed in batches, not one digit at a time

For a normal number every digit converges to 10%, entropy to
log2(10) ≈ 3.321928 bits and chi-squared stays on the order of its
9 degrees of freedom.
"""

import math
import time
import threading
from dataclasses import dataclass, field
from itertools import islice
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import StatsConfig

NUM_DIGITS = 10
MAX_ENTROPY = math.log2(NUM_DIGITS)

SPARK_BLOCKS = "▁▂▃▄▅▆▇█"


def sample_interval(total: int) -> int:
    """Sampling period for the trend histories at a given digit count."""
    if total <= 999:
        return 50
    if total <= 9_999:
        return 200
    if total <= 99_999:
        return 1_000
    return 5_000


# =============================================================================
# BOUNDED HISTORY
# =============================================================================

@dataclass
class History:
    """Trend samples keyed by the digit count at sampling time."""
    name: str
    limit: int = 300
    totals: List[int] = field(default_factory=list)
    values: List[float] = field(default_factory=list)

    def append(self, total: int, value: float):
        self.totals.append(total)
        self.values.append(value)
        if len(self.values) > self.limit:
            self.decimate()

    def decimate(self):
        """Keep every second sample, in order."""
        self.totals = self.totals[::2]
        self.values = self.values[::2]

    def samples(self) -> List[Tuple[int, float]]:
        return list(zip(self.totals, self.values))

    def __len__(self):
        return len(self.values)


@dataclass(frozen=True)
class StatsSnapshot:
    """Read-only copy of the engine state for a presentation layer."""
    counts: Tuple[int, ...]
    total: int
    elapsed: float
    chi_squared: float
    entropy: float
    max_deviation: float
    throughput: float
    max_dev_history: Tuple[Tuple[int, float], ...]
    entropy_history: Tuple[Tuple[int, float], ...]
    chi_sq_history: Tuple[Tuple[int, float], ...]
    recent: Tuple[int, ...]
    prefix: Tuple[int, ...]

    @property
    def pi_prefix(self) -> str:
        return "3." + "".join(str(d) for d in self.prefix)

    def percentages(self) -> List[float]:
        if self.total == 0:
            return [0.0] * NUM_DIGITS
        return [c / self.total * 100.0 for c in self.counts]


# =============================================================================
# STATS ENGINE
# =============================================================================

class DigitStats:
    """
    Incremental digit statistics.

    Written by a single consumer. add_digit()/add_digits() and snapshot()
    share a lock so a presentation thread can read consistent state; the
    individual metric methods do not lock. add_digits() releases the lock
    between chunks of CHUNK_SIZE digits, so a snapshot waits for at most
    one chunk, never for a whole round.

    total is derived from counts, so the two cannot disagree even if a
    write is interrupted part way through.
    """

    CHUNK_SIZE = 5_000

    def __init__(self, config: Optional[StatsConfig] = None,
                 clock: Callable[[], float] = time.time):
        self.config = (config or StatsConfig()).validate()
        self.clock = clock
        self.start = clock()

        self.counts = np.zeros(NUM_DIGITS, dtype=np.int64)
        self._seen = 0  # sampling tally, resynced from counts per chunk
        self.prefix: List[int] = []  # permanent: first digits for "3.xxx"
        self.recent: List[int] = []  # rolling: latest digits

        limit = self.config.history_limit
        self.max_dev_history = History("max_deviation", limit)
        self.entropy_history = History("entropy", limit)
        self.chi_sq_history = History("chi_squared", limit)

        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add_digit(self, d: int):
        with self._lock:
            self._seen = self.total
            self._add(d)

    def add_digits(self, digits: Iterable[int]) -> int:
        """
        Add digits in order, one at a time; returns how many were added.

        The lock is held per chunk. Readers may observe a round part way
        through, but always at a digit boundary.
        """
        it = iter(digits)
        n = 0
        while True:
            chunk = list(islice(it, self.CHUNK_SIZE))
            if not chunk:
                return n
            with self._lock:
                self._seen = self.total
                for d in chunk:
                    self._add(d)
                    n += 1
            time.sleep(0)  # let a waiting reader take the lock

    def _add(self, d: int):
        if not 0 <= d <= 9:
            raise ValueError(f"digit must be in 0..9, got {d}")

        self.counts[d] += 1
        self._seen += 1

        if len(self.prefix) < self.config.prefix_digits:
            self.prefix.append(d)

        self.recent.append(d)
        if len(self.recent) > self.config.recent_capacity:
            del self.recent[:self.config.recent_evict]

        if self._seen % sample_interval(self._seen) == 0:
            self._sample()

    def _sample(self):
        total = self.total
        self.max_dev_history.append(total, self.max_deviation())
        self.entropy_history.append(total, self.entropy())
        self.chi_sq_history.append(total, self.chi_squared())

    @property
    def histories(self) -> Tuple[History, ...]:
        return (self.max_dev_history, self.entropy_history, self.chi_sq_history)

    # -------------------------------------------------------------------------
    # Derived metrics
    # -------------------------------------------------------------------------

    @property
    def total(self) -> int:
        """Digits consumed so far."""
        return int(self.counts.sum())

    def chi_squared(self) -> float:
        """Σ (count - expected)² / expected against a uniform expectation."""
        if self.total == 0:
            return 0.0
        expected = self.total / NUM_DIGITS
        return float(((self.counts - expected) ** 2 / expected).sum())

    def entropy(self) -> float:
        """Shannon entropy in bits of the empirical distribution."""
        if self.total == 0:
            return 0.0
        p = self.counts[self.counts > 0] / self.total
        return float(-(p * np.log2(p)).sum())

    def max_deviation(self) -> float:
        """Largest |percentage - 10| over all digits, in percentage points."""
        if self.total == 0:
            return 0.0
        return float(np.abs(self.counts / self.total * 100.0 - 10.0).max())

    def percentages(self) -> List[float]:
        if self.total == 0:
            return [0.0] * NUM_DIGITS
        return (self.counts / self.total * 100.0).tolist()

    def deviations(self) -> List[float]:
        """Signed deviation of each digit from 10%."""
        return [pct - 10.0 for pct in self.percentages()]

    @property
    def elapsed(self) -> float:
        return self.clock() - self.start

    def throughput(self) -> float:
        """Digits/sec since the engine was created."""
        elapsed = self.elapsed
        if elapsed > 0:
            return self.total / elapsed
        return 0.0

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            counts = tuple(int(c) for c in self.counts)
            return StatsSnapshot(
                counts=counts,
                total=sum(counts),
                elapsed=self.elapsed,
                chi_squared=self.chi_squared(),
                entropy=self.entropy(),
                max_deviation=self.max_deviation(),
                throughput=self.throughput(),
                max_dev_history=tuple(self.max_dev_history.samples()),
                entropy_history=tuple(self.entropy_history.samples()),
                chi_sq_history=tuple(self.chi_sq_history.samples()),
                recent=tuple(self.recent),
                prefix=tuple(self.prefix),
            )


# =============================================================================
# RENDERING HELPERS
# =============================================================================

def sparkline(values: Sequence[float], max_width: int) -> str:
    """Eight-level block rendering of the last max_width values."""
    if len(values) == 0 or max_width <= 0:
        return ""
    display = list(values[-max_width:])
    max_val = max(max(display), 0.001)
    out = []
    for v in display:
        idx = int(v / max_val * 7 + 0.5)
        out.append(SPARK_BLOCKS[min(max(idx, 0), 7)])
    return "".join(out)
