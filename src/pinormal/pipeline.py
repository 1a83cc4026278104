"""
Producer/Consumer Pipeline

    [PRODUCER THREAD]                         [CONSUMER LOOP]
    PrecisionScheduler → ChudnovskyGenerator  drain → DigitStats.add_digits
              │                                    ▲          │
              └──► DigitChannel (capacity 2) ──────┘      refresh(stats)
                     blocks when full

Both sides watch one CancellationToken. The producer blocks on a full
channel (backpressure); the consumer never blocks on it, so the refresh
cadence does not depend on how fast digits arrive. A generator call is
never interrupted: cancellation is seen between rounds or at hand-off.
"""

import time
import logging
import threading
from queue import Queue, Empty, Full
from typing import Callable, List, Optional

import gmpy2

from .config import PipelineConfig
from .scheduler import PrecisionScheduler, Round
from .stats import DigitStats

logger = logging.getLogger(__name__)


# =============================================================================
# PART 1: CANCELLATION AND HAND-OFF
# =============================================================================

class CancellationToken:
    """Shared run flag; one per run, passed to every flow."""

    def __init__(self):
        self._cancelled = threading.Event()

    @property
    def running(self) -> bool:
        return not self._cancelled.is_set()

    def cancel(self):
        self._cancelled.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep up to timeout; True if cancelled meanwhile."""
        return self._cancelled.wait(timeout)


class DigitChannel:
    """
    Bounded hand-off between producer and consumer.

    send() blocks while the channel is full and fails (returns False) once
    the consumer has closed it or the token is cancelled.
    """

    def __init__(self, capacity: int = 2, token: Optional[CancellationToken] = None,
                 poll_interval: float = 0.05):
        self.capacity = capacity
        self.token = token or CancellationToken()
        self.poll_interval = poll_interval
        self._queue = Queue(maxsize=capacity)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self):
        self._closed.set()

    def send(self, batch) -> bool:
        while not self.closed and self.token.running:
            try:
                self._queue.put(batch, timeout=self.poll_interval)
                return True
            except Full:
                continue
        return False

    def receive(self):
        """One pending batch, or None."""
        try:
            return self._queue.get_nowait()
        except Empty:
            return None

    def drain(self) -> List:
        """All currently pending batches in arrival order, without blocking."""
        batches = []
        while True:
            batch = self.receive()
            if batch is None:
                return batches
            batches.append(batch)

    def pending(self) -> int:
        return self._queue.qsize()


# =============================================================================
# PART 2: PRODUCER
# =============================================================================

class DigitProducer(threading.Thread):
    """Runs precision rounds and hands each round's new digits to the channel."""

    def __init__(self, scheduler: PrecisionScheduler, channel: DigitChannel,
                 token: CancellationToken):
        super().__init__(name="pinormal-producer", daemon=True)
        self.scheduler = scheduler
        self.channel = channel
        self.token = token
        self.error: Optional[BaseException] = None

    def run(self):
        try:
            while self.token.running:
                if self.scheduler.exhausted:
                    logger.info("Producer finished: %d digits delivered", self.scheduler.computed)
                    break

                t0 = time.time()
                batch = self.scheduler.next_round()
                elapsed = time.time() - t0
                rate = batch.target / elapsed if elapsed > 0 else 0.0
                logger.info(
                    "Round %d: %d digits in %.2fs (%d new, %.0f digits/sec)",
                    batch.index, batch.target, elapsed, len(batch), rate,
                )

                if not self.channel.send(batch):
                    logger.debug("Hand-off failed, consumer gone; producer exiting")
                    break
                self.scheduler.commit()
        except Exception as e:
            logger.exception("Producer failed")
            self.error = e
            self.token.cancel()


# =============================================================================
# PART 3: CONSUMER
# =============================================================================

class DigitConsumer:
    """
    Drains the channel into the stats engine and owns the refresh cadence.

    refresh(stats) is called at most every refresh_interval seconds and once
    more on exit.
    """

    def __init__(self, channel: DigitChannel, stats: DigitStats, token: CancellationToken,
                 refresh: Optional[Callable[[DigitStats], None]] = None,
                 refresh_interval: float = 0.05, idle_sleep: float = 0.001):
        self.channel = channel
        self.stats = stats
        self.token = token
        self.refresh = refresh
        self.refresh_interval = refresh_interval
        self.idle_sleep = idle_sleep
        self.batches = 0
        self._last_refresh = 0.0

    def poll(self) -> int:
        """Feed every pending batch to the stats engine; returns digits added."""
        added = 0
        for batch in self.channel.drain():
            digits = batch.digits if isinstance(batch, Round) else batch
            added += self.stats.add_digits(digits)
            self.batches += 1
        return added

    def _maybe_refresh(self, force: bool = False):
        if self.refresh is None:
            return
        now = time.time()
        if force or now - self._last_refresh >= self.refresh_interval:
            self.refresh(self.stats)
            self._last_refresh = now

    def run(self, until: Optional[Callable[[], bool]] = None):
        try:
            while self.token.running:
                self.poll()
                self._maybe_refresh()
                if until is not None and until():
                    break
                time.sleep(self.idle_sleep)
        finally:
            self.channel.close()
            self._maybe_refresh(force=True)


# =============================================================================
# PART 4: PIPELINE
# =============================================================================

class NormalityPipeline:
    """
    Generate → Analyze, continuously.

    Usage:
        pipeline = NormalityPipeline()
        stats = pipeline.run(duration=10.0)
        print(stats.entropy())
    """

    def __init__(self, config: Optional[PipelineConfig] = None,
                 token: Optional[CancellationToken] = None,
                 generate: Optional[Callable[[int], List[int]]] = None,
                 refresh: Optional[Callable[[DigitStats], None]] = None):
        self.config = (config or PipelineConfig()).validate()
        self.token = token or CancellationToken()

        self.stats = DigitStats(self.config.stats)
        self.scheduler = PrecisionScheduler(self.config.scheduler, generate)
        self.channel = DigitChannel(self.config.queue_capacity, self.token,
                                    self.config.poll_interval)
        self.producer = DigitProducer(self.scheduler, self.channel, self.token)
        self.consumer = DigitConsumer(
            self.channel, self.stats, self.token,
            refresh=refresh,
            refresh_interval=self.config.refresh_interval,
            idle_sleep=self.config.idle_sleep,
        )

    def _finished(self) -> bool:
        return not self.producer.is_alive() and self.channel.pending() == 0

    def run(self, duration: Optional[float] = None, stop_at_cap: bool = False,
            join_timeout: float = 1.0) -> DigitStats:
        """
        Run until the token is cancelled or duration elapses.

        Reaching the precision cap only ends the producer; the consumer
        keeps refreshing until stop() is called. With stop_at_cap=True the
        run also returns once every capped digit has been analyzed.
        """
        deadline = time.time() + duration if duration is not None else None

        def until() -> bool:
            if deadline is not None and time.time() >= deadline:
                return True
            return stop_at_cap and self._finished()

        logger.info(
            "Starting pipeline: start=%d cap=%d queue=%d",
            self.config.scheduler.start_target,
            self.config.scheduler.max_target,
            self.config.queue_capacity,
        )
        logger.info("Arithmetic: gmpy2 %s", gmpy2.version())
        self.producer.start()
        try:
            self.consumer.run(until=until)
        finally:
            self.token.cancel()
            self.channel.close()
            self.producer.join(timeout=join_timeout)
            if self.producer.is_alive():
                # Mid-round; the daemon thread is abandoned at exit.
                logger.debug("Producer still computing a round at shutdown")

        if self.producer.error is not None:
            raise self.producer.error
        logger.info("Pipeline stopped: %d digits analyzed", self.stats.total)
        return self.stats

    def stop(self):
        self.token.cancel()
