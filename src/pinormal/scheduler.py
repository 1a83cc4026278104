"""
Precision Scheduler

Drives exponentially growing requests to the digit generator and hands
out only the digits that are new since the previous round:

    round 1:  generate(1000)  -> digits [0, 1000)
    round 2:  generate(2000)  -> digits [1000, 2000)
    round 3:  generate(4000)  -> digits [2000, 4000)
    ...
    capped at max_target (2,000,000 by default)

A round's batch is only committed (computed = target) after the caller
reports a successful hand-off.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .chudnovsky import ChudnovskyGenerator
from .config import SchedulerConfig

logger = logging.getLogger(__name__)


@dataclass
class Round:
    """One precision round: the requested target and its new digits."""
    index: int
    start: int
    target: int
    digits: List[int]

    def __len__(self):
        return len(self.digits)


class PrecisionScheduler:
    """
    State machine: computed = 0, target = start_target.

    next_round() computes the suffix [computed, target); commit() advances
    computed to target and grows target by growth_factor up to max_target.
    Once computed reaches max_target there is nothing new to produce and
    the scheduler is exhausted.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None,
                 generate: Optional[Callable[[int], List[int]]] = None):
        self.config = (config or SchedulerConfig()).validate()
        self.generate = generate or ChudnovskyGenerator(self.config.guard_digits)
        self.computed = 0
        self.target = self.config.start_target
        self.rounds = 0
        self._pending: Optional[Round] = None

    @property
    def exhausted(self) -> bool:
        return self.computed >= self.config.max_target

    def next_round(self) -> Round:
        """Compute the digits new to this round (does not advance state)."""
        if self.exhausted:
            raise RuntimeError(f"precision cap reached ({self.computed} digits)")

        logger.debug("Round %d: computing %d digits", self.rounds + 1, self.target)
        all_digits = self.generate(self.target)
        self._pending = Round(
            index=self.rounds + 1,
            start=self.computed,
            target=self.target,
            digits=all_digits[self.computed:self.target],
        )
        return self._pending

    def commit(self):
        """Mark the pending round as handed off and grow the target."""
        if self._pending is None:
            raise RuntimeError("commit() called without a pending round")
        self.computed = self._pending.target
        self.target = min(self.target * self.config.growth_factor, self.config.max_target)
        self.rounds += 1
        self._pending = None

        if self.exhausted:
            logger.info("Precision cap reached: %d digits", self.computed)

    def __iter__(self):
        return self

    def __next__(self) -> Round:
        """Uncontrolled iteration: every round is committed immediately."""
        if self.exhausted:
            raise StopIteration
        batch = self.next_round()
        self.commit()
        return batch
