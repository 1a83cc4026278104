"""
Run configuration for the pi normality pipeline.

Defaults reproduce the reference behaviour: rounds start at 1,000 digits,
double each round up to 2,000,000, and hand off through a queue holding
at most two pending batches.
"""

from dataclasses import dataclass, field


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class SchedulerConfig:
    """Precision growth policy."""
    start_target: int = 1_000
    growth_factor: int = 2
    max_target: int = 2_000_000  # bounds worst-case round cost
    guard_digits: int = 20

    def validate(self):
        if self.start_target < 1:
            raise ValueError(f"start_target must be >= 1, got {self.start_target}")
        if self.growth_factor < 2:
            raise ValueError(f"growth_factor must be >= 2, got {self.growth_factor}")
        if self.max_target < self.start_target:
            raise ValueError(
                f"max_target ({self.max_target}) must be >= start_target ({self.start_target})"
            )
        if self.guard_digits < 0:
            raise ValueError(f"guard_digits must be >= 0, got {self.guard_digits}")
        return self


@dataclass
class StatsConfig:
    """Memory bounds of the stats engine."""
    recent_capacity: int = 500
    recent_evict: int = 200
    history_limit: int = 300
    prefix_digits: int = 200

    def validate(self):
        if self.recent_capacity < 1:
            raise ValueError(f"recent_capacity must be >= 1, got {self.recent_capacity}")
        if not 1 <= self.recent_evict <= self.recent_capacity:
            raise ValueError(
                f"recent_evict must be in [1, {self.recent_capacity}], got {self.recent_evict}"
            )
        if self.history_limit < 2:
            raise ValueError(f"history_limit must be >= 2, got {self.history_limit}")
        if self.prefix_digits < 0:
            raise ValueError(f"prefix_digits must be >= 0, got {self.prefix_digits}")
        return self


@dataclass
class PipelineConfig:
    """Producer/consumer wiring and loop cadence (seconds)."""
    queue_capacity: int = 2
    refresh_interval: float = 0.05  # ~20 refreshes/sec
    idle_sleep: float = 0.001
    poll_interval: float = 0.05
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)

    def validate(self):
        if self.queue_capacity < 1:
            raise ValueError(f"queue_capacity must be >= 1, got {self.queue_capacity}")
        for name in ("refresh_interval", "idle_sleep", "poll_interval"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        self.scheduler.validate()
        self.stats.validate()
        return self
