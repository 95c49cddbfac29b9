from __future__ import annotations

from dataclasses import dataclass


@dataclass
class EndpointState:
    """Per-endpoint counters, owned and mutated by a single monitor task."""

    url: str
    consecutive_failures: int = 0
    total_failures: int = 0
    total_successes: int = 0

    def record_success(self) -> bool:
        """Count a successful probe. Returns True when it ends a failure episode."""
        self.total_successes += 1
        recovered = self.consecutive_failures > 0
        self.consecutive_failures = 0
        return recovered

    def record_failure(self) -> int:
        self.total_failures += 1
        self.consecutive_failures += 1
        return self.consecutive_failures


def should_notify(consecutive_failures: int, *, notify_after_failures: int, rereport_every: int) -> bool:
    """
    Failure alert gate: fire once when the streak reaches the threshold, then
    again on every ``rereport_every``-th consecutive failure.
    """
    if consecutive_failures <= 0:
        return False
    if rereport_every < 1:
        raise ValueError("rereport_every must be >= 1")
    return consecutive_failures == notify_after_failures or consecutive_failures % rereport_every == 0
