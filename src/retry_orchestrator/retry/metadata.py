"""
Retry state and metadata tracking.

AttemptState is the mutable, call-scoped state owned by one driver call.
RetryMetadata is the frozen summary produced when that call finishes; it is
logged and handed to the give-up hook for audit trails.
"""

from dataclasses import dataclass, field
from typing import Optional

from retry_orchestrator.models.enums import DriverState, TerminationReason


@dataclass
class AttemptState:
    """
    Mutable state of a single retry call.

    Never shared between calls: each `retry(...)` invocation creates its own
    instance and drops it when the call resolves.

    Attributes:
        attempt_number: Current attempt (1-based)
        current_delay: Delay used before the current attempt (seconds)
        last_failure: Most recent failure raised by the operation
        state: Current driver state
        delays: Every delay slept so far, in order
    """

    attempt_number: int = 1
    current_delay: Optional[float] = None
    last_failure: Optional[BaseException] = None
    state: DriverState = DriverState.IDLE
    delays: list[float] = field(default_factory=list)

    def transition(self, state: DriverState) -> None:
        if self.state.is_terminal:
            raise RuntimeError(f"Attempt state already terminated ({self.state.value})")
        self.state = state

    def advance(self, delay: float) -> None:
        """Record a completed delay and move to the next attempt."""
        self.current_delay = delay
        self.delays.append(delay)
        self.attempt_number += 1


@dataclass(frozen=True)
class RetryMetadata:
    """
    Summary of a finished retry call.

    Attributes:
        total_attempts: Invocations performed
        reason: Why the call stopped
        delays: Delays slept between attempts (seconds)
        total_latency_ms: Wall time from first invocation to resolution (ms)
        last_error_type: Class name of the last failure (None on success without failures)
    """

    total_attempts: int
    reason: TerminationReason
    delays: tuple[float, ...] = ()
    total_latency_ms: int = 0
    last_error_type: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate metadata invariants."""
        if self.total_attempts < 1:
            raise ValueError("total_attempts must be >= 1")

        if len(self.delays) >= self.total_attempts:
            raise ValueError("delays must be fewer than total_attempts")

        if self.total_latency_ms < 0:
            raise ValueError("total_latency_ms must be >= 0")

    @classmethod
    def from_state(
        cls, state: AttemptState, reason: TerminationReason, total_latency_ms: int
    ) -> "RetryMetadata":
        return cls(
            total_attempts=state.attempt_number,
            reason=reason,
            delays=tuple(state.delays),
            total_latency_ms=max(total_latency_ms, 0),
            last_error_type=type(state.last_failure).__name__ if state.last_failure else None,
        )
