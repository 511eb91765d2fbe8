"""
Delay computation for the retry driver.

The delay before attempt k is the policy's backoff function applied (k - 1)
times to the base interval, so growth compounds across attempts:

    base=2, backoff=n*n  ->  attempt 1: 2, attempt 2: 4, attempt 3: 16

All values are seconds. Conversion to a scheduler unit happens where the
driver suspends, never here.
"""

import structlog

from retry_orchestrator.models.policy import BackoffFn, RetryPolicy

logger = structlog.get_logger(__name__)


def _bounded(delay: float, policy: RetryPolicy) -> float:
    if delay < 0:
        logger.warning("Backoff produced negative delay, clamping to 0", delay=delay)
    if delay <= 0:
        # Also folds -0.0 into 0.0
        delay = 0.0
    if policy.max_interval_seconds is not None:
        delay = min(delay, policy.max_interval_seconds)
    return float(delay)


def compute_delay(attempt_number: int, policy: RetryPolicy) -> float:
    """
    Compute the delay (seconds) to wait before `attempt_number`.

    Always folds from the base interval, so the result depends only on the
    attempt number and the policy. Clamping and the cap apply to the final
    value, never to intermediate steps.

    Args:
        attempt_number: 1-based attempt the delay precedes
        policy: Retry policy (base interval, backoff function, cap)

    Returns:
        Delay in seconds (>= 0)
    """
    base = policy.base_interval_seconds
    backoff_fn = policy.backoff_fn

    if backoff_fn is None or attempt_number <= 1:
        return _bounded(base, policy)

    # Loop instead of recursion: stack depth stays flat for large attempt limits
    delay = base
    for _ in range(attempt_number - 1):
        delay = backoff_fn(delay)
    return _bounded(delay, policy)


# === Stock backoff functions ===


def exponential(factor: float = 2.0) -> BackoffFn:
    """Multiply the current delay by `factor` on every step."""
    if factor < 1:
        raise ValueError("factor must be >= 1")

    def _next(delay: float) -> float:
        return delay * factor

    return _next


def linear(step: float) -> BackoffFn:
    """Add `step` seconds to the current delay on every step."""
    if step < 0:
        raise ValueError("step must be >= 0")

    def _next(delay: float) -> float:
        return delay + step

    return _next


def squared() -> BackoffFn:
    """Square the current delay on every step (n -> n*n)."""

    def _next(delay: float) -> float:
        return delay * delay

    return _next


def capped(backoff_fn: BackoffFn, maximum: float) -> BackoffFn:
    """Wrap a backoff function so no step exceeds `maximum` seconds."""
    if maximum < 0:
        raise ValueError("maximum must be >= 0")

    def _next(delay: float) -> float:
        return min(backoff_fn(delay), maximum)

    return _next
