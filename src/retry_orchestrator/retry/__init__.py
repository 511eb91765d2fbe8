"""
Retry engine: classifier, backoff and driver.

The driver re-invokes a fallible operation under a RetryPolicy:

1. **Classifier**: decides whether a failure is retry-eligible and how many
   invocations its class (exact status code, hundred-range, default) allows
2. **Backoff**: computes the compounding delay before each retry
3. **Driver**: invokes, evaluates, delays and re-invokes, then either
   returns or re-raises the last failure unchanged

Main Components:
    - RetryEngine: Sync and async drivers
    - retry / retry_async / retrying: Convenience entry points
    - is_retry_eligible / attempt_limit_for: Classifier
    - compute_delay: Backoff fold
    - OperationFailure: Failure carrying an optional code and message
    - RetryCancelled: Raised when a pending delay is cancelled

Usage:
    >>> from retry_orchestrator.retry import RetryEngine
    >>> engine = RetryEngine()
    >>> engine.retry(call_upstream, RetryPolicy(default_attempt_limit=3))
"""

from retry_orchestrator.retry.backoff import (
    capped,
    compute_delay,
    exponential,
    linear,
    squared,
)
from retry_orchestrator.retry.classifier import (
    attempt_limit_for,
    classification_keys,
    is_retry_eligible,
)
from retry_orchestrator.retry.engine import RetryEngine, retry, retry_async, retrying
from retry_orchestrator.retry.exceptions import ClassificationFault, RetryCancelled
from retry_orchestrator.retry.failures import (
    OperationFailure,
    failure_code,
    failure_message,
)
from retry_orchestrator.retry.metadata import AttemptState, RetryMetadata

__all__ = [
    "RetryEngine",
    "retry",
    "retry_async",
    "retrying",
    "is_retry_eligible",
    "attempt_limit_for",
    "classification_keys",
    "compute_delay",
    "exponential",
    "linear",
    "squared",
    "capped",
    "OperationFailure",
    "failure_code",
    "failure_message",
    "ClassificationFault",
    "RetryCancelled",
    "AttemptState",
    "RetryMetadata",
]
