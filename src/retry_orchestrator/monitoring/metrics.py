"""Custom Prometheus metrics for the retry orchestrator.

These metrics live in the default prometheus_client registry; the host
application decides how to expose them. Alert rules should be configured for:
- retry_terminations_total{reason="exhausted"} (operations failing after all attempts)
- retry_classification_faults_total (malformed policies or failure shapes)
"""

from typing import Optional

from prometheus_client import Counter, Histogram

from retry_orchestrator.config import Settings, settings as global_settings

# === Attempt Metrics ===

retry_attempts_total = Counter(
    "retry_attempts_total",
    "Total invocations of wrapped operations by outcome",
    ["outcome"],
)
"""
Invocation counter.

Labels:
- outcome: success (operation returned), failure (operation raised)
"""

retry_terminations_total = Counter(
    "retry_terminations_total",
    "Total finished retry calls by termination reason",
    ["reason"],
)
"""
Finished retry calls.

Labels:
- reason: succeeded, exhausted, not_eligible, cancelled

Alert thresholds:
- WARN: exhausted rate > 5% of finished calls
"""

# === Delay Metrics ===

retry_delay_seconds = Histogram(
    "retry_delay_seconds",
    "Delay scheduled before a retry attempt, in seconds",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 300.0],
)
"""
Scheduled delay histogram (one observation per suspension).

Buckets cover sub-second retries up to multi-minute compounding backoff.
"""

# === Policy Fault Metrics ===

retry_classification_faults_total = Counter(
    "retry_classification_faults_total",
    "Policy evaluations that degraded to a safe default",
    ["operation"],
)
"""
Degraded policy evaluations (classifier lookups and backoff calls).

Labels:
- operation: is_retry_eligible, attempt_limit_for, compute_delay

Any non-zero rate points at a malformed policy or an unexpected failure shape.
"""


def _enabled(settings: Optional[Settings]) -> bool:
    return (settings or global_settings).METRICS_ENABLED


def record_attempt(outcome: str, settings: Optional[Settings] = None) -> None:
    if _enabled(settings):
        retry_attempts_total.labels(outcome=outcome).inc()


def record_termination(reason: str, settings: Optional[Settings] = None) -> None:
    if _enabled(settings):
        retry_terminations_total.labels(reason=reason).inc()


def record_delay(seconds: float, settings: Optional[Settings] = None) -> None:
    if _enabled(settings):
        retry_delay_seconds.observe(seconds)


def record_classification_fault(operation: str, settings: Optional[Settings] = None) -> None:
    if _enabled(settings):
        retry_classification_faults_total.labels(operation=operation).inc()
