"""Monitoring and metrics instrumentation for the retry orchestrator.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from retry_orchestrator.monitoring.metrics import (
    record_attempt,
    record_classification_fault,
    record_delay,
    record_termination,
    retry_attempts_total,
    retry_classification_faults_total,
    retry_delay_seconds,
    retry_terminations_total,
)

__all__ = [
    "retry_attempts_total",
    "retry_terminations_total",
    "retry_delay_seconds",
    "retry_classification_faults_total",
    "record_attempt",
    "record_termination",
    "record_delay",
    "record_classification_fault",
]
