"""
Data models for the retry orchestrator.

Includes:
- Policy models (RetryPolicy, MatchRule)
- Enums (DriverState, TerminationReason)
"""

from retry_orchestrator.models.enums import DriverState, TerminationReason
from retry_orchestrator.models.policy import (
    MatchRule,
    RetryPolicy,
    default_policy,
    normalize_classification_key,
)

__all__ = [
    # Enums
    "DriverState",
    "TerminationReason",
    # Policy
    "MatchRule",
    "RetryPolicy",
    "default_policy",
    "normalize_classification_key",
]
