"""
Enumerations for retry orchestrator data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class DriverState(str, Enum):
    """
    States of one retry call.

    IDLE -> INVOKING -> (SUCCEEDED | EVALUATING) -> (DELAYING -> INVOKING) | FAILED
    """

    IDLE = "idle"
    INVOKING = "invoking"
    EVALUATING = "evaluating"
    DELAYING = "delaying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DriverState.SUCCEEDED, DriverState.FAILED)


class TerminationReason(str, Enum):
    """
    Why a retry call stopped.

    EXHAUSTED and NOT_ELIGIBLE both re-raise the last operation failure;
    the reason only shows up in logs, metrics and the give-up hook.
    """

    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    NOT_ELIGIBLE = "not_eligible"
    CANCELLED = "cancelled"
