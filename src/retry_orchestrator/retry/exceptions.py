"""
Retry engine exceptions.

ClassificationFault never leaves the classifier: it is caught there and
mapped to a safe default. RetryCancelled is raised by the driver when a
caller aborts a pending delay.
"""

from typing import Any


class ClassificationFault(Exception):
    """
    Raised internally when eligibility or attempt limit cannot be resolved.

    Examples: a policy object missing fields, a failure whose code accessor
    raises, an unusable match pattern. The classifier catches it and falls
    back to "eligible" / the default attempt limit.

    Attributes:
        operation: Classifier operation that failed
        details: Structured error data for logging
    """

    def __init__(self, message: str, operation: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryCancelled(Exception):
    """
    Raised when the cancel event is set while the driver waits between attempts.

    The exception is chained from the last operation failure, which is also
    available as `last_failure`.

    Attributes:
        last_failure: Failure raised by the last completed attempt
        attempts: Number of invocations performed before cancellation
    """

    def __init__(self, last_failure: BaseException, attempts: int) -> None:
        self.last_failure = last_failure
        self.attempts = attempts
        super().__init__(
            f"Retry cancelled after {attempts} attempt(s). "
            f"Last error: {type(last_failure).__name__}: {last_failure}"
        )
