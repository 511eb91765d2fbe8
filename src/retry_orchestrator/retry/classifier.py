"""
Failure classifier.

Pure decision functions consulted by the driver after every failed attempt:

- is_retry_eligible: may this failure be retried at all?
- attempt_limit_for: how many invocations does this failure's class allow?

Both degrade instead of raising. A malformed policy or an odd failure shape
is logged as a ClassificationFault and mapped to a safe default (eligible,
default attempt limit) so the driver always gets a verdict.
"""

from typing import Any, Optional

import structlog

from retry_orchestrator.config import Settings, settings as global_settings
from retry_orchestrator.models.policy import MatchRule, RetryPolicy
from retry_orchestrator.monitoring.metrics import record_classification_fault
from retry_orchestrator.retry.exceptions import ClassificationFault
from retry_orchestrator.retry.failures import failure_code, failure_message

logger = structlog.get_logger(__name__)


def classification_keys(code: int) -> tuple[str, str]:
    """
    Lookup keys for a status code, most specific first.

    The hundred-range key rounds down to the hundreds digit:
    503 -> ("503", "5XX"), 404 -> ("404", "4XX").
    """
    return str(code), f"{code // 100}XX"


def _matches(rule: Any, message: str) -> bool:
    if isinstance(rule, MatchRule):
        return rule.matches(message)
    if isinstance(rule, str):
        return rule.lower() in message.lower()
    raise ClassificationFault(
        "Unsupported match rule",
        operation="is_retry_eligible",
        details={"rule_type": type(rule).__name__},
    )


def _check_limit(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ClassificationFault(
            "Attempt limit must be an integer >= 1",
            operation="attempt_limit_for",
            details={"key": key, "value": repr(value)},
        )
    return value


def _degraded(
    operation: str,
    error: Exception,
    failure: BaseException,
    settings: Optional[Settings] = None,
) -> None:
    fault = error if isinstance(error, ClassificationFault) else ClassificationFault(
        str(error) or type(error).__name__,
        operation=operation,
        details={"error_type": type(error).__name__},
    )
    record_classification_fault(operation, settings)
    logger.warning(
        "Classification degraded to default",
        operation=operation,
        fault=str(fault),
        failure_type=type(failure).__name__,
    )


def is_retry_eligible(
    failure: BaseException,
    policy: RetryPolicy,
    settings: Optional[Settings] = None,
) -> bool:
    """
    Decide whether a failure may be retried under the policy.

    A failure is eligible unless one of two independent rules excludes it:

    1. Code rule: the policy has per-classification limits and the failure
       exposes a code that matches neither an exact key nor its range key.
    2. Message rule: the policy has a match rule and the failure exposes a
       message that does not match it (case-insensitive).

    A rule whose attribute is missing from the failure cannot exclude it.

    Args:
        failure: Exception raised by the wrapped operation
        policy: Retry policy for the current call
        settings: Settings gating fault metrics (defaults to the global settings)

    Returns:
        True if the driver may schedule another attempt
    """
    try:
        limits = policy.per_classification_limit
        if limits is not None:
            code = failure_code(failure)
            if code is not None and not any(key in limits for key in classification_keys(code)):
                return False

        rule = policy.match_rule
        if rule is not None:
            message = failure_message(failure)
            if message is not None and not _matches(rule, message):
                return False

        return True
    except Exception as e:
        _degraded("is_retry_eligible", e, failure, settings)
        return True


def attempt_limit_for(
    failure: BaseException,
    policy: RetryPolicy,
    settings: Optional[Settings] = None,
) -> int:
    """
    Resolve the total number of invocations allowed for this failure.

    Exact code key first, then hundred-range key, then the policy default.
    Never raises; on any fault the default attempt limit is returned. If the
    policy default is itself unusable, `settings.RETRY_DEFAULT_COUNT` is.
    `settings` defaults to the global settings.

    Returns:
        Attempt limit (>= 1)
    """
    try:
        limits = policy.per_classification_limit
        if limits is not None:
            code = failure_code(failure)
            if code is not None:
                for key in classification_keys(code):
                    if key in limits:
                        return _check_limit(limits[key], key)
        return _check_limit(policy.default_attempt_limit, "default")
    except Exception as e:
        _degraded("attempt_limit_for", e, failure, settings)

    # Policy default may itself be the broken part
    try:
        return _check_limit(policy.default_attempt_limit, "default")
    except Exception:
        return (settings or global_settings).RETRY_DEFAULT_COUNT
