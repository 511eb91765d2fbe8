"""
Unit tests for the failure classifier.

Tests eligibility rules (code rule, message rule), attempt limit
resolution (exact beats range beats default) and graceful degradation.
"""

from types import SimpleNamespace

import pytest

from retry_orchestrator.models.policy import RetryPolicy
from retry_orchestrator.retry.classifier import (
    attempt_limit_for,
    classification_keys,
    is_retry_eligible,
)
from retry_orchestrator.retry.failures import OperationFailure


@pytest.mark.parametrize(
    "code, expected",
    [(503, ("503", "5XX")), (404, ("404", "4XX")), (599, ("599", "5XX")), (100, ("100", "1XX"))],
)
def test_classification_keys_round_down(code, expected):
    assert classification_keys(code) == expected


# ============================================================================
# is_retry_eligible
# ============================================================================


@pytest.mark.parametrize(
    "failure",
    [
        OperationFailure("anything", code=500),
        OperationFailure("anything"),
        OperationFailure(code=404),
        ValueError("x"),
        RuntimeError(),
    ],
)
def test_everything_eligible_without_rules(failure):
    assert is_retry_eligible(failure, RetryPolicy()) is True


def test_code_rule_exact_key():
    policy = RetryPolicy(per_classification_limit={"503": 2})
    assert is_retry_eligible(OperationFailure(code=503), policy) is True
    assert is_retry_eligible(OperationFailure(code=500), policy) is False


def test_code_rule_range_key():
    policy = RetryPolicy(per_classification_limit={"5XX": 3})
    assert is_retry_eligible(OperationFailure(code=503), policy) is True
    assert is_retry_eligible(OperationFailure(code=599), policy) is True
    assert is_retry_eligible(OperationFailure(code=404), policy) is False


def test_code_rule_does_not_apply_without_code():
    policy = RetryPolicy(per_classification_limit={"5XX": 3})
    assert is_retry_eligible(OperationFailure("connection reset"), policy) is True


def test_code_rule_reads_response_status(failure_with_response):
    policy = RetryPolicy(per_classification_limit={"5XX": 3})
    assert is_retry_eligible(failure_with_response(502), policy) is True
    assert is_retry_eligible(failure_with_response(401), policy) is False


def test_empty_limits_exclude_every_coded_failure():
    policy = RetryPolicy(per_classification_limit={})
    assert is_retry_eligible(OperationFailure(code=503), policy) is False
    assert is_retry_eligible(OperationFailure("no code"), policy) is True


def test_message_rule_case_insensitive():
    policy = RetryPolicy(match_rule="apple")
    assert is_retry_eligible(OperationFailure("APPLE service busy"), policy) is True
    assert is_retry_eligible(OperationFailure("ORANGE"), policy) is False


def test_message_rule_does_not_apply_without_message():
    policy = RetryPolicy(match_rule="apple")
    assert is_retry_eligible(OperationFailure(code=500), policy) is True


def test_message_rule_regex():
    policy = RetryPolicy(match_rule={"value": r"^5\d\d ", "is_regex": True})
    assert is_retry_eligible(OperationFailure("503 Service Unavailable"), policy) is True
    assert is_retry_eligible(OperationFailure("404 Not Found"), policy) is False


def test_both_rules_must_pass():
    policy = RetryPolicy(per_classification_limit={"5XX": 3}, match_rule="timeout")

    assert is_retry_eligible(OperationFailure("gateway timeout", code=504), policy) is True
    assert is_retry_eligible(OperationFailure("bad gateway", code=502), policy) is False
    assert is_retry_eligible(OperationFailure("gateway timeout", code=404), policy) is False


def test_eligibility_degrades_to_true_on_malformed_policy():
    broken = SimpleNamespace(per_classification_limit=42, match_rule=None)
    assert is_retry_eligible(OperationFailure(code=503), broken) is True


def test_eligibility_degrades_on_unsupported_match_rule():
    broken = SimpleNamespace(per_classification_limit=None, match_rule=object())
    assert is_retry_eligible(OperationFailure("ORANGE"), broken) is True


def test_eligibility_accepts_plain_string_rule_on_duck_typed_policy():
    duck = SimpleNamespace(per_classification_limit=None, match_rule="Apple")
    assert is_retry_eligible(OperationFailure("orange"), duck) is False
    assert is_retry_eligible(OperationFailure("apple"), duck) is True


def test_eligibility_degrades_when_failure_accessor_raises():
    class Exploding(Exception):
        @property
        def status_code(self):
            raise RuntimeError("accessor blew up")

    policy = RetryPolicy(per_classification_limit={"4XX": 1})
    assert is_retry_eligible(Exploding("x"), policy) is True


# ============================================================================
# attempt_limit_for
# ============================================================================


def test_limit_from_range_key():
    policy = RetryPolicy(per_classification_limit={"5XX": 3})
    for code in (500, 503, 599):
        assert attempt_limit_for(OperationFailure(code=code), policy) == 3


def test_exact_key_beats_range_key():
    policy = RetryPolicy(per_classification_limit={"5XX": 3, "503": 2})
    assert attempt_limit_for(OperationFailure(code=503), policy) == 2
    assert attempt_limit_for(OperationFailure(code=502), policy) == 3


def test_limit_defaults_when_no_key_matches():
    policy = RetryPolicy(default_attempt_limit=5, per_classification_limit={"5XX": 3})
    assert attempt_limit_for(OperationFailure(code=404), policy) == 5


def test_limit_defaults_without_code():
    policy = RetryPolicy(default_attempt_limit=5, per_classification_limit={"5XX": 3})
    assert attempt_limit_for(ValueError("no code"), policy) == 5


def test_limit_defaults_without_limits():
    assert attempt_limit_for(OperationFailure(code=503), RetryPolicy(default_attempt_limit=7)) == 7


def test_limit_degrades_to_policy_default_on_bad_entry():
    broken = SimpleNamespace(default_attempt_limit=3, per_classification_limit={"5XX": "many"})
    assert attempt_limit_for(OperationFailure(code=500), broken) == 3


def test_limit_degrades_to_settings_default_when_policy_default_broken(test_settings):
    test_settings.RETRY_DEFAULT_COUNT = 6
    broken = SimpleNamespace(per_classification_limit=None)
    assert attempt_limit_for(OperationFailure(code=500), broken, test_settings) == 6


def test_classification_fault_is_counted(test_settings, monkeypatch):
    from retry_orchestrator.retry import classifier

    recorded = []
    monkeypatch.setattr(
        classifier,
        "record_classification_fault",
        lambda operation, settings=None: recorded.append((operation, settings)),
    )

    broken = SimpleNamespace(default_attempt_limit=0, per_classification_limit=None)
    assert attempt_limit_for(OperationFailure(code=500), broken, test_settings) == test_settings.RETRY_DEFAULT_COUNT
    assert recorded == [("attempt_limit_for", test_settings)]
