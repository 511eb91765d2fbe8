"""
Retry policy models.

A RetryPolicy is built once per retry call (or shared between calls) and is
never mutated afterwards. The driver and classifier only read it, so the same
instance can be used by concurrent retry calls.
"""

import re
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from retry_orchestrator.config import Settings, settings as global_settings

BackoffFn = Callable[[float], float]

_EXACT_KEY = re.compile(r"^\d+$")
_RANGE_KEY = re.compile(r"^\dXX$")


def normalize_classification_key(key: Any) -> str:
    """
    Normalize a classification key to its canonical string form.

    Exact codes may be given as int or str ("503", 503). Range wildcards are
    "<digit>XX" and are upper-cased ("5xx" -> "5XX").

    Raises:
        ValueError: If the key is neither an exact code nor a hundred-range wildcard
    """
    if isinstance(key, bool):
        raise ValueError(f"Invalid classification key: {key!r}")
    text = str(key).strip().upper()
    if _EXACT_KEY.match(text) or _RANGE_KEY.match(text):
        return text
    raise ValueError(
        f"Invalid classification key: {key!r} (expected an exact code like '503' "
        f"or a hundred-range wildcard like '5XX')"
    )


class MatchRule(BaseModel):
    """
    Message filter for retry eligibility.

    A failure whose message does not match is not retried. Matching is always
    case-insensitive: substring containment by default, `re.search` when
    `is_regex` is set.
    """
    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, description="Substring or regular expression")
    is_regex: bool = Field(default=False, description="Treat value as a regular expression")

    @model_validator(mode="after")
    def _check_pattern(self) -> "MatchRule":
        if self.is_regex:
            try:
                re.compile(self.value)
            except re.error as e:
                raise ValueError(f"Invalid match pattern {self.value!r}: {e}") from e
        return self

    def matches(self, message: str) -> bool:
        """Return True if the message satisfies this rule."""
        if self.is_regex:
            return re.search(self.value, message, flags=re.IGNORECASE) is not None
        return self.value.lower() in message.lower()


class RetryPolicy(BaseModel):
    """
    Immutable retry policy.

    Attributes:
        default_attempt_limit: Total invocations allowed when no specific rule applies
        per_classification_limit: Attempt limits keyed by exact code ("503")
            or hundred-range wildcard ("5XX"); exact beats range
        match_rule: Optional message filter; non-matching failures are not retried
        backoff_fn: Optional pure function mapping the current delay to the next one
        base_interval_seconds: Starting delay before any backoff stretching
        max_interval_seconds: Optional cap on every computed delay
    """
    model_config = ConfigDict(frozen=True)

    default_attempt_limit: int = Field(default=4, ge=1)
    per_classification_limit: Optional[Dict[str, int]] = Field(default=None)
    match_rule: Optional[MatchRule] = Field(default=None)
    backoff_fn: Optional[BackoffFn] = Field(default=None)
    base_interval_seconds: float = Field(default=3.0, ge=0.0)
    max_interval_seconds: Optional[float] = Field(default=None, ge=0.0)

    @field_validator("per_classification_limit", mode="before")
    @classmethod
    def _normalize_limits(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, Mapping):
            raise ValueError("per_classification_limit must be a mapping")
        normalized: dict[str, Any] = {}
        for key, limit in value.items():
            canonical = normalize_classification_key(key)
            if canonical in normalized:
                raise ValueError(f"Duplicate classification key: {canonical!r}")
            normalized[canonical] = limit
        return normalized

    @field_validator("per_classification_limit")
    @classmethod
    def _check_limits(cls, value: Optional[Dict[str, int]]) -> Optional[Dict[str, int]]:
        if value is None:
            return None
        for key, limit in value.items():
            if limit < 1:
                raise ValueError(f"Attempt limit for {key!r} must be >= 1, got {limit}")
        return value

    @field_validator("match_rule", mode="before")
    @classmethod
    def _coerce_match_rule(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"value": value}
        if isinstance(value, Mapping) and "isRegex" in value:
            return {"value": value.get("value"), "is_regex": value["isRegex"]}
        return value

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        settings: Optional[Settings] = None,
    ) -> "RetryPolicy":
        """
        Build a policy from a loosely-shaped configuration mapping.

        Accepts the camelCase shape used by callers that configure retries as
        plain objects::

            {
                "count": 4,
                "statusCode": {"5XX": {"count": 3}, "503": 2},
                "match": "timeout" | {"value": "time.*out", "isRegex": True},
                "backOff": lambda n: n * n,
                "interval": 0.7,
            }

        Snake-case field names are accepted as well. Missing count/interval
        fall back to the settings defaults.

        Raises:
            pydantic.ValidationError: If the resulting policy is invalid
        """
        settings = settings or global_settings

        def pick(*names: str) -> Any:
            for name in names:
                if name in config and config[name] is not None:
                    return config[name]
            return None

        count = pick("count", "default_attempt_limit")
        interval = pick("interval", "base_interval_seconds")
        max_interval = pick("maxInterval", "max_interval_seconds")
        status_codes = pick("statusCode", "per_classification_limit")

        limits: Optional[dict[Any, Any]] = None
        if status_codes is not None:
            if not isinstance(status_codes, Mapping):
                raise ValueError("statusCode must be a mapping")
            limits = {}
            for key, entry in status_codes.items():
                if isinstance(entry, Mapping):
                    entry = entry.get("count")
                limits[key] = entry

        return cls(
            default_attempt_limit=count if count is not None else settings.RETRY_DEFAULT_COUNT,
            per_classification_limit=limits,
            match_rule=pick("match", "match_rule"),
            backoff_fn=pick("backOff", "backoff_fn"),
            base_interval_seconds=(
                interval if interval is not None else settings.RETRY_DEFAULT_INTERVAL_SECONDS
            ),
            max_interval_seconds=(
                max_interval if max_interval is not None else settings.RETRY_MAX_INTERVAL_SECONDS
            ),
        )


def default_policy(settings: Optional[Settings] = None) -> RetryPolicy:
    """Policy used when a caller does not pass one (count and interval from settings)."""
    settings = settings or global_settings
    return RetryPolicy(
        default_attempt_limit=settings.RETRY_DEFAULT_COUNT,
        base_interval_seconds=settings.RETRY_DEFAULT_INTERVAL_SECONDS,
        max_interval_seconds=settings.RETRY_MAX_INTERVAL_SECONDS,
    )
