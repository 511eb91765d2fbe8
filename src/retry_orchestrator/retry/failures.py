"""
Failure shape accessors.

Operations signal failure by raising. The raised value is loosely shaped:
it MAY carry a numeric status code and MAY carry a message. These helpers
read both without assuming either is present; `None` means "absent", and
the classifier treats an absent attribute as "rule does not apply".

Supported code locations (first integer wins):
    - failure.status_code
    - failure.response.status_code  (httpx.HTTPStatusError, requests-style errors)
    - failure.response.status       (aiohttp-style responses)
    - failure.status
    - failure.code
"""

from typing import Any

import httpx

_MISSING = object()


def _as_code(value: Any) -> int | None:
    """Coerce a candidate status value to int, or None if it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def failure_code(failure: BaseException) -> int | None:
    """
    Return the numeric status code exposed by a failure, or None.

    Args:
        failure: Exception raised by the wrapped operation

    Returns:
        Integer code (e.g., 503) or None when the failure exposes none
    """
    if isinstance(failure, httpx.HTTPStatusError):
        return failure.response.status_code

    code = _as_code(getattr(failure, "status_code", None))
    if code is not None:
        return code

    response = getattr(failure, "response", None)
    if response is not None:
        for attr in ("status_code", "status"):
            code = _as_code(getattr(response, attr, None))
            if code is not None:
                return code

    for attr in ("status", "code"):
        code = _as_code(getattr(failure, attr, None))
        if code is not None:
            return code

    return None


def failure_message(failure: BaseException) -> str | None:
    """
    Return the textual message exposed by a failure, or None.

    Prefers an explicit `message` attribute; otherwise uses `str(failure)`.
    Empty strings count as no message.
    """
    message = getattr(failure, "message", _MISSING)
    if isinstance(message, str) and message:
        return message
    text = str(failure)
    return text or None


class OperationFailure(Exception):
    """
    Failure raised by a wrapped operation.

    Operations may raise any exception; this class is a convenience for
    callers that want to attach a status code and structured details.

    Attributes:
        message: Human-readable failure description (optional)
        code: Numeric status code (optional, e.g., 503)
        details: Structured error data for logging
    """

    def __init__(
        self,
        message: str | None = None,
        code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(*([message] if message is not None else []))
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.message is None:
            return ""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def __repr__(self) -> str:
        return f"OperationFailure(message={self.message!r}, code={self.code!r})"
