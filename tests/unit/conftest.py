"""Unit test fixtures (fake operations and failure shapes).

Provides scripted operations for driving the retry engine without any
external dependencies.
"""

from types import SimpleNamespace

import pytest

from retry_orchestrator.retry.failures import OperationFailure


class ScriptedOperation:
    """
    Zero-argument operation that replays a script.

    Each entry is either an exception (raised) or a value (returned). The
    last entry repeats once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls = 0

    def __call__(self):
        entry = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(entry, BaseException):
            raise entry
        return entry


class AsyncScriptedOperation(ScriptedOperation):
    """Coroutine-returning variant of ScriptedOperation."""

    async def __call__(self):  # type: ignore[override]
        return super().__call__()


@pytest.fixture
def scripted():
    """Factory fixture for ScriptedOperation.

    Usage:
        def test_something(scripted):
            op = scripted(OperationFailure("boom"), "ok")
    """
    return ScriptedOperation


@pytest.fixture
def async_scripted():
    return AsyncScriptedOperation


@pytest.fixture
def failure_with_response():
    """Factory for failures shaped like HTTP client errors (error.response.status)."""

    def _create(status, message: str = "upstream error") -> Exception:
        error = Exception(message)
        error.response = SimpleNamespace(status=status)
        return error

    return _create


@pytest.fixture
def server_error() -> OperationFailure:
    return OperationFailure("Service Unavailable", code=503)
