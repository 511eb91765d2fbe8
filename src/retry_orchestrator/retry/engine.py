"""
Retry driver.

This module implements the RetryEngine that re-invokes a fallible operation
under a RetryPolicy. Each call runs a small state machine:

    IDLE -> INVOKING -> (SUCCEEDED | EVALUATING) -> (DELAYING -> INVOKING) | FAILED

After every failure the classifier decides whether the failure may be
retried and how many invocations its class allows; the backoff module
computes the delay. When the call stops on a failure, the last failure
raised by the operation is re-raised unchanged.

Usage:
    engine = RetryEngine(settings)
    engine.retry(fetch_report, RetryPolicy(default_attempt_limit=3))
    await engine.retry_async(fetch_report_async, policy)
"""

import asyncio
import functools
import inspect
import threading
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import structlog
from structlog.contextvars import bound_contextvars

from retry_orchestrator.config import Settings, settings as global_settings
from retry_orchestrator.models.enums import DriverState, TerminationReason
from retry_orchestrator.models.policy import RetryPolicy, default_policy
from retry_orchestrator.monitoring.metrics import (
    record_attempt,
    record_classification_fault,
    record_delay,
    record_termination,
)
from retry_orchestrator.retry.backoff import compute_delay
from retry_orchestrator.retry.classifier import attempt_limit_for, is_retry_eligible
from retry_orchestrator.retry.exceptions import RetryCancelled
from retry_orchestrator.retry.metadata import AttemptState, RetryMetadata

logger = structlog.get_logger(__name__)

T = TypeVar("T")

OnRetry = Callable[[int, float, BaseException], Any]
OnGiveUp = Callable[[BaseException, RetryMetadata], Any]


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class RetryEngine:
    """
    Drives repeated invocation of an operation under a RetryPolicy.

    The engine holds no per-call state: every `retry` / `retry_async` call
    owns its own AttemptState, so one engine can serve concurrent calls.

    Attributes:
        settings: Application settings (default policy values, metrics gate)
        sleep: Blocking sleep used by `retry` (seconds)
        async_sleep: Cooperative sleep used by `retry_async` (seconds)

    A cancel event cannot interrupt an injected blocking `sleep`; the event
    is checked once it returns. Without one, `retry` waits on the event
    itself. `async_sleep` always races the event.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sleep: Optional[Callable[[float], None]] = None,
        async_sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.settings = settings or global_settings
        self.sleep = sleep or time.sleep
        self._interruptible_sleep = sleep is None
        self.async_sleep = async_sleep or asyncio.sleep

    def resolve_policy(self, policy: Optional[RetryPolicy]) -> RetryPolicy:
        return policy if policy is not None else default_policy(self.settings)

    # ------------------------------------------------------------------
    # State machine steps shared by the sync and async drivers
    # ------------------------------------------------------------------

    def _on_failure(self, state: AttemptState, failure: Exception, policy: RetryPolicy) -> Optional[TerminationReason]:
        """INVOKING -> EVALUATING. Returns a reason when the call must stop."""
        state.last_failure = failure
        state.transition(DriverState.EVALUATING)
        record_attempt("failure", self.settings)

        limit = attempt_limit_for(failure, policy, self.settings)

        logger.warning(
            f"Operation failed on attempt {state.attempt_number}/{limit}",
            extra={
                "attempt": state.attempt_number,
                "attempt_limit": limit,
                "error_type": type(failure).__name__,
            },
        )

        if state.attempt_number >= limit:
            return TerminationReason.EXHAUSTED
        if not is_retry_eligible(failure, policy, self.settings):
            return TerminationReason.NOT_ELIGIBLE
        return None

    def _schedule(self, state: AttemptState, policy: RetryPolicy) -> float:
        """EVALUATING -> DELAYING. Returns the delay before the next attempt."""
        state.transition(DriverState.DELAYING)
        next_attempt = state.attempt_number + 1
        try:
            delay = compute_delay(next_attempt, policy)
        except Exception as e:
            # A broken backoff function must not replace the operation's failure
            delay = state.current_delay if state.current_delay is not None else compute_delay(1, policy)
            record_classification_fault("compute_delay", self.settings)
            logger.warning(
                "Backoff function failed, falling back to previous delay",
                extra={
                    "next_attempt": next_attempt,
                    "delay_seconds": delay,
                    "error_type": type(e).__name__,
                },
            )
        record_delay(delay, self.settings)

        logger.info(
            f"Retrying in {delay}s (attempt {state.attempt_number + 1})",
            extra={"next_attempt": state.attempt_number + 1, "delay_seconds": delay},
        )
        return delay

    def _resume(self, state: AttemptState, delay: float) -> None:
        """DELAYING -> INVOKING."""
        state.advance(delay)
        state.transition(DriverState.INVOKING)

    def _succeed(self, state: AttemptState, started: float) -> None:
        state.transition(DriverState.SUCCEEDED)
        record_attempt("success", self.settings)
        record_termination(TerminationReason.SUCCEEDED.value, self.settings)

        if state.attempt_number > 1:
            logger.info(
                f"Operation succeeded after {state.attempt_number} attempts",
                extra={
                    "total_attempts": state.attempt_number,
                    "total_latency_ms": _elapsed_ms(started),
                },
            )

    def _give_up(self, state: AttemptState, reason: TerminationReason, started: float) -> RetryMetadata:
        state.transition(DriverState.FAILED)
        metadata = RetryMetadata.from_state(state, reason, _elapsed_ms(started))
        record_termination(reason.value, self.settings)

        logger.error(
            f"Giving up after {metadata.total_attempts} attempt(s): {reason.value}",
            extra={
                "reason": reason.value,
                "total_attempts": metadata.total_attempts,
                "delays": list(metadata.delays),
                "total_latency_ms": metadata.total_latency_ms,
                "final_error_type": metadata.last_error_type,
            },
        )
        return metadata

    def _cancelled(self, state: AttemptState, started: float) -> RetryCancelled:
        metadata = self._give_up(state, TerminationReason.CANCELLED, started)
        return RetryCancelled(state.last_failure, metadata.total_attempts)

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    def _wait(self, delay: float, cancel_event: Optional[threading.Event]) -> bool:
        """Block for `delay` seconds. Returns True if cancelled."""
        if cancel_event is None:
            self.sleep(delay)
            return False
        if not cancel_event.is_set():
            if self._interruptible_sleep:
                cancel_event.wait(delay)
            else:
                self.sleep(delay)
        return cancel_event.is_set()

    def retry(
        self,
        operation: Callable[[], T],
        policy: Optional[RetryPolicy] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        on_retry: Optional[OnRetry] = None,
        on_give_up: Optional[OnGiveUp] = None,
    ) -> T:
        """
        Invoke `operation` until it succeeds or the policy stops the call.

        The first invocation is unconditional. After each failure the call
        stops when the attempt budget for that failure is used up or the
        failure is not eligible for retry; otherwise it blocks for the
        computed delay and invokes again.

        Args:
            operation: Zero-argument callable; failure is signaled by raising
            policy: Retry policy (defaults to the settings-based policy)
            cancel_event: Set it to abort a pending delay
            on_retry: Called as on_retry(failed_attempt, delay_seconds, failure)
                before each delay
            on_give_up: Called as on_give_up(failure, metadata) before the
                final failure is raised

        Returns:
            Whatever `operation` returned on the successful attempt

        Raises:
            Exception: The last failure raised by `operation`
            RetryCancelled: `cancel_event` was set during a delay
        """
        policy = self.resolve_policy(policy)
        state = AttemptState()
        started = time.monotonic()
        state.transition(DriverState.INVOKING)

        while True:
            try:
                with bound_contextvars(retry_attempt=state.attempt_number):
                    result = operation()
            except Exception as e:
                reason = self._on_failure(state, e, policy)
                if reason is not None:
                    metadata = self._give_up(state, reason, started)
                    if on_give_up is not None:
                        on_give_up(e, metadata)
                    raise
                delay = self._schedule(state, policy)
                if on_retry is not None:
                    on_retry(state.attempt_number, delay, e)
            else:
                self._succeed(state, started)
                return result

            if self._wait(delay, cancel_event):
                cancelled = self._cancelled(state, started)
                raise cancelled from state.last_failure
            self._resume(state, delay)

    async def _wait_async(self, delay: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Suspend the current task for `delay` seconds. Returns True if cancelled."""
        if cancel_event is None:
            await self.async_sleep(delay)
            return False
        if cancel_event.is_set():
            return True

        sleeper = asyncio.ensure_future(self.async_sleep(delay))
        watcher = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            watcher.cancel()
            if not sleeper.done():
                sleeper.cancel()
        if sleeper.done() and not sleeper.cancelled():
            # Surface errors raised by the sleeper itself
            sleeper.result()
        return cancel_event.is_set()

    async def retry_async(
        self,
        operation: Callable[[], Union[T, Awaitable[T]]],
        policy: Optional[RetryPolicy] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        on_retry: Optional[OnRetry] = None,
        on_give_up: Optional[OnGiveUp] = None,
    ) -> T:
        """
        Cooperative variant of `retry`.

        Delays suspend the current task instead of blocking the thread.
        `operation` may be a plain callable or return an awaitable; hooks
        may be coroutine functions.
        """
        policy = self.resolve_policy(policy)
        state = AttemptState()
        started = time.monotonic()
        state.transition(DriverState.INVOKING)

        while True:
            try:
                with bound_contextvars(retry_attempt=state.attempt_number):
                    result = await _maybe_await(operation())
            except Exception as e:
                reason = self._on_failure(state, e, policy)
                if reason is not None:
                    metadata = self._give_up(state, reason, started)
                    if on_give_up is not None:
                        await _maybe_await(on_give_up(e, metadata))
                    raise
                delay = self._schedule(state, policy)
                if on_retry is not None:
                    await _maybe_await(on_retry(state.attempt_number, delay, e))
            else:
                self._succeed(state, started)
                return result

            if await self._wait_async(delay, cancel_event):
                cancelled = self._cancelled(state, started)
                raise cancelled from state.last_failure
            self._resume(state, delay)


def retry(
    operation: Callable[[], T],
    policy: Optional[RetryPolicy] = None,
    **kwargs: Any,
) -> T:
    """Run `operation` under `policy` with an engine built from the global settings."""
    return RetryEngine().retry(operation, policy, **kwargs)


async def retry_async(
    operation: Callable[[], Union[T, Awaitable[T]]],
    policy: Optional[RetryPolicy] = None,
    **kwargs: Any,
) -> T:
    """Async counterpart of `retry`."""
    return await RetryEngine().retry_async(operation, policy, **kwargs)


def retrying(
    policy: Optional[RetryPolicy] = None,
    *,
    engine: Optional[RetryEngine] = None,
    **hooks: Any,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator form of `retry` / `retry_async`.

    Coroutine functions are driven by `retry_async`, everything else by
    `retry`. Keyword arguments (`on_retry`, `on_give_up`, `cancel_event`)
    are forwarded to the engine.

    Usage:
        @retrying(RetryPolicy(default_attempt_limit=3, base_interval_seconds=0.5))
        def push_event(payload): ...
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                driver = engine or RetryEngine()
                return await driver.retry_async(lambda: func(*args, **kwargs), policy, **hooks)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            driver = engine or RetryEngine()
            return driver.retry(functools.partial(func, *args, **kwargs), policy, **hooks)

        return wrapper

    return decorator
