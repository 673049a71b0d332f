"""
Retry engine.

`RetrySession` is the state machine for a single retry session; `retry()`
drives it on the running asyncio loop.
"""

import asyncio
import functools
import inspect
import logging
import time
from collections import Counter, deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, ParamSpec, TypeVar

from ..exceptions import (
    AttemptError,
    MaxRetryTimeoutError,
    RetryStateError,
)
from .classify import Verdict, classify
from .config import RetryConfig

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

Operation = Callable[[int], Awaitable[T] | T]

# Never treated as failures of the operation.
_PROPAGATE = (asyncio.CancelledError, KeyboardInterrupt, SystemExit, GeneratorExit)


class SessionState(str, Enum):
    """States of a retry session."""

    ATTEMPTING = "attempting"
    FAILED = "failed"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    EXHAUSTED = "exhausted"

    @property
    def terminal(self) -> bool:
        return self in (
            SessionState.SUCCEEDED,
            SessionState.ABORTED,
            SessionState.EXHAUSTED,
        )


@dataclass(frozen=True)
class Succeeded:
    value: Any


@dataclass(frozen=True)
class Failed:
    failure: Any


@dataclass(frozen=True)
class Observed:
    pass


@dataclass(frozen=True)
class ObserverFailed:
    failure: BaseException


@dataclass(frozen=True)
class TimerFired:
    pass


def main_error(errors: Iterable[BaseException]) -> BaseException | None:
    """
    Pick the error that best represents a failed session.

    The most frequent message wins; on a tie the error seen last wins.
    """
    counts: Counter[str] = Counter()
    best: BaseException | None = None
    best_count = 0
    for error in errors:
        message = str(error)
        counts[message] += 1
        if counts[message] >= best_count:
            best = error
            best_count = counts[message]
    return best


def _non_error(value: Any) -> TypeError:
    return TypeError(
        f'Non-error was thrown: "{value}". You should only throw errors.'
    )


class RetrySession:
    """
    State machine for one retry session.

    All input goes through `transition()`. The session never calls the
    operation or sleeps itself; the driver does that and reports back.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the session.

        Args:
            config: Retry configuration (default: RetryConfig())
            clock: Monotonic clock in seconds, used for the retry time budget

        Raises:
            RetryConfigError: If the configuration is invalid
        """
        self.config = config or RetryConfig()
        self.config.validate()
        self._clock = clock

        timeouts = self.config.timeouts()
        # An empty schedule is treated as already expired.
        self.max_retry_time: float = timeouts[-1] if timeouts else 0
        self.remaining: deque[float] = deque(timeouts)

        self.state = SessionState.ATTEMPTING
        self.attempt_number = 1
        self.errors: list[BaseException] = []
        self.pending_timer: Any = None
        self.attempt_error: AttemptError | None = None
        self.next_delay: float | None = None
        self._started: float | None = None
        self._failure: BaseException | None = None
        self._settled: BaseException | None = None
        self._value: Any = None

    def start(self) -> None:
        """Record the start of the first attempt."""
        if self._started is None:
            self._started = self._clock()

    def elapsed(self) -> float:
        """Milliseconds since the first attempt started."""
        if self._started is None:
            return 0.0
        return (self._clock() - self._started) * 1000

    def arm(self, handle: Any) -> None:
        """Register the timer that will fire the next attempt."""
        self.pending_timer = handle

    def transition(self, event: Any) -> SessionState:
        """Apply an event and return the new state."""
        handler = {
            (SessionState.ATTEMPTING, Succeeded): self._on_succeeded,
            (SessionState.ATTEMPTING, Failed): self._on_failed,
            (SessionState.FAILED, Observed): self._on_observed,
            (SessionState.FAILED, ObserverFailed): self._on_observer_failed,
            (SessionState.RETRYING, TimerFired): self._on_timer_fired,
        }.get((self.state, type(event)))
        if handler is None:
            raise RetryStateError(
                f"cannot handle {type(event).__name__} in state {self.state.value}"
            )
        handler(event)
        return self.state

    def cancel(self) -> None:
        """Stop the session without settling a failure."""
        if not self.state.terminal:
            self._finish(SessionState.ABORTED)

    def outcome(self) -> Any:
        """Return the settled value or raise the settled failure."""
        if self.state is SessionState.SUCCEEDED:
            return self._value
        if self._settled is not None:
            raise self._settled
        raise RetryStateError(f"session has not settled (state {self.state.value})")

    def _on_succeeded(self, event: Succeeded) -> None:
        self._value = event.value
        self._finish(SessionState.SUCCEEDED)

    def _on_failed(self, event: Failed) -> None:
        failure = event.failure
        if not isinstance(failure, Exception):
            self._finish(SessionState.ABORTED, _non_error(failure))
            return

        verdict = classify(failure, self.config.network_error_messages)
        if verdict is Verdict.ABORT:
            logger.debug(f"Attempt {self.attempt_number} aborted: {failure}")
            self._finish(SessionState.ABORTED, failure.original_error)
            return
        if verdict is Verdict.FATAL:
            logger.debug(f"Attempt {self.attempt_number} failed fatally: {failure!r}")
            self._finish(SessionState.ABORTED, failure)
            return

        # The first attempt does not count as a retry.
        retries_left = self.config.retries - (self.attempt_number - 1)
        self._failure = failure
        self.attempt_error = AttemptError(
            str(failure),
            attempt_number=self.attempt_number,
            retries_left=retries_left,
            error=failure,
        )
        self.state = SessionState.FAILED

    def _on_observer_failed(self, event: ObserverFailed) -> None:
        self._finish(SessionState.ABORTED, event.failure)

    def _on_observed(self, event: Observed) -> None:
        self.errors.append(self._failure)
        self._failure = None
        self.attempt_error = None

        if self.elapsed() >= self.max_retry_time:
            self.errors.insert(0, MaxRetryTimeoutError())
            self._exhaust()
            return

        if not self.remaining:
            self._exhaust()
            return

        self.next_delay = self.remaining.popleft()
        self.state = SessionState.RETRYING

    def _on_timer_fired(self, event: TimerFired) -> None:
        self.pending_timer = None
        self.next_delay = None
        self.attempt_number += 1
        self.state = SessionState.ATTEMPTING

    def _exhaust(self) -> None:
        error = main_error(self.errors)
        logger.debug(
            f"Giving up after {self.attempt_number} attempt(s): {error}"
        )
        self._finish(SessionState.EXHAUSTED, error)

    def _finish(
        self, state: SessionState, failure: BaseException | None = None
    ) -> None:
        if self.pending_timer is not None:
            self.pending_timer.cancel()
            self.pending_timer = None
        self.remaining.clear()
        self.next_delay = None
        self.errors = []
        self._failure = None
        self._settled = failure
        self.state = state


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def _sleep(session: RetrySession, delay: float) -> None:
    loop = asyncio.get_running_loop()
    waiter = loop.create_future()

    def fire() -> None:
        if not waiter.done():
            waiter.set_result(None)

    session.arm(loop.call_later(delay / 1000, fire))
    await waiter


def retry(
    operation: Operation,
    config: RetryConfig | None = None,
    **options: Any,
) -> Awaitable[T]:
    """
    Call `operation` until it succeeds or retrying stops.

    The configuration is checked when `retry()` is called, before the
    returned awaitable runs the first attempt.

    Args:
        operation: Callable receiving the attempt number (starting at 1),
            returning a value or an awaitable
        config: Retry configuration (default: RetryConfig())
        **options: Overrides for individual RetryConfig fields

    Returns:
        Awaitable resolving to the operation's result

    Raises:
        RetryConfigError: If the configuration is invalid
        Exception: When awaited; the original error of an AbortError, a
            fatal TypeError, an error raised by `on_failed_attempt`, or the
            most frequent error once retries are exhausted
    """
    config = (config or RetryConfig()).merged(**options)
    return _drive(operation, RetrySession(config))


async def _drive(operation: Operation, session: RetrySession) -> Any:
    config = session.config
    session.start()

    try:
        while True:
            try:
                value = await _resolve(operation(session.attempt_number))
            except _PROPAGATE:
                raise
            except BaseException as e:
                state = session.transition(Failed(e))
            else:
                state = session.transition(Succeeded(value))

            if state.terminal:
                return session.outcome()

            attempt_error = session.attempt_error
            event: Any = Observed()
            if config.on_failed_attempt is not None:
                try:
                    await _resolve(config.on_failed_attempt(attempt_error))
                except _PROPAGATE:
                    raise
                except BaseException as e:
                    event = ObserverFailed(e)

            state = session.transition(event)
            if state.terminal:
                return session.outcome()

            if config.on_failed_attempt is None:
                logger.warning(
                    f"Retry {session.attempt_number}/{config.retries}: "
                    f"{attempt_error}, waiting {session.next_delay}ms"
                )
            await _sleep(session, session.next_delay)
            session.transition(TimerFired())
    finally:
        session.cancel()


def async_with_retry(
    config: RetryConfig | None = None,
    **options: Any,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for functions with retry logic.

    Args:
        config: Retry configuration (default: RetryConfig())
        **options: Overrides for individual RetryConfig fields

    Returns:
        Decorated async function with retry behavior
    """
    config = (config or RetryConfig()).merged(**options)
    config.validate()

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await retry(lambda attempt: func(*args, **kwargs), config)

        return wrapper

    return decorator
