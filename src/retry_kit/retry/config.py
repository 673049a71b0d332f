"""
Retry configuration.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from typing import AbstractSet, Any, Awaitable, Callable

from ..exceptions import AttemptError, RetryConfigError
from .backoff import generate_timeouts
from .classify import NETWORK_ERROR_MESSAGES

FailedAttemptHook = Callable[[AttemptError], Awaitable[None] | None]


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        retries: Retries after the first attempt (default: 3)
        factor: Exponential growth factor (default: 2)
        min_timeout: Delay before the first retry in milliseconds (default: 1000)
        max_timeout: Cap for any delay in milliseconds (default: unbounded)
        on_failed_attempt: Sync or async callback receiving an AttemptError
            after each retryable failure (default: none)
        network_error_messages: TypeError messages treated as transient
    """

    retries: int = 3
    factor: float = 2
    min_timeout: float = 1000
    max_timeout: float = math.inf
    on_failed_attempt: FailedAttemptHook | None = None
    network_error_messages: AbstractSet[str] = field(
        default_factory=lambda: NETWORK_ERROR_MESSAGES
    )

    def validate(self) -> None:
        """Raise RetryConfigError if retries or timeout bounds are invalid."""
        if self.retries < 0:
            raise RetryConfigError("retries must be a non-negative integer")
        if self.min_timeout > self.max_timeout:
            raise RetryConfigError("min_timeout must be less than max_timeout")

    def timeouts(self) -> list[float]:
        """Delay schedule in milliseconds, one entry per retry."""
        return generate_timeouts(
            self.retries, self.min_timeout, self.max_timeout, self.factor
        )

    def merged(self, **options: Any) -> "RetryConfig":
        """Return a copy with the given options applied."""
        if not options:
            return self
        return dataclasses.replace(self, **options)

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        """Preset for no retry (single attempt only)."""
        return cls(retries=0)
