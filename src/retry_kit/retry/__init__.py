"""
Retry Kit - Retry Logic.

Timeout schedules, failure classification and the retry engine.
"""

from .config import RetryConfig
from .backoff import generate_timeouts
from .classify import (
    NETWORK_ERROR_MESSAGES,
    Verdict,
    classify,
    is_network_error,
    is_retryable,
)
from .engine import (
    RetrySession,
    SessionState,
    Succeeded,
    Failed,
    Observed,
    ObserverFailed,
    TimerFired,
    main_error,
    retry,
    async_with_retry,
)

__all__ = [
    "RetryConfig",
    "generate_timeouts",
    "NETWORK_ERROR_MESSAGES",
    "Verdict",
    "classify",
    "is_network_error",
    "is_retryable",
    "RetrySession",
    "SessionState",
    "Succeeded",
    "Failed",
    "Observed",
    "ObserverFailed",
    "TimerFired",
    "main_error",
    "retry",
    "async_with_retry",
]
