"""
Retry Kit - Retry with backoff for fallible operations.

Wraps a sync or async operation and calls it again on failure, following an
exponential timeout schedule.
"""

from .exceptions import (
    RetryError,
    AbortError,
    AttemptError,
    MaxRetryTimeoutError,
    RetryConfigError,
    RetryStateError,
)
from .retry import (
    RetryConfig,
    RetrySession,
    SessionState,
    Verdict,
    NETWORK_ERROR_MESSAGES,
    async_with_retry,
    classify,
    generate_timeouts,
    is_network_error,
    is_retryable,
    main_error,
    retry,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Engine
    "retry",
    "async_with_retry",
    "RetrySession",
    "SessionState",
    "main_error",
    # Exceptions
    "RetryError",
    "AbortError",
    "AttemptError",
    "MaxRetryTimeoutError",
    "RetryConfigError",
    "RetryStateError",
    # Schedule & classification
    "RetryConfig",
    "generate_timeouts",
    "Verdict",
    "NETWORK_ERROR_MESSAGES",
    "classify",
    "is_network_error",
    "is_retryable",
]
