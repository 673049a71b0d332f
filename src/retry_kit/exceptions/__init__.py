"""
Retry Kit - Exception Hierarchy.

Errors raised or handed out by the retry engine.
"""

from .base import (
    RetryError,
    AbortError,
    AttemptError,
    MaxRetryTimeoutError,
    RetryConfigError,
    RetryStateError,
)

__all__ = [
    "RetryError",
    "AbortError",
    "AttemptError",
    "MaxRetryTimeoutError",
    "RetryConfigError",
    "RetryStateError",
]
