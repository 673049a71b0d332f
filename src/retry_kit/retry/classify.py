"""
Failure classification.

Decides whether a failure aborts the retry session or schedules another
attempt. A `TypeError` usually means a programming error and is fatal,
unless its message is one of the messages fetch implementations use for
transient network failures.
"""

from enum import Enum
from typing import AbstractSet

from ..exceptions import AbortError

NETWORK_ERROR_MESSAGES: frozenset[str] = frozenset(
    {
        "Failed to fetch",  # Chrome
        "NetworkError when attempting to fetch resource.",  # Firefox
        "The Internet connection appears to be offline.",  # Safari
        "Network request failed",  # cross-fetch
    }
)


class Verdict(str, Enum):
    """Outcome of classifying a failure."""

    ABORT = "abort"  # AbortError, surface the wrapped error
    FATAL = "fatal"  # surface the failure as-is
    RETRY = "retry"


def is_network_error(
    message: str, network_errors: AbstractSet[str] = NETWORK_ERROR_MESSAGES
) -> bool:
    """Check if the message is a known transient network error message."""
    return message in network_errors


def classify(
    failure: BaseException,
    network_errors: AbstractSet[str] = NETWORK_ERROR_MESSAGES,
) -> Verdict:
    """
    Classify a failure raised by an operation.

    Args:
        failure: The raised exception
        network_errors: Messages that make a TypeError retryable

    Returns:
        The verdict for the failure
    """
    if isinstance(failure, AbortError):
        return Verdict.ABORT
    if isinstance(failure, TypeError) and not is_network_error(
        str(failure), network_errors
    ):
        return Verdict.FATAL
    return Verdict.RETRY


def is_retryable(
    failure: BaseException,
    network_errors: AbstractSet[str] = NETWORK_ERROR_MESSAGES,
) -> bool:
    """Check if the failure should trigger another attempt."""
    return classify(failure, network_errors) is Verdict.RETRY
