"""
Base exception classes for retry operations.

`AbortError` is raised by an operation to stop retrying; `AttemptError` is
handed to the failure observer after each retryable failure.
"""


class RetryError(Exception):
    """Base exception for errors created by the retry engine."""

    name = "RetryError"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AbortError(RetryError):
    """
    Raised from an operation to abort the retry process.

    The caller of `retry()` never sees the AbortError itself, only the
    wrapped `original_error`.
    """

    name = "AbortError"

    def __init__(self, message: str | BaseException):
        if isinstance(message, BaseException):
            original_error = message
            message = str(message)
        else:
            original_error = Exception(message)
            # Points the surfaced error back at the abort site.
            original_error.__cause__ = self
        super().__init__(message)
        self.original_error = original_error


class AttemptError(RetryError):
    """Describes one failed attempt. Passed to `on_failed_attempt`."""

    name = "AttemptError"

    def __init__(
        self,
        message: str,
        *,
        attempt_number: int = 0,
        retries_left: int = 0,
        error: BaseException | None = None,
    ):
        super().__init__(message)
        self.attempt_number = attempt_number
        self.retries_left = retries_left
        self.error = error


class MaxRetryTimeoutError(RetryError):
    """Marks a session that ran past its maximum retry time."""

    name = "MaxRetryTimeoutError"

    def __init__(self, message: str = "Maximum retry timeout reached"):
        super().__init__(message)


class RetryConfigError(RetryError, ValueError):
    """Raised when a retry configuration is invalid. Never retried."""

    name = "RetryConfigError"


class RetryStateError(RetryError, RuntimeError):
    """Raised when a session receives an event its state does not accept."""

    name = "RetryStateError"
