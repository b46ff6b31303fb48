"""Exceptions raised by the configuration engine."""


class DecodeError(Exception):
    """Raised when an imported configuration document cannot be decoded."""

    pass


class SubmissionError(Exception):
    """Raised when the execution service rejects a submission or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize the error.

        Args:
            message: Server-provided status text or transport error message.
            status_code: HTTP status code, if a response was received.
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvariantViolation(Exception):
    """A call that would break selection or field-group invariants.

    The store and field-group manager log these and treat the call as a
    no-op instead of raising.
    """

    pass


class RunError(Exception):
    """Raised when the certsuite command cannot be started or fails."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


class RunInProgressError(RunError):
    """Raised when a certsuite run is requested while another one is active."""

    pass
