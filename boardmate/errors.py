"""Boardmate exception hierarchy with exit codes."""

# Exit code constants (simple 0-5 range)
EXIT_SUCCESS = 0  # Operation succeeded
EXIT_ERROR = 1  # Generic error / failure
EXIT_NOT_READY = 2  # Transient failure, retry may succeed
EXIT_PARTIAL = 4  # Request succeeded but nothing was applied
EXIT_USAGE = 5  # Invalid usage / arguments


class BoardmateError(Exception):
    """Base exception for all Boardmate errors."""

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class PermanentError(BoardmateError):
    """Non-retryable errors (config errors, invalid credentials)."""

    exit_code = EXIT_ERROR


class ConfigError(PermanentError):
    """Configuration errors (invalid values, missing API key)."""

    exit_code = EXIT_ERROR

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message, exit_code=self.exit_code)


class UserInputError(BoardmateError):
    """Invalid CLI usage / arguments."""

    exit_code = EXIT_USAGE

    def __init__(self, message: str = "Invalid arguments"):
        super().__init__(message, exit_code=self.exit_code)


class RequestFailedError(BoardmateError):
    """
    A model request failed (transport, quota, credentials).

    The message is human-readable and safe to show in the conversation.
    `cause` keeps the provider exception for logging.
    """

    def __init__(
        self,
        message: str = "Failed to communicate with AI.",
        cause: Exception | None = None,
        retryable: bool = False,
    ):
        super().__init__(message, exit_code=EXIT_NOT_READY if retryable else EXIT_ERROR)
        self.cause = cause
        self.retryable = retryable


class StoreError(BoardmateError):
    """The task store could not apply a diff or persist tasks."""

    exit_code = EXIT_ERROR

    def __init__(self, message: str = "Failed to apply changes"):
        super().__init__(message, exit_code=self.exit_code)
