"""Error types raised across the planning core."""

INVALID_PROFILE_MESSAGE = "Please fill in all fields."
GENERATION_FAILED_MESSAGE = "Couldn't parse suggestions. Please try again."


class MuscleMathError(Exception):
    """Base class for application errors."""


class InvalidProfileError(MuscleMathError):
    """Raised when user inputs cannot produce a generation request."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or INVALID_PROFILE_MESSAGE)
        self.reason = reason
        self.user_message = INVALID_PROFILE_MESSAGE


class GenerationFailedError(MuscleMathError):
    """Raised when the model stream errors, is malformed, or yields nothing."""

    user_message = GENERATION_FAILED_MESSAGE
