"""
Error taxonomy for DebugQuest.

Every error raised by the engine derives from DebugQuestError so that the
presentation layer can catch the whole family in one place:
- ValidationError: malformed input (unknown lesson id, bad hint index, ...)
- NotFoundError: missing profile, lesson or user
- ConflictError: a concurrent update lost a race; retry
- StoreUnavailable: transient store failure; retry
"""


class DebugQuestError(Exception):
    """Base class for all engine errors."""

    retryable = False


class ValidationError(DebugQuestError):
    """Input failed validation."""


class NotFoundError(DebugQuestError):
    """A referenced entity does not exist."""


class ProfileNotFound(NotFoundError):
    """The user has no profile, so a completion cannot be scored."""

    def __init__(self, user_id: str):
        super().__init__(f"Profile not found for user: {user_id}")
        self.user_id = user_id


class ConflictError(DebugQuestError):
    """Concurrent update lost a race."""

    retryable = True


class StoreUnavailable(DebugQuestError):
    """The backing store failed or timed out."""

    retryable = True


GENERIC_RETRY_MESSAGE = "Something went wrong. Please try again in a moment."


def is_retryable(exc: BaseException) -> bool:
    """Whether the caller may simply retry the failed operation."""
    return isinstance(exc, DebugQuestError) and exc.retryable


def user_message(exc: BaseException) -> str:
    """
    Message safe to show to a user.

    Store and conflict failures never expose internal detail.
    """
    if is_retryable(exc):
        return GENERIC_RETRY_MESSAGE
    if isinstance(exc, (ValidationError, NotFoundError)):
        return str(exc)
    return GENERIC_RETRY_MESSAGE
