"""Error taxonomy shared by the board services and the API layer."""

from __future__ import annotations

UNAUTHORIZED_MESSAGE = "You are not authorized to perform this action."
STORAGE_ERROR_MESSAGE = "Unable to save changes. Please try again."
LOAD_ERROR_MESSAGE = "Failed to load data. Please refresh."


class TrackerError(Exception):
    """Base class for all tracker errors.

    ``user_message`` is safe to show to the person who triggered the error.
    """

    user_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class Unauthorized(TrackerError):
    """Raised when the authorization gate rejects an action."""

    user_message = UNAUTHORIZED_MESSAGE


class UnknownWorker(TrackerError):
    """Raised when a mutation targets a worker that is not on the ledger."""

    user_message = "Underwriter not found."


class PersistenceFailure(TrackerError):
    """Raised when the durable store fails after retries are exhausted."""

    user_message = STORAGE_ERROR_MESSAGE


class NotConfigured(TrackerError):
    """Raised at startup when required collaborators cannot be configured."""

    user_message = "The tracker is not configured. Contact an administrator."
