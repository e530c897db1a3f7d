"""Domain errors.

The first four classes are the user-facing taxonomy: the workflow engine
turns them into an error notice. The control errors below them are raised
to the caller as-is and never replace the notice.
"""

from __future__ import annotations


class CareerCoachError(Exception):
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "", *, user_message: str | None = None):
        super().__init__(message or self.default_message)
        self.user_message = user_message or self.default_message


class ParseError(CareerCoachError):
    default_message = "Could not extract text from the file. Please try pasting plain text."


class ValidationError(CareerCoachError):
    default_message = "Some required input is missing."

    def __init__(self, message: str = "", *, user_message: str | None = None):
        super().__init__(message, user_message=user_message or message or None)


class AIServiceError(CareerCoachError):
    default_message = "The AI service could not complete the request. Please try again."


class EmptyResultError(AIServiceError):
    pass


class NavigationError(CareerCoachError):
    default_message = "That step cannot be opened from here."


class WorkflowBusyError(CareerCoachError):
    default_message = "Another request is still running."


class ErrorPendingError(CareerCoachError):
    default_message = "Dismiss the current error before retrying."


class NotFoundError(CareerCoachError):
    default_message = "The requested item does not exist."
