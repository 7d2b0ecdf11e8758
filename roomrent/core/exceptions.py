"""Domain exceptions raised by the access layers and the route gate."""
from typing import Optional


GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


class RoomRentError(Exception):
    """Base class for all application errors."""


class BackendError(RoomRentError):
    """
    A query, mutation, function call or upload failed at the backend.

    Rejections by the backend's row-level access policy land here too; they
    are not distinguished from other failures.
    """

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.message = message or GENERIC_ERROR_MESSAGE
        self.code = code
        super().__init__(self.message)


class NotAuthenticatedError(RoomRentError):
    """The operation needs a signed-in user."""

    def __init__(self, message: str = "Please sign in to continue."):
        self.message = message
        super().__init__(message)


class ValidationFailure(RoomRentError):
    """Input rejected before any backend call."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)


class ImageLimitExceeded(ValidationFailure):
    """More images than a room listing may carry."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__("images", f"You can upload a maximum of {limit} images")


class RedirectRequired(RoomRentError):
    """Raised by the route gate when the caller must be sent elsewhere."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(location)
