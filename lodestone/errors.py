from typing import Optional

GENERIC_FAILURE = "API call failed"


class LodestoneError(Exception):
    """Base for every failure a flow can surface to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ApiError(LodestoneError):
    """Non-success HTTP response."""

    def __init__(self, status: Optional[int], message: Optional[str] = None) -> None:
        super().__init__(message if message and message.strip() else GENERIC_FAILURE)
        self.status = status


class UploadError(ApiError):
    pass


class AuthError(LodestoneError):
    """Bad credentials or an expired/invalid token."""


class NetworkError(LodestoneError):
    """The request could not be sent or completed."""


class ValidationError(LodestoneError):
    """Client-side rejection, raised before anything is dispatched."""
