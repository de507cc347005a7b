from __future__ import annotations

from typing import Optional


class NewsroomError(Exception):
    """Base class for every error the client reports to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(NewsroomError):
    """Input rejected before any network call was made."""


class MissingApiKeyError(ValidationError):
    def __init__(self, message: str = "API key not configured - open settings to add one"):
        super().__init__(message)


class TransportError(NewsroomError):
    def __init__(
        self, message: str = "Network error - please check your internet connection"
    ):
        super().__init__(message)


class ApiError(NewsroomError):
    """Non-2xx response from the news API."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class AuthError(ApiError):
    def __init__(self, body: str = ""):
        super().__init__("Invalid API key - please check your settings", 401, body)


class RateLimitError(ApiError):
    def __init__(self, body: str = ""):
        super().__init__("Rate limit exceeded - please try again later", 429, body)


class PerSourceFetchError(NewsroomError):
    """A single newspaper had no front page; never shown to the user."""

    def __init__(self, identifier: str, reason: str):
        super().__init__(f"Front page unavailable for {identifier}: {reason}")
        self.identifier = identifier


class PersistenceError(NewsroomError):
    pass


class ReferenceDataError(NewsroomError):
    pass
