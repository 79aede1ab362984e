from typing import Optional


class ApiError(Exception):
    """Caller-facing error rendered as {"error": message} with status_code."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthError(ApiError):
    status_code = 401


class NotFoundError(ApiError):
    status_code = 404


class ProviderError(Exception):
    """A places/geocoding provider could not deliver a usable response."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
