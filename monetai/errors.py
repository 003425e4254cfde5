"""SDK error taxonomy."""

from __future__ import annotations


class MonetaiError(Exception):
    """Base exception for every SDK failure."""


class InvalidSDKKey(MonetaiError):
    def __init__(self):
        super().__init__("Invalid SDK key.")


class InvalidUserId(MonetaiError):
    def __init__(self):
        super().__init__("Invalid user ID.")


class NotInitialized(MonetaiError):
    """Raised when an operation requires a successfully initialized SDK."""

    def __init__(self):
        super().__init__("MonetaiSDK has not been initialized. Please call initialize() first.")


class ApiError(MonetaiError):
    """Business error reported by the backend in a structured error body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(f"API error: {message}")
        self.message = message
        self.status_code = status_code


class NetworkError(MonetaiError):
    """Transport or decoding failure."""

    def __init__(self, cause: BaseException | str):
        super().__init__(f"Network error: {cause}")
        self.cause = cause


class BillingError(MonetaiError):
    """Failure in the receipt/transaction pipeline. Only ever logged."""

    def __init__(self, cause: BaseException | str):
        super().__init__(f"Billing error: {cause}")
        self.cause = cause
