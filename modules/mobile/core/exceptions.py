"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
The store and repository layers raise these; the providers catch them
and surface the message as observable state.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a document cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when input or stored data fails validation."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class StoreError(ApplicationError):
    """Raised when the backing document store fails."""

    def __init__(self, message: str = "Document store error") -> None:
        super().__init__(message, code="SYS_STORE_ERROR")


class SubscriptionError(ApplicationError):
    """Raised when a live subscription cannot be opened or is lost."""

    def __init__(self, message: str = "Subscription failed") -> None:
        super().__init__(message, code="SYS_SUBSCRIPTION_ERROR")
