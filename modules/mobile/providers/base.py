"""
Base Provider.

Base class for UI-facing state holders. Providers own observable state,
call repositories, and turn every failure into state the UI can render:
they log errors and record them, they never raise them to the caller.

Usage:
    from modules.mobile.providers.base import BaseProvider

    class ProfileProvider(BaseProvider):
        def __init__(self, repository: ProfileRepository) -> None:
            super().__init__()
            self.repository = repository
"""

from typing import Any

from modules.mobile.core.logging import get_logger
from modules.mobile.core.observable import Observable


class BaseProvider(Observable):
    """
    Base class for all providers.

    Provides:
    - Listener registration and notification (from Observable)
    - A logger named after the concrete provider's module
    - Helpers for structured operation and failure logging
    """

    def __init__(self) -> None:
        super().__init__()
        self._logger = get_logger(self.__class__.__module__)

    @staticmethod
    def _describe(error: Exception) -> str:
        """Human-readable message for an error, as shown to the user."""
        return str(error) or error.__class__.__name__

    def _log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a provider operation with context.

        Args:
            operation: Description of the operation
            **context: Additional context to include in log
        """
        self._logger.info(
            operation,
            extra={"provider": self.__class__.__name__, **context},
        )

    def _log_debug(self, message: str, **context: Any) -> None:
        """Log debug information."""
        self._logger.debug(
            message,
            extra={"provider": self.__class__.__name__, **context},
        )

    def _log_failure(self, operation: str, error: Exception, **context: Any) -> None:
        """Log a recorded (non-raised) failure."""
        self._logger.warning(
            operation,
            extra={
                "provider": self.__class__.__name__,
                "error": str(error),
                "error_type": error.__class__.__name__,
                **context,
            },
        )
