"""
Base Exception Class

This module contains the base exception class that all response cache
exceptions inherit from, plus ConfigurationError.
"""

from typing import Any


class ResponseCacheError(Exception):
    """
    Base exception for all response cache errors.

    Attributes:
        message: Error message
        details: Additional error details (dict)

    Example:
        raise CacheTimeoutError(
            "Redis operation timeout",
            details={"key": "cache:GET:/users", "timeout_ms": 5000},
        )
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = (details or {}).copy()  # Copy to prevent external modification
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, message, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

    def with_context(self, **context) -> "ResponseCacheError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        return f"{self.__class__.__name__}(message='{self.message}'{details_str})"

    @classmethod
    def from_exception(
        cls, exc: Exception, message: str | None = None, **details
    ) -> "ResponseCacheError":
        """
        Create an error from another exception.

        Useful for wrapping redis-py exceptions with additional context.

        Example:
            >>> try:
            ...     await redis.ping()
            ... except redis.exceptions.ConnectionError as e:
            ...     raise CacheConnectionError.from_exception(e, url="redis://localhost")
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details,
        }
        return cls(error_message, details=error_details)


class ConfigurationError(ResponseCacheError):
    """Raised when cache or invalidation options are invalid."""
    pass
