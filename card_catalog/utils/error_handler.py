"""
Centralized error handling for the card catalog application.

This module provides custom exception classes and error handling utilities
to ensure robust operation and consistent error reporting throughout the app.
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass


class CardCatalogError(Exception):
    """Base exception class for all card catalog errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CardCatalogError):
    """Raised when there are configuration issues, e.g. a missing API token."""
    pass


class InvalidInputError(CardCatalogError):
    """Raised when a caller hands over an unusable image payload or option."""
    pass


class CollectionError(CardCatalogError):
    """Raised when a collection store operation fails."""
    pass


class ExportError(CardCatalogError):
    """Raised when CSV export or file operations fail."""
    pass


@dataclass
class ErrorContext:
    """Context information for error reporting."""
    operation: str
    module: str
    function: str
    input_data: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None


def handle_error(
    error: Exception,
    context: ErrorContext,
    logger: Any,
    reraise: bool = True,
    default_return: Any = None
) -> Any:
    """
    Centralized error handling with logging and optional recovery.

    Args:
        error: The exception that occurred
        context: Context information about where the error occurred
        logger: structlog logger to use for error reporting
        reraise: Whether to re-raise the exception after logging
        default_return: Value to return if not re-raising

    Returns:
        The default_return value if not re-raising

    Raises:
        The original exception if reraise is True
    """
    error_msg = f"Error in {context.module}.{context.function} during {context.operation}"

    if isinstance(error, CardCatalogError):
        error_msg += f": {error.message}"
        if error.details:
            error_msg += f" | Details: {error.details}"
    else:
        error_msg += f": {str(error)}"

    logger.error(
        error_msg,
        error_type=type(error).__name__,
        operation=context.operation,
        error_module=context.module,
        error_function=context.function,
        input_data=context.input_data,
        timestamp=context.timestamp,
    )

    if reraise:
        raise error

    return default_return
