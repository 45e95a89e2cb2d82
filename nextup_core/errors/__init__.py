# =============================================================================
# nextup_core/errors/__init__.py
# Centralized Error Handling for NextUP
# =============================================================================

from .exceptions import (
    NextUpError,
    ConfigurationMissing,
    DataUnavailable,
    ValidationError,
    NotFound,
    Unauthorized,
    AuthenticationError,
)

from .handlers import (
    handle_error,
    error_boundary,
    ErrorContext,
)

__all__ = [
    # Exceptions
    "NextUpError",
    "ConfigurationMissing",
    "DataUnavailable",
    "ValidationError",
    "NotFound",
    "Unauthorized",
    "AuthenticationError",
    # Handlers
    "handle_error",
    "error_boundary",
    "ErrorContext",
]
