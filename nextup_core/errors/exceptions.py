# =============================================================================
# nextup_core/errors/exceptions.py
# Custom Exception Hierarchy for NextUP
# =============================================================================

from typing import Optional, Dict, Any


class NextUpError(Exception):
    """
    Base exception for all NextUP errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "DATA_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "NU_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# CONFIGURATION
# =============================================================================

class ConfigurationMissing(NextUpError):
    """
    Store credentials are absent. Informational: the app runs in demo mode.
    """

    def __init__(self, message: str = "Supabase credentials not configured", missing: Optional[list] = None, **kwargs):
        details = kwargs.pop("details", {})
        if missing:
            details["missing"] = missing

        super().__init__(message=message, code="CFG_001", details=details, **kwargs)


# =============================================================================
# DATA LAYER EXCEPTIONS
# =============================================================================

class DataUnavailable(NextUpError):
    """Raised when a read or write against the live store fails"""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation

        super().__init__(message=message, code="DATA_001", details=details, **kwargs)


class ValidationError(NextUpError):
    """Raised when the store rejects a record's shape or constraints"""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        constraint: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if constraint:
            details["constraint"] = constraint

        super().__init__(message=message, code="DATA_002", details=details, **kwargs)


class NotFound(NextUpError):
    """Raised when an update/get target does not exist"""

    def __init__(self, table: str, record_id: str, **kwargs):
        details = kwargs.pop("details", {})
        details.update({"table": table, "id": record_id})
        super().__init__(
            message=f"No record '{record_id}' in {table}",
            code="DATA_003",
            details=details,
            **kwargs,
        )
        self.table = table
        self.record_id = record_id


# =============================================================================
# AUTH EXCEPTIONS
# =============================================================================

class Unauthorized(NextUpError):
    """A write or bookmark operation was attempted without a signed-in user"""

    def __init__(self, message: str = "Please sign in to continue", operation: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation

        super().__init__(message=message, code="AUTH_001", details=details, **kwargs)


class AuthenticationError(NextUpError):
    """Raised when the auth provider rejects a sign-in, sign-up or sign-out"""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if provider:
            details["provider"] = provider

        super().__init__(message=message, code="AUTH_002", details=details, **kwargs)
