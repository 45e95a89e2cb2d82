# =============================================================================
# nextup_core/errors/handlers.py
# Turning NextUP errors into log lines and user-facing messages
# =============================================================================

from __future__ import annotations
import functools
from typing import Optional, Callable, TypeVar, Any
import streamlit as st

from nextup_core.logging import get_logger
from .exceptions import NextUpError, Unauthorized, ConfigurationMissing

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    log_error: bool = True,
    user_message: Optional[str] = None,
    transient: bool = False,
) -> None:
    """
    Log an error and tell the user about it.

    Known NextUP errors are logged without a stack trace and shown with
    their own message. Sign-in prompts and demo-mode notices render as info
    rather than errors; `transient` failures (a bookmark toggle, a mark-read)
    become a toast so the page stays usable.
    """
    known = isinstance(error, NextUpError)
    message = user_message or (error.message if known else str(error)) or "Something went wrong"

    if log_error:
        code = error.code if known else "UNKNOWN"
        details = error.details if known else {}
        logger.error(f"[{code}] {message}", extra={"details": details}, exc_info=not known)

    if not show_user_message:
        return

    if isinstance(error, (Unauthorized, ConfigurationMissing)):
        st.info(f"🔒 {message}" if isinstance(error, Unauthorized) else message)
    elif transient:
        st.toast(message, icon="⚠️")
    elif known and not error.recoverable:
        st.error(f"{message}. Please try again later.")
    else:
        st.error(message)


class ErrorContext:
    """
    Wrap one user action: failures are handled and (when recoverable)
    suppressed, and `failed` tells the caller whether to move on.

    Usage:
        with ErrorContext("Saving bookmark", transient=True) as attempt:
            dal.toggle_bookmark("project", project_id, auth.user_id)
        if not attempt.failed:
            st.rerun()
    """

    def __init__(
        self,
        operation: str,
        recoverable: bool = True,
        transient: bool = False,
        show_success: bool = False,
        success_message: Optional[str] = None,
    ):
        self.operation = operation
        self.recoverable = recoverable
        self.transient = transient
        self.show_success = show_success
        self.success_message = success_message
        self.failed = False
        self.error: Optional[BaseException] = None

    def __enter__(self) -> ErrorContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            if self.show_success:
                st.toast(self.success_message or f"{self.operation} done", icon="✅")
            return False

        if not issubclass(exc_type, Exception):
            # KeyboardInterrupt, Streamlit's rerun/stop signals
            return False

        self.failed = True
        self.error = exc_val
        handle_error(
            exc_val,
            user_message=None if isinstance(exc_val, NextUpError) else f"{self.operation} failed",
            transient=self.transient,
        )
        return self.recoverable


def error_boundary(
    default_return: Any = None,
    error_message: Optional[str] = None,
    log: bool = True,
):
    """
    Decorator for lookups that must never break a page render: any
    exception is logged and `default_return` comes back instead.

    Usage:
        @error_boundary(default_return=False)
        def is_bookmarked(...) -> bool:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log:
                    logger.warning(f"{func.__name__} fell back to {default_return!r}: {e}")
                if error_message:
                    st.error(error_message)
                return default_return

        return wrapper

    return decorator
