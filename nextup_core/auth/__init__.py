"""
Authentication module for NextUP.
Wraps Supabase Auth and exposes the current user and profile to the app.
"""

from .context import (
    AuthContext,
    CurrentUser,
    SessionState,
)

__all__ = [
    "AuthContext",
    "CurrentUser",
    "SessionState",
]
