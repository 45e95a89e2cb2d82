"""
Configuration module for NextUP.
"""

from .settings import (
    Settings,
    get_settings,
    load_settings,
    reset_settings,
    is_configured,
)

__all__ = [
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "is_configured",
]
