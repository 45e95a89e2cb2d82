# =============================================================================
# nextup_core/notifications/__init__.py
# Notifications: per-session list, unread count, live change feed
# =============================================================================

from .feed import (
    ChangeType,
    ChangeEvent,
    ChangeFeed,
    LocalChangeFeed,
    SupabaseChangeFeed,
)

from .center import (
    CenterState,
    NotificationCenter,
    reduce_notifications,
)

__all__ = [
    # Change feed
    "ChangeType",
    "ChangeEvent",
    "ChangeFeed",
    "LocalChangeFeed",
    "SupabaseChangeFeed",
    # Notification center
    "CenterState",
    "NotificationCenter",
    "reduce_notifications",
]
