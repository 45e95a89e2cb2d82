# =============================================================================
# nextup_core/notifications/center.py
# Per-session notification list, unread count and live updates
# =============================================================================

from __future__ import annotations
import queue
from enum import Enum
from typing import Any, Dict, List, Optional

from nextup_core.data.query import ListQuery, OrderBy
from nextup_core.data.repository import DataAccessLayer
from nextup_core.errors import DataUnavailable, NextUpError
from nextup_core.logging import get_logger
from .feed import ChangeEvent, ChangeFeed, ChangeType, FeedFactory, LocalChangeFeed, SupabaseChangeFeed

logger = get_logger(__name__)

NOTIFICATIONS_TABLE = "notifications"
PAGE_SIZE = 20


class CenterState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


def reduce_notifications(notifications: List[Dict[str, Any]], event: ChangeEvent) -> List[Dict[str, Any]]:
    """
    Apply one change event to a most-recent-first notification list and
    return the new list. Inserts go to the head; an insert for an id already
    present (fetched and pushed at the same time) is ignored.
    """
    row = event.row
    row_id = row.get("id")
    if row_id is None:
        return notifications

    if event.event_type is ChangeType.INSERT:
        if any(n["id"] == row_id for n in notifications):
            return notifications
        return [dict(row)] + notifications
    if event.event_type is ChangeType.UPDATE:
        return [dict(row) if n["id"] == row_id else n for n in notifications]
    if event.event_type is ChangeType.DELETE:
        return [n for n in notifications if n["id"] != row_id]
    return notifications


class NotificationCenter:
    """
    Notification state for one signed-in session.

    IDLE (no user) -> LOADING -> READY. While READY, a change-feed
    subscription scoped to the user's rows pushes events into a queue;
    `drain_events()` applies them. The unread count is always derived from
    the current list.

    Usage:
        center = NotificationCenter(dal)
        auth.add_listener(center.on_user_changed)
        center.drain_events()
        st.sidebar.metric("Unread", center.unread_count)
    """

    def __init__(
        self,
        dal: DataAccessLayer,
        feed_factory: Optional[FeedFactory] = None,
        page_size: int = PAGE_SIZE,
    ):
        self.dal = dal
        self.page_size = page_size
        self.feed_factory = feed_factory

        self.state = CenterState.IDLE
        self.user_id: Optional[str] = None
        self.notifications: List[Dict[str, Any]] = []
        self.last_error: Optional[NextUpError] = None
        self.feed: Optional[ChangeFeed] = None
        self._events: "queue.Queue[ChangeEvent]" = queue.Queue()

    # =========================================================================
    # Derived state
    # =========================================================================

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.get("is_read"))

    @property
    def is_ready(self) -> bool:
        return self.state is CenterState.READY

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def on_user_changed(self, user: Any) -> None:
        """
        React to sign-in/sign-out. `user` is anything with an `id`
        attribute, or None.
        """
        user_id = getattr(user, "id", None) if user is not None else None
        if user_id is not None and user_id == self.user_id:
            return

        self.close()
        if user_id is None:
            return

        self.user_id = str(user_id)
        self.refresh()
        self._start_feed()

    def refresh(self) -> None:
        """(Re)load the newest notifications for the current user."""
        if self.user_id is None:
            return

        self.state = CenterState.LOADING
        query = ListQuery(
            per_page=self.page_size,
            filters={"user_id": self.user_id},
            order_by=OrderBy("created_at", ascending=False),
        )
        try:
            result = self.dal.list(NOTIFICATIONS_TABLE, query)
            self.notifications = [dict(row) for row in result.records]
            self.last_error = None
        except DataUnavailable as e:
            logger.warning(f"Could not load notifications: {e.message}")
            self.notifications = []
            self.last_error = e
        self.state = CenterState.READY

    def _make_feed(self, row_filter: str) -> ChangeFeed:
        if self.feed_factory is not None:
            return self.feed_factory(NOTIFICATIONS_TABLE, row_filter)
        if not self.dal.live:
            return LocalChangeFeed(NOTIFICATIONS_TABLE, row_filter)
        # Row-level security needs the user's token on the realtime socket
        access_token = getattr(self.dal.auth, "access_token", None)
        return SupabaseChangeFeed(NOTIFICATIONS_TABLE, row_filter, access_token=access_token)

    def _start_feed(self) -> None:
        feed = self._make_feed(f"user_id=eq.{self.user_id}")
        try:
            feed.start(self._events.put)
        except Exception as e:
            # Live updates are optional; the fetched list stays usable
            logger.warning(f"Live notification updates unavailable: {e!r}")
            return
        self.feed = feed

    def close(self) -> None:
        """Tear down the subscription and return to IDLE."""
        feed, self.feed = self.feed, None
        if feed is not None:
            feed.stop()

        self.user_id = None
        self.notifications = []
        self.last_error = None
        self.state = CenterState.IDLE
        self._events = queue.Queue()

    # =========================================================================
    # Live updates
    # =========================================================================

    def drain_events(self) -> int:
        """Apply queued change events. Returns how many were applied."""
        applied = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                break

            # Delete events may carry only the primary key
            owner = event.row.get("user_id")
            if owner is not None and str(owner) != self.user_id:
                continue
            self.notifications = reduce_notifications(self.notifications, event)
            applied += 1
        return applied

    # =========================================================================
    # Mutations
    # =========================================================================

    def mark_as_read(self, notification_id: str) -> None:
        """
        Mark one notification read. The local flip happens first and is
        reverted if the store update fails.
        """
        if self.user_id is None:
            return

        previous = self.notifications
        self.notifications = [
            {**n, "is_read": True} if n["id"] == notification_id else n
            for n in previous
        ]
        try:
            self.dal.update_where(
                NOTIFICATIONS_TABLE,
                {"id": notification_id, "user_id": self.user_id},
                {"is_read": True},
            )
        except Exception:
            self.notifications = previous
            raise

    def mark_all_as_read(self) -> None:
        """Mark every unread notification read."""
        if self.user_id is None:
            return

        previous = self.notifications
        self.notifications = [{**n, "is_read": True} for n in previous]
        try:
            self.dal.update_where(
                NOTIFICATIONS_TABLE,
                {"user_id": self.user_id, "is_read": False},
                {"is_read": True},
            )
        except Exception:
            self.notifications = previous
            raise

    def delete_notification(self, notification_id: str) -> None:
        if self.user_id is None:
            return

        self.dal.delete(NOTIFICATIONS_TABLE, notification_id)
        self.notifications = [n for n in self.notifications if n["id"] != notification_id]
