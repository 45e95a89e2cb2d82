# =============================================================================
# nextup_core/notifications/feed.py
# Change-feed subscriptions with an explicit start/stop lifecycle
# =============================================================================
"""
A ChangeFeed delivers row-level INSERT/UPDATE/DELETE events for a filtered
slice of one table. Consumers pass a handler to `start()` and must call
`stop()` when done; feeds are also context managers.

    with SupabaseChangeFeed("notifications", f"user_id=eq.{user_id}") as feed:
        feed.start(events.put)
        ...
"""

from __future__ import annotations
import asyncio
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from nextup_core.logging import get_logger

logger = get_logger(__name__)


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """One row change from the feed."""
    event_type: ChangeType
    table: str
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)

    @property
    def row(self) -> Dict[str, Any]:
        """The affected row: the new image, or the old one for deletes."""
        return self.old if self.event_type is ChangeType.DELETE else self.new

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], table: str = "") -> ChangeEvent:
        """
        Parse a realtime postgres_changes payload.

        Accepts the Python SDK shape ({"data": {"type", "record",
        "old_record", "table"}}) and the flat shape ({"eventType", "new",
        "old"}) used by other Supabase clients.
        """
        data = payload.get("data", payload)
        event_type = data.get("type") or data.get("eventType")
        if event_type is None:
            raise ValueError(f"Change payload has no event type: {payload!r}")

        return cls(
            event_type=ChangeType(str(event_type).upper()),
            table=data.get("table") or table,
            new=dict(data.get("record") or data.get("new") or {}),
            old=dict(data.get("old_record") or data.get("old") or {}),
        )


EventHandler = Callable[[ChangeEvent], None]


class ChangeFeed(ABC):
    """Subscription to a table's change events."""

    def __init__(self, table: str, row_filter: Optional[str] = None):
        self.table = table
        self.row_filter = row_filter
        self._handler: Optional[EventHandler] = None

    @property
    def is_running(self) -> bool:
        return self._handler is not None

    def start(self, handler: EventHandler) -> None:
        """Begin delivering events to `handler`. Releases everything if setup fails."""
        if self.is_running:
            return
        self._handler = handler
        try:
            self._open()
        except Exception:
            self.stop()
            raise
        logger.info(f"Subscribed to {self.table} changes ({self.row_filter or 'all rows'})")

    def stop(self) -> None:
        """Stop delivery and release the subscription. Safe to call twice."""
        was_running = self.is_running
        self._handler = None
        self._close()
        if was_running:
            logger.info(f"Unsubscribed from {self.table} changes")

    def _dispatch(self, event: ChangeEvent) -> None:
        handler = self._handler
        if handler is not None:
            handler(event)

    @abstractmethod
    def _open(self) -> None:
        ...

    @abstractmethod
    def _close(self) -> None:
        ...

    def __enter__(self) -> ChangeFeed:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.stop()
        return False


class LocalChangeFeed(ChangeFeed):
    """
    In-process feed: events are injected with `publish()`. Used in demo
    mode and to drive subscribers in tests.
    """

    def __init__(self, table: str, row_filter: Optional[str] = None):
        super().__init__(table, row_filter)
        self.open_count = 0
        self.close_count = 0

    def _open(self) -> None:
        self.open_count += 1

    def _close(self) -> None:
        self.close_count += 1

    def publish(self, event: ChangeEvent) -> None:
        self._dispatch(event)


class SupabaseChangeFeed(ChangeFeed):
    """
    Supabase realtime subscription running on a daemon thread with its own
    event loop. Handlers are invoked on that thread, so they should only
    hand the event off (e.g. `queue.Queue.put`).
    """

    SUBSCRIBE_TIMEOUT = 5.0
    STOP_TIMEOUT = 5.0

    def __init__(
        self,
        table: str,
        row_filter: Optional[str] = None,
        access_token: Optional[str] = None,
        schema: str = "public",
        events: str = "*",
        subscribe_timeout: float = SUBSCRIBE_TIMEOUT,
    ):
        super().__init__(table, row_filter)
        self.subscribe_timeout = subscribe_timeout
        self.access_token = access_token
        self.schema = schema
        self.events = events
        self.topic = f"{table}:{row_filter or 'all'}"
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._client = None
        self._channel = None

    def _on_change(self, payload: Dict[str, Any]) -> None:
        try:
            event = ChangeEvent.from_payload(payload, table=self.table)
        except ValueError as e:
            logger.warning(f"Dropping malformed change payload: {e}")
            return
        self._dispatch(event)

    async def _subscribe(self) -> None:
        from nextup_core.data.supabase_client import create_realtime_client

        self._client = await create_realtime_client(self.access_token)
        channel = self._client.channel(self.topic)
        kwargs = {"schema": self.schema, "table": self.table, "callback": self._on_change}
        if self.row_filter:
            kwargs["filter"] = self.row_filter
        channel.on_postgres_changes(self.events, **kwargs)
        self._channel = channel
        await channel.subscribe()

    async def _unsubscribe(self) -> None:
        try:
            if self._client is not None and self._channel is not None:
                await self._client.remove_channel(self._channel)
        finally:
            self._channel = None
            self._client = None

    async def _shutdown(self) -> None:
        """Leave the channel, then cancel whatever is still running on the loop."""
        try:
            await asyncio.wait_for(self._unsubscribe(), timeout=self.STOP_TIMEOUT / 2)
        except Exception as e:
            logger.warning(f"Error while unsubscribing from {self.topic}: {e!r}")

        current = asyncio.current_task()
        pending = [task for task in asyncio.all_tasks() if task is not current]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def _open(self) -> None:
        loop = asyncio.new_event_loop()
        self._loop = loop
        self._thread = threading.Thread(
            target=loop.run_forever,
            name=f"change-feed-{self.topic}",
            daemon=True,
        )
        self._thread.start()
        future = asyncio.run_coroutine_threadsafe(self._subscribe(), loop)
        try:
            future.result(timeout=self.subscribe_timeout)
        except BaseException:
            future.cancel()
            raise

    def _close(self) -> None:
        loop, thread = self._loop, self._thread
        self._loop, self._thread = None, None
        if loop is None:
            return

        try:
            if loop.is_running():
                asyncio.run_coroutine_threadsafe(self._shutdown(), loop).result(timeout=self.STOP_TIMEOUT)
        except Exception as e:
            logger.warning(f"Change feed {self.topic} did not shut down cleanly: {e!r}")
        finally:
            loop.call_soon_threadsafe(loop.stop)
            if thread is not None:
                thread.join(timeout=self.STOP_TIMEOUT)
            if not loop.is_running():
                loop.close()


FeedFactory = Callable[[str, Optional[str]], ChangeFeed]