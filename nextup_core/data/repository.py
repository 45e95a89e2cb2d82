# =============================================================================
# nextup_core/data/repository.py
# Generic data access layer: live Supabase tables or demo-mode mock data
# =============================================================================

from __future__ import annotations
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd

from nextup_core.config import Settings, get_settings
from nextup_core.errors import (
    NextUpError,
    DataUnavailable,
    ValidationError,
    NotFound,
    Unauthorized,
    error_boundary,
)
from nextup_core.logging import get_logger, LogContext
from .mock_data import mock_table
from .models import ItemType, ITEM_TYPE_BY_TABLE, Listing, record_from_row
from .query import ListQuery, apply_query, apply_to_builder
from .supabase_client import get_supabase_client

logger = get_logger(__name__)

BOOKMARKS_TABLE = "bookmarks"

# Postgres/PostgREST codes meaning "the store rejected this row"
_REJECTION_CODES = {"42703", "PGRST102", "PGRST204"}
_REJECTION_CLASSES = ("22", "23")  # data exception, integrity constraint violation
UNIQUE_VIOLATION = "23505"

_READ_OPERATIONS = {"list", "get", "bookmarks"}


class DataSource(str, Enum):
    LIVE = "live"
    MOCK = "mock"
    MOCK_FALLBACK = "mock_fallback"  # live read failed, caller opted into demo data


@dataclass
class ListResult:
    """One page of rows plus the total match count."""
    records: List[Dict[str, Any]]
    total: int
    source: DataSource
    table: str = ""

    @property
    def is_mock(self) -> bool:
        return self.source is not DataSource.LIVE

    def typed(self) -> List[Listing]:
        """Rows as typed listing records (listing tables only)."""
        item_type = ITEM_TYPE_BY_TABLE.get(self.table)
        if item_type is None:
            raise TypeError(f"{self.table!r} is not a listing table")
        return [record_from_row(item_type, row) for row in self.records]

    def to_frame(self) -> pd.DataFrame:
        """Rows as a DataFrame for tabular display."""
        return pd.DataFrame(self.records)


@dataclass
class DemoWrite:
    """A write that demo mode acknowledged without persisting."""
    operation: str
    table: str
    payload: Dict[str, Any]
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def translate_store_error(error: Exception, table: str, operation: str) -> NextUpError:
    """
    Map an SDK/transport exception onto the NextUP taxonomy.

    Reads always become DataUnavailable. Writes rejected by the store's own
    constraints become ValidationError carrying the store message verbatim.
    """
    if isinstance(error, NextUpError):
        return error

    code = str(getattr(error, "code", "") or "")
    message = getattr(error, "message", None) or str(error) or error.__class__.__name__

    if operation not in _READ_OPERATIONS and (
        code in _REJECTION_CODES or code[:2] in _REJECTION_CLASSES
    ):
        return ValidationError(message, table=table, constraint=code)

    details = {"code": code} if code else {}
    return DataUnavailable(message, table=table, operation=operation, details=details)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DataAccessLayer:
    """
    Single point of access for listing, creating, updating and deleting
    records and for bookmarks.

    With store credentials configured every call goes to Supabase. Without
    them the layer serves deterministic mock rows and acknowledges writes
    without persisting them (see `demo_writes`).

    Usage:
        dal = DataAccessLayer(auth=auth)
        page = dal.list("projects", ListQuery(per_page=10, order_by=OrderBy("created_at")))
        if dal.toggle_bookmark("project", page.records[0]["id"], auth.user_id):
            ...
    """

    def __init__(self, client: Any = None, settings: Optional[Settings] = None, auth: Any = None):
        """
        Args:
            client: Supabase client for anonymous requests (default: the shared handle)
            settings: Store settings (default: process settings)
            auth: Optional AuthContext; when given, writes require a signed-in user
        """
        self.settings = settings or get_settings()
        if client is None and self.settings.is_configured:
            client = get_supabase_client()
        self.client = client
        self.auth = auth
        self.live = client is not None or self.settings.is_configured

        self.demo_writes: List[DemoWrite] = []
        self._demo_bookmarks: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        # Mock timestamps stay fixed for this layer's lifetime so pages line up
        self._mock_now = datetime.now(timezone.utc)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _table(self, table: str):
        # Signed-in requests carry the session's own token; the shared client is anonymous
        client = getattr(self.auth, "request_client", None) or self.client
        if client is None:
            raise DataUnavailable("Supabase client could not be initialized", table=table)
        return client.table(table)

    def _mock_rows(self, table: str) -> List[Dict[str, Any]]:
        if self.settings.mock_latency > 0:
            time.sleep(self.settings.mock_latency)
        return mock_table(table, now=self._mock_now)

    def _record_demo_write(self, operation: str, table: str, payload: Dict[str, Any]) -> None:
        logger.info(f"Demo mode: {operation} on {table} not persisted")
        self.demo_writes.append(DemoWrite(operation=operation, table=table, payload=dict(payload)))

    def _require_user(self, operation: str) -> None:
        if self.auth is not None and self.auth.current_user is None:
            raise Unauthorized(operation=operation)

    # =========================================================================
    # Reads
    # =========================================================================

    def list(self, table: str, query: Optional[ListQuery] = None, fallback_to_mock: bool = False) -> ListResult:
        """
        List rows with filters, search, ordering and pagination.

        Args:
            table: Table name
            query: Query options (default: everything, source order)
            fallback_to_mock: Serve mock rows (marked MOCK_FALLBACK) if the live read fails

        Returns:
            ListResult with the page and the total match count

        Raises:
            DataUnavailable: the live store returned an error
        """
        query = query or ListQuery()
        query.validate()

        if not self.live:
            rows, total = apply_query(self._mock_rows(table), query)
            return ListResult(rows, total, DataSource.MOCK, table)

        try:
            with LogContext(logger, f"Listing {table}"):
                builder = self._table(table).select(query.select, count="exact")
                response = apply_to_builder(builder, query).execute()
        except Exception as e:
            error = translate_store_error(e, table, "list")
            if not fallback_to_mock:
                raise error from e
            logger.warning(f"Serving mock {table} after live read failed: {error.message}")
            rows, total = apply_query(self._mock_rows(table), query)
            return ListResult(rows, total, DataSource.MOCK_FALLBACK, table)

        rows = response.data or []
        total = response.count if response.count is not None else len(rows)
        return ListResult(rows, total, DataSource.LIVE, table)

    def get(self, table: str, record_id: str) -> Dict[str, Any]:
        """Fetch one row by id. Raises NotFound when absent."""
        if not self.live:
            for row in self._mock_rows(table):
                if row["id"] == record_id:
                    return row
            raise NotFound(table, record_id)

        try:
            response = self._table(table).select("*").eq("id", record_id).limit(1).execute()
        except Exception as e:
            raise translate_store_error(e, table, "get") from e

        if not response.data:
            raise NotFound(table, record_id)
        return response.data[0]

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a row, assigning `id` and `created_at` when missing.

        Raises:
            Unauthorized: no signed-in user
            ValidationError: the store rejected the row
            DataUnavailable: the store could not be reached
        """
        self._require_user("create")

        record = dict(fields)
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("created_at", _now_iso())

        if not self.live:
            self._record_demo_write("create", table, record)
            return record

        try:
            with LogContext(logger, f"Inserting into {table}"):
                response = self._table(table).insert(record).execute()
        except Exception as e:
            raise translate_store_error(e, table, "create") from e

        return response.data[0] if response.data else record

    def update(self, table: str, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update to one row and return the updated row.

        Raises:
            NotFound: no row with that id
        """
        self._require_user("update")

        if not self.live:
            current = next((row for row in self._mock_rows(table) if row["id"] == record_id), None)
            if current is None:
                raise NotFound(table, record_id)
            self._record_demo_write("update", table, {"id": record_id, **partial})
            return {**current, **partial}

        try:
            response = self._table(table).update(partial).eq("id", record_id).execute()
        except Exception as e:
            raise translate_store_error(e, table, "update") from e

        if not response.data:
            raise NotFound(table, record_id)
        return response.data[0]

    def update_where(self, table: str, filters: Dict[str, Any], partial: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Apply a partial update to every row matching equality filters."""
        self._require_user("update")

        if not self.live:
            self._record_demo_write("update", table, {"where": dict(filters), **partial})
            return []

        try:
            builder = self._table(table).update(partial)
            for column, value in filters.items():
                builder = builder.eq(column, value)
            response = builder.execute()
        except Exception as e:
            raise translate_store_error(e, table, "update") from e

        return response.data or []

    def delete(self, table: str, record_id: str) -> bool:
        """
        Delete a row. Deleting an id that does not exist succeeds.
        """
        self._require_user("delete")

        if not self.live:
            self._record_demo_write("delete", table, {"id": record_id})
            return True

        try:
            self._table(table).delete().eq("id", record_id).execute()
        except Exception as e:
            raise translate_store_error(e, table, "delete") from e

        return True

    # =========================================================================
    # Bookmarks
    # =========================================================================

    @staticmethod
    def _bookmark_key(item_type: Union[ItemType, str], item_id: str, user_id: str) -> Tuple[str, str, str]:
        return str(user_id), str(item_id), ItemType(item_type).value

    def _find_bookmark(self, key: Tuple[str, str, str]) -> Optional[Dict[str, Any]]:
        user_id, item_id, item_type = key
        response = (
            self._table(BOOKMARKS_TABLE)
            .select("id")
            .eq("user_id", user_id)
            .eq("item_id", item_id)
            .eq("item_type", item_type)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def toggle_bookmark(self, item_type: Union[ItemType, str], item_id: str, user_id: Optional[str]) -> bool:
        """
        Bookmark an item, or remove the bookmark if it exists.

        Returns:
            True if the item is now bookmarked, False if the bookmark was removed
        """
        if not user_id:
            raise Unauthorized(operation="toggle_bookmark")
        self._require_user("toggle_bookmark")

        key = self._bookmark_key(item_type, item_id, user_id)

        if not self.live:
            if key in self._demo_bookmarks:
                removed = self._demo_bookmarks.pop(key)
                self._record_demo_write("delete", BOOKMARKS_TABLE, removed)
                return False
            row = {
                "id": f"demo-bookmark-{uuid.uuid4().hex[:8]}",
                "user_id": key[0],
                "item_id": key[1],
                "item_type": key[2],
                "created_at": _now_iso(),
            }
            self._demo_bookmarks[key] = row
            self._record_demo_write("create", BOOKMARKS_TABLE, row)
            return True

        try:
            existing = self._find_bookmark(key)
            if existing is not None:
                self._table(BOOKMARKS_TABLE).delete().eq("id", existing["id"]).execute()
                return False

            self._table(BOOKMARKS_TABLE).insert({
                "user_id": key[0],
                "item_id": key[1],
                "item_type": key[2],
            }).execute()
        except Exception as e:
            error = translate_store_error(e, BOOKMARKS_TABLE, "toggle_bookmark")
            if isinstance(error, ValidationError) and error.details.get("constraint") == UNIQUE_VIOLATION:
                # A concurrent toggle inserted the same tuple first
                logger.info(f"Bookmark {key} already exists")
                return True
            raise error from e

        return True

    @error_boundary(default_return=False)
    def is_bookmarked(self, item_type: Union[ItemType, str], item_id: str, user_id: Optional[str]) -> bool:
        """True if the user bookmarked the item. Never raises."""
        if not user_id or (self.auth is not None and self.auth.current_user is None):
            return False

        key = self._bookmark_key(item_type, item_id, user_id)
        if not self.live:
            return key in self._demo_bookmarks
        return self._find_bookmark(key) is not None

    def _rows_by_id(self, table: str, ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not self.live:
            wanted = set(ids)
            return {row["id"]: row for row in self._mock_rows(table) if row["id"] in wanted}

        response = self._table(table).select("*").in_("id", ids).execute()
        return {str(row["id"]): row for row in response.data or []}

    def get_user_bookmarks(
        self,
        user_id: Optional[str],
        item_type: Optional[Union[ItemType, str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        A user's bookmarks, newest first, each with its target row under
        "item" (None if the target no longer exists).
        """
        if not user_id:
            return []
        wanted_type = ItemType(item_type).value if item_type else None

        try:
            if not self.live:
                rows = [
                    dict(row) for row in self._demo_bookmarks.values()
                    if row["user_id"] == str(user_id) and (wanted_type is None or row["item_type"] == wanted_type)
                ]
                rows.sort(key=lambda row: row["created_at"], reverse=True)
            else:
                builder = self._table(BOOKMARKS_TABLE).select("*").eq("user_id", user_id)
                if wanted_type:
                    builder = builder.eq("item_type", wanted_type)
                rows = builder.order("created_at", desc=True).execute().data or []

            ids_by_type: Dict[str, List[str]] = {}
            for row in rows:
                ids_by_type.setdefault(row["item_type"], []).append(str(row["item_id"]))

            targets = {
                kind: self._rows_by_id(ItemType(kind).table, ids)
                for kind, ids in ids_by_type.items()
            }
        except NextUpError:
            raise
        except Exception as e:
            raise translate_store_error(e, BOOKMARKS_TABLE, "bookmarks") from e

        for row in rows:
            row["item"] = targets.get(row["item_type"], {}).get(str(row["item_id"]))
        return rows
