# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from nextup_core.config import Settings, reset_settings
from nextup_core.data.mock_data import mock_table
from nextup_core.data.query import like_to_regex
from nextup_core.data.repository import DataAccessLayer
from nextup_core.data.supabase_client import reset_supabase_client

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# IN-MEMORY SUPABASE CLIENT
# =============================================================================

class StoreError(Exception):
    """Shaped like postgrest's APIError: a message and a Postgres code."""

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.message = message
        self.code = code


class FakeRequest:
    """One chained PostgREST request against a FakeSupabaseClient table."""

    def __init__(self, client, table: str, op: str, payload: Any = None, count: Optional[str] = None):
        self.client = client
        self.table = table
        self.op = op
        self.payload = payload
        self.count = count
        self.predicates = []
        self._order = None
        self._range = None
        self._limit = None

    def eq(self, column, value):
        self.predicates.append(lambda row: row.get(column) == value)
        return self

    def contains(self, column, values):
        self.predicates.append(
            lambda row: isinstance(row.get(column), list) and set(values) <= set(row.get(column))
        )
        return self

    def ilike(self, column, pattern):
        regex = like_to_regex(pattern)
        self.predicates.append(
            lambda row: row.get(column) is not None and regex.fullmatch(str(row.get(column))) is not None
        )
        return self

    def in_(self, column, values):
        wanted = {str(v) for v in values}
        self.predicates.append(lambda row: str(row.get(column)) in wanted)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matching(self, rows):
        return [row for row in rows if all(pred(row) for pred in self.predicates)]

    def execute(self):
        failure = self.client.failures.pop((self.table, self.op), None)
        if failure is not None:
            raise failure

        self.client.calls.append((self.table, self.op))
        rows = self.client.tables.setdefault(self.table, [])

        if self.op == "select":
            matched = [dict(row) for row in self._matching(rows)]
            if self._order is not None:
                column, desc = self._order
                # Postgres default: NULLS LAST ascending, NULLS FIRST descending
                present = sorted((r for r in matched if r.get(column) is not None),
                                 key=lambda r: r[column], reverse=desc)
                missing = [r for r in matched if r.get(column) is None]
                matched = missing + present if desc else present + missing
            total = len(matched)
            if self._range is not None:
                start, end = self._range
                matched = matched[start:end + 1]
            if self._limit is not None:
                matched = matched[:self._limit]
            return SimpleNamespace(data=matched, count=total if self.count else None)

        if self.op == "insert":
            records = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.client.insert_row(self.table, record) for record in records]
            return SimpleNamespace(data=inserted, count=None)

        if self.op == "upsert":
            record = dict(self.payload)
            existing = next((row for row in rows if row.get("id") == record.get("id")), None)
            if existing is not None:
                existing.update(record)
                return SimpleNamespace(data=[dict(existing)], count=None)
            return SimpleNamespace(data=[self.client.insert_row(self.table, record)], count=None)

        if self.op == "update":
            updated = []
            for row in self._matching(rows):
                row.update(self.payload)
                updated.append(dict(row))
            return SimpleNamespace(data=updated, count=None)

        if self.op == "delete":
            removed = self._matching(rows)
            self.client.tables[self.table] = [row for row in rows if row not in removed]
            return SimpleNamespace(data=[dict(row) for row in removed], count=None)

        raise AssertionError(f"unsupported op {self.op}")


class FakeAuth:
    """Keeps the signed-in session inside the client instance, like Supabase Auth."""

    def __init__(self):
        self.session = None

    def get_session(self):
        return self.session

    def sign_in_with_password(self, credentials):
        email = credentials["email"]
        user = SimpleNamespace(id=email.split("@")[0], email=email)
        self.session = SimpleNamespace(user=user, access_token=f"jwt-{user.id}")
        return SimpleNamespace(session=self.session, user=user)

    def sign_out(self, options=None):
        self.session = None


class FakeTable:
    def __init__(self, client, name: str):
        self.client = client
        self.name = name

    def select(self, columns="*", count=None):
        return FakeRequest(self.client, self.name, "select", count=count)

    def insert(self, record):
        return FakeRequest(self.client, self.name, "insert", payload=record)

    def upsert(self, record, on_conflict="id"):
        return FakeRequest(self.client, self.name, "upsert", payload=record)

    def update(self, partial):
        return FakeRequest(self.client, self.name, "update", payload=partial)

    def delete(self):
        return FakeRequest(self.client, self.name, "delete")


class FakeSupabaseClient:
    """
    In-memory stand-in for the Supabase table API.

    `failures[(table, op)] = exc` makes the next matching request raise.
    `auth` signs users in by email; the user id is the part before "@".
    Bookmarks enforce the (user_id, item_id, item_type) unique constraint.
    """

    UNIQUE = {"bookmarks": ("user_id", "item_id", "item_type")}

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.failures: Dict[tuple, Exception] = {}
        self.calls: List[tuple] = []
        self._ids = itertools.count(1)
        self.auth = FakeAuth()

    def session_client(self) -> "FakeSupabaseClient":
        """Another client over the same tables, with its own auth state and call log."""
        other = FakeSupabaseClient()
        other.tables = self.tables
        other.failures = self.failures
        other._ids = self._ids
        return other

    def table(self, name: str) -> FakeTable:
        return FakeTable(self, name)

    def insert_row(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        rows = self.tables.setdefault(table, [])
        keys = self.UNIQUE.get(table)
        if keys and any(all(row.get(k) == record.get(k) for k in keys) for row in rows):
            raise StoreError(f"duplicate key value violates unique constraint on {table}", code="23505")

        n = next(self._ids)
        row = dict(record)
        row.setdefault("id", f"{table}-{n}")
        row.setdefault("created_at", (FIXED_NOW + timedelta(seconds=n)).isoformat())
        rows.append(row)
        return dict(row)


# =============================================================================
# ISOLATION
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep tests off real credentials and the shared client handle."""
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_KEY", "NEXTUP_SITE_URL", "NEXTUP_MOCK_LATENCY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("nextup_core.config.settings._secrets_section", lambda: {})
    reset_settings()
    reset_supabase_client()
    yield
    reset_settings()
    reset_supabase_client()


# =============================================================================
# SETTINGS / CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def demo_settings():
    """No credentials: demo mode"""
    return Settings()


@pytest.fixture
def live_settings():
    return Settings(supabase_url="https://test.supabase.co", supabase_key="test-anon-key", source="env")


@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value = MagicMock()
    return mock_client


@pytest.fixture
def fake_store():
    """Empty in-memory store"""
    return FakeSupabaseClient()


@pytest.fixture
def seeded_store():
    """In-memory store holding the same rows demo mode serves"""
    tables = {
        name: mock_table(name, now=FIXED_NOW)
        for name in ("projects", "gigs", "events", "hackathons", "scholarships", "notifications")
    }
    return FakeSupabaseClient(tables)


# =============================================================================
# DATA LAYER FIXTURES
# =============================================================================

@pytest.fixture
def demo_dal(demo_settings):
    dal = DataAccessLayer(settings=demo_settings)
    dal._mock_now = FIXED_NOW
    return dal


@pytest.fixture
def live_dal(seeded_store, live_settings):
    return DataAccessLayer(client=seeded_store, settings=live_settings)


@pytest.fixture
def signed_in_auth():
    """Minimal stand-in for an AuthContext with a signed-in user"""
    return SimpleNamespace(
        current_user=SimpleNamespace(id="user-1", email="user1@example.com"),
        access_token="token-1",
    )


@pytest.fixture
def anonymous_auth():
    return SimpleNamespace(current_user=None, access_token=None)
