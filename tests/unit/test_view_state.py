# =============================================================================
# tests/unit/test_view_state.py
# Unit Tests for browse view state and session services
# =============================================================================

import pytest

from nextup_core.config import reset_settings
from nextup_core.data.repository import DataSource, ListResult
from nextup_core.data.supabase_client import set_supabase_client
from nextup_core.errors import Unauthorized
from nextup_core.notifications import LocalChangeFeed
from nextup_core.state.view_state import (
    SERVICES_KEY,
    BrowseViewState,
    get_session_services,
    get_view_state,
)


def result(total, table="projects"):
    return ListResult(records=[], total=total, source=DataSource.MOCK, table=table)


class TestBrowseViewState:
    """Test paging, search and request tokens"""

    def test_to_query(self):
        view = BrowseViewState(category="gigs", page=2, search_text="python")
        query = view.to_query()
        assert query.page == 2
        assert query.per_page == 9
        assert query.search_field == "title"
        assert query.search_text == "python"
        assert query.order_by.field == "created_at"
        assert not query.order_by.ascending

    def test_no_search_when_blank(self):
        assert BrowseViewState(category="gigs").to_query().has_search is False

    def test_new_search_resets_page(self):
        view = BrowseViewState(category="gigs", page=3)
        view.set_search("design")
        assert view.page == 1

    def test_same_search_keeps_page(self):
        view = BrowseViewState(category="gigs", page=3, search_text="design")
        view.set_search("design")
        assert view.page == 3

    def test_category_change_clears_filters(self):
        view = BrowseViewState(category="gigs", page=2, filters={"gig_type": "seeking"})
        view.select_category("projects")
        assert view.filters == {}
        assert view.page == 1

    def test_page_count(self):
        view = BrowseViewState(category="gigs")
        assert view.page_count == 1
        view.accept(view.begin_request(), result(19))
        assert view.page_count == 3

    def test_stale_result_is_dropped(self):
        view = BrowseViewState(category="projects")
        first = view.begin_request()
        second = view.begin_request()

        assert view.accept(second, result(4)) is True
        assert view.accept(first, result(99)) is False
        assert view.result.total == 4


class TestSessionStore:
    """Test per-session storage"""

    def test_view_state_is_kept_per_key(self):
        store = {}
        first = get_view_state("discover", "projects", store=store)
        first.page = 4
        assert get_view_state("discover", "gigs", store=store).page == 4
        assert get_view_state("saved", "gigs", store=store).category == "gigs"

    def test_services_created_once(self):
        store = {}
        services = get_session_services(store=store)
        assert store[SERVICES_KEY] is services
        assert get_session_services(store=store) is services
        assert not services.dal.live
        assert services.auth.current_user is None

    def test_sign_in_reaches_notifications(self):
        services = get_session_services(store={})
        services.auth.sign_in_with_email("demo@nextup.local", "x")
        assert services.notifications.is_ready
        assert services.notifications.unread_count == 2
        services.close()
        assert services.notifications.feed is None


# =============================================================================
# SESSION ISOLATION
# =============================================================================

@pytest.fixture
def session_clients(monkeypatch, seeded_store):
    """
    Configured store whose shared handle is `seeded_store`. Every session
    client created for an AuthContext is recorded in the returned list.
    """
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "test-anon-key")
    reset_settings()
    set_supabase_client(seeded_store)

    created = []

    def create_session_client(settings=None):
        client = seeded_store.session_client()
        created.append(client)
        return client

    monkeypatch.setattr("nextup_core.auth.context.create_session_client", create_session_client)
    monkeypatch.setattr(
        "nextup_core.notifications.center.SupabaseChangeFeed",
        lambda table, row_filter, access_token=None: LocalChangeFeed(table, row_filter),
    )
    return created


class TestSessionIsolation:
    """Test that visitors sharing one process never share a sign-in"""

    def test_new_visitor_is_anonymous(self, session_clients, seeded_store):
        alice = get_session_services(store={})
        alice.auth.sign_in_with_email("alice@example.com", "pw")

        bob = get_session_services(store={})

        assert alice.auth.user_id == "alice"
        assert bob.auth.current_user is None
        assert seeded_store.auth.session is None

    def test_new_visitor_cannot_write(self, session_clients, seeded_store):
        alice = get_session_services(store={})
        alice.auth.sign_in_with_email("alice@example.com", "pw")
        bob = get_session_services(store={})

        with pytest.raises(Unauthorized):
            bob.dal.create("gigs", {"title": "Not mine"})
        with pytest.raises(Unauthorized):
            bob.dal.toggle_bookmark("project", "mock-project-0", "alice")

    def test_each_session_owns_a_client(self, session_clients, seeded_store):
        first = get_session_services(store={})
        second = get_session_services(store={})

        assert first.auth.client is session_clients[0]
        assert second.auth.client is session_clients[1]
        assert first.auth.client is not second.auth.client
        assert seeded_store not in session_clients

    def test_signed_in_requests_use_the_session_client(self, session_clients, seeded_store):
        alice = get_session_services(store={})
        alice.auth.sign_in_with_email("alice@example.com", "pw")

        alice.dal.create("gigs", {"title": "Logo help"})

        assert ("gigs", "insert") in session_clients[0].calls
        assert ("gigs", "insert") not in seeded_store.calls

    def test_anonymous_reads_use_the_shared_client(self, session_clients, seeded_store):
        visitor = get_session_services(store={})
        visitor.dal.list("projects")
        assert ("projects", "select") in seeded_store.calls

    def test_sign_out_is_per_session(self, session_clients):
        alice = get_session_services(store={})
        bob = get_session_services(store={})
        alice.auth.sign_in_with_email("alice@example.com", "pw")
        bob.auth.sign_in_with_email("bob@example.com", "pw")

        alice.auth.sign_out()

        assert alice.auth.current_user is None
        assert bob.auth.user_id == "bob"
        assert bob.auth.load_session().id == "bob"
