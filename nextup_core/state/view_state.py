# =============================================================================
# nextup_core/state/view_state.py
# Locally owned view-model state and per-session services
# Each page keeps its own browse state under an explicit session key
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, MutableMapping, Optional

import streamlit as st

from nextup_core.auth import AuthContext
from nextup_core.data.query import ListQuery, OrderBy
from nextup_core.data.repository import DataAccessLayer, ListResult
from nextup_core.logging import get_logger
from nextup_core.notifications import NotificationCenter

logger = get_logger(__name__)

SERVICES_KEY = "_nextup_services"


# =============================================================================
# BROWSE STATE
# =============================================================================

@dataclass
class BrowseViewState:
    """
    Tab, paging and filter state for one listing view.

    Results are tied to the request that produced them: `begin_request()`
    issues a token, and `accept()` ignores results for superseded tokens.
    """
    category: str
    page: int = 1
    per_page: int = 9
    search_text: str = ""
    search_field: str = "title"
    filters: Dict[str, Any] = field(default_factory=dict)
    result: Optional[ListResult] = None
    _token: int = 0

    def select_category(self, category: str) -> None:
        if category != self.category:
            self.category = category
            self.filters = {}
            self.reset_paging()

    def set_search(self, text: str) -> None:
        if text != self.search_text:
            self.search_text = text
            self.reset_paging()

    def reset_paging(self) -> None:
        self.page = 1
        self.result = None

    @property
    def page_count(self) -> int:
        if self.result is None or self.per_page == 0:
            return 1
        return max(1, -(-self.result.total // self.per_page))

    def to_query(self) -> ListQuery:
        return ListQuery(
            page=self.page,
            per_page=self.per_page,
            filters=dict(self.filters),
            order_by=OrderBy("created_at", ascending=False),
            search_field=self.search_field if self.search_text else None,
            search_text=self.search_text or None,
        )

    def begin_request(self) -> int:
        self._token += 1
        return self._token

    def accept(self, token: int, result: ListResult) -> bool:
        """Store `result` if it answers the latest request."""
        if token != self._token:
            logger.debug(f"Dropping stale {self.category} result (token {token} != {self._token})")
            return False
        self.result = result
        return True


def get_view_state(
    key: str,
    default_category: str,
    store: Optional[MutableMapping[str, Any]] = None,
) -> BrowseViewState:
    """Fetch (or create) the browse state a page owns under `key`."""
    store = st.session_state if store is None else store
    if key not in store:
        store[key] = BrowseViewState(category=default_category)
    return store[key]


# =============================================================================
# SESSION SERVICES
# =============================================================================

@dataclass
class SessionServices:
    """The data layer, auth context and notification center of one session."""
    auth: AuthContext
    dal: DataAccessLayer
    notifications: NotificationCenter

    def close(self) -> None:
        self.notifications.close()


def build_services(client: Any = None, settings: Any = None, auth_client: Any = None) -> SessionServices:
    """
    Wire one session's services. `client` is the shared anonymous handle;
    the auth context gets `auth_client`, or a client of its own.
    """
    auth = AuthContext(client=auth_client, settings=settings)
    dal = DataAccessLayer(client=client, settings=settings, auth=auth)
    center = NotificationCenter(dal)
    auth.add_listener(center.on_user_changed)
    return SessionServices(auth=auth, dal=dal, notifications=center)


def get_session_services(store: Optional[MutableMapping[str, Any]] = None) -> SessionServices:
    """Per-session services, created and session-restored on first use."""
    store = st.session_state if store is None else store
    if SERVICES_KEY not in store:
        services = build_services()
        services.auth.load_session()
        store[SERVICES_KEY] = services
        logger.info("Initialized session services")
    return store[SERVICES_KEY]
