# =============================================================================
# nextup_core/auth/context.py
# Supabase Auth session, current user and profile for NextUP
# =============================================================================
"""
AuthContext wraps Supabase Auth for one app session and exposes the
current user, the session state and the user's profile row.

Other components observe sign-in/sign-out through `add_listener`:

    auth = AuthContext()
    auth.add_listener(notification_center.on_user_changed)
    auth.load_session()

Each AuthContext owns its Supabase client. Sign-in state lives inside that
client, so one visitor's session never leaks into another's, and requests
made for a signed-in user go through `request_client` carrying their token.

Without store credentials, email sign-in produces a local demo user so the
rest of the app can be exercised without a backend.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from nextup_core.config import Settings, get_settings
from nextup_core.data.mock_data import DEMO_USER_ID, DEMO_USER_EMAIL
from nextup_core.data.repository import translate_store_error
from nextup_core.data.supabase_client import create_session_client
from nextup_core.errors import AuthenticationError, ConfigurationMissing, Unauthorized
from nextup_core.logging import get_logger

logger = get_logger(__name__)

PROFILES_TABLE = "profiles"
OAUTH_PROVIDERS = ("github", "google")


class SessionState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


UserListener = Callable[[Optional[CurrentUser]], None]


class AuthContext:
    """Sign-in state for one app session."""

    def __init__(self, client: Any = None, settings: Optional[Settings] = None):
        """
        Args:
            client: Supabase client owned by this session (default: a new one).
                Never pass the shared handle; its auth state is process-wide.
            settings: Store settings (default: process settings)
        """
        self.settings = settings or get_settings()
        if client is None and self.settings.is_configured:
            client = create_session_client(self.settings)
        self.client = client
        self.live = client is not None or self.settings.is_configured

        self.session_state = SessionState.LOADING
        self.current_user: Optional[CurrentUser] = None
        self.access_token: Optional[str] = None
        self.profile: Optional[Dict[str, Any]] = None
        self._listeners: List[UserListener] = []

    # =========================================================================
    # Derived state
    # =========================================================================

    @property
    def user_id(self) -> Optional[str]:
        return self.current_user.id if self.current_user else None

    @property
    def request_client(self) -> Any:
        """The client to send the signed-in user's requests through, if any."""
        if self.current_user is None or not self.live:
            return None
        return self.client

    @property
    def is_authenticated(self) -> bool:
        return self.session_state is SessionState.AUTHENTICATED

    @property
    def profile_complete(self) -> bool:
        """A profile is complete once LinkedIn and GitHub URLs are set."""
        return bool(self.profile) and bool(self.profile.get("linkedin_url")) and bool(self.profile.get("github_url"))

    def redirect_target(self) -> str:
        """Where the app should send the user after an auth change."""
        if not self.is_authenticated:
            return "/"
        return "/dashboard" if self.profile_complete else "/profile-setup"

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, listener: UserListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: UserListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_user(self, user: Optional[CurrentUser], access_token: Optional[str] = None) -> None:
        changed = user != self.current_user
        self.current_user = user
        self.access_token = access_token if user else None
        self.session_state = SessionState.AUTHENTICATED if user else SessionState.ANONYMOUS
        if user is None:
            self.profile = None

        if changed:
            logger.info(f"Auth state changed: {'signed in ' + user.id if user else 'signed out'}")
            for listener in list(self._listeners):
                listener(user)

    def _apply_session(self, session: Any, user: Any = None) -> Optional[CurrentUser]:
        raw_user = user or getattr(session, "user", None)
        if session is None or raw_user is None:
            self._set_user(None)
            return None

        current = CurrentUser(id=str(raw_user.id), email=getattr(raw_user, "email", None))
        self._set_user(current, access_token=getattr(session, "access_token", None))
        self.refresh_profile()
        return current

    def _require_client(self, provider: str):
        if not self.live:
            raise ConfigurationMissing(f"{provider} sign-in needs Supabase credentials")
        if self.client is None:
            raise AuthenticationError("Supabase client could not be initialized", provider=provider)
        return self.client

    # =========================================================================
    # Session
    # =========================================================================

    def load_session(self) -> Optional[CurrentUser]:
        """Restore the session held by this context's own client, if any."""
        if not self.live or self.client is None:
            if self.current_user is None:
                self._set_user(None)
            return self.current_user

        try:
            session = self.client.auth.get_session()
        except Exception as e:
            logger.error(f"Error getting session: {e}")
            session = None

        return self._apply_session(session)

    def sign_in_with_email(self, email: str, password: str) -> CurrentUser:
        if not self.live:
            user = CurrentUser(id=DEMO_USER_ID, email=email or DEMO_USER_EMAIL)
            self._set_user(user)
            return user

        client = self._require_client("email")
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise AuthenticationError(str(e), provider="email") from e

        user = self._apply_session(response.session, response.user)
        if user is None:
            raise AuthenticationError("Sign-in returned no session", provider="email")
        return user

    def sign_in_with_oauth(self, provider: str) -> str:
        """
        Start an OAuth sign-in and return the provider URL to redirect to.
        The provider sends the user back to `<site_url>/auth/callback`.
        """
        if provider not in OAUTH_PROVIDERS:
            raise ValueError(f"Unsupported OAuth provider: {provider}")

        client = self._require_client(provider)
        try:
            response = client.auth.sign_in_with_oauth({
                "provider": provider,
                "options": {"redirect_to": f"{self.settings.site_url}/auth/callback"},
            })
        except Exception as e:
            raise AuthenticationError(str(e), provider=provider) from e
        return response.url

    def complete_oauth(self, auth_code: str) -> CurrentUser:
        """Finish an OAuth sign-in with the code from the callback URL."""
        client = self._require_client("oauth")
        try:
            response = client.auth.exchange_code_for_session({"auth_code": auth_code})
        except Exception as e:
            raise AuthenticationError(str(e), provider="oauth") from e

        user = self._apply_session(response.session, response.user)
        if user is None:
            raise AuthenticationError("OAuth callback returned no session", provider="oauth")
        return user

    def sign_up(self, email: str, password: str) -> Optional[CurrentUser]:
        """
        Register a user. Returns the signed-in user, or None while the
        verification email is pending.
        """
        if not self.live:
            return self.sign_in_with_email(email, password)

        client = self._require_client("email")
        try:
            response = client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"email_redirect_to": f"{self.settings.site_url}/auth/callback"},
            })
        except Exception as e:
            raise AuthenticationError(str(e), provider="email") from e

        if response.session is None:
            logger.info(f"Verification email sent to {email}")
            return None
        return self._apply_session(response.session, response.user)

    def sign_out(self) -> None:
        """Sign out. Local state is cleared even if the provider call fails."""
        try:
            if self.live and self.client is not None:
                self.client.auth.sign_out({"scope": "local"})
        except Exception as e:
            raise AuthenticationError(str(e)) from e
        finally:
            self._set_user(None)

    # =========================================================================
    # Profile
    # =========================================================================

    def refresh_profile(self) -> Optional[Dict[str, Any]]:
        if self.current_user is None:
            self.profile = None
            return None
        if not self.live or self.client is None:
            return self.profile

        try:
            response = (
                self.client.table(PROFILES_TABLE)
                .select("*")
                .eq("id", self.current_user.id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching user profile: {e}")
            return self.profile

        self.profile = response.data[0] if response.data else None
        return self.profile

    def update_profile(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Upsert the current user's profile row and return it."""
        if self.current_user is None:
            raise Unauthorized("You must be logged in to update your profile", operation="update_profile")

        updates = {
            **fields,
            "id": self.current_user.id,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        if not self.live or self.client is None:
            self.profile = {**(self.profile or {}), **updates}
            return self.profile

        try:
            self.client.table(PROFILES_TABLE).upsert(updates, on_conflict="id").execute()
        except Exception as e:
            raise translate_store_error(e, PROFILES_TABLE, "update") from e

        return self.refresh_profile() or updates
