# =============================================================================
# nextup_core/config/settings.py
# Store credentials and runtime settings
# =============================================================================
"""
Configuration guard for the remote store.

Credentials are read once per process, Streamlit secrets first:

    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

then the environment (SUPABASE_URL, SUPABASE_ANON_KEY or SUPABASE_KEY).
Missing credentials are not an error: the app switches to demo mode.
"""

from __future__ import annotations
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import streamlit as st

from nextup_core.errors import ConfigurationMissing
from nextup_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SITE_URL = "http://localhost:8501"


@dataclass(frozen=True)
class Settings:
    """Process-wide store configuration."""
    supabase_url: str = ""
    supabase_key: str = ""
    site_url: str = DEFAULT_SITE_URL
    mock_latency: float = 0.0
    source: str = "none"  # secrets | env | none

    @property
    def is_configured(self) -> bool:
        return bool(self.supabase_url.strip()) and bool(self.supabase_key.strip())

    @property
    def missing(self) -> List[str]:
        missing = []
        if not self.supabase_url.strip():
            missing.append("url")
        if not self.supabase_key.strip():
            missing.append("key")
        return missing

    def require(self) -> None:
        """Raise ConfigurationMissing when credentials are absent."""
        if not self.is_configured:
            raise ConfigurationMissing(missing=self.missing)


_settings: Optional[Settings] = None
_lock = threading.Lock()


def _secrets_section() -> Dict[str, Any]:
    """Read the [supabase] section of Streamlit secrets, if any."""
    try:
        if "supabase" in st.secrets:
            return dict(st.secrets["supabase"])
    except Exception:
        # No secrets.toml outside a deployed app
        pass
    return {}


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}")
        return default


def load_settings() -> Settings:
    """Build Settings from secrets or the environment (uncached)."""
    section = _secrets_section()
    if section.get("url") or section.get("key"):
        url, key, source = section.get("url", ""), section.get("key", ""), "secrets"
    else:
        url = os.getenv("SUPABASE_URL", "")
        key = os.getenv("SUPABASE_ANON_KEY", "") or os.getenv("SUPABASE_KEY", "")
        source = "env" if (url or key) else "none"

    return Settings(
        supabase_url=str(url),
        supabase_key=str(key),
        site_url=section.get("site_url") or os.getenv("NEXTUP_SITE_URL", DEFAULT_SITE_URL),
        mock_latency=_float_env("NEXTUP_MOCK_LATENCY", 0.0),
        source=source,
    )


def get_settings() -> Settings:
    """Get the cached process-wide settings."""
    global _settings
    if _settings is None:
        with _lock:
            if _settings is None:
                _settings = load_settings()
                if not _settings.is_configured:
                    logger.warning(
                        "Running in demo mode: set SUPABASE_URL and SUPABASE_ANON_KEY "
                        "(or [supabase] in .streamlit/secrets.toml) for live data"
                    )
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads them."""
    global _settings
    with _lock:
        _settings = None


def is_configured() -> bool:
    """True only when both the store URL and the API key are present."""
    return get_settings().is_configured
