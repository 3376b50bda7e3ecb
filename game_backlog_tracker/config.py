"""
Configuration settings for the Game Backlog Tracker.
"""

import os
from dataclasses import dataclass, replace, fields
from pathlib import Path
from typing import Optional, Tuple

from .errors import ConfigurationError


class Config:
    """Configuration class for application settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent
    DATA_DIR = PROJECT_ROOT / "data"

    # Supabase settings
    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "")
    AUTH_REQUEST_TIMEOUT = 10  # seconds

    # Refresh tokens this many seconds before they expire
    TOKEN_EXPIRY_MARGIN = 10

    # Client storage
    LOCAL_STORAGE_FILE = DATA_DIR / "local_storage.json"

    # Inactivity is checked on its own fixed cadence, independent of check_interval
    INACTIVITY_CHECK_MINUTES = 1

    @classmethod
    def ensure_directories(cls):
        """Create necessary directories if they don't exist."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)


DEFAULT_ACTIVITY_EVENTS = (
    'mousedown',
    'mousemove',
    'keypress',
    'scroll',
    'touchstart',
    'click',
)


@dataclass(frozen=True)
class SessionConfig:
    """
    Session monitoring configuration.

    All durations are in minutes and only converted to seconds when a timer
    is scheduled or a comparison is made.
    """

    check_interval: float = 5
    """How often to check session validity (minutes)."""

    inactivity_timeout: float = 2880
    """How long before the user is signed out due to inactivity (minutes)."""

    warning_before_expiry: float = 5
    """When to warn before the session expires (minutes)."""

    show_session_status: bool = False
    """Whether to show session status in the UI."""

    activity_events: Tuple[str, ...] = DEFAULT_ACTIVITY_EVENTS
    """Events that count as user activity."""

    clear_storage_on_expiry: bool = True
    """Whether to purge auth-related client storage on session expiry."""

    enable_security_validation: bool = True
    """Whether to validate session structure before trusting it."""


# Production settings: 2 days of inactivity allowed
DEFAULT_SESSION_CONFIG = SessionConfig()

HIGH_SECURITY_SESSION_CONFIG = SessionConfig(
    check_interval=2,
    inactivity_timeout=30,
    warning_before_expiry=3,
    show_session_status=True,
    activity_events=DEFAULT_ACTIVITY_EVENTS + ('focus', 'blur'),
    clear_storage_on_expiry=True,
)

DEVELOPMENT_SESSION_CONFIG = SessionConfig(
    check_interval=10,
    inactivity_timeout=120,
    warning_before_expiry=10,
    show_session_status=True,
    activity_events=('mousedown', 'keypress', 'click'),
    clear_storage_on_expiry=False,
)


def is_development_host(hostname: Optional[str]) -> bool:
    """Return True for hosts that should get the development preset."""
    if not hostname:
        return False
    hostname = hostname.lower()
    return hostname == 'localhost' or 'preview' in hostname


def get_session_config(hostname: Optional[str] = None) -> SessionConfig:
    """
    Get the session configuration preset for the current environment.

    Args:
        hostname: Host the client is served from. Falls back to the
            GAME_BACKLOG_HOST environment variable.

    Returns:
        The development preset for local/preview hosts, the default otherwise
    """
    if hostname is None:
        hostname = os.environ.get('GAME_BACKLOG_HOST')

    if is_development_host(hostname):
        return DEVELOPMENT_SESSION_CONFIG

    return DEFAULT_SESSION_CONFIG


_DURATION_FIELDS = ('check_interval', 'inactivity_timeout', 'warning_before_expiry')


def merge_session_config(base: SessionConfig, **overrides) -> SessionConfig:
    """
    Merge caller overrides into a base configuration.

    Overrides set to None are ignored, so partial option dictionaries can be
    passed straight through.

    Args:
        base: Fully populated configuration to start from
        **overrides: Field values to replace

    Returns:
        A new, fully populated SessionConfig

    Raises:
        ConfigurationError: If an unknown field or invalid value is given
    """
    known = {f.name for f in fields(SessionConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ConfigurationError.for_field(
            ', '.join(sorted(unknown)), "Unknown session configuration option"
        )

    changes = {k: v for k, v in overrides.items() if v is not None}

    if 'activity_events' in changes:
        changes['activity_events'] = tuple(changes['activity_events'])

    for name in _DURATION_FIELDS:
        if name in changes and changes[name] <= 0:
            raise ConfigurationError.for_field(
                name, f"Must be a positive number of minutes, got {changes[name]}"
            )

    return replace(base, **changes)
