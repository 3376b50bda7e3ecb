"""
Application-level authentication state.

AuthController tracks the signed-in user for the rest of the application,
rejects sessions that fail integrity checks, and owns the SessionMonitor
that enforces expiry and inactivity rules.
"""

import logging
import threading
from typing import Optional

from ..config import SessionConfig, get_session_config, merge_session_config
from ..errors import AuthServiceError
from .auth_client import AuthService, Unsubscribe
from .models import AuthChangeEvent, Session, User
from .monitor import SessionMonitor
from .security import validate_session_security


logger = logging.getLogger(__name__)

# Tighter than the environment preset: one hour of inactivity signs the user out
APP_SESSION_OVERRIDES = {
    'check_interval': 5,
    'inactivity_timeout': 60,
    'warning_before_expiry': 5,
}


def build_app_session_config(base: Optional[SessionConfig] = None) -> SessionConfig:
    """Environment preset with the application's session overrides applied."""
    return merge_session_config(base or get_session_config(), **APP_SESSION_OVERRIDES)


class AuthController:
    """
    Current authentication state plus its session monitor.

    Attributes:
        session: The trusted current session, or None
        user: Owner of the current session, or None
        loading: True until the existing session has been loaded
    """

    def __init__(self, auth_service: AuthService, monitor: Optional[SessionMonitor] = None,
                 config: Optional[SessionConfig] = None, **monitor_kwargs):
        """
        Initialize the controller.

        Args:
            auth_service: Auth backend
            monitor: Pre-built monitor; one is created if None
            config: Monitor configuration (app overrides on the preset if None)
            **monitor_kwargs: Extra SessionMonitor arguments (notifier, storage, ...)
        """
        self.auth_service = auth_service
        self.monitor = monitor or SessionMonitor(
            auth_service,
            config=config or build_app_session_config(),
            **monitor_kwargs
        )
        self.session: Optional[Session] = None
        self.user: Optional[User] = None
        self.loading = True
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def start(self) -> None:
        """Subscribe to auth changes, load the existing session and start monitoring."""
        if self._unsubscribe is None:
            self._unsubscribe = self.auth_service.on_auth_state_change(self._handle_auth_state_change)

        try:
            existing = self.auth_service.get_session()
        except AuthServiceError as e:
            logger.warning(f"Could not load existing session: {e}")
            existing = None

        if existing is not None and not self._is_trusted(existing):
            logger.warning("Invalid existing session detected, cleaning up")
            self.monitor.clean_expired_session()
            existing = None

        self._set_session(existing)
        self.monitor.attach()

    def stop(self) -> None:
        """Unsubscribe and stop monitoring."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.monitor.detach()

    def _is_trusted(self, session: Session) -> bool:
        if not self.monitor.config.enable_security_validation:
            return True
        return validate_session_security(session)

    def _set_session(self, session: Optional[Session]) -> None:
        with self._lock:
            self.session = session
            self.user = session.user if session else None
            self.loading = False
        if session is not None:
            self.monitor.update_activity()

    def _handle_auth_state_change(self, event: AuthChangeEvent,
                                  session: Optional[Session]) -> None:
        if session is not None and not self._is_trusted(session):
            logger.warning(f"Invalid session detected on {event.value}, cleaning up")
            self.monitor.clean_expired_session()
            return

        self._set_session(session)

    def validate_session(self) -> bool:
        return self.monitor.validate_session()

    def update_activity(self) -> None:
        self.monitor.update_activity()

    def sign_out(self) -> None:
        """Sign out, forcing a full cleanup if the auth service call fails."""
        try:
            self.auth_service.sign_out()
        except Exception as e:
            logger.error(f"Error signing out: {e}")
            self.monitor.clean_expired_session()
        self._set_session(None)
