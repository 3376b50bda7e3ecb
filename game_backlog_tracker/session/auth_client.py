"""
Authentication service clients.

Defines the contract the session layer needs from an auth backend and a
Supabase (GoTrue REST API) implementation of it.
"""

import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

import requests

from ..config import Config
from ..errors import AuthServiceError
from .models import AuthChangeEvent, Session, User
from .storage import MemoryStorage


logger = logging.getLogger(__name__)

AuthStateHandler = Callable[[AuthChangeEvent, Optional[Session]], None]
Unsubscribe = Callable[[], None]


class AuthService(ABC):
    """Behavioural contract of an authentication backend."""

    @abstractmethod
    def get_session(self) -> Optional[Session]:
        """
        Return the current session, or None if signed out.

        Raises:
            AuthServiceError: If the session cannot be determined
        """
        pass

    @abstractmethod
    def sign_out(self) -> None:
        """
        End the current session.

        Raises:
            AuthServiceError: If the service rejects the request
        """
        pass

    @abstractmethod
    def on_auth_state_change(self, handler: AuthStateHandler) -> Unsubscribe:
        """Subscribe to authentication state changes."""
        pass


class AuthStateEmitter:
    """Subscriber registry shared by auth service implementations."""

    def __init__(self):
        self._handlers: Dict[int, AuthStateHandler] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, handler: AuthStateHandler) -> Unsubscribe:
        with self._lock:
            handler_id = next(self._ids)
            self._handlers[handler_id] = handler

        def unsubscribe() -> None:
            with self._lock:
                self._handlers.pop(handler_id, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def emit(self, event: AuthChangeEvent, session: Optional[Session]) -> None:
        with self._lock:
            handlers = list(self._handlers.values())

        for handler in handlers:
            self.deliver(handler, event, session)

    @staticmethod
    def deliver(handler: AuthStateHandler, event: AuthChangeEvent,
                session: Optional[Session]) -> None:
        try:
            handler(event, session)
        except Exception as e:
            logger.error(f"Auth state handler failed on {event.value}: {e}", exc_info=True)


def storage_key_for(supabase_url: str) -> str:
    """Local storage key Supabase clients persist the session under."""
    host = urlparse(supabase_url).hostname or 'localhost'
    project_ref = host.split('.')[0]
    return f"sb-{project_ref}-auth-token"


class SupabaseAuthClient(AuthService):
    """
    Client for the Supabase auth (GoTrue) REST API.

    The session is persisted in local storage so it survives restarts, and
    is refreshed automatically when it is about to expire.
    """

    def __init__(self, url: Optional[str] = None, anon_key: Optional[str] = None,
                 storage: Optional[MemoryStorage] = None,
                 http: Optional[requests.Session] = None,
                 auto_refresh: bool = True,
                 clock: Callable[[], float] = time.time):
        """
        Initialize the client.

        Args:
            url: Project URL, e.g. https://abcd.supabase.co
            anon_key: Public anon API key of the project
            storage: Where the session is persisted (in-memory if None)
            http: HTTP session; its cookie jar is exposed for purging
            auto_refresh: Refresh sessions within the expiry margin on read
            clock: Time source returning seconds since epoch
        """
        self.url = (url or Config.SUPABASE_URL).rstrip('/')
        self.anon_key = anon_key or Config.SUPABASE_ANON_KEY
        self.storage = storage if storage is not None else MemoryStorage()
        self.http = http or requests.Session()
        self.auto_refresh = auto_refresh
        self.clock = clock
        self.storage_key = storage_key_for(self.url)
        self._emitter = AuthStateEmitter()

    @property
    def cookies(self):
        """Cookie jar of the underlying HTTP session."""
        return self.http.cookies

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            'apikey': self.anon_key,
            'Authorization': f"Bearer {access_token or self.anon_key}",
            'Content-Type': 'application/json',
        }

    def _request(self, method: str, path: str, operation: str,
                 access_token: Optional[str] = None, **kwargs) -> requests.Response:
        try:
            response = self.http.request(
                method,
                f"{self.url}/auth/v1{path}",
                headers=self._headers(access_token),
                timeout=Config.AUTH_REQUEST_TIMEOUT,
                **kwargs
            )
            response.raise_for_status()
            return response
        except requests.RequestException as e:
            logger.warning(f"Auth request '{operation}' failed: {e}")
            raise AuthServiceError.from_exception(e, operation) from e

    def _load_session(self) -> Optional[Session]:
        raw = self.storage.get_item(self.storage_key)
        if not raw:
            return None
        try:
            return Session.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable stored session: {e}")
            self.storage.remove_item(self.storage_key)
            return None

    def _save_session(self, session: Session) -> None:
        self.storage.set_item(self.storage_key, session.to_json())

    def _remove_session(self) -> None:
        self.storage.remove_item(self.storage_key)

    def sign_in_with_password(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Returns:
            The new session

        Raises:
            AuthServiceError: If the credentials are rejected
        """
        response = self._request(
            'POST', '/token', 'sign_in',
            params={'grant_type': 'password'},
            json={'email': email, 'password': password}
        )
        session = Session.from_dict(response.json(), clock=self.clock)
        self._save_session(session)
        logger.info(f"Signed in as {session.user.email}")
        self._emitter.emit(AuthChangeEvent.SIGNED_IN, session)
        return session

    def refresh_session(self, refresh_token: Optional[str] = None) -> Session:
        """
        Exchange a refresh token for a new session.

        Raises:
            AuthServiceError: If there is no refresh token or it is rejected
        """
        if refresh_token is None:
            current = self._load_session()
            refresh_token = current.refresh_token if current else None
        if not refresh_token:
            raise AuthServiceError.from_exception(
                ValueError("No refresh token available"), 'refresh_session'
            )

        response = self._request(
            'POST', '/token', 'refresh_session',
            params={'grant_type': 'refresh_token'},
            json={'refresh_token': refresh_token}
        )
        session = Session.from_dict(response.json(), clock=self.clock)
        self._save_session(session)
        logger.debug(f"Session refreshed, expires at {session.expires_at}")
        self._emitter.emit(AuthChangeEvent.TOKEN_REFRESHED, session)
        return session

    def get_session(self) -> Optional[Session]:
        session = self._load_session()
        if session is None:
            return None

        if (self.auto_refresh and session.expires_at is not None
                and session.refresh_token
                and session.expires_at - int(self.clock()) <= Config.TOKEN_EXPIRY_MARGIN):
            logger.info("Session about to expire, refreshing")
            return self.refresh_session(session.refresh_token)

        return session

    def get_user(self) -> Optional[User]:
        """Fetch the signed-in user from the server, validating the access token."""
        session = self._load_session()
        if session is None:
            return None
        response = self._request('GET', '/user', 'get_user', access_token=session.access_token)
        return User.from_dict(response.json())

    def sign_out(self) -> None:
        """
        Revoke the session on the server and forget it locally.

        The local session is always removed and SIGNED_OUT is always emitted;
        a server-side failure is raised afterwards.
        """
        session = self._load_session()
        error = None

        if session is not None:
            try:
                self._request(
                    'POST', '/logout', 'sign_out',
                    access_token=session.access_token,
                    params={'scope': 'global'}
                )
            except AuthServiceError as e:
                error = e

        self._remove_session()
        self._emitter.emit(AuthChangeEvent.SIGNED_OUT, None)

        if error is not None:
            raise error

    def on_auth_state_change(self, handler: AuthStateHandler) -> Unsubscribe:
        """
        Subscribe to authentication state changes.

        The new subscriber immediately receives INITIAL_SESSION with the
        stored session (or None).
        """
        unsubscribe = self._emitter.subscribe(handler)
        AuthStateEmitter.deliver(handler, AuthChangeEvent.INITIAL_SESSION, self._load_session())
        return unsubscribe
