"""
Session lifecycle monitoring.

This module provides a SessionMonitor that watches an authenticated session
in the background: it periodically validates the session against the auth
service, warns the user shortly before the token expires, and tears the
session down on expiry, validation failure or user inactivity.
"""

import logging
import threading
import time
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from requests.cookies import RequestsCookieJar

from ..config import Config, SessionConfig, get_session_config
from ..errors import error_handler
from .activity import ActivityEventSource
from .auth_client import AuthService, Unsubscribe
from .models import AuthChangeEvent, MonitorState, Session
from .notifications import LoggingNotifier, Notification, NotificationSink, NotificationVariant
from .security import now_seconds, validate_session_security
from .status import format_time_remaining
from .storage import MemoryStorage, clear_client_storage


logger = logging.getLogger(__name__)

_MONITORING_STATES = (MonitorState.ACTIVE, MonitorState.WARNING_ISSUED)

# Events that replace the tokens of the session already being monitored
_SAME_SESSION_EVENTS = (AuthChangeEvent.TOKEN_REFRESHED, AuthChangeEvent.USER_UPDATED)


class SessionMonitor:
    """
    Background monitor for session validity and user inactivity.

    Two APScheduler interval jobs run while a session is being monitored:
    validation every ``check_interval`` minutes and an inactivity check every
    minute. Activity timestamp, warning latch and state transitions are
    guarded by one lock, since jobs run on scheduler worker threads while
    activity is reported from request or UI threads.
    """

    VALIDATION_JOB_ID = 'session_validation'
    INACTIVITY_JOB_ID = 'session_inactivity'

    def __init__(self, auth_service: AuthService,
                 config: Optional[SessionConfig] = None,
                 notifier: Optional[NotificationSink] = None,
                 activity_source: Optional[ActivityEventSource] = None,
                 local_storage: Optional[MemoryStorage] = None,
                 session_storage: Optional[MemoryStorage] = None,
                 cookies: Optional[RequestsCookieJar] = None,
                 clock: Callable[[], float] = time.time,
                 scheduler_factory: Optional[Callable[[], BackgroundScheduler]] = None):
        """
        Initialize the session monitor.

        Args:
            auth_service: Auth backend to validate against and sign out of
            config: Monitoring configuration (environment preset if None)
            notifier: Where warnings and expiry notices are shown
            activity_source: Input events counted as user activity
            local_storage: Persistent client storage purged on expiry
            session_storage: Session-scoped client storage purged on expiry
            cookies: Cookie jar purged on expiry
            clock: Time source returning seconds since epoch
            scheduler_factory: Builds the scheduler for each monitoring cycle
        """
        self.auth_service = auth_service
        self.config = config or get_session_config()
        self.notifier = notifier or LoggingNotifier()
        self.activity_source = activity_source or ActivityEventSource()
        self.local_storage = local_storage
        self.session_storage = session_storage
        self.cookies = cookies
        self.clock = clock
        self._scheduler_factory = scheduler_factory or (lambda: BackgroundScheduler(daemon=True))
        self.scheduler: Optional[BackgroundScheduler] = None

        self._lock = threading.RLock()
        self._state = MonitorState.UNMONITORED
        self._last_activity = clock()
        self._warning_shown = False
        # Bumped whenever a session starts or ends
        self._generation = 0
        # Bumped when a teardown begins; validation results that outlive one are dropped
        self._teardowns = 0
        self._torn_down = False
        self._attached = False
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return self._state

    @property
    def last_activity(self) -> float:
        with self._lock:
            return self._last_activity

    @property
    def warning_shown(self) -> bool:
        with self._lock:
            return self._warning_shown

    @property
    def is_running(self) -> bool:
        """Check if the monitoring timers are currently scheduled."""
        with self._lock:
            return self.scheduler is not None

    @property
    def is_attached(self) -> bool:
        with self._lock:
            return self._attached

    def attach(self) -> None:
        """
        Register activity listeners and subscribe to auth state changes.

        Safe to call repeatedly; only the first call has an effect until
        detach() is called.
        """
        with self._lock:
            if self._attached:
                logger.debug("SessionMonitor is already attached")
                return
            self._attached = True

        for event in self.config.activity_events:
            self.activity_source.add_listener(event, self.update_activity)

        self._unsubscribe = self.auth_service.on_auth_state_change(self._handle_auth_state_change)
        logger.info(
            f"SessionMonitor attached - listening for {len(self.config.activity_events)} activity events"
        )

    def detach(self) -> None:
        """Remove listeners, unsubscribe and stop any running timers."""
        with self._lock:
            if not self._attached:
                return
            self._attached = False
            unsubscribe, self._unsubscribe = self._unsubscribe, None

        if unsubscribe:
            unsubscribe()

        for event in self.config.activity_events:
            self.activity_source.remove_listener(event, self.update_activity)

        self.stop_monitoring()
        with self._lock:
            if self._state != MonitorState.TERMINATING:
                self._state = MonitorState.UNMONITORED
        logger.info("SessionMonitor detached")

    def _handle_auth_state_change(self, event: AuthChangeEvent,
                                  session: Optional[Session]) -> None:
        logger.debug(f"SessionMonitor: auth state changed ({event.value})")
        if session is not None:
            if self.config.enable_security_validation and not validate_session_security(session):
                logger.warning(f"Not monitoring untrusted session from {event.value}")
                return

            with self._lock:
                same_session = (event in _SAME_SESSION_EVENTS
                                and self._state in _MONITORING_STATES
                                and self.scheduler is not None)
                if same_session:
                    # New tokens open a new validity window; activity is untouched
                    self._warning_shown = False
                    self._state = MonitorState.ACTIVE
            if same_session:
                logger.debug("Session tokens updated, monitoring continues")
                return

            self.start_monitoring()
            return

        self.stop_monitoring()
        with self._lock:
            if self._state != MonitorState.TERMINATING:
                self._state = MonitorState.UNMONITORED

    def start_monitoring(self) -> None:
        """
        Begin monitoring a fresh session.

        Resets the activity clock and warning latch, replaces any running
        timers, and performs an initial validation immediately.
        """
        self.stop_monitoring()

        with self._lock:
            self._last_activity = self.clock()
            self._warning_shown = False
            self._torn_down = False
            self._generation += 1
            self._state = MonitorState.ACTIVE

        try:
            scheduler = self._scheduler_factory()
            scheduler.add_job(
                func=self.validate_session,
                trigger='interval',
                seconds=self.config.check_interval * 60,
                id=self.VALIDATION_JOB_ID,
                name='Session Validation',
                replace_existing=True,
                coalesce=True
            )
            scheduler.add_job(
                func=self.check_inactivity,
                trigger='interval',
                seconds=Config.INACTIVITY_CHECK_MINUTES * 60,
                id=self.INACTIVITY_JOB_ID,
                name='Session Inactivity Check',
                replace_existing=True,
                coalesce=True
            )
            scheduler.start()

            with self._lock:
                self.scheduler = scheduler

            logger.info(
                f"SessionMonitor started - validating every {self.config.check_interval} minutes, "
                f"inactivity timeout {self.config.inactivity_timeout} minutes"
            )
        except Exception as e:
            logger.error(f"Failed to start session timers: {e}")

        self.validate_session()

    def stop_monitoring(self) -> None:
        """
        Stop the monitoring timers.

        Safe to call multiple times, including from inside a timer job.
        """
        with self._lock:
            scheduler, self.scheduler = self.scheduler, None

        if scheduler is None:
            return

        try:
            scheduler.shutdown(wait=False)
            logger.info("SessionMonitor stopped")
        except Exception as e:
            logger.error(f"Error stopping session timers: {e}")

    def update_activity(self) -> None:
        """Record user activity now and re-arm the expiry warning."""
        with self._lock:
            now = self.clock()
            if now > self._last_activity:
                self._last_activity = now
            self._warning_shown = False
            if self._state == MonitorState.WARNING_ISSUED:
                self._state = MonitorState.ACTIVE

    def _no_teardown_since(self, teardowns: int) -> bool:
        with self._lock:
            return teardowns == self._teardowns and self._state != MonitorState.TERMINATING

    def validate_session(self) -> bool:
        """
        Check that the session is still valid.

        Fetches the current session from the auth service. A missing session
        or a failed request ends a monitored session; an expired token always
        ends it. Otherwise the expiry warning condition is evaluated.

        Returns:
            True if the session is valid, False otherwise. Never raises.
        """
        with self._lock:
            teardowns = self._teardowns
            was_monitoring = self._state in _MONITORING_STATES

        try:
            session = self.auth_service.get_session()
        except Exception as e:
            error_handler.handle_validation_failure(e, {'check': 'validate_session'})
            if was_monitoring and self._no_teardown_since(teardowns):
                self.clean_expired_session()
            return False

        if was_monitoring and not self._no_teardown_since(teardowns):
            logger.debug("Session ended during validation, ignoring result")
            return False

        if session is None:
            logger.info("No valid session found")
            if was_monitoring and self._no_teardown_since(teardowns):
                self.clean_expired_session()
            return False

        now = now_seconds(self.clock)
        expires_at = session.expires_at

        if expires_at is not None and now >= expires_at:
            logger.info("Token has expired")
            if self._no_teardown_since(teardowns):
                self.clean_expired_session()
            return False

        warning_minutes = None
        with self._lock:
            if (teardowns == self._teardowns
                    and self._state in _MONITORING_STATES
                    and expires_at is not None
                    and not self._warning_shown):
                minutes_left = (expires_at - now) / 60
                if 0 < minutes_left <= self.config.warning_before_expiry:
                    self._warning_shown = True
                    self._state = MonitorState.WARNING_ISSUED
                    warning_minutes = minutes_left

        if warning_minutes is not None:
            logger.info(f"Session expires in {warning_minutes:.1f} minutes, warning user")
            self._notify(Notification(
                title="Session Expiring Soon",
                description=f"Your session will expire in {format_time_remaining(warning_minutes)}.",
                variant=NotificationVariant.DEFAULT
            ))

        return True

    def check_inactivity(self) -> bool:
        """
        End the session if the user has been idle too long.

        Returns:
            True if the inactivity timeout triggered a teardown
        """
        with self._lock:
            if self._state not in _MONITORING_STATES:
                return False
            idle_minutes = (self.clock() - self._last_activity) / 60
            if idle_minutes < self.config.inactivity_timeout:
                return False

        logger.info(f"User inactive for {idle_minutes:.1f} minutes, signing out...")
        return self.clean_expired_session()

    def clean_expired_session(self) -> bool:
        """
        Tear the session down: sign out, purge client storage, notify.

        Idempotent: returns False without side effects while a teardown is
        in progress or when the current session was already torn down.

        Returns:
            True if this call performed the teardown
        """
        with self._lock:
            if self._state == MonitorState.TERMINATING or self._torn_down:
                logger.debug("Session cleanup already done or in progress")
                return False
            self._state = MonitorState.TERMINATING
            self._teardowns += 1
            generation = self._generation

        logger.info("Session expired or invalid, cleaning up...")

        try:
            try:
                self.auth_service.sign_out()
            except Exception as e:
                error_handler.handle_sign_out_failure(e)

            if self.config.clear_storage_on_expiry:
                try:
                    clear_client_storage(self.local_storage, self.session_storage, self.cookies)
                except Exception as e:
                    logger.error(f"Error clearing client storage: {e}")

            self._notify(Notification(
                title="Session Expired",
                description="Your session has expired. Please sign in again.",
                variant=NotificationVariant.DESTRUCTIVE
            ))
        finally:
            # A sign-in that raced the teardown owns the monitor now
            with self._lock:
                superseded = generation != self._generation
                if not superseded:
                    self._torn_down = True
                    self._generation += 1
                    self._state = MonitorState.UNMONITORED
            if not superseded:
                self.stop_monitoring()

        return True

    def _notify(self, notification: Notification) -> None:
        try:
            self.notifier.notify(notification)
        except Exception as e:
            logger.error(f"Failed to deliver notification '{notification.title}': {e}")
