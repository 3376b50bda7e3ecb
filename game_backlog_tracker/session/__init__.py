"""Session lifecycle management: auth client, monitoring and client storage."""

from .models import AuthChangeEvent, MonitorState, Session, User
from .activity import ActivityEventSource
from .notifications import (
    LoggingNotifier,
    Notification,
    NotificationCenter,
    NotificationSink,
    NotificationVariant
)
from .storage import FileStorage, MemoryStorage, StoragePurgeReport, clear_client_storage
from .security import validate_session_security, is_token_expired, get_time_until_expiry
from .status import SessionStatusInfo, describe_session_status, format_time_remaining
from .auth_client import AuthService, SupabaseAuthClient
from .monitor import SessionMonitor
from .auth import AuthController

__all__ = [
    'AuthChangeEvent',
    'MonitorState',
    'Session',
    'User',
    'ActivityEventSource',
    'LoggingNotifier',
    'Notification',
    'NotificationCenter',
    'NotificationSink',
    'NotificationVariant',
    'FileStorage',
    'MemoryStorage',
    'StoragePurgeReport',
    'clear_client_storage',
    'validate_session_security',
    'is_token_expired',
    'get_time_until_expiry',
    'SessionStatusInfo',
    'describe_session_status',
    'format_time_remaining',
    'AuthService',
    'SupabaseAuthClient',
    'SessionMonitor',
    'AuthController'
]
