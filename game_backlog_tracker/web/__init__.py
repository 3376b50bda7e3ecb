"""Web interface for session status and lifecycle."""

from .app import create_app
from .notification_streamer import NotificationStreamer

__all__ = [
    'create_app',
    'NotificationStreamer'
]
