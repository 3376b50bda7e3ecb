"""
Real-time session notifications for the web client.

Provides a Server-Sent Events (SSE) stream of session notifications such as
expiry warnings and "session expired" notices.
"""

import json
import queue
import threading
from typing import Dict

from ..session.notifications import Notification, NotificationSink


class NotificationStreamer(NotificationSink):
    """
    Broadcasts notifications to connected clients via Server-Sent Events.
    """

    def __init__(self, keepalive_seconds: float = 30):
        """Initialize the notification streamer."""
        self.clients: Dict[str, queue.Queue] = {}
        self.lock = threading.Lock()
        self.keepalive_seconds = keepalive_seconds

    def add_client(self, client_id: str) -> queue.Queue:
        """
        Add a new client for notification streaming.

        Args:
            client_id: Unique identifier for the client

        Returns:
            Queue for sending notifications to this client
        """
        with self.lock:
            message_queue = queue.Queue(maxsize=100)
            self.clients[client_id] = message_queue
            return message_queue

    def remove_client(self, client_id: str):
        """Remove a client from notification streaming."""
        with self.lock:
            if client_id in self.clients:
                del self.clients[client_id]

    def notify(self, notification: Notification) -> None:
        """Broadcast a notification to all connected clients."""
        entry = notification.to_dict()

        with self.lock:
            for message_queue in list(self.clients.values()):
                try:
                    message_queue.put(entry, block=False)
                except queue.Full:
                    # Slow client, drop the message for it
                    pass

    def generate_stream(self, client_id: str):
        """
        Generate Server-Sent Events stream for a client.

        Args:
            client_id: Client identifier

        Yields:
            SSE-formatted messages
        """
        message_queue = self.add_client(client_id)

        try:
            yield f"data: {json.dumps({'type': 'connected', 'message': 'Notification stream connected'})}\n\n"

            while True:
                try:
                    entry = message_queue.get(timeout=self.keepalive_seconds)
                    yield f"data: {json.dumps(entry)}\n\n"
                except queue.Empty:
                    yield ": keepalive\n\n"

        finally:
            self.remove_client(client_id)
