"""Flask application exposing session status and lifecycle endpoints."""

from flask import Flask
from flask_cors import CORS
import os
import logging

from ..config import Config
from ..session.activity import ActivityEventSource
from ..session.auth import AuthController
from ..session.auth_client import SupabaseAuthClient
from ..session.notifications import LoggingNotifier, NotificationCenter
from ..session.storage import FileStorage, MemoryStorage
from .notification_streamer import NotificationStreamer


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_default_auth_service():
    """
    Create the Supabase auth client from environment configuration.

    Returns:
        SupabaseAuthClient, or None if the project is not configured
    """
    if not Config.SUPABASE_URL or not Config.SUPABASE_ANON_KEY:
        logger.warning("⚠️  SUPABASE_URL / SUPABASE_ANON_KEY not set")
        logger.warning("   Authentication will not be available until they are configured.")
        return None

    Config.ensure_directories()
    return SupabaseAuthClient(storage=FileStorage(Config.LOCAL_STORAGE_FILE))


def initialize_authentication(app, auth_service=None, session_config=None, **monitor_kwargs):
    """
    Initialize the authentication system on Flask app startup.

    This function:
    1. Creates the auth service (Supabase unless one is given)
    2. Wires notifications to the log and the SSE stream
    3. Creates the AuthController and its SessionMonitor
    4. Handles a missing configuration gracefully (allows app to start)

    Args:
        app: Flask application instance
        auth_service: Auth backend to use instead of Supabase
        session_config: Monitor configuration (app defaults if None)
        **monitor_kwargs: Extra SessionMonitor arguments
    """
    streamer = NotificationStreamer()
    activity_source = ActivityEventSource()
    app.config['NOTIFICATION_STREAMER'] = streamer
    app.config['ACTIVITY_SOURCE'] = activity_source
    app.config['AUTH_CONTROLLER'] = None

    try:
        logger.info("Initializing authentication system...")

        if auth_service is None:
            auth_service = build_default_auth_service()
            if auth_service is None:
                return

        monitor_kwargs.setdefault('notifier', NotificationCenter([LoggingNotifier(), streamer]))
        monitor_kwargs.setdefault('activity_source', activity_source)
        monitor_kwargs.setdefault('local_storage', getattr(auth_service, 'storage', None))
        monitor_kwargs.setdefault('session_storage', MemoryStorage())
        monitor_kwargs.setdefault('cookies', getattr(auth_service, 'cookies', None))

        controller = AuthController(auth_service, config=session_config, **monitor_kwargs)
        controller.start()
        app.config['AUTH_CONTROLLER'] = controller

        if controller.is_authenticated:
            logger.info(f"✓ Signed in as {controller.user.email}")
        else:
            logger.info("No active session - users will need to sign in")

        logger.info("✓ Authentication system initialized successfully")

    except Exception as e:
        logger.error(f"⚠️  Error initializing authentication: {e}")
        logger.warning("   Application will start but authentication may not work correctly")


def create_app(auth_service=None, session_config=None, **monitor_kwargs):
    """
    Create and configure the Flask application.

    Args:
        auth_service: Auth backend (Supabase from the environment if None)
        session_config: Monitor configuration (app defaults if None)
        **monitor_kwargs: Extra SessionMonitor arguments
    """
    app = Flask(__name__)

    # Configure CORS for API endpoints
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST"],
            "allow_headers": ["Content-Type"]
        }
    })

    # Only initialize in the reloader child process (or when not using reloader)
    # This prevents duplicate SessionMonitor timers in debug mode
    if auth_service is not None or os.environ.get('WERKZEUG_RUN_MAIN') or not os.environ.get('FLASK_DEBUG'):
        initialize_authentication(app, auth_service, session_config, **monitor_kwargs)

    from . import api
    app.register_blueprint(api.bp)

    return app
