"""
Main entry point for the Game Backlog Tracker command line.

Signs in to the backlog's Supabase project, reports session status and runs
the session monitor in the foreground.
"""

import argparse
import getpass
import logging
import sys
import time

from .config import Config, get_session_config
from .errors import AuthServiceError
from .session.auth import AuthController, build_app_session_config
from .session.auth_client import SupabaseAuthClient
from .session.notifications import LoggingNotifier
from .session.storage import FileStorage, MemoryStorage
from .session.status import describe_session_status


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def build_client() -> SupabaseAuthClient:
    """Create the auth client with its persistent local storage."""
    if not Config.SUPABASE_URL or not Config.SUPABASE_ANON_KEY:
        raise SystemExit("❌ SUPABASE_URL and SUPABASE_ANON_KEY must be set")

    Config.ensure_directories()
    return SupabaseAuthClient(storage=FileStorage(Config.LOCAL_STORAGE_FILE))


def print_status(session) -> None:
    info = describe_session_status(session)
    print(f"Status: {info.status}")
    if session is not None:
        print(f"User: {info.user_email}")
        if info.time_remaining:
            print(f"Time remaining: {info.time_remaining}")


def cmd_login(client: SupabaseAuthClient, args) -> int:
    email = args.email or input("Email: ").strip()
    password = getpass.getpass("Password: ")

    try:
        session = client.sign_in_with_password(email, password)
    except AuthServiceError as e:
        print(f"❌ {e}")
        for action in e.issue.suggested_actions:
            print(f"   - {action}")
        return 1

    print("✅ Signed in")
    print_status(session)
    return 0


def cmd_status(client: SupabaseAuthClient, args) -> int:
    try:
        session = client.get_session()
    except AuthServiceError as e:
        print(f"❌ {e}")
        return 1

    print_status(session)
    return 0 if session is not None else 1


def cmd_logout(client: SupabaseAuthClient, args) -> int:
    try:
        client.sign_out()
    except AuthServiceError as e:
        print(f"⚠️  Server sign-out failed ({e}); local session removed")
        return 1

    print("✅ Signed out")
    return 0


def cmd_watch(client: SupabaseAuthClient, args) -> int:
    """Run the session monitor until the session ends or Ctrl+C is pressed."""
    logger = logging.getLogger(__name__)
    config = build_app_session_config(get_session_config(args.host))

    controller = AuthController(
        client,
        config=config,
        notifier=LoggingNotifier(),
        local_storage=client.storage,
        session_storage=MemoryStorage(),
        cookies=client.cookies
    )
    controller.start()

    if not controller.is_authenticated:
        print("❌ Not signed in. Run the 'login' command first.")
        controller.stop()
        return 1

    logger.info(f"Watching session for {controller.user.email} (Ctrl+C to stop)")
    try:
        while controller.is_authenticated:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopping session monitor")
    finally:
        controller.stop()

    print_status(controller.session)
    return 0


COMMANDS = {
    'login': cmd_login,
    'status': cmd_status,
    'logout': cmd_logout,
    'watch': cmd_watch,
}


def main(argv=None):
    """Command line interface."""
    parser = argparse.ArgumentParser(
        description="Manage your Game Backlog Tracker session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s login --email me@example.com
  %(prog)s status
  %(prog)s watch --verbose
  %(prog)s logout

Configuration:
  SUPABASE_URL and SUPABASE_ANON_KEY select the Supabase project.
        """
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login", help="Sign in with email and password")
    login_parser.add_argument("--email", help="Account email (prompted if omitted)")

    subparsers.add_parser("status", help="Show the current session status")
    subparsers.add_parser("logout", help="Sign out and forget the stored session")

    watch_parser = subparsers.add_parser("watch", help="Monitor the session in the foreground")
    watch_parser.add_argument(
        "--host",
        default=None,
        help="Hostname used to pick the session preset (localhost selects development)"
    )

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    client = build_client()
    return COMMANDS[args.command](client, args)


if __name__ == "__main__":
    sys.exit(main())
