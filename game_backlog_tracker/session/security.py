"""
Session integrity checks and token expiry helpers.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from google.auth import jwt

from .models import Session


logger = logging.getLogger(__name__)

REQUIRED_SESSION_PROPERTIES = ('access_token', 'refresh_token', 'user', 'expires_at')


def now_seconds(clock: Callable[[], float] = time.time) -> int:
    """Current time as whole seconds since epoch, matching the auth service."""
    return int(clock())


def is_valid_jwt_format(token: Any) -> bool:
    """Basic JWT structure check: three dot-separated, non-empty parts."""
    if not token or not isinstance(token, str):
        return False
    parts = token.split('.')
    return len(parts) == 3 and all(parts)


def decode_token_claims(token: str) -> Optional[Dict[str, Any]]:
    """
    Read the claims of an access token without verifying its signature.

    The signature is the auth service's concern; the client only needs the
    claims for display and sanity checks.

    Returns:
        The claims dictionary, or None if the token cannot be decoded
    """
    if not is_valid_jwt_format(token):
        return None
    try:
        return jwt.decode(token, verify=False)
    except (ValueError, TypeError) as e:
        logger.debug(f"Could not decode access token claims: {e}")
        return None


def validate_session_security(session: Any) -> bool:
    """
    Detect malformed or tampered sessions before they are trusted.

    Args:
        session: A Session, or a raw session dictionary

    Returns:
        True if the session has every required property and a JWT-shaped
        access token
    """
    try:
        if session is None:
            return False

        if isinstance(session, Session):
            values = {prop: getattr(session, prop) for prop in REQUIRED_SESSION_PROPERTIES}
        elif isinstance(session, dict):
            values = session
        else:
            return False

        for prop in REQUIRED_SESSION_PROPERTIES:
            if prop not in values or values[prop] is None:
                logger.warning(f"Missing required session property: {prop}")
                return False

        if not is_valid_jwt_format(values['access_token']):
            logger.warning("Invalid access token format")
            return False

        return True

    except Exception as e:
        logger.error(f"Error validating session security: {e}")
        return False


def is_token_expired(expires_at: int, clock: Callable[[], float] = time.time) -> bool:
    """Check whether a token with the given expiry instant has expired."""
    return now_seconds(clock) >= expires_at


def get_time_until_expiry(expires_at: int, clock: Callable[[], float] = time.time) -> float:
    """Minutes remaining until expiry, never negative."""
    return max(0.0, (expires_at - now_seconds(clock)) / 60)
