"""
Human-readable session status for status badges and the CLI.
"""

import math
import time
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Optional

from .models import Session
from .security import get_time_until_expiry

EXPIRING_SOON_MINUTES = 5
WARNING_MINUTES = 15


@dataclass
class SessionStatusInfo:
    """Status summary of the current session."""
    status: str
    variant: str  # "default", "secondary" or "destructive"
    is_valid: bool
    minutes_remaining: Optional[float]  # None when the session has no expiry
    time_remaining: Optional[str]
    user_email: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


def format_time_remaining(minutes: float) -> str:
    """
    Render a duration in minutes for display.

    Examples:
        >>> format_time_remaining(0.5)
        'less than 1 minute'
        >>> format_time_remaining(2.1)
        '3 minutes'
        >>> format_time_remaining(90.5)
        '1h 31m'
    """
    if minutes < 1:
        return 'less than 1 minute'
    if minutes < 60:
        return f"{math.ceil(minutes)} minutes"

    hours = math.floor(minutes / 60)
    remaining_minutes = math.ceil(minutes % 60)
    return f"{hours}h {remaining_minutes}m"


def describe_session_status(session: Optional[Session],
                            clock: Callable[[], float] = time.time) -> SessionStatusInfo:
    """Summarize a session for display."""
    if session is None:
        return SessionStatusInfo(
            status='Not Authenticated',
            variant='destructive',
            is_valid=False,
            minutes_remaining=0.0,
            time_remaining=None
        )

    if session.expires_at is None:
        minutes = math.inf
    else:
        minutes = get_time_until_expiry(session.expires_at, clock)

    if minutes <= EXPIRING_SOON_MINUTES:
        status, variant = 'Expiring Soon', 'destructive'
    elif minutes <= WARNING_MINUTES:
        status, variant = 'Active (Warning)', 'secondary'
    else:
        status, variant = 'Active & Secure', 'default'

    return SessionStatusInfo(
        status=status,
        variant=variant,
        is_valid=minutes > 0,
        minutes_remaining=minutes if minutes != math.inf else None,
        time_remaining=format_time_remaining(minutes) if minutes != math.inf else None,
        user_email=session.user.email
    )
