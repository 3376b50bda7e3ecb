"""
Data models for authenticated user sessions.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Callable, Dict, Optional
import json
import time


class MonitorState(Enum):
    """Lifecycle states of a session monitor."""

    UNMONITORED = "unmonitored"
    """No authenticated session is being watched."""

    ACTIVE = "active"
    """Session valid, no expiry warning issued."""

    WARNING_ISSUED = "warning_issued"
    """Session valid, expiry imminent, user already notified."""

    TERMINATING = "terminating"
    """Teardown in progress."""


class AuthChangeEvent(Enum):
    """Authentication state change events pushed by the auth service."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


@dataclass
class User:
    """The user owning a session."""
    id: str
    email: Optional[str] = None
    updated_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = dict(self.raw)
        data.update({'id': self.id, 'email': self.email, 'updated_at': self.updated_at})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Create instance from an auth service user payload."""
        return cls(
            id=data['id'],
            email=data.get('email'),
            updated_at=data.get('updated_at'),
            raw=dict(data)
        )


@dataclass(frozen=True)
class Session:
    """
    An authenticated session as issued by the auth service.

    Sessions are never mutated; a refresh produces a new instance.
    """
    access_token: str
    refresh_token: Optional[str]
    user: User
    expires_at: Optional[int]  # whole seconds since epoch
    expires_in: Optional[int] = None
    token_type: str = "bearer"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data['user'] = self.user.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  clock: Callable[[], float] = time.time) -> 'Session':
        """
        Create instance from a token response or a persisted session.

        Token responses may carry only ``expires_in``; the absolute expiry is
        derived from it and ``clock`` in that case. A missing refresh token
        stays None so security validation can reject the session.
        """
        expires_at = data.get('expires_at')
        expires_in = data.get('expires_in')
        if expires_at is None and expires_in is not None:
            expires_at = int(clock()) + int(expires_in)

        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token'),
            user=User.from_dict(data['user']),
            expires_at=int(expires_at) if expires_at is not None else None,
            expires_in=int(expires_in) if expires_in is not None else None,
            token_type=data.get('token_type', 'bearer')
        )

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> 'Session':
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))
