"""
Client-side key/value storage and auth-credential purging.

Provides the local (persistent) and session-scoped stores the auth client
keeps its tokens in, plus the purge used when a session is torn down.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from requests.cookies import RequestsCookieJar

from ..errors import error_handler


logger = logging.getLogger(__name__)

# Supabase prefixes its storage keys and cookies with "sb-"
AUTH_KEY_PREFIXES = ('sb-',)
AUTH_STORAGE_MARKERS = ('supabase', 'auth', 'session', 'token')
AUTH_COOKIE_MARKERS = ('auth', 'session', 'token')


class MemoryStorage:
    """Session-scoped key/value storage, lost when the process exits."""

    name = "session storage"

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._data


class FileStorage(MemoryStorage):
    """
    Local storage persisted to a JSON file.

    Every mutation rewrites the file so credentials survive restarts of the
    CLI and web launcher.
    """

    name = "local storage"

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, indent=2)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove_item(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._flush()

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._flush()


def is_auth_storage_key(key: str) -> bool:
    """Whether a local/session storage key may hold authentication data."""
    if not key:
        return False
    lowered = key.lower()
    return (lowered.startswith(AUTH_KEY_PREFIXES)
            or any(marker in lowered for marker in AUTH_STORAGE_MARKERS))


def is_auth_cookie(name: str) -> bool:
    """Whether a cookie name may hold authentication data."""
    if not name:
        return False
    lowered = name.lower()
    return (lowered.startswith(AUTH_KEY_PREFIXES)
            or any(marker in lowered for marker in AUTH_COOKIE_MARKERS))


@dataclass
class StoragePurgeReport:
    """Outcome of a client storage purge."""
    local_keys: List[str] = field(default_factory=list)
    session_keys: List[str] = field(default_factory=list)
    cookies: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return len(self.local_keys) + len(self.session_keys) + len(self.cookies)

    @property
    def success(self) -> bool:
        return not self.failures


def _purge_store(store: MemoryStorage, removed: List[str], report: StoragePurgeReport) -> None:
    for key in [k for k in store.keys() if is_auth_storage_key(k)]:
        try:
            store.remove_item(key)
            removed.append(key)
        except Exception as e:
            error_handler.handle_storage_error(e, store.name, key)
            report.failures.append((store.name, key))


def _purge_cookies(jar: RequestsCookieJar, report: StoragePurgeReport) -> None:
    # Each domain/path variant of a cookie is a separate jar entry
    for cookie in [c for c in jar if is_auth_cookie(c.name)]:
        try:
            jar.clear(cookie.domain, cookie.path, cookie.name)
            if cookie.name not in report.cookies:
                report.cookies.append(cookie.name)
        except Exception as e:
            error_handler.handle_storage_error(e, "cookies", cookie.name)
            report.failures.append(("cookies", cookie.name))


def clear_client_storage(local: Optional[MemoryStorage] = None,
                         session: Optional[MemoryStorage] = None,
                         cookies: Optional[RequestsCookieJar] = None) -> StoragePurgeReport:
    """
    Remove authentication-related entries from client storage.

    Each key is removed independently; a key that cannot be removed is
    recorded in the report and the purge carries on.

    Args:
        local: Persistent local storage
        session: Session-scoped storage
        cookies: Cookie jar of the HTTP session used for auth requests

    Returns:
        StoragePurgeReport listing what was removed and what failed
    """
    report = StoragePurgeReport()

    if local is not None:
        _purge_store(local, report.local_keys, report)
    if session is not None:
        _purge_store(session, report.session_keys, report)
    if cookies is not None:
        _purge_cookies(cookies, report)

    if report.success:
        logger.info(f"Client storage cleared ({report.removed_count} entries)")
    else:
        logger.warning(
            f"Client storage partially cleared: {report.removed_count} removed, "
            f"{len(report.failures)} failed"
        )

    return report
