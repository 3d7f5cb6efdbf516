"""
Session store for resolved viewers.

Created at application startup and kept on ``app.state``. Each entry holds the
session/user/profile triple for one bearer token so repeated requests with the
same token do not hit Supabase Auth again. The store subscribes to the auth
client's state changes and is unsubscribed at shutdown.
"""

import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class ViewerSession:
    token_key: str
    user: Dict[str, Any]
    profile: Optional[Dict[str, Any]]
    expires_at: float


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class SessionStore:
    def __init__(self, ttl_seconds: int = 60, max_size: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, ViewerSession] = {}
        self._lock = threading.Lock()
        self._subscription = None

    def start(self, supabase) -> None:
        """Subscribe to auth state changes of the given client."""
        session = supabase.auth.get_session()
        logger.info(f"Session store started (client session present: {session is not None})")
        self._subscription = supabase.auth.on_auth_state_change(self._on_auth_state_change)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.clear()
        logger.info("Session store stopped")

    @property
    def started(self) -> bool:
        return self._subscription is not None

    def _on_auth_state_change(self, event, session) -> None:
        logger.info(f"Auth state change: {event}")
        if event == "SIGNED_OUT":
            self.clear()

    def get(self, token: str) -> Optional[ViewerSession]:
        key = _token_key(token)
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            return entry

    def put(self, token: str, user: Dict[str, Any], profile: Optional[Dict[str, Any]]) -> ViewerSession:
        key = _token_key(token)
        entry = ViewerSession(
            token_key=key,
            user=user,
            profile=profile,
            expires_at=time.monotonic() + self.ttl_seconds,
        )
        with self._lock:
            if key in self._entries or len(self._entries) < self.max_size:
                self._entries[key] = entry
        return entry

    def evict(self, token: str) -> None:
        with self._lock:
            self._entries.pop(_token_key(token), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
