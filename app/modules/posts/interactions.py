"""
Optimistic like toggling.

A LikeToggle applies the new like state and counter immediately, runs the
remote mutation, and either commits or restores both values. Toggles for the
same (post, user) pair are serialised through a lock-guarded in-flight registry;
a second toggle while one is pending is refused rather than queued.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Set, Tuple

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_in_flight: Set[Tuple[str, str]] = set()


class Phase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class ToggleInFlight(Exception):
    def __init__(self, post_id: str, user_id: str):
        self.post_id = post_id
        self.user_id = user_id
        super().__init__(f"A like toggle for post {post_id} is already in progress")


class LikeToggle:
    def __init__(self, post_id: str, user_id: str, liked: bool, count: int):
        self.post_id = post_id
        self.user_id = user_id
        self.liked = liked
        self.count = count
        self.phase = Phase.IDLE

    def toggle(self, mutation: Callable[[bool], None]) -> bool:
        """Flip the state, then call ``mutation(target_liked)``.

        On failure both the boolean and the counter go back to their values
        from before the toggle and the exception is re-raised.
        """
        if self.phase is Phase.PENDING:
            raise ToggleInFlight(self.post_id, self.user_id)
        previous = (self.liked, self.count)
        self.liked = not self.liked
        self.count += 1 if self.liked else -1
        self.phase = Phase.PENDING
        try:
            mutation(self.liked)
        except Exception:
            self.liked, self.count = previous
            self.phase = Phase.ROLLED_BACK
            logger.warning(f"Like toggle rolled back for post {self.post_id} by {self.user_id}")
            raise
        self.phase = Phase.COMMITTED
        return self.liked


def begin(post_id: str, user_id: str) -> bool:
    """Claim the (post, user) slot. False when a toggle is already in flight."""
    key = (post_id, user_id)
    with _lock:
        if key in _in_flight:
            return False
        _in_flight.add(key)
        return True


def finish(post_id: str, user_id: str) -> None:
    with _lock:
        _in_flight.discard((post_id, user_id))
