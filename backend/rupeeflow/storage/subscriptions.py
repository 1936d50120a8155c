"""Live-query subscriptions: every change re-delivers the user's full snapshot."""
import itertools
import logging
import threading
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List[Any]], None]


class Subscription:
    """Cancellation handle returned by ``SnapshotHub.subscribe``."""

    def __init__(self, hub: "SnapshotHub", user_id: str, token: int):
        self._hub = hub
        self.user_id = user_id
        self._token = token
        self.active = True

    def cancel(self) -> None:
        """Stop deliveries. Safe to call more than once."""
        if self.active:
            self._hub._remove(self.user_id, self._token)
            self.active = False


class SnapshotHub:
    """
    Per-user observer registry.

    Deliveries are scoped to the publishing user's id, so an observer never
    sees another user's data.
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._subscribers: Dict[str, Dict[int, SnapshotCallback]] = {}

    def subscribe(self, user_id: str, callback: SnapshotCallback) -> Subscription:
        with self._lock:
            token = next(self._counter)
            self._subscribers.setdefault(user_id, {})[token] = callback
        logger.debug("Subscribed", extra={"hub": self.name, "user_id": user_id, "token": token})
        return Subscription(self, user_id, token)

    def _remove(self, user_id: str, token: int) -> None:
        with self._lock:
            callbacks = self._subscribers.get(user_id)
            if callbacks is None:
                return
            callbacks.pop(token, None)
            if not callbacks:
                del self._subscribers[user_id]

    def subscriber_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(user_id, {}))

    def publish(self, user_id: str, snapshot: List[Any]) -> None:
        """Deliver ``snapshot`` to every active observer of ``user_id``."""
        with self._lock:
            callbacks = list(self._subscribers.get(user_id, {}).values())
        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception:
                # One broken observer must not starve the others
                logger.exception("Snapshot delivery failed", extra={"hub": self.name, "user_id": user_id})
