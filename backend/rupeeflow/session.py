"""Per-user application state with an explicit open/close lifecycle."""
import logging
import threading
from typing import Callable, Dict, List, Optional

from rupeeflow.models.budget import Budget
from rupeeflow.models.transaction import Transaction
from rupeeflow.services.identity import SIGNED_IN, SIGNED_OUT, AuthEventStream
from rupeeflow.storage.database import BudgetStore, TransactionStore
from rupeeflow.storage.subscriptions import SnapshotHub, Subscription

logger = logging.getLogger(__name__)

# listener(kind, items) with kind in {"transactions", "budgets", "closed"}
SessionListener = Callable[[str, list], None]


class UserSession:
    """
    Latest transaction and budget snapshots for one signed-in user.

    ``open()`` subscribes to both stores and loads the current snapshot;
    ``close()`` cancels the subscriptions. Each delivery replaces the
    previous snapshot.
    """

    def __init__(
        self,
        user_id: str,
        transaction_store: TransactionStore,
        budget_store: BudgetStore,
        transaction_hub: SnapshotHub,
        budget_hub: SnapshotHub,
        listener: Optional[SessionListener] = None,
    ):
        self.user_id = user_id
        self._transaction_store = transaction_store
        self._budget_store = budget_store
        self._transaction_hub = transaction_hub
        self._budget_hub = budget_hub
        self._listener = listener
        self._subscriptions: List[Subscription] = []
        self.transactions: List[Transaction] = []
        self.budgets: List[Budget] = []
        self.is_open = False

    def open(self) -> "UserSession":
        self._subscriptions = [
            self._transaction_hub.subscribe(self.user_id, self._on_transactions),
            self._budget_hub.subscribe(self.user_id, self._on_budgets),
        ]
        self.is_open = True
        self._budget_store.ensure_default(self.user_id)
        self._on_transactions(self._transaction_store.list(self.user_id))
        self._on_budgets(self._budget_store.list(self.user_id))
        logger.info("Session opened", extra={"user_id": self.user_id})
        return self

    def close(self, notify: bool = False) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []
        if self.is_open:
            self.is_open = False
            logger.info("Session closed", extra={"user_id": self.user_id})
            if notify and self._listener is not None:
                self._listener("closed", [])

    def _on_transactions(self, snapshot: List[Transaction]) -> None:
        self.transactions = list(snapshot)
        if self._listener is not None:
            self._listener("transactions", self.transactions)

    def _on_budgets(self, snapshot: List[Budget]) -> None:
        self.budgets = list(snapshot)
        if self._listener is not None:
            self._listener("budgets", self.budgets)


class SessionRegistry:
    """
    Sessions by connection key.

    Opening a session for a key first closes whatever session that key held,
    so a switched account never receives the previous user's snapshots.
    A sign-out event closes every session of that user.
    """

    def __init__(
        self,
        transaction_store: TransactionStore,
        budget_store: BudgetStore,
        transaction_hub: SnapshotHub,
        budget_hub: SnapshotHub,
        events: Optional[AuthEventStream] = None,
    ):
        self._transaction_store = transaction_store
        self._budget_store = budget_store
        self._transaction_hub = transaction_hub
        self._budget_hub = budget_hub
        self._lock = threading.Lock()
        self._sessions: Dict[str, UserSession] = {}
        self._unsubscribe = events.subscribe(self._on_auth_event) if events else None

    def open(self, key: str, user_id: str, listener: Optional[SessionListener] = None) -> UserSession:
        with self._lock:
            previous = self._sessions.pop(key, None)
        if previous is not None:
            previous.close()
        session = UserSession(
            user_id,
            self._transaction_store,
            self._budget_store,
            self._transaction_hub,
            self._budget_hub,
            listener=listener,
        )
        with self._lock:
            self._sessions[key] = session
        try:
            return session.open()
        except Exception:
            self.close(key)
            raise

    def get(self, key: str) -> Optional[UserSession]:
        with self._lock:
            return self._sessions.get(key)

    def close(self, key: str, notify: bool = False) -> None:
        with self._lock:
            session = self._sessions.pop(key, None)
        if session is not None:
            session.close(notify=notify)

    def close_user(self, user_id: str) -> int:
        """Close every session of ``user_id``; returns how many were closed."""
        with self._lock:
            keys = [k for k, s in self._sessions.items() if s.user_id == user_id]
        for key in keys:
            self.close(key, notify=True)
        return len(keys)

    def close_all(self) -> None:
        with self._lock:
            keys = list(self._sessions)
        for key in keys:
            self.close(key)
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _on_auth_event(self, event: str, user_id: str) -> None:
        if event == SIGNED_OUT:
            self.close_user(user_id)
        elif event == SIGNED_IN:
            self._budget_store.ensure_default(user_id)
