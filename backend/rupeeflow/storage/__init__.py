from .database import TransactionStore, BudgetStore, UserStore
from .subscriptions import SnapshotHub, Subscription

__all__ = ["TransactionStore", "BudgetStore", "UserStore", "SnapshotHub", "Subscription"]
