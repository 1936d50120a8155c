"""Tests for per-user sessions and their teardown on identity changes."""
import pytest

from rupeeflow.models.category import TOTAL
from rupeeflow.models.transaction import TransactionCreate
from rupeeflow.services.identity import SIGNED_IN, SIGNED_OUT, AuthEventStream
from rupeeflow.session import SessionRegistry, UserSession
from rupeeflow.storage.database import BudgetStore, TransactionStore
from rupeeflow.storage.subscriptions import SnapshotHub


@pytest.fixture
def hubs():
    return SnapshotHub("transactions"), SnapshotHub("budgets")


@pytest.fixture
def stores(tmp_path, hubs):
    db_path = str(tmp_path / "session.db")
    transaction_hub, budget_hub = hubs
    return (
        TransactionStore(db_path, hub=transaction_hub),
        BudgetStore(db_path, hub=budget_hub, default_total_limit=50000.0),
    )


@pytest.fixture
def events():
    return AuthEventStream()


@pytest.fixture
def registry(stores, hubs, events):
    transactions, budgets = stores
    transaction_hub, budget_hub = hubs
    return SessionRegistry(transactions, budgets, transaction_hub, budget_hub, events=events)


def _expense(title="Chai"):
    return TransactionCreate(
        title=title,
        amount=20,
        category="Food & Drinks",
        type="expense",
        date="2024-03-01T08:00:00Z",
    )


class Recorder:
    """Collects listener deliveries."""

    def __init__(self):
        self.events = []

    def __call__(self, kind, items):
        self.events.append((kind, [getattr(i, "title", getattr(i, "category", None)) for i in items]))

    def kinds(self):
        return [kind for kind, _ in self.events]


def test_open_loads_snapshots_and_default_budget(stores, hubs):
    transactions, budgets = stores
    transactions.create("user_1", _expense("Existing"))
    recorder = Recorder()

    session = UserSession("user_1", transactions, budgets, *hubs, listener=recorder).open()

    assert [tx.title for tx in session.transactions] == ["Existing"]
    assert [b.category for b in session.budgets] == [TOTAL]
    assert ("transactions", ["Existing"]) in recorder.events
    assert recorder.kinds()[-1] == "budgets"


def test_snapshot_replaced_on_change(stores, hubs):
    transactions, budgets = stores
    session = UserSession("user_1", transactions, budgets, *hubs).open()

    transactions.create("user_1", _expense("First"))
    transactions.create("user_1", _expense("Second"))

    assert sorted(tx.title for tx in session.transactions) == ["First", "Second"]


def test_close_cancels_subscriptions(stores, hubs):
    transactions, budgets = stores
    transaction_hub, budget_hub = hubs
    session = UserSession("user_1", transactions, budgets, *hubs).open()
    assert transaction_hub.subscriber_count("user_1") == 1

    session.close()
    transactions.create("user_1", _expense())

    assert transaction_hub.subscriber_count("user_1") == 0
    assert budget_hub.subscriber_count("user_1") == 0
    assert session.transactions == []


def test_account_switch_tears_down_previous_user(registry, stores, hubs):
    transactions, _ = stores
    transaction_hub, _ = hubs
    first, second = Recorder(), Recorder()

    registry.open("conn", "user_1", first)
    registry.open("conn", "user_2", second)
    before = len(first.events)
    transactions.create("user_1", _expense("Private"))

    assert len(first.events) == before
    assert all("Private" not in titles for _, titles in second.events)
    assert transaction_hub.subscriber_count("user_1") == 0
    assert registry.get("conn").user_id == "user_2"
    assert len(registry) == 1


def test_sign_out_closes_all_sessions_of_user(registry, events, hubs):
    transaction_hub, _ = hubs
    phone, laptop, other = Recorder(), Recorder(), Recorder()
    registry.open("phone", "user_1", phone)
    registry.open("laptop", "user_1", laptop)
    registry.open("other", "user_2", other)

    events.emit(SIGNED_OUT, "user_1")

    assert phone.kinds()[-1] == "closed"
    assert laptop.kinds()[-1] == "closed"
    assert "closed" not in other.kinds()
    assert registry.get("phone") is None
    assert transaction_hub.subscriber_count("user_1") == 0
    assert len(registry) == 1


def test_sign_in_materializes_default_budget(registry, events, stores):
    _, budgets = stores
    events.emit(SIGNED_IN, "user_9")
    events.emit(SIGNED_IN, "user_9")
    assert [b.limit for b in budgets.list("user_9")] == [50000.0]


def test_close_all_unsubscribes_from_auth_events(registry, events):
    recorder = Recorder()
    registry.open("conn", "user_1", recorder)

    registry.close_all()
    events.emit(SIGNED_OUT, "user_1")

    assert len(registry) == 0
    assert "closed" not in recorder.kinds()
