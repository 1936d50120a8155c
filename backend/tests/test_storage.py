"""Tests for the SQLite stores and snapshot subscriptions."""
import sqlite3
import threading

import pytest

from rupeeflow.errors import EmailAlreadyRegisteredError, NotFoundError, PersistenceError
from rupeeflow.models.category import TOTAL, Category
from rupeeflow.models.transaction import TransactionCreate, TransactionUpdate
from rupeeflow.storage.database import BudgetStore, SQLiteStore, TransactionStore, UserStore
from rupeeflow.storage.subscriptions import SnapshotHub


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "store.db")


@pytest.fixture
def hub():
    return SnapshotHub("transactions")


@pytest.fixture
def store(db_path, hub):
    return TransactionStore(db_path, hub=hub)


@pytest.fixture
def budget_store(db_path):
    return BudgetStore(db_path, hub=SnapshotHub("budgets"), default_total_limit=50000.0)


def _create(title="Zomato Dinner", amount=850.0, date="2024-01-15T19:30:00Z", **overrides):
    data = {
        "title": title,
        "amount": amount,
        "category": "Food & Drinks",
        "type": "expense",
        "date": date,
    }
    data.update(overrides)
    return TransactionCreate(**data)


def test_create_assigns_id_and_owner(store):
    tx = store.create("user_1", _create())

    assert tx.id
    assert tx.user_id == "user_1"
    assert store.get("user_1", tx.id) == tx


def test_list_is_most_recent_first_and_user_scoped(store):
    store.create("user_1", _create(title="older", date="2024-01-01T10:00:00Z"))
    store.create("user_1", _create(title="newer", date="2024-01-20T10:00:00Z"))
    # 2024-01-10T02:00+05:30 is 2024-01-09T20:30Z
    store.create("user_1", _create(title="middle", date="2024-01-10T02:00:00+05:30"))
    store.create("user_2", _create(title="someone else"))

    titles = [tx.title for tx in store.list("user_1")]

    assert titles == ["newer", "middle", "older"]
    assert [tx.title for tx in store.list("user_2")] == ["someone else"]


def test_offset_is_preserved(store):
    tx = store.create("user_1", _create(date="2024-01-10T23:30:00+05:30"))
    stored = store.get("user_1", tx.id)
    assert stored.date.utcoffset().total_seconds() == 5.5 * 3600
    assert stored.date.day == 10


def test_update_in_place(store):
    tx = store.create("user_1", _create())

    store.update("user_1", TransactionUpdate(id=tx.id, **_create(title="Edited", amount=900).model_dump()))

    updated = store.get("user_1", tx.id)
    assert updated.title == "Edited"
    assert updated.amount == 900
    assert len(store.list("user_1")) == 1


def test_update_missing_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.update("user_1", TransactionUpdate(id="missing", **_create().model_dump()))


def test_update_other_users_record_raises_not_found(store):
    tx = store.create("user_1", _create())
    with pytest.raises(NotFoundError):
        store.update("user_2", TransactionUpdate(id=tx.id, **_create(title="hijack").model_dump()))
    assert store.get("user_1", tx.id).title == "Zomato Dinner"


def test_delete_is_idempotent(store):
    tx = store.create("user_1", _create())

    store.delete("user_1", tx.id)
    store.delete("user_1", tx.id)
    store.delete("user_1", "never-existed")

    assert store.list("user_1") == []


def test_delete_does_not_cross_users(store):
    tx = store.create("user_1", _create())
    store.delete("user_2", tx.id)
    assert len(store.list("user_1")) == 1


def test_bulk_create_publishes_once(store, hub):
    deliveries = []
    hub.subscribe("user_1", deliveries.append)

    count = store.bulk_create("user_1", [_create(title=f"tx {i}") for i in range(3)])

    assert count == 3
    assert len(deliveries) == 1
    assert len(deliveries[0]) == 3


def test_every_mutation_redelivers_full_snapshot(store, hub):
    deliveries = []
    subscription = hub.subscribe("user_1", deliveries.append)

    tx = store.create("user_1", _create())
    store.update("user_1", TransactionUpdate(id=tx.id, **_create(title="Edited").model_dump()))
    store.delete("user_1", tx.id)

    assert [len(snapshot) for snapshot in deliveries] == [1, 1, 0]
    assert deliveries[1][0].title == "Edited"

    subscription.cancel()
    subscription.cancel()
    store.create("user_1", _create())
    assert len(deliveries) == 3


def test_hub_scopes_deliveries_by_user(store, hub):
    seen_by_other = []
    hub.subscribe("user_2", seen_by_other.append)
    store.create("user_1", _create())
    assert seen_by_other == []


def test_hub_survives_failing_observer(hub):
    received = []

    def broken(snapshot):
        raise RuntimeError("boom")

    hub.subscribe("user_1", broken)
    hub.subscribe("user_1", received.append)
    hub.publish("user_1", ["snapshot"])

    assert received == [["snapshot"]]
    assert hub.subscriber_count("user_1") == 2


def test_base_store_cannot_be_instantiated(db_path):
    with pytest.raises(TypeError):
        SQLiteStore(db_path)


def test_database_errors_become_persistence_errors(tmp_path):
    with pytest.raises(PersistenceError):
        TransactionStore(str(tmp_path / "missing-dir" / "store.db"))


def test_amount_check_constraint(store, db_path):
    with pytest.raises(sqlite3.IntegrityError):
        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "INSERT INTO transactions (id, user_id, title, amount, category, type, date, date_utc, created_at)"
                " VALUES ('x', 'u', 't', -1, 'Others', 'expense', 'd', 'd', 'c')"
            )


def test_budget_upsert_overwrites(budget_store):
    budget_store.upsert("user_1", Category.FOOD, 5000)
    budget_store.upsert("user_1", Category.FOOD, 7000)
    budget_store.upsert("user_1", TOTAL, 40000)

    budgets = {b.category: b.limit for b in budget_store.list("user_1")}

    assert budgets == {"Food & Drinks": 7000, TOTAL: 40000}
    assert budget_store.list("user_2") == []


def test_ensure_default_runs_once(budget_store):
    assert budget_store.ensure_default("user_1") is True
    assert budget_store.ensure_default("user_1") is False

    budgets = budget_store.list("user_1")
    assert len(budgets) == 1
    assert budgets[0].category == TOTAL
    assert budgets[0].limit == 50000.0


def test_ensure_default_skips_users_with_budgets(budget_store):
    budget_store.upsert("user_1", Category.FOOD, 3000)
    assert budget_store.ensure_default("user_1") is False
    assert [b.category for b in budget_store.list("user_1")] == ["Food & Drinks"]


def test_ensure_default_concurrent_sessions_create_one(budget_store):
    results = []

    def worker():
        results.append(budget_store.ensure_default("user_1"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert len(budget_store.list("user_1")) == 1


def test_user_store_unique_email(db_path):
    users = UserStore(db_path)
    user = users.create("Asha", "asha@example.com", "hash")

    assert users.get_by_email("asha@example.com") == user
    assert users.get_password_hash(user.id) == "hash"
    with pytest.raises(EmailAlreadyRegisteredError):
        users.create("Other", "asha@example.com", "hash")
    with pytest.raises(NotFoundError):
        users.get("missing")


def test_user_store_verification_and_password(db_path):
    users = UserStore(db_path)
    user = users.create("Asha", "asha@example.com", "hash")

    users.mark_verified(user.id)
    users.set_password(user.id, "new-hash")

    assert users.get(user.id).email_verified is True
    assert users.get_password_hash(user.id) == "new-hash"
