"""Database storage layer using SQLite."""
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from rupeeflow.errors import EmailAlreadyRegisteredError, NotFoundError, PersistenceError
from rupeeflow.models.auth import User
from rupeeflow.models.budget import Budget
from rupeeflow.models.category import TOTAL
from rupeeflow.models.transaction import Transaction, TransactionCreate, TransactionUpdate
from rupeeflow.storage.subscriptions import SnapshotHub
from rupeeflow.utils.privacy import obfuscate_title

logger = logging.getLogger(__name__)


def _utc_key(dt: datetime) -> str:
    """Sortable UTC representation of an aware timestamp."""
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


class SQLiteStore(ABC):
    """Shared connection handling for the stores."""

    def __init__(self, db_path: str = "rupeeflow.db"):
        self.db_path = db_path
        self._init_db()

    @abstractmethod
    def _init_db(self):
        """Create the store's tables."""
        pass

    @contextmanager
    def _get_conn(self):
        """Get database connection; driver errors surface as PersistenceError."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=30)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open database: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error("Database error", extra={"store": type(self).__name__, "error": str(e)})
            raise PersistenceError(f"Database error: {e}") from e
        finally:
            conn.close()


class TransactionStore(SQLiteStore):
    """Storage for transactions, scoped per user."""

    def __init__(self, db_path: str = "rupeeflow.db", hub: Optional[SnapshotHub] = None):
        self.hub = hub
        super().__init__(db_path)

    def _init_db(self):
        """Initialize database tables."""
        with self._get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    amount REAL NOT NULL CHECK (amount >= 0),
                    category TEXT NOT NULL,
                    type TEXT NOT NULL,
                    date TEXT NOT NULL,
                    date_utc TEXT NOT NULL,
                    notes TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_tx_user_date
                ON transactions(user_id, date_utc)
            """)
            conn.commit()

    @staticmethod
    def _row_to_transaction(row: sqlite3.Row) -> Transaction:
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            amount=row["amount"],
            category=row["category"],
            type=row["type"],
            date=row["date"],
            notes=row["notes"],
        )

    def list(self, user_id: str) -> List[Transaction]:
        """Transactions for a user, most recent date first."""
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM transactions WHERE user_id = ? ORDER BY date_utc DESC, rowid DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def get(self, user_id: str, tx_id: str) -> Transaction:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT * FROM transactions WHERE id = ? AND user_id = ?",
                (tx_id, user_id),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"Transaction {tx_id} not found")
        return self._row_to_transaction(row)

    def create(self, user_id: str, data: TransactionCreate) -> Transaction:
        """Insert a transaction, assigning its identifier and owner."""
        tx = Transaction(id=str(uuid.uuid4()), user_id=user_id, **data.model_dump())
        with self._get_conn() as conn:
            self._insert(conn, tx)
            conn.commit()
        logger.info("Transaction created", extra={"user_id": user_id, "tx_id": tx.id, "title": obfuscate_title(tx.title)})
        self._publish(user_id)
        return tx

    def bulk_create(self, user_id: str, items: Iterable[TransactionCreate]) -> int:
        """Insert many transactions in one commit (import)."""
        count = 0
        with self._get_conn() as conn:
            for data in items:
                self._insert(conn, Transaction(id=str(uuid.uuid4()), user_id=user_id, **data.model_dump()))
                count += 1
            conn.commit()
        logger.info("Transactions imported", extra={"user_id": user_id, "count": count})
        if count:
            self._publish(user_id)
        return count

    @staticmethod
    def _insert(conn: sqlite3.Connection, tx: Transaction) -> None:
        conn.execute("""
            INSERT INTO transactions
            (id, user_id, title, amount, category, type, date, date_utc, notes, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            tx.id,
            tx.user_id,
            tx.title,
            tx.amount,
            tx.category.value,
            tx.type.value,
            tx.date.isoformat(),
            _utc_key(tx.date),
            tx.notes,
            datetime.now(timezone.utc).isoformat(),
        ))

    def update(self, user_id: str, data: TransactionUpdate) -> None:
        """
        Replace a transaction in place (same identifier).

        Raises:
            NotFoundError: if the id does not exist for this user
        """
        with self._get_conn() as conn:
            cursor = conn.execute("""
                UPDATE transactions
                SET title = ?, amount = ?, category = ?, type = ?, date = ?, date_utc = ?, notes = ?
                WHERE id = ? AND user_id = ?
            """, (
                data.title,
                data.amount,
                data.category.value,
                data.type.value,
                data.date.isoformat(),
                _utc_key(data.date),
                data.notes,
                data.id,
                user_id,
            ))
            conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Transaction {data.id} not found")
        logger.info("Transaction updated", extra={"user_id": user_id, "tx_id": data.id})
        self._publish(user_id)

    def delete(self, user_id: str, tx_id: str) -> None:
        """Remove a transaction; deleting an absent id is a no-op."""
        with self._get_conn() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE id = ? AND user_id = ?",
                (tx_id, user_id),
            )
            conn.commit()
        if cursor.rowcount == 0:
            logger.debug("Delete of absent transaction ignored", extra={"user_id": user_id, "tx_id": tx_id})
            return
        logger.info("Transaction deleted", extra={"user_id": user_id, "tx_id": tx_id})
        self._publish(user_id)

    def _publish(self, user_id: str) -> None:
        if self.hub is not None:
            self.hub.publish(user_id, self.list(user_id))


class BudgetStore(SQLiteStore):
    """Storage for per-category spending limits."""

    def __init__(
        self,
        db_path: str = "rupeeflow.db",
        hub: Optional[SnapshotHub] = None,
        default_total_limit: float = 50000.0,
    ):
        self.hub = hub
        self.default_total_limit = default_total_limit
        super().__init__(db_path)

    def _init_db(self):
        """Initialize database tables."""
        with self._get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS budgets (
                    user_id TEXT NOT NULL,
                    category TEXT NOT NULL,
                    spending_limit REAL NOT NULL CHECK (spending_limit >= 0),
                    updated_at TEXT NOT NULL,
                    UNIQUE (user_id, category)
                )
            """)
            conn.commit()

    def list(self, user_id: str) -> List[Budget]:
        """Budgets for a user, one per category."""
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM budgets WHERE user_id = ? ORDER BY rowid ASC",
                (user_id,),
            ).fetchall()
        return [
            Budget(user_id=row["user_id"], category=row["category"], limit=row["spending_limit"])
            for row in rows
        ]

    def upsert(self, user_id: str, category: str, limit: float) -> None:
        """Create the (user, category) budget or overwrite its limit."""
        category = getattr(category, "value", category)
        with self._get_conn() as conn:
            conn.execute("""
                INSERT INTO budgets (user_id, category, spending_limit, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id, category)
                DO UPDATE SET spending_limit = excluded.spending_limit, updated_at = excluded.updated_at
            """, (user_id, category, limit, datetime.now(timezone.utc).isoformat()))
            conn.commit()
        logger.info("Budget set", extra={"user_id": user_id, "category": category, "limit": limit})
        self._publish(user_id)

    def ensure_default(self, user_id: str) -> bool:
        """
        Materialize the Total budget for a user with no budgets at all.

        Runs as one write transaction so concurrent sessions cannot both
        create it. Returns True when the default was created.
        """
        with self._get_conn() as conn:
            conn.isolation_level = None
            conn.execute("BEGIN IMMEDIATE")
            try:
                (count,) = conn.execute(
                    "SELECT COUNT(*) FROM budgets WHERE user_id = ?", (user_id,)
                ).fetchone()
                created = False
                if count == 0:
                    cursor = conn.execute("""
                        INSERT OR IGNORE INTO budgets (user_id, category, spending_limit, updated_at)
                        VALUES (?, ?, ?, ?)
                    """, (user_id, TOTAL, self.default_total_limit, datetime.now(timezone.utc).isoformat()))
                    created = cursor.rowcount == 1
                conn.execute("COMMIT")
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
        if created:
            logger.info("Default budget created", extra={"user_id": user_id, "limit": self.default_total_limit})
            self._publish(user_id)
        return created

    def _publish(self, user_id: str) -> None:
        if self.hub is not None:
            self.hub.publish(user_id, self.list(user_id))


class UserStore(SQLiteStore):
    """Storage for accounts."""

    def _init_db(self):
        """Initialize database tables."""
        with self._get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT,
                    email_verified INTEGER NOT NULL DEFAULT 0,
                    provider TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.commit()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            email_verified=bool(row["email_verified"]),
            provider=row["provider"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def create(
        self,
        name: str,
        email: str,
        password_hash: Optional[str],
        provider: str = "password",
        email_verified: bool = False,
    ) -> User:
        user = User(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            email_verified=email_verified,
            provider=provider,
            created_at=datetime.now(timezone.utc),
        )
        with self._get_conn() as conn:
            try:
                conn.execute("""
                    INSERT INTO users (id, name, email, password_hash, email_verified, provider, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    user.id,
                    user.name,
                    user.email,
                    password_hash,
                    int(user.email_verified),
                    user.provider,
                    user.created_at.isoformat(),
                ))
            except sqlite3.IntegrityError:
                raise EmailAlreadyRegisteredError()
            conn.commit()
        return user

    def get(self, user_id: str) -> User:
        with self._get_conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            raise NotFoundError("User not found")
        return self._row_to_user(row)

    def get_by_email(self, email: str) -> Optional[User]:
        with self._get_conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_password_hash(self, user_id: str) -> Optional[str]:
        with self._get_conn() as conn:
            row = conn.execute("SELECT password_hash FROM users WHERE id = ?", (user_id,)).fetchone()
        return row["password_hash"] if row else None

    def mark_verified(self, user_id: str) -> None:
        with self._get_conn() as conn:
            conn.execute("UPDATE users SET email_verified = 1 WHERE id = ?", (user_id,))
            conn.commit()

    def set_password(self, user_id: str, password_hash: str) -> None:
        with self._get_conn() as conn:
            conn.execute("UPDATE users SET password_hash = ? WHERE id = ?", (password_hash, user_id))
            conn.commit()
