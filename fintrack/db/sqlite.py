"""SQLite database operations for fintrack."""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path

from fintrack.config import settings
from fintrack.models import (
    UNCATEGORIZED,
    CategoryTotal,
    Transaction,
    TransactionCreate,
    TransactionList,
    TransactionType,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
REQUIRED_COLUMNS = ("type", "amount", "date")

# SQL schema
SCHEMA = """
CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
    category TEXT,
    amount REAL NOT NULL CHECK (amount > 0),
    description TEXT,
    date TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_transactions_user_date ON transactions(user_id, date);
CREATE INDEX IF NOT EXISTS idx_transactions_user_category ON transactions(user_id, category);
"""

COLUMNS = "id, user_id, type, category, amount, description, date, created_at"


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path | None = None):
        if db_path is None:
            settings.ensure_directories()
            db_path = settings.db_path
        else:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database schema."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def for_user(self, user_id: str) -> "UserTransactions":
        """Get the transaction accessor scoped to one user."""
        if not user_id:
            raise ValueError("user_id is required")
        return UserTransactions(self, user_id)

    def get_transaction_count(self) -> int:
        """Get total number of transactions across all users."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) as count FROM transactions")
            return cursor.fetchone()["count"]


class UserTransactions:
    """
    Transaction access for a single user.

    Every statement issued here filters on ``user_id``; it is the only way
    the rest of the application reads or writes transactions. Rows owned by
    another user behave exactly as if they did not exist.
    """

    def __init__(self, database: Database, user_id: str):
        self._db = database
        self.user_id = user_id

    def _where(self, start: date | None = None, end: date | None = None) -> tuple[str, list]:
        clause = "user_id = ?"
        params: list = [self.user_id]
        if start:
            clause += " AND date >= ?"
            params.append(start.isoformat())
        if end:
            clause += " AND date <= ?"
            params.append(end.isoformat())
        return clause, params

    def list_transactions(
        self,
        start: date,
        end: date,
        limit: int = 10,
        offset: int = 0,
        search: str | None = None,
        type: TransactionType | None = None,
        category: str | None = None,
    ) -> TransactionList:
        """Get a page of transactions, newest first, plus the total match count."""
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise ValueError("offset must not be negative")

        where, params = self._where(start, end)
        if type:
            where += " AND type = ?"
            params.append(type.value)
        if category:
            where += " AND category = ?"
            params.append(category)
        if search:
            pattern = f"%{_escape_like(search.lower())}%"
            where += " AND (LOWER(description) LIKE ? ESCAPE '\\' OR LOWER(category) LIKE ? ESCAPE '\\')"
            params.extend([pattern, pattern])

        with self._db._get_connection() as conn:
            total = conn.execute(f"SELECT COUNT(*) AS count FROM transactions WHERE {where}", params).fetchone()
            cursor = conn.execute(
                f"""
                SELECT {COLUMNS} FROM transactions
                WHERE {where}
                ORDER BY date DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                [*params, limit, offset],
            )
            rows = cursor.fetchall()

        return TransactionList(
            transactions=[_row_to_transaction(row) for row in rows],
            total_count=total["count"],
        )

    def in_range(self, start: date, end: date) -> list[Transaction]:
        """Get every transaction in the inclusive date range, oldest first."""
        where, params = self._where(start, end)
        with self._db._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT {COLUMNS} FROM transactions WHERE {where} ORDER BY date ASC, id ASC",
                params,
            )
            return [_row_to_transaction(row) for row in cursor.fetchall()]

    def recent(self, limit: int = 5) -> list[Transaction]:
        """Get the most recent transactions regardless of date range."""
        with self._db._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT {COLUMNS} FROM transactions
                WHERE user_id = ?
                ORDER BY date DESC, id DESC
                LIMIT ?
                """,
                (self.user_id, limit),
            )
            return [_row_to_transaction(row) for row in cursor.fetchall()]

    def get(self, transaction_id: int) -> Transaction | None:
        """Get a single transaction by ID."""
        with self._db._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT {COLUMNS} FROM transactions WHERE id = ? AND user_id = ?",
                (transaction_id, self.user_id),
            )
            row = cursor.fetchone()
            return _row_to_transaction(row) if row else None

    def create(self, data: TransactionCreate) -> Transaction:
        """Insert a transaction owned by this user."""
        created_at = datetime.now().isoformat()
        with self._db._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO transactions (user_id, type, category, amount, description, date, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    self.user_id,
                    data.type.value,
                    data.category,
                    data.amount,
                    data.description,
                    data.date.isoformat(),
                    created_at,
                ),
            )
            conn.commit()
            transaction_id = cursor.lastrowid

        logger.debug(f"Created transaction {transaction_id} for user {self.user_id}")
        return Transaction(id=transaction_id, user_id=self.user_id, created_at=created_at, **data.model_dump())

    def update(self, transaction_id: int, data: TransactionUpdate) -> Transaction | None:
        """Apply a partial update. Returns None if the row is not this user's."""
        changes = data.model_dump(exclude_unset=True)
        assignments = []
        params: list = []
        for column, value in changes.items():
            if value is None and column in REQUIRED_COLUMNS:
                continue
            if column == "type":
                value = TransactionType(value).value
            elif column == "date":
                value = value.isoformat()
            assignments.append(f"{column} = ?")
            params.append(value)

        if assignments:
            with self._db._get_connection() as conn:
                cursor = conn.execute(
                    f"UPDATE transactions SET {', '.join(assignments)} WHERE id = ? AND user_id = ?",
                    [*params, transaction_id, self.user_id],
                )
                conn.commit()
                if cursor.rowcount == 0:
                    return None

        return self.get(transaction_id)

    def delete(self, transaction_id: int) -> int:
        """Delete a transaction. Returns the number of rows removed (0 or 1)."""
        with self._db._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE id = ? AND user_id = ?",
                (transaction_id, self.user_id),
            )
            conn.commit()
            return cursor.rowcount

    def summary(self, start: date, end: date, type: TransactionType) -> list[CategoryTotal]:
        """Get totals by category for one transaction type."""
        where, params = self._where(start, end)
        where += " AND type = ?"
        params.append(type.value)

        with self._db._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT COALESCE(category, ?) AS category, SUM(amount) AS total
                FROM transactions
                WHERE {where}
                GROUP BY COALESCE(category, ?)
                ORDER BY total DESC, category ASC
                """,
                [UNCATEGORIZED, *params, UNCATEGORIZED],
            )
            return [CategoryTotal(category=row["category"], total=row["total"]) for row in cursor.fetchall()]

    def categories(self, start: date, end: date) -> list[str]:
        """Get the distinct categories used in the date range."""
        where, params = self._where(start, end)
        with self._db._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT DISTINCT category FROM transactions
                WHERE {where} AND category IS NOT NULL AND category != ''
                ORDER BY category ASC
                """,
                params,
            )
            return [row["category"] for row in cursor.fetchall()]

    def count(self) -> int:
        with self._db._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) AS count FROM transactions WHERE user_id = ?", (self.user_id,))
            return cursor.fetchone()["count"]


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_transaction(row: sqlite3.Row) -> Transaction:
    """Convert a database row to a Transaction model."""
    return Transaction(
        id=row["id"],
        user_id=row["user_id"],
        type=TransactionType(row["type"]),
        category=row["category"],
        amount=row["amount"],
        description=row["description"],
        date=date.fromisoformat(row["date"]),
        created_at=row["created_at"],
    )


@lru_cache
def get_database() -> Database:
    """Get the process-wide database, created on first use."""
    return Database()
