"""SQLite database operations for LoanLedger."""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from backend.config import settings
from backend.models import (
    ParserType,
    Statement,
    StatementStatus,
    StoredTransaction,
    TransactionCandidate,
)

# SQL schema
SCHEMA = """
CREATE TABLE IF NOT EXISTS statements (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    file_name TEXT NOT NULL,
    file_path TEXT NOT NULL,
    statement_date TEXT,
    source_type TEXT,
    status TEXT NOT NULL,
    error_message TEXT,
    date_processed TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_statements_status ON statements(status);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    statement_id INTEGER NOT NULL REFERENCES statements(id),
    transaction_date TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    check_number TEXT,
    amount REAL NOT NULL DEFAULT 0,
    principal REAL NOT NULL DEFAULT 0,
    interest REAL NOT NULL DEFAULT 0,
    capitalized_interest REAL NOT NULL DEFAULT 0,
    late_fees REAL NOT NULL DEFAULT 0,
    balance_after REAL,
    source TEXT NOT NULL,
    raw_ocr_text TEXT,
    verification_status TEXT NOT NULL DEFAULT 'Unverified',
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_transactions_statement ON transactions(statement_id);
CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(transaction_date);
"""

TRANSACTION_COLUMNS = """
    id, statement_id, transaction_date, description, check_number, amount,
    principal, interest, capitalized_interest, late_fees, balance_after,
    source, raw_ocr_text, verification_status
"""


class Database:
    """SQLite database manager.

    Write methods take an optional ``conn``. Without one they run in their own
    connection and commit; with one they join the caller's ``transaction()``.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or settings.db_path
        settings.ensure_directories()
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
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Run several writes atomically: commit on success, roll back on any error."""
        with self._get_connection() as conn:
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    @contextmanager
    def _write(self, conn: sqlite3.Connection | None) -> Generator[sqlite3.Connection, None, None]:
        if conn is not None:
            yield conn
            return
        with self._get_connection() as own_conn:
            yield own_conn
            own_conn.commit()

    def create_statement(
        self,
        file_name: str,
        file_path: str,
        statement_date: str | None,
        source_type: ParserType | None,
        status: StatementStatus,
        error_message: str | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> int:
        """Record a processed (or failed) document. Returns the new statement id."""
        with self._write(conn) as c:
            cursor = c.execute(
                """
                INSERT INTO statements
                (file_name, file_path, statement_date, source_type, status,
                error_message, date_processed) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    file_name,
                    str(file_path),
                    statement_date,
                    source_type.value if source_type else None,
                    status.value,
                    error_message,
                    _now(),
                ),
            )
            return cursor.lastrowid

    def update_statement(
        self,
        statement_id: int,
        status: StatementStatus,
        source_type: ParserType | None,
        error_message: str | None = None,
        statement_date: str | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        """Overwrite the outcome of a statement after reprocessing."""
        with self._write(conn) as c:
            c.execute(
                """
                UPDATE statements
                SET status = ?, source_type = ?, error_message = ?,
                    statement_date = ?, date_processed = ?
                WHERE id = ?
                """,
                (
                    status.value,
                    source_type.value if source_type else None,
                    error_message,
                    statement_date,
                    _now(),
                    statement_id,
                ),
            )

    def delete_transactions(self, statement_id: int, conn: sqlite3.Connection | None = None) -> int:
        """Delete every transaction of a statement. Returns the number removed."""
        with self._write(conn) as c:
            cursor = c.execute("DELETE FROM transactions WHERE statement_id = ?", (statement_id,))
            return cursor.rowcount

    def create_transaction(
        self,
        statement_id: int,
        transaction: TransactionCandidate,
        raw_text: str | None,
        source: ParserType,
        conn: sqlite3.Connection | None = None,
    ) -> int:
        """Persist a parsed transaction. Returns the new transaction id."""
        raw_ocr_text = raw_text[: settings.raw_text_limit] if raw_text else None
        with self._write(conn) as c:
            cursor = c.execute(
                """
                INSERT INTO transactions
                (statement_id, transaction_date, description, check_number, amount,
                principal, interest, capitalized_interest, late_fees, balance_after,
                source, raw_ocr_text) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    statement_id,
                    transaction.date,
                    transaction.description,
                    transaction.check_number,
                    transaction.amount,
                    transaction.principal,
                    transaction.interest,
                    transaction.capitalized_interest,
                    transaction.late_fees,
                    transaction.balance,
                    source.value,
                    raw_ocr_text,
                ),
            )
            return cursor.lastrowid

    def get_statement(self, statement_id: int) -> Statement | None:
        """Get a single statement by ID."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT s.*, COUNT(t.id) AS transaction_count
                FROM statements s
                LEFT JOIN transactions t ON t.statement_id = s.id
                WHERE s.id = ?
                GROUP BY s.id
                """,
                (statement_id,),
            )
            row = cursor.fetchone()
            return self._row_to_statement(row) if row else None

    def get_statements(self, limit: int = 1000) -> list[Statement]:
        """Get all statements with their transaction counts, newest first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT s.*, COUNT(t.id) AS transaction_count
                FROM statements s
                LEFT JOIN transactions t ON t.statement_id = s.id
                GROUP BY s.id
                ORDER BY s.date_processed DESC, s.id DESC
                LIMIT ?
                """,
                (limit,),
            )
            return [self._row_to_statement(row) for row in cursor.fetchall()]

    def get_transactions_for_statement(self, statement_id: int) -> list[StoredTransaction]:
        """Get a statement's transactions, most recent first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT {TRANSACTION_COLUMNS}
                FROM transactions
                WHERE statement_id = ?
                ORDER BY transaction_date DESC, id
                """,
                (statement_id,),
            )
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def get_transaction_count(self) -> int:
        """Get total number of transactions."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) as count FROM transactions")
            return cursor.fetchone()["count"]

    def _row_to_statement(self, row: sqlite3.Row) -> Statement:
        """Convert a database row to a Statement model."""
        return Statement(
            id=row["id"],
            file_name=row["file_name"],
            file_path=row["file_path"],
            statement_date=row["statement_date"],
            source_type=ParserType(row["source_type"]) if row["source_type"] else None,
            status=StatementStatus(row["status"]),
            error_message=row["error_message"],
            date_processed=row["date_processed"],
            transaction_count=row["transaction_count"],
        )

    def _row_to_transaction(self, row: sqlite3.Row) -> StoredTransaction:
        """Convert a database row to a StoredTransaction model."""
        return StoredTransaction(
            id=row["id"],
            statement_id=row["statement_id"],
            transaction_date=row["transaction_date"],
            description=row["description"],
            check_number=row["check_number"],
            amount=row["amount"],
            principal=row["principal"],
            interest=row["interest"],
            capitalized_interest=row["capitalized_interest"],
            late_fees=row["late_fees"],
            balance_after=row["balance_after"],
            source=ParserType(row["source"]),
            raw_ocr_text=row["raw_ocr_text"],
            verification_status=row["verification_status"],
        )


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


# Global database instance
db = Database()
