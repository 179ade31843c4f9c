"""
SQLite-based invoice storage for production use.

Provides persistent storage of invoice records and their line items.
Line items live in their own table and are removed with their invoice
through ON DELETE CASCADE.
"""

import sqlite3
import uuid
from datetime import datetime, UTC
from typing import Optional
from .invoice_store_base import InvoiceStoreBase, check_fields
from ...models.invoice import InvoiceRecord, InvoiceStatus, LineItem

INVOICE_COLUMNS = """
    id, status, file_name, file_type, file_size, file_path,
    supplier_name, invoice_number, invoice_date, due_date, currency,
    subtotal, tax_amount, total, confidence, raw_llm_json, llm_provider,
    created_at, updated_at
"""


class SQLiteInvoiceStore(InvoiceStoreBase):
    """
    SQLite-backed invoice store with persistent storage.

    Features:
    - Persistent storage across application restarts
    - Field updates and line item replacement in a single transaction
    - Cascading deletion of line items
    """

    def __init__(self, db_path: str = "invoices.db"):
        """
        Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (default: invoices.db)
        """
        self.db_path = db_path
        self._init_database()

    def _init_database(self):
        """Create tables if they don't exist"""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS invoices (
                id TEXT PRIMARY KEY,
                status TEXT NOT NULL DEFAULT 'UPLOADED',
                file_name TEXT NOT NULL,
                file_type TEXT NOT NULL,
                file_size INTEGER NOT NULL,
                file_path TEXT NOT NULL,
                supplier_name TEXT,
                invoice_number TEXT,
                invoice_date TEXT,
                due_date TEXT,
                currency TEXT,
                subtotal REAL,
                tax_amount REAL,
                total REAL,
                confidence REAL,
                raw_llm_json TEXT,
                llm_provider TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                CHECK (status IN ('UPLOADED', 'PROCESSING', 'EXTRACTED', 'NEEDS_REVIEW', 'SAVED', 'ERROR'))
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS line_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                invoice_id TEXT NOT NULL REFERENCES invoices(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                description TEXT NOT NULL,
                quantity REAL NOT NULL,
                unit_price REAL NOT NULL,
                line_total REAL NOT NULL
            )
        """)

        # Create indexes for common queries
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_invoices_created_at
            ON invoices(created_at)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_line_items_invoice_id
            ON line_items(invoice_id)
        """)

        conn.commit()
        conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory and foreign keys enforced"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _fetch_line_items(self, cursor: sqlite3.Cursor, invoice_id: str) -> list[LineItem]:
        cursor.execute("""
            SELECT description, quantity, unit_price, line_total
            FROM line_items
            WHERE invoice_id = ?
            ORDER BY position
        """, (invoice_id,))
        return [
            LineItem(
                description=row["description"],
                quantity=row["quantity"],
                unit_price=row["unit_price"],
                line_total=row["line_total"],
            )
            for row in cursor.fetchall()
        ]

    def _row_to_record(self, row: sqlite3.Row, line_items: list[LineItem]) -> InvoiceRecord:
        data = {key: row[key] for key in row.keys()}
        data["status"] = InvoiceStatus(data["status"])
        return InvoiceRecord(**data, line_items=line_items)

    def create_invoice(self, file_name: str, file_type: str, file_size: int, file_path: str) -> InvoiceRecord:
        """
        Create a new record in UPLOADED status.

        Returns:
            The created record
        """
        invoice_id = str(uuid.uuid4())
        now = datetime.now(UTC).isoformat()

        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            INSERT INTO invoices (id, status, file_name, file_type, file_size, file_path, created_at, updated_at)
            VALUES (?, 'UPLOADED', ?, ?, ?, ?, ?, ?)
        """, (invoice_id, file_name, file_type, file_size, file_path, now, now))

        conn.commit()
        conn.close()

        return self.get_invoice(invoice_id)

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        """
        Get a record with its line items.

        Returns:
            The record, or None if not found
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(f"SELECT {INVOICE_COLUMNS} FROM invoices WHERE id = ?", (invoice_id,))
        row = cursor.fetchone()

        record = None
        if row is not None:
            record = self._row_to_record(row, self._fetch_line_items(cursor, invoice_id))

        conn.close()
        return record

    def list_invoices(self, offset: int, limit: int) -> list[InvoiceRecord]:
        """
        List records newest first (rowid breaks ties between equal timestamps).
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(f"""
            SELECT {INVOICE_COLUMNS}
            FROM invoices
            ORDER BY created_at DESC, rowid DESC
            LIMIT ? OFFSET ?
        """, (limit, offset))

        rows = cursor.fetchall()
        records = [self._row_to_record(row, self._fetch_line_items(cursor, row["id"])) for row in rows]

        conn.close()
        return records

    def count_invoices(self) -> int:
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM invoices")
        total = cursor.fetchone()[0]
        conn.close()
        return total

    def update_invoice(self, invoice_id: str, fields: dict, line_items: Optional[list[LineItem]] = None) -> bool:
        """
        Apply field changes and optionally replace all line items in one transaction.

        Returns:
            True if successful, False if the record was not found
        """
        check_fields(fields)

        values = {
            key: value.value if isinstance(value, InvoiceStatus) else value
            for key, value in fields.items()
        }
        values["updated_at"] = datetime.now(UTC).isoformat()
        assignments = ", ".join(f"{column} = ?" for column in values)

        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(
                f"UPDATE invoices SET {assignments} WHERE id = ?",
                (*values.values(), invoice_id),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                return False

            if line_items is not None:
                cursor.execute("DELETE FROM line_items WHERE invoice_id = ?", (invoice_id,))
                cursor.executemany("""
                    INSERT INTO line_items (invoice_id, position, description, quantity, unit_price, line_total)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, [
                    (invoice_id, position, item.description, item.quantity, item.unit_price, item.line_total)
                    for position, item in enumerate(line_items)
                ])

            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        return True

    def delete_invoice(self, invoice_id: str) -> bool:
        """
        Delete a record; line items go with it via ON DELETE CASCADE.

        Returns:
            True if deleted, False if the record was not found
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))

        rows_affected = cursor.rowcount
        conn.commit()
        conn.close()

        return rows_affected > 0
