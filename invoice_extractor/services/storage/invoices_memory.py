"""
In-memory invoice storage (for tests and demos).
In production, use the SQLite store or a real database.
"""
from datetime import datetime, UTC
from threading import Lock
from typing import Dict, Optional
import uuid
from .invoice_store_base import InvoiceStoreBase, check_fields
from ...models.invoice import InvoiceRecord, InvoiceStatus, LineItem


class InMemoryInvoiceStore(InvoiceStoreBase):
    def __init__(self):
        self._invoices: Dict[str, InvoiceRecord] = {}
        self._lock = Lock()

    def create_invoice(self, file_name: str, file_type: str, file_size: int, file_path: str) -> InvoiceRecord:
        now = datetime.now(UTC).isoformat()
        record = InvoiceRecord(
            id=str(uuid.uuid4()),
            status=InvoiceStatus.UPLOADED,
            file_name=file_name,
            file_type=file_type,
            file_size=file_size,
            file_path=file_path,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._invoices[record.id] = record
        return record.model_copy(deep=True)

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        record = self._invoices.get(invoice_id)
        return record.model_copy(deep=True) if record else None

    def list_invoices(self, offset: int, limit: int) -> list[InvoiceRecord]:
        # dicts keep insertion order, so reversing gives newest first
        newest_first = list(reversed(self._invoices.values()))
        return [r.model_copy(deep=True) for r in newest_first[offset:offset + limit]]

    def count_invoices(self) -> int:
        return len(self._invoices)

    def update_invoice(self, invoice_id: str, fields: dict, line_items: Optional[list[LineItem]] = None) -> bool:
        check_fields(fields)
        with self._lock:
            record = self._invoices.get(invoice_id)
            if record is None:
                return False

            changes = dict(fields, updated_at=datetime.now(UTC).isoformat())
            if line_items is not None:
                changes["line_items"] = [item.model_copy() for item in line_items]
            self._invoices[invoice_id] = record.model_copy(update=changes, deep=True)
        return True

    def delete_invoice(self, invoice_id: str) -> bool:
        with self._lock:
            return self._invoices.pop(invoice_id, None) is not None
