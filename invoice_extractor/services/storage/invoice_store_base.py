"""
Abstract base class for invoice record storage.

Defines the interface that all record stores must implement,
enabling dependency injection and easy swapping of storage backends.
"""

from abc import ABC, abstractmethod
from typing import Optional
from ...models.invoice import InvoiceRecord, InvoiceStatus, LineItem

# Columns a caller may change after creation. File metadata is immutable.
UPDATABLE_FIELDS = (
    "status",
    "supplier_name",
    "invoice_number",
    "invoice_date",
    "due_date",
    "currency",
    "subtotal",
    "tax_amount",
    "total",
    "confidence",
    "raw_llm_json",
    "llm_provider",
)


class InvoiceStoreBase(ABC):
    """
    Abstract base class for invoice records and their line items.

    Implementations can use:
    - In-memory storage (for testing/demo)
    - SQLite (for single-instance deployments)
    - PostgreSQL (for production)
    """

    @abstractmethod
    def create_invoice(self, file_name: str, file_type: str, file_size: int, file_path: str) -> InvoiceRecord:
        """
        Create a new record in UPLOADED status.

        Args:
            file_name: Original file name as uploaded
            file_type: Declared media type
            file_size: Size in bytes
            file_path: Location of the bytes in the raw document store

        Returns:
            The created record
        """
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        """
        Get a record with its line items.

        Returns:
            The record, or None if not found
        """
        pass

    @abstractmethod
    def list_invoices(self, offset: int, limit: int) -> list[InvoiceRecord]:
        """
        List records newest first.

        Args:
            offset: Number of records to skip
            limit: Maximum number of records to return
        """
        pass

    @abstractmethod
    def count_invoices(self) -> int:
        pass

    @abstractmethod
    def update_invoice(
        self,
        invoice_id: str,
        fields: dict,
        line_items: Optional[list[LineItem]] = None,
    ) -> bool:
        """
        Apply field changes and optionally replace all line items, atomically.

        Args:
            invoice_id: Record identifier
            fields: Column -> value; keys must be in UPDATABLE_FIELDS
            line_items: New complete set of items, or None to keep the current ones

        Returns:
            True if successful, False if the record was not found
        """
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: str) -> bool:
        """
        Delete a record and its line items.

        Returns:
            True if deleted, False if the record was not found
        """
        pass

    def set_status(self, invoice_id: str, status: InvoiceStatus) -> bool:
        return self.update_invoice(invoice_id, {"status": status})


def check_fields(fields: dict) -> None:
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise KeyError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
