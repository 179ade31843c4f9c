"""
Invoice lifecycle: upload, extraction, review edits, deletion.

Status flow:

    UPLOADED -> PROCESSING -> EXTRACTED | ERROR
    any      -> SAVED (or an explicit status) on update

Every operation leaves the record in a settled status before returning.
PROCESSING is committed before the provider is called, and any failure
after that point (including cancellation) flips the record to ERROR
before the error propagates.
"""

import asyncio
import json
import math
from collections import Counter
from contextlib import asynccontextmanager
from typing import Optional
from loguru import logger
from .invoice_types import ExtractedInvoice
from .normalizer import normalize_reply
from .providers import ProviderRegistry
from .storage import InvoiceStoreBase, LocalFileStore, SQLiteInvoiceStore
from ..core.config import Settings
from ..core.errors import ExtractionError, NotFoundError, ValidationError
from ..models.invoice import InvoiceRecord, InvoiceStatus, InvoiceUpdate, Pagination


class InvoiceService:
    def __init__(
        self,
        store: InvoiceStoreBase,
        files: LocalFileStore,
        providers: ProviderRegistry,
        extraction_timeout: Optional[float] = None,
        max_page_size: int = 100,
    ):
        self.store = store
        self.files = files
        self.providers = providers
        self.extraction_timeout = extraction_timeout
        self.max_page_size = max_page_size
        # one lock per invoice with an extraction running or waiting; dropped when the last caller leaves
        self._extraction_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter = Counter()

    def create_invoice(self, content: bytes, file_name: str, media_type: str) -> InvoiceRecord:
        file_path = self.files.save(content, file_name)
        invoice = self.store.create_invoice(
            file_name=file_name,
            file_type=media_type,
            file_size=len(content),
            file_path=file_path,
        )
        logger.info(
            "Invoice uploaded",
            invoice_id=invoice.id,
            file_name=file_name,
            file_type=media_type,
            size_bytes=len(content),
        )
        return invoice

    def get_invoice(self, invoice_id: str) -> InvoiceRecord:
        invoice = self.store.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    async def extract_invoice(self, invoice_id: str, provider_name: Optional[str] = None) -> InvoiceRecord:
        """
        Run the document through a provider and store the normalized result.

        Re-extraction is allowed from any status, including a PROCESSING
        left behind by a crashed process. Calls for the same invoice are
        serialized; the later one sees the earlier one's result.

        Raises:
            NotFoundError: invoice does not exist (record untouched)
            ProviderConfigurationError, ExtractionError, ParseError, ValidationError:
                record is left in ERROR
        """
        self.get_invoice(invoice_id)

        async with self._extraction_lock(invoice_id):
            invoice = self.get_invoice(invoice_id)
            self._set_status(invoice_id, InvoiceStatus.PROCESSING)

            try:
                provider = self.providers.get(provider_name)
                content = self._read_document(invoice)

                logger.info("Extraction started", invoice_id=invoice_id, provider=provider.name)
                reply = await self._call_provider(provider, content, invoice.file_type)
                extracted = normalize_reply(reply.text)

                self._save_extraction(invoice_id, extracted, json.dumps(reply.raw), provider.name)
            except (Exception, asyncio.CancelledError) as e:
                logger.error(
                    "Extraction failed",
                    invoice_id=invoice_id,
                    provider=provider_name or self.providers.settings.llm_provider,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                self._set_status(invoice_id, InvoiceStatus.ERROR)
                raise

            logger.info(
                "Extraction completed",
                invoice_id=invoice_id,
                provider=provider.name,
                confidence=extracted.confidence,
                line_items=len(extracted.line_items),
            )
            return self.get_invoice(invoice_id)

    def update_invoice(self, invoice_id: str, update: InvoiceUpdate) -> InvoiceRecord:
        """
        Apply reviewer corrections.

        Only fields present in the request are written; an explicit null
        clears a field. Status defaults to SAVED. Line items, when sent,
        replace the existing set entirely.
        """
        self.get_invoice(invoice_id)

        fields = update.model_dump(exclude_unset=True)
        line_items = update.line_items if fields.pop("line_items", None) is not None else None
        fields["status"] = fields.get("status") or InvoiceStatus.SAVED

        if not self.store.update_invoice(invoice_id, fields, line_items):
            raise NotFoundError(f"Invoice {invoice_id} not found")

        logger.info(
            "Invoice updated",
            invoice_id=invoice_id,
            fields=sorted(k for k in fields if k != "status"),
            status=fields["status"].value,
            replaced_line_items=line_items is not None,
        )
        return self.get_invoice(invoice_id)

    def delete_invoice(self, invoice_id: str) -> None:
        invoice = self.get_invoice(invoice_id)

        try:
            self.files.delete(invoice.file_path)
        except OSError as e:
            logger.warning("Failed to delete file: {}", invoice.file_path, invoice_id=invoice_id, error=str(e))

        self.store.delete_invoice(invoice_id)
        logger.info("Invoice deleted", invoice_id=invoice_id)

    def list_invoices(self, page: int = 1, limit: int = 10) -> tuple[list[InvoiceRecord], Pagination]:
        if page < 1:
            raise ValidationError("page must be >= 1", details=[{"field": "page", "message": "must be >= 1"}])
        if limit < 1 or limit > self.max_page_size:
            raise ValidationError(
                f"limit must be between 1 and {self.max_page_size}",
                details=[{"field": "limit", "message": f"must be between 1 and {self.max_page_size}"}],
            )

        total = self.store.count_invoices()
        invoices = self.store.list_invoices(offset=(page - 1) * limit, limit=limit)
        pagination = Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))
        return invoices, pagination

    @asynccontextmanager
    async def _extraction_lock(self, invoice_id: str):
        lock = self._extraction_locks.setdefault(invoice_id, asyncio.Lock())
        self._lock_users[invoice_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[invoice_id] -= 1
            if not self._lock_users[invoice_id]:
                del self._lock_users[invoice_id]
                del self._extraction_locks[invoice_id]

    def _set_status(self, invoice_id: str, status: InvoiceStatus) -> None:
        self.store.set_status(invoice_id, status)
        logger.debug("Invoice status changed", invoice_id=invoice_id, status=status.value)

    def _read_document(self, invoice: InvoiceRecord) -> bytes:
        try:
            return self.files.read(invoice.file_path)
        except OSError as e:
            raise ExtractionError(f"Could not read stored document {invoice.file_name}: {e}")

    async def _call_provider(self, provider, content: bytes, media_type: str):
        if self.extraction_timeout is None:
            return await provider.extract(content, media_type)
        try:
            return await asyncio.wait_for(provider.extract(content, media_type), timeout=self.extraction_timeout)
        except TimeoutError:
            raise ExtractionError(f"{provider.name} did not respond within {self.extraction_timeout:g}s")

    def _save_extraction(self, invoice_id: str, extracted: ExtractedInvoice, raw_json: str, provider_name: str) -> None:
        fields = extracted.record_fields()
        fields.update(
            status=InvoiceStatus.EXTRACTED,
            raw_llm_json=raw_json,
            llm_provider=provider_name,
        )
        line_items = [item.to_line_item() for item in extracted.line_items]
        if not self.store.update_invoice(invoice_id, fields, line_items):
            raise NotFoundError(f"Invoice {invoice_id} not found")


def build_invoice_service(settings: Settings) -> InvoiceService:
    """Wire the production service graph from settings."""
    return InvoiceService(
        store=SQLiteInvoiceStore(settings.database_path),
        files=LocalFileStore(settings.upload_dir),
        providers=ProviderRegistry(settings),
        extraction_timeout=settings.extraction_timeout_seconds,
        max_page_size=settings.max_page_size,
    )
