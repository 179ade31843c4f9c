from typing import Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from loguru import logger
from ..deps import get_invoice_service
from ..uploads import validate_upload
from ...core.config import settings
from ...models.invoice import InvoiceRecord, InvoiceUpdate
from ...services.invoice_service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _serialize(invoice: InvoiceRecord) -> dict:
    return invoice.model_dump(by_alias=True, mode="json")


async def _read_upload(file: Optional[UploadFile]) -> tuple[bytes, str, str]:
    content = await file.read() if file else b""
    file_name = file.filename if file else None
    media_type = file.content_type if file else None
    validate_upload(file_name, media_type, len(content), settings.max_file_size_bytes)
    return content, file_name, media_type


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload(
    file: UploadFile = File(None),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Store an invoice file and create its record in UPLOADED status."""
    content, file_name, media_type = await _read_upload(file)
    invoice = service.create_invoice(content, file_name, media_type)
    return {
        "success": True,
        "message": "Invoice uploaded successfully",
        "data": _serialize(invoice),
    }


@router.post("/upload-and-extract", status_code=status.HTTP_201_CREATED)
async def upload_and_extract(
    file: UploadFile = File(None),
    provider: Optional[str] = Query(None),
    service: InvoiceService = Depends(get_invoice_service),
):
    """
    Upload then extract in one call.

    If extraction fails the error is returned, but the created record is
    kept (in ERROR) so the caller can retry with POST /invoices/{id}/extract.
    """
    content, file_name, media_type = await _read_upload(file)
    invoice = service.create_invoice(content, file_name, media_type)
    extracted = await service.extract_invoice(invoice.id, provider)
    return {
        "success": True,
        "message": "Invoice uploaded and extracted successfully",
        "data": _serialize(extracted),
    }


@router.post("/{invoice_id}/extract")
async def extract(
    invoice_id: str,
    provider: Optional[str] = Query(None),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Run (or re-run) extraction on an existing invoice."""
    invoice = await service.extract_invoice(invoice_id, provider)
    return {
        "success": True,
        "message": "Invoice data extracted successfully",
        "data": _serialize(invoice),
    }


@router.get("/{invoice_id}")
async def get_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    return {"success": True, "data": _serialize(service.get_invoice(invoice_id))}


@router.get("")
async def list_invoices(
    page: int = Query(1),
    limit: int = Query(10),
    service: InvoiceService = Depends(get_invoice_service),
):
    """List invoices, newest first."""
    invoices, pagination = service.list_invoices(page, limit)
    logger.debug("Listed invoices", page=page, limit=limit, total=pagination.total)
    return {
        "success": True,
        "data": [_serialize(invoice) for invoice in invoices],
        "pagination": pagination.model_dump(by_alias=True),
    }


@router.put("/{invoice_id}")
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    service: InvoiceService = Depends(get_invoice_service),
):
    """
    Apply reviewer corrections.

    Example request:
    {
        "supplierName": "ACME Corp",
        "dueDate": null,
        "lineItems": [
            {"description": "Widget", "quantity": 2, "unitPrice": 5.0, "lineTotal": 10.0}
        ]
    }

    Keys that are omitted keep their stored value; null clears the field.
    Status becomes SAVED unless "status" is given.
    """
    invoice = service.update_invoice(invoice_id, body)
    return {
        "success": True,
        "message": "Invoice updated successfully",
        "data": _serialize(invoice),
    }


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    service.delete_invoice(invoice_id)
    return {"success": True, "message": "Invoice deleted successfully"}
