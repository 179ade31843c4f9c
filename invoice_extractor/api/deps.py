from fastapi import Request
from ..services.invoice_service import InvoiceService


def get_invoice_service(request: Request) -> InvoiceService:
    """The service graph is built once per process and hung off app.state."""
    return request.app.state.invoice_service
