from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InvoiceStatus(str, Enum):
    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    EXTRACTED = "EXTRACTED"
    NEEDS_REVIEW = "NEEDS_REVIEW"  # reserved for low-confidence review, not set by the pipeline
    SAVED = "SAVED"
    ERROR = "ERROR"


class LineItem(CamelModel):
    description: str
    quantity: float
    unit_price: float
    line_total: float


class InvoiceRecord(CamelModel):
    id: str
    status: InvoiceStatus = InvoiceStatus.UPLOADED

    file_name: str
    file_type: str
    file_size: int
    file_path: str

    supplier_name: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    currency: Optional[str] = None
    subtotal: Optional[float] = None
    tax_amount: Optional[float] = None
    total: Optional[float] = None
    confidence: Optional[float] = None

    raw_llm_json: Optional[str] = None  # audit only, never parsed again
    llm_provider: Optional[str] = None

    created_at: str
    updated_at: str

    line_items: list[LineItem] = Field(default_factory=list)


class InvoiceUpdate(CamelModel):
    """
    Partial update from a reviewer.

    Only fields the caller actually sent are applied: use
    ``model_dump(exclude_unset=True)`` so an explicit ``null`` clears a
    field while an omitted key leaves it alone.
    """
    supplier_name: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    currency: Optional[str] = None
    subtotal: Optional[float] = None
    tax_amount: Optional[float] = None
    total: Optional[float] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    line_items: Optional[list[LineItem]] = None
    status: Optional[InvoiceStatus] = None

    @field_validator("currency", "confidence", "line_items")
    @classmethod
    def not_null_when_sent(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @field_validator("status")
    @classmethod
    def not_processing(cls, value):
        # PROCESSING only exists while an extraction is running
        if value == InvoiceStatus.PROCESSING:
            raise ValueError("status cannot be set to PROCESSING")
        return value


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(serialization_alias="totalPages")
