from dataclasses import dataclass, field
from typing import Annotated, Any, Optional
from pydantic import BeforeValidator, ConfigDict, Field, Strict, field_validator
from ..models.invoice import CamelModel, LineItem


def _require_number(value):
    # Model replies sometimes quote amounts ("12.50"); those are schema violations, not numbers.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    return value


Number = Annotated[float, BeforeValidator(_require_number)]
Text = Annotated[str, Strict()]


class ExtractedLineItem(CamelModel):
    # model replies must use the camelCase keys from the prompt
    model_config = ConfigDict(populate_by_name=False)

    description: Text
    quantity: Number
    unit_price: Number
    line_total: Number

    def to_line_item(self) -> LineItem:
        return LineItem(**self.model_dump())


class ExtractedInvoice(CamelModel):
    """Schema-conformant payload built from a model reply. Never persisted as-is."""
    model_config = ConfigDict(populate_by_name=False)

    supplier_name: Optional[Text] = None
    invoice_number: Optional[Text] = None
    invoice_date: Optional[Text] = None
    due_date: Optional[Text] = None
    currency: Optional[Text] = Field(default=None, validate_default=True)
    subtotal: Optional[Number] = None
    tax_amount: Optional[Number] = None
    total: Optional[Number] = None
    line_items: list[ExtractedLineItem] = Field(default_factory=list)
    confidence: Number = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("currency")
    @classmethod
    def default_currency(cls, value: Optional[str]) -> str:
        return value or "USD"

    def record_fields(self) -> dict:
        """Scalar fields copied onto the invoice record."""
        return self.model_dump(exclude={"line_items"})


@dataclass
class ProviderReply:
    """Raw model output plus a JSON-serializable artifact kept for audit."""
    text: str
    raw: Any = field(default=None)
