"""
Contract shared by every extraction provider.

A provider is anything with a ``name`` and an async ``extract`` method;
there is no base class to inherit. The prompt construction below is the
part all backends have in common: images go to the model as-is, PDFs are
reduced to their text layer first.
"""

from dataclasses import dataclass
from typing import Optional, Protocol
from .pdf_text import extract_pdf_text
from ..invoice_types import ProviderReply
from ...core.errors import ExtractionError

IMAGE_MEDIA_TYPES = {"image/jpeg", "image/jpg", "image/png"}
PDF_MEDIA_TYPE = "application/pdf"

FIELD_INSTRUCTIONS = """Extract these fields:
- supplierName: The company/vendor name on the invoice
- invoiceNumber: The invoice number/ID
- invoiceDate: The invoice date (format: YYYY-MM-DD)
- dueDate: The payment due date (format: YYYY-MM-DD)
- currency: The ISO currency code (e.g., USD, EUR, INR)
- subtotal: The amount before tax (number)
- taxAmount: The tax amount (number)
- total: The total amount due (number)
- lineItems: Array of items, each with:
  - description: Item description
  - quantity: Quantity (number)
  - unitPrice: Price per unit (number)
  - lineTotal: Total for this line (number)
- confidence: Your confidence in the extraction accuracy (0-1)

IMPORTANT RULES:
1. Return ONLY a valid JSON object, no markdown or explanations
2. Use null for fields you cannot find
3. Write numbers without currency symbols or thousands separators
4. If a field is ambiguous, use your best judgment and lower confidence
5. Always include the confidence field (0-1 scale)

Return the JSON object directly."""

EXTRACTION_PROMPT = (
    "You are an invoice data extraction expert. Analyze the provided invoice "
    "image and extract the following information in JSON format.\n\n"
    + FIELD_INSTRUCTIONS
)

TEXT_EXTRACTION_PROMPT = (
    "You are an invoice data extraction expert. Analyze the following invoice "
    "text and extract structured data in JSON format.\n\n"
    + FIELD_INSTRUCTIONS
)


class ExtractionProvider(Protocol):
    name: str

    async def extract(self, content: bytes, media_type: str) -> ProviderReply:
        """Send the document to the model and return its raw reply."""
        ...


@dataclass
class Prompt:
    """What to send: instruction text, plus the image for the vision path."""
    text: str
    image: Optional[bytes] = None
    media_type: Optional[str] = None

    @property
    def is_vision(self) -> bool:
        return self.image is not None


def is_image(media_type: str) -> bool:
    return media_type in IMAGE_MEDIA_TYPES


def build_prompt(content: bytes, media_type: str) -> Prompt:
    """
    Choose the vision or text path for a document.

    Raises:
        ExtractionError: unsupported media type, or a PDF without usable text
    """
    if is_image(media_type):
        return Prompt(text=EXTRACTION_PROMPT, image=content, media_type=media_type)
    if media_type == PDF_MEDIA_TYPE:
        text = extract_pdf_text(content)
        return Prompt(text=f"{TEXT_EXTRACTION_PROMPT}\n\nInvoice Text:\n{text}")
    raise ExtractionError(f"Unsupported media type: {media_type}")
