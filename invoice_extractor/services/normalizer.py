"""
Turns an untrusted model reply into an ExtractedInvoice.

Models are told to return bare JSON but routinely wrap it in prose or
markdown fences, so the reply is cut down to the span between the first
``{`` and the last ``}`` before parsing. Beyond the currency and
confidence defaults nothing is repaired: amounts are not reconciled and
quoted numbers are rejected.
"""

import json
from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from .invoice_types import ExtractedInvoice
from ..core.errors import ParseError, ValidationError


def extract_json_object(text: str) -> dict:
    """
    Locate and parse the JSON object embedded in a model reply.

    Raises:
        ParseError: no ``{...}`` span, malformed JSON, or a non-object value
    """
    start = text.find("{") if text else -1
    end = text.rfind("}") if text else -1
    if start == -1 or end < start:
        raise ParseError("Could not find a JSON object in the model response")

    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"Model response contained malformed JSON: {e.msg} (position {e.pos})")

    if not isinstance(parsed, dict):
        raise ParseError("Model response JSON is not an object")
    return parsed


def validate_payload(data: dict) -> ExtractedInvoice:
    """
    Validate a parsed reply against the invoice schema.

    Raises:
        ValidationError: naming every offending field path, e.g. ``lineItems.0.unitPrice``
    """
    try:
        return ExtractedInvoice.model_validate(data)
    except PydanticValidationError as e:
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        fields = ", ".join(d["field"] for d in details)
        logger.warning("Model response failed schema validation", fields=fields)
        raise ValidationError(f"Extracted data failed validation: {fields}", details=details)


def normalize_reply(text: str) -> ExtractedInvoice:
    return validate_payload(extract_json_object(text))
