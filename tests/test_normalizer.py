"""
Tests for turning raw model replies into ExtractedInvoice payloads.
"""

import json
import pytest
from invoice_extractor.core.errors import ParseError, ValidationError
from invoice_extractor.services.normalizer import extract_json_object, normalize_reply
from tests.conftest import invoice_reply


def test_plain_json_reply():
    extracted = normalize_reply(json.dumps(invoice_reply()))

    assert extracted.supplier_name == "ACME Corp"
    assert extracted.currency == "EUR"
    assert extracted.total == 120.0
    assert extracted.confidence == 0.93
    assert [item.description for item in extracted.line_items] == ["Widget", "Gadget"]
    assert extracted.line_items[0].unit_price == 25.0


def test_reply_wrapped_in_markdown_and_prose():
    reply = "Here is the data you asked for:\n```json\n" + json.dumps(invoice_reply()) + "\n```\nLet me know!"

    extracted = normalize_reply(reply)

    assert extracted.invoice_number == "INV-001"


def test_prose_only_reply_is_parse_error():
    with pytest.raises(ParseError):
        normalize_reply("I could not read this invoice, sorry.")


def test_malformed_json_is_parse_error():
    with pytest.raises(ParseError) as exc:
        normalize_reply('{"supplierName": "ACME", "total": }')
    assert exc.value.kind == "parse_error"


def test_closing_brace_before_opening_is_parse_error():
    with pytest.raises(ParseError):
        extract_json_object("} nothing here {")


def test_json_array_is_not_an_object():
    # first "{" to last "}" yields a list-shaped fragment that is not valid JSON on its own
    with pytest.raises(ParseError):
        extract_json_object('[{"a": 1}, {"b": 2}]')


@pytest.mark.parametrize("currency", [None, "", "__missing__"])
def test_currency_defaults_to_usd(currency):
    data = invoice_reply(currency=currency)
    if currency == "__missing__":
        del data["currency"]

    extracted = normalize_reply(json.dumps(data))

    assert extracted.currency == "USD"


def test_missing_confidence_defaults_to_zero():
    data = invoice_reply()
    del data["confidence"]

    assert normalize_reply(json.dumps(data)).confidence == 0.0


@pytest.mark.parametrize("confidence", [1.5, -0.1])
def test_out_of_range_confidence_is_rejected(confidence):
    with pytest.raises(ValidationError) as exc:
        normalize_reply(json.dumps(invoice_reply(confidence=confidence)))
    assert exc.value.fields == ["confidence"]


def test_line_item_missing_unit_price_names_the_field():
    data = invoice_reply()
    del data["lineItems"][1]["unitPrice"]

    with pytest.raises(ValidationError) as exc:
        normalize_reply(json.dumps(data))

    assert exc.value.fields == ["lineItems.1.unitPrice"]
    assert "unitPrice" in exc.value.message


def test_missing_line_items_defaults_to_empty():
    data = invoice_reply()
    del data["lineItems"]

    assert normalize_reply(json.dumps(data)).line_items == []


def test_quoted_amount_is_not_coerced():
    with pytest.raises(ValidationError) as exc:
        normalize_reply(json.dumps(invoice_reply(total="120.00")))
    assert exc.value.fields == ["total"]


def test_numeric_supplier_name_is_rejected():
    with pytest.raises(ValidationError) as exc:
        normalize_reply(json.dumps(invoice_reply(supplierName=12345)))
    assert exc.value.fields == ["supplierName"]


def test_nullable_fields_accept_null():
    data = invoice_reply(supplierName=None, dueDate=None, subtotal=None, taxAmount=None, total=None)

    extracted = normalize_reply(json.dumps(data))

    assert extracted.supplier_name is None
    assert extracted.due_date is None
    assert extracted.total is None


def test_totals_are_not_reconciled():
    data = invoice_reply(subtotal=10.0, taxAmount=1.0, total=999.0)
    data["lineItems"] = [{"description": "Odd", "quantity": 3, "unitPrice": 2.0, "lineTotal": 1.0}]

    extracted = normalize_reply(json.dumps(data))

    assert extracted.total == 999.0
    assert extracted.line_items[0].line_total == 1.0


def test_multiple_violations_are_all_reported():
    data = invoice_reply(confidence=2, currency=5)

    with pytest.raises(ValidationError) as exc:
        normalize_reply(json.dumps(data))

    assert sorted(exc.value.fields) == ["confidence", "currency"]


def test_unknown_keys_are_ignored():
    extracted = normalize_reply(json.dumps(invoice_reply(notes="paid by card")))
    assert not hasattr(extracted, "notes")


def test_snake_case_line_item_keys_are_rejected():
    data = invoice_reply(lineItems=[{"description": "Widget", "quantity": 1, "unit_price": 2.0, "line_total": 2.0}])

    with pytest.raises(ValidationError) as exc:
        normalize_reply(json.dumps(data))

    assert sorted(exc.value.fields) == ["lineItems.0.lineTotal", "lineItems.0.unitPrice"]


def test_snake_case_invoice_keys_are_not_read():
    data = invoice_reply()
    data["tax_amount"] = data.pop("taxAmount")

    extracted = normalize_reply(json.dumps(data))

    assert extracted.tax_amount is None
