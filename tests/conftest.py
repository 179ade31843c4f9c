"""
Pytest configuration and shared fixtures.

This file registers custom pytest markers and command-line options, and
provides an in-process service graph wired to a scripted provider.
"""

import json
import fitz
import pytest
from fastapi.testclient import TestClient
from invoice_extractor.api.main import create_app
from invoice_extractor.core.config import Settings
from invoice_extractor.services.invoice_service import InvoiceService
from invoice_extractor.services.invoice_types import ProviderReply
from invoice_extractor.services.providers import ProviderRegistry
from invoice_extractor.services.storage import InMemoryInvoiceStore, LocalFileStore


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against real LLM providers"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring real provider API keys"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class ScriptedProvider:
    """Returns queued replies in order; an Exception in the queue is raised instead."""

    def __init__(self, name: str = "scripted"):
        self.name = name
        self.replies: list = []
        self.calls: list[tuple[bytes, str]] = []

    def queue(self, reply) -> "ScriptedProvider":
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        self.replies.append(reply)
        return self

    async def extract(self, content: bytes, media_type: str) -> ProviderReply:
        self.calls.append((content, media_type))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ProviderReply(text=reply, raw={"text": reply})


def invoice_reply(**overrides) -> dict:
    reply = {
        "supplierName": "ACME Corp",
        "invoiceNumber": "INV-001",
        "invoiceDate": "2025-09-30",
        "dueDate": "2025-10-30",
        "currency": "EUR",
        "subtotal": 100.0,
        "taxAmount": 20.0,
        "total": 120.0,
        "lineItems": [
            {"description": "Widget", "quantity": 2, "unitPrice": 25.0, "lineTotal": 50.0},
            {"description": "Gadget", "quantity": 1, "unitPrice": 50.0, "lineTotal": 50.0},
        ],
        "confidence": 0.93,
    }
    reply.update(overrides)
    return reply


def make_pdf(text: str = "") -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def settings():
    return Settings(llm_provider="scripted", openai_api_key=None, gemini_api_key=None)


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def store():
    return InMemoryInvoiceStore()


@pytest.fixture
def files(tmp_path):
    return LocalFileStore(str(tmp_path / "uploads"))


@pytest.fixture
def service(settings, provider, store, files):
    registry = ProviderRegistry(settings, factories={"scripted": lambda s: provider})
    return InvoiceService(store=store, files=files, providers=registry, extraction_timeout=5)


@pytest.fixture
def client(service):
    return TestClient(create_app(service))
