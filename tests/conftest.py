"""Pytest configuration and fixtures."""

import os
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("OPTOMATE_API_BASE", "https://optomate.test/odata")
os.environ.setdefault("OPTOMATE_USERNAME", "optomate-user")
os.environ.setdefault("OPTOMATE_PASSWORD", "optomate-pass")
os.environ.setdefault("XERO_CLIENT_ID", "xero-client-id")
os.environ.setdefault("XERO_CLIENT_SECRET", "xero-client-secret")
os.environ.setdefault("XERO_TENANT_ID", "tenant-123")
os.environ.setdefault("XERO_REFRESH_TOKEN", "refresh-token-123")

from pos_reconcile.config.reference import (  # noqa: E402
    Branch,
    PaymentMethod,
    ReferenceTables,
    StockCategory,
    load_reference_tables,
)


@pytest.fixture
def reference() -> ReferenceTables:
    """The packaged reference tables."""
    return load_reference_tables()


@pytest.fixture
def small_reference() -> ReferenceTables:
    """A minimal hand-built reference table."""
    return ReferenceTables(
        clearing_account_code="18011",
        gst_multiplier=Decimal("11"),
        branches=(Branch("PA1", "Parramatta"), Branch("BON", "Bondi")),
        stock_categories={
            4: StockCategory(4, "Spectacle Lens", "40004"),
            5: StockCategory(5, "Contact Lens", "40005"),
        },
        payment_methods={
            "CAS": PaymentMethod("CAS", "Cash", "18000"),
            "VIS": PaymentMethod("VIS", "EFTPOS - Visa", "18001"),
        },
    )


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.request = AsyncMock()
    client.post = AsyncMock()
    client.get = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def mock_invoices_response():
    """Mock PatientInvoices OData response."""
    return {
        "value": [
            {
                "BRANCH_IDENTIFIER": "PA1",
                "SALE_DATE": "2025-11-23T01:15:00Z",
                "ITEMS": [
                    {"STOCK_TYPE_ID": 4, "TOTAL": 220.0, "GST_AMOUNT": 20.0},
                    {"STOCK_TYPE_ID": 5, "TOTAL": 100.0, "GST_AMOUNT": 0.0},
                ],
            }
        ]
    }


@pytest.fixture
def mock_receipts_response():
    """Mock PatientReceipts OData response."""
    return {
        "value": [
            {
                "BRANCH_IDENTIFIER": "PA1",
                "RECEIPT_DATE": "2025-11-23T01:20:00Z",
                "RECEIPT_ITEMS": [
                    {"PAYMENT_TYPE_CODE": "CAS", "AMOUNT": 50.0},
                    {"PAYMENT_TYPE_CODE": "VIS", "AMOUNT": 75.0},
                ],
            }
        ]
    }
