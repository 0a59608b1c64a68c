"""Configuration module for the POS reconciliation job."""

from pos_reconcile.config.logging import configure_logging
from pos_reconcile.config.reference import (
    Branch,
    PaymentMethod,
    ReferenceTables,
    StockCategory,
    load_reference_tables,
)
from pos_reconcile.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "Branch",
    "PaymentMethod",
    "ReferenceTables",
    "StockCategory",
    "load_reference_tables",
]
