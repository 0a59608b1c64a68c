"""POS Reconcile - daily POS trading to balanced ledger journals."""

__version__ = "0.1.0"

from pos_reconcile.clients import OptomateClient, XeroClient
from pos_reconcile.config import configure_logging, get_settings, load_reference_tables
from pos_reconcile.core import (
    JournalLine,
    ManualJournal,
    TaxType,
    aggregate_invoices,
    aggregate_receipts,
    assemble_manual_journal,
    build_invoice_lines,
    build_receipt_lines,
)
from pos_reconcile.reconciler import BranchResult, DailyReconciler

__all__ = [
    # Version
    "__version__",
    # Engine
    "aggregate_invoices",
    "aggregate_receipts",
    "build_invoice_lines",
    "build_receipt_lines",
    "assemble_manual_journal",
    "JournalLine",
    "ManualJournal",
    "TaxType",
    # Clients
    "OptomateClient",
    "XeroClient",
    # Orchestration
    "DailyReconciler",
    "BranchResult",
    # Config
    "get_settings",
    "configure_logging",
    "load_reference_tables",
]
