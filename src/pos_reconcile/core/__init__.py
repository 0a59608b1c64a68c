"""Aggregation and journal-building engine."""

from pos_reconcile.core.aggregation import (
    THRESHOLD,
    PaymentMethodNet,
    StockCategoryNet,
    aggregate_invoices,
    aggregate_receipts,
)
from pos_reconcile.core.journal import (
    BuiltLines,
    JournalAssembly,
    JournalLine,
    ManualJournal,
    TaxSplit,
    TaxType,
    assemble_manual_journal,
    build_invoice_lines,
    build_receipt_lines,
    split_tax,
)

__all__ = [
    "THRESHOLD",
    "PaymentMethodNet",
    "StockCategoryNet",
    "aggregate_invoices",
    "aggregate_receipts",
    "BuiltLines",
    "JournalAssembly",
    "JournalLine",
    "ManualJournal",
    "TaxSplit",
    "TaxType",
    "assemble_manual_journal",
    "build_invoice_lines",
    "build_receipt_lines",
    "split_tax",
]
