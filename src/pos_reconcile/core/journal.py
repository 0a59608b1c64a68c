"""Journal line construction and manual journal assembly.

Invoice nets produce two stages (taxable income, then GST-free income)
and receipt nets produce one. Every stage ends with a "POS Clearing"
line equal to the sum of its content lines, so each stage nets to zero
on its own.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

import structlog

from pos_reconcile.config.reference import ReferenceTables
from pos_reconcile.core.aggregation import (
    PaymentMethodNet,
    StockCategoryNet,
    aggregate_invoices,
    aggregate_receipts,
    exceeds_threshold,
)
from pos_reconcile.core.fields import ZERO

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
CLEARING_DESCRIPTION = "POS Clearing"
TRACKING_CATEGORY = "Store"
JOURNAL_STATUS = "DRAFT"
JOURNAL_NARRATION = "Daily Trading Sales and receipt"
LINE_AMOUNT_TYPES = "Inclusive"


class TaxType(str, Enum):
    """Xero tax types used on generated lines."""

    NONE = "NONE"
    OUTPUT = "OUTPUT"
    EXEMPTOUTPUT = "EXEMPTOUTPUT"


@dataclass(frozen=True)
class JournalLine:
    """One debit or credit line of a manual journal."""

    description: str
    line_amount: Decimal
    account_code: str
    tax_type: TaxType
    tracking_option: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "Description": self.description,
            "LineAmount": float(self.line_amount),
            "AccountCode": self.account_code,
            "TaxType": self.tax_type.value,
            "Tracking": [{"Name": TRACKING_CATEGORY, "Option": self.tracking_option}],
        }


@dataclass
class BuiltLines:
    """Lines produced by one builder plus any non-fatal warnings."""

    lines: list[JournalLine] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def extend(self, other: "BuiltLines") -> None:
        self.lines.extend(other.lines)
        self.warnings.extend(other.warnings)


@dataclass(frozen=True)
class TaxSplit:
    """Net sale value of a category split by GST treatment."""

    taxable_income: Decimal
    exempt_income: Decimal


def split_tax(net: StockCategoryNet, multiplier: Decimal) -> TaxSplit:
    """Split a category's net sale value into taxable and GST-free income.

    The GST amount scaled by the multiplier recovers the tax-inclusive
    value of the taxed sales; whatever remains of the net total was sold
    GST-free.
    """
    taxable = net.net_gst * multiplier
    return TaxSplit(taxable_income=taxable, exempt_income=net.net_total - taxable)


def _to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _clearing_line(total: Decimal, reference: ReferenceTables, branch_name: str) -> JournalLine:
    return JournalLine(
        description=CLEARING_DESCRIPTION,
        line_amount=total,
        account_code=reference.clearing_account_code,
        tax_type=TaxType.NONE,
        tracking_option=branch_name,
    )


def _build_stage(
    entries: Iterable[tuple[str, str, Decimal]],
    tax_type: TaxType,
    reference: ReferenceTables,
    branch_name: str,
) -> list[JournalLine]:
    """Emit one credit line per entry followed by the balancing clearing line.

    Each entry is (description, account code, signed amount). Amounts of
    0.01 or less in magnitude are suppressed; the rest are rounded to cents
    and the clearing line carries the sum of the rounded amounts.
    """
    lines: list[JournalLine] = []
    raw_total = ZERO
    stage_total = ZERO

    for description, account_code, amount in entries:
        if not exceeds_threshold(abs(amount)):
            continue
        magnitude = _to_cents(abs(amount))
        lines.append(
            JournalLine(
                description=description,
                line_amount=-magnitude,
                account_code=account_code,
                tax_type=tax_type,
                tracking_option=branch_name,
            )
        )
        raw_total += abs(amount)
        stage_total += magnitude

    if exceeds_threshold(raw_total):
        lines.append(_clearing_line(stage_total, reference, branch_name))
    return lines


def build_invoice_lines(
    category_nets: Mapping[int, StockCategoryNet],
    branch_name: str,
    reference: ReferenceTables,
) -> BuiltLines:
    """Build the taxable-income and GST-free-income stages for invoices.

    Args:
        category_nets: Net amounts per stock category id.
        branch_name: Tracking option for every line.
        reference: Lookup tables for account codes and descriptions.

    Returns:
        Stage 1 lines (OUTPUT + clearing) followed by stage 2 lines
        (EXEMPTOUTPUT + clearing), and a warning per unknown category.
    """
    result = BuiltLines()
    splits: list[tuple[str, str, TaxSplit]] = []

    for category_id in sorted(category_nets):
        category = reference.stock_category(category_id)
        if category is None:
            logger.warning(
                "unknown_stock_category",
                category_id=category_id,
                branch=branch_name,
            )
            result.warnings.append(
                f"No reference entry for stock category {category_id}; skipped"
            )
            continue
        split = split_tax(category_nets[category_id], reference.gst_multiplier)
        splits.append((category.description, category.account_code, split))

    result.lines.extend(
        _build_stage(
            ((desc, code, split.taxable_income) for desc, code, split in splits),
            TaxType.OUTPUT,
            reference,
            branch_name,
        )
    )
    result.lines.extend(
        _build_stage(
            ((desc, code, split.exempt_income) for desc, code, split in splits),
            TaxType.EXEMPTOUTPUT,
            reference,
            branch_name,
        )
    )
    return result


def build_receipt_lines(
    payment_nets: Mapping[str, PaymentMethodNet],
    branch_name: str,
    reference: ReferenceTables,
) -> BuiltLines:
    """Build the receipt stage: one line per payment method plus clearing."""
    result = BuiltLines()
    entries: list[tuple[str, str, Decimal]] = []

    for code in sorted(payment_nets):
        method = reference.payment_method(code)
        if method is None:
            logger.warning("unknown_payment_method", payment_code=code, branch=branch_name)
            result.warnings.append(f"No reference entry for payment code {code!r}; skipped")
            continue
        entries.append((method.description, method.account_code, payment_nets[code].net_amount))

    result.lines.extend(_build_stage(entries, TaxType.NONE, reference, branch_name))
    return result


@dataclass(frozen=True)
class ManualJournal:
    """A draft manual journal for one branch and trading day."""

    date: date
    lines: tuple[JournalLine, ...]
    status: str = JOURNAL_STATUS
    narration: str = JOURNAL_NARRATION
    line_amount_types: str = LINE_AMOUNT_TYPES
    show_on_cash_basis_reports: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Render the journal in the shape the ledger API expects."""
        return {
            "Date": self.date.isoformat(),
            "Status": self.status,
            "Narration": self.narration,
            "LineAmountTypes": self.line_amount_types,
            "ShowOnCashBasisReports": self.show_on_cash_basis_reports,
            "JournalLines": [line.to_payload() for line in self.lines],
        }


@dataclass
class JournalAssembly:
    """Outcome of assembling a branch's day: a journal, or nothing to post."""

    journal: ManualJournal | None
    warnings: list[str] = field(default_factory=list)

    @property
    def has_journal(self) -> bool:
        return self.journal is not None


def assemble_manual_journal(
    trading_date: date,
    branch_name: str,
    invoices: Iterable[Any],
    receipts: Iterable[Any],
    reference: ReferenceTables,
) -> JournalAssembly:
    """Turn one branch's raw invoices and receipts into a manual journal.

    Lines are ordered invoice stage 1, invoice stage 2, then receipts.
    When no line survives, the assembly carries no journal.
    """
    built = BuiltLines()
    built.extend(build_invoice_lines(aggregate_invoices(invoices), branch_name, reference))
    built.extend(build_receipt_lines(aggregate_receipts(receipts), branch_name, reference))

    if not built.lines:
        return JournalAssembly(journal=None, warnings=built.warnings)

    journal = ManualJournal(date=trading_date, lines=tuple(built.lines))
    return JournalAssembly(journal=journal, warnings=built.warnings)
