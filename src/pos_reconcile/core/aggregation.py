"""Aggregation of raw invoice and receipt items into net amounts.

Amounts are accumulated in two buckets per field (sum of positives and
sum of absolute negatives) and netted at the end, which equals a plain
signed sum.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pos_reconcile.core.fields import (
    AMOUNT,
    GST_AMOUNT,
    INVOICE_ITEMS,
    RECEIPT_ITEMS,
    TOTAL,
    ZERO,
    read_amount,
    read_category_id,
    read_payment_code,
    record_items,
)

# Net amounts at or below this magnitude are treated as zero.
THRESHOLD = Decimal("0.01")


def exceeds_threshold(amount: Decimal) -> bool:
    return abs(amount) > THRESHOLD


@dataclass
class SignedBuckets:
    """Running positive and negative totals for one field."""

    positive: Decimal = ZERO
    negative: Decimal = ZERO

    def add(self, amount: Decimal) -> None:
        if amount > 0:
            self.positive += amount
        elif amount < 0:
            self.negative += abs(amount)

    @property
    def net(self) -> Decimal:
        return self.positive - self.negative


@dataclass(frozen=True)
class StockCategoryNet:
    """Net sale value and net GST for one stock category."""

    net_total: Decimal
    net_gst: Decimal


@dataclass(frozen=True)
class PaymentMethodNet:
    """Net amount received through one payment method."""

    net_amount: Decimal


def aggregate_invoices(invoices: Iterable[Any]) -> dict[int, StockCategoryNet]:
    """Net invoice line items per stock category.

    Items without a usable category id, or whose total and GST both fail
    to parse, are skipped. Categories whose net total and net GST are both
    within the threshold are dropped.

    Args:
        invoices: Raw invoice records for one branch and trading day.

    Returns:
        Mapping of category id to net amounts, in ascending id order.
    """
    totals: defaultdict[int, SignedBuckets] = defaultdict(SignedBuckets)
    gst: defaultdict[int, SignedBuckets] = defaultdict(SignedBuckets)

    for invoice in invoices:
        for item in record_items(invoice, INVOICE_ITEMS):
            category_id = read_category_id(item)
            if category_id is None:
                continue

            total = read_amount(item, TOTAL)
            gst_amount = read_amount(item, GST_AMOUNT)
            if total is None and gst_amount is None:
                continue

            totals[category_id].add(total if total is not None else ZERO)
            gst[category_id].add(gst_amount if gst_amount is not None else ZERO)

    result: dict[int, StockCategoryNet] = {}
    for category_id in sorted(totals):
        net_total = totals[category_id].net
        net_gst = gst[category_id].net
        if exceeds_threshold(net_total) or exceeds_threshold(net_gst):
            result[category_id] = StockCategoryNet(net_total=net_total, net_gst=net_gst)
    return result


def aggregate_receipts(receipts: Iterable[Any]) -> dict[str, PaymentMethodNet]:
    """Net receipt line items per payment method code.

    Args:
        receipts: Raw receipt records for one branch and trading day.

    Returns:
        Mapping of payment code to net amount, in ascending code order.
    """
    amounts: defaultdict[str, SignedBuckets] = defaultdict(SignedBuckets)

    for receipt in receipts:
        for item in record_items(receipt, RECEIPT_ITEMS):
            code = read_payment_code(item)
            if not code:
                continue

            amount = read_amount(item, AMOUNT)
            if amount is None:
                continue

            amounts[code].add(amount)

    result: dict[str, PaymentMethodNet] = {}
    for code in sorted(amounts):
        net_amount = amounts[code].net
        if exceeds_threshold(net_amount):
            result[code] = PaymentMethodNet(net_amount=net_amount)
    return result
