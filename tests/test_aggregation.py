"""Tests for invoice and receipt aggregation."""

import random
from decimal import Decimal

from pos_reconcile.core.aggregation import (
    PaymentMethodNet,
    SignedBuckets,
    StockCategoryNet,
    aggregate_invoices,
    aggregate_receipts,
)


def _invoice(*items):
    return {"INVOICE_ID": 1, "ITEMS": list(items)}


def _receipt(*items):
    return {"RECEIPT_ID": 1, "RECEIPT_ITEMS": list(items)}


class TestSignedBuckets:
    def test_positive_and_negative_buckets(self):
        buckets = SignedBuckets()
        for amount in ("100.00", "-30.00", "5.50", "0"):
            buckets.add(Decimal(amount))

        assert buckets.positive == Decimal("105.50")
        assert buckets.negative == Decimal("30.00")
        assert buckets.net == Decimal("75.50")


class TestAggregateInvoices:
    def test_nets_sales_and_refunds_per_category(self):
        invoices = [
            _invoice(
                {"STOCK_TYPE_ID": 4, "TOTAL": "220.00", "GST_AMOUNT": "20.00"},
                {"STOCK_TYPE_ID": 4, "TOTAL": "-110.00", "GST_AMOUNT": "-10.00"},
            ),
            _invoice({"STOCK_TYPE_ID": 2, "TOTAL": "330.00", "GST_AMOUNT": "30.00"}),
        ]

        result = aggregate_invoices(invoices)

        assert result == {
            2: StockCategoryNet(net_total=Decimal("330.00"), net_gst=Decimal("30.00")),
            4: StockCategoryNet(net_total=Decimal("110.00"), net_gst=Decimal("10.00")),
        }
        assert list(result) == [2, 4]

    def test_mixed_field_casing(self):
        invoices = [
            {"Items": [{"StockTypeId": 5, "Total": 50, "GstAmount": 0}]},
            {"items": [{"stock_type_id": "5", "total": "25.5", "gst_amount": "0"}]},
        ]

        result = aggregate_invoices(invoices)

        assert result[5].net_total == Decimal("75.5")
        assert result[5].net_gst == Decimal("0")

    def test_items_without_category_are_skipped(self):
        invoices = [
            _invoice(
                {"TOTAL": "100.00", "GST_AMOUNT": "10.00"},
                {"STOCK_TYPE_ID": 0, "TOTAL": "100.00"},
                {"STOCK_TYPE_ID": 1, "TOTAL": "10.00"},
            )
        ]

        assert list(aggregate_invoices(invoices)) == [1]

    def test_item_with_both_amounts_unparseable_is_skipped(self):
        invoices = [
            _invoice(
                {"STOCK_TYPE_ID": 3, "TOTAL": "abc", "GST_AMOUNT": "xyz"},
                {"STOCK_TYPE_ID": 3, "TOTAL": "40.00", "GST_AMOUNT": "bad"},
            )
        ]

        result = aggregate_invoices(invoices)

        assert result[3] == StockCategoryNet(net_total=Decimal("40.00"), net_gst=Decimal("0"))

    def test_categories_within_threshold_dropped(self):
        invoices = [
            _invoice(
                {"STOCK_TYPE_ID": 6, "TOTAL": "10.00", "GST_AMOUNT": "1.00"},
                {"STOCK_TYPE_ID": 6, "TOTAL": "-9.99", "GST_AMOUNT": "-1.00"},
            )
        ]

        assert aggregate_invoices(invoices) == {}

    def test_gst_only_category_kept(self):
        invoices = [_invoice({"STOCK_TYPE_ID": 7, "TOTAL": "0", "GST_AMOUNT": "0.50"})]

        assert aggregate_invoices(invoices)[7].net_gst == Decimal("0.50")

    def test_malformed_records_ignored(self):
        invoices = [None, {"ITEMS": None}, {"ITEMS": "x"}, _invoice("not-a-dict")]

        assert aggregate_invoices(invoices) == {}

    def test_order_independent(self):
        items = [
            {"STOCK_TYPE_ID": cid, "TOTAL": f"{amt}.15", "GST_AMOUNT": f"{amt // 11}.05"}
            for cid, amt in [(1, 50), (2, -20), (3, 77), (1, -5), (9, 300), (2, 41)]
        ]
        expected = aggregate_invoices([_invoice(*items)])

        shuffled = list(items)
        random.Random(7).shuffle(shuffled)
        result = aggregate_invoices([_invoice(*shuffled)])

        assert result == expected
        assert list(result) == list(expected)


class TestAggregateReceipts:
    def test_nets_per_payment_code_sorted(self):
        receipts = [
            _receipt(
                {"PAYMENT_TYPE_CODE": "VIS", "AMOUNT": "75.00"},
                {"PAYMENT_TYPE_CODE": "CAS", "AMOUNT": "60.00"},
            ),
            _receipt({"PAYMENT_TYPE_CODE": "CAS", "AMOUNT": "-10.00"}),
        ]

        result = aggregate_receipts(receipts)

        assert list(result) == ["CAS", "VIS"]
        assert result["CAS"] == PaymentMethodNet(net_amount=Decimal("50.00"))
        assert result["VIS"] == PaymentMethodNet(net_amount=Decimal("75.00"))

    def test_alias_variants(self):
        receipts = [
            {"ReceiptItems": [{"PaymentTypeCode": "EFT", "Amount": 10}]},
            {"receipt_items": [{"payment_type_code": "EFT", "amount": "5"}]},
        ]

        assert aggregate_receipts(receipts)["EFT"].net_amount == Decimal("15")

    def test_skips_missing_code_and_bad_amount(self):
        receipts = [
            _receipt(
                {"AMOUNT": "10.00"},
                {"PAYMENT_TYPE_CODE": "", "AMOUNT": "10.00"},
                {"PAYMENT_TYPE_CODE": "CAS", "AMOUNT": "ten"},
                {"PAYMENT_TYPE_CODE": "CAS", "AMOUNT": "10.00"},
            )
        ]

        assert aggregate_receipts(receipts) == {
            "CAS": PaymentMethodNet(net_amount=Decimal("10.00"))
        }

    def test_small_nets_dropped(self):
        receipts = [
            _receipt(
                {"PAYMENT_TYPE_CODE": "AFT", "AMOUNT": "100.00"},
                {"PAYMENT_TYPE_CODE": "AFT", "AMOUNT": "-99.995"},
                {"PAYMENT_TYPE_CODE": "ZIP", "AMOUNT": "0.01"},
            )
        ]

        assert aggregate_receipts(receipts) == {}

    def test_empty_input(self):
        assert aggregate_receipts([]) == {}
