"""Tests for reference table loading."""

from decimal import Decimal

import pytest

from pos_reconcile.config.reference import load_reference_tables, parse_reference_tables


class TestPackagedTables:
    def test_clearing_account_and_multiplier(self, reference):
        assert reference.clearing_account_code == "18011"
        assert reference.gst_multiplier == Decimal("11")

    def test_branch_order_and_names(self, reference):
        codes = [b.code for b in reference.branches]
        assert codes[0] == "BKT"
        assert codes[-1] == "IND"
        assert len(codes) == 16
        assert reference.branch_name("PA1") == "Parramatta"

    def test_unknown_branch_name_falls_back_to_code(self, reference):
        assert reference.branch("XXX") is None
        assert reference.branch_name("XXX") == "XXX"

    def test_stock_category_lookup(self, reference):
        lens = reference.stock_category(4)
        assert lens is not None
        assert lens.description == "Spectacle Lens"
        assert lens.account_code == "40004"
        assert reference.stock_category(99) is None

    def test_payment_method_lookup(self, reference):
        visa = reference.payment_method("VIS")
        assert visa is not None
        assert visa.description == "EFTPOS - Visa"
        assert visa.account_code == "18001"
        assert reference.payment_method("ABC") is None

    def test_loader_is_cached(self):
        assert load_reference_tables() is load_reference_tables()


class TestParseReferenceTables:
    def test_custom_yaml_file(self, tmp_path):
        path = tmp_path / "tables.yaml"
        path.write_text(
            "clearing_account_code: '19000'\n"
            "gst_multiplier: 11\n"
            "branches:\n"
            "  - {code: AAA, name: Alpha}\n"
            "stock_categories:\n"
            "  - {id: 1, description: Frames, account_code: '41000'}\n"
            "payment_methods:\n"
            "  - {code: CAS, description: Cash, account_code: '18000'}\n",
            encoding="utf-8",
        )

        tables = load_reference_tables(str(path))

        assert tables.clearing_account_code == "19000"
        assert tables.branch_name("AAA") == "Alpha"
        assert tables.stock_category(1).account_code == "41000"

    def test_missing_clearing_account_rejected(self):
        with pytest.raises(ValueError, match="clearing_account_code"):
            parse_reference_tables({"gst_multiplier": 11})

    def test_invalid_multiplier_rejected(self):
        with pytest.raises(ValueError, match="gst_multiplier"):
            parse_reference_tables({"clearing_account_code": "1", "gst_multiplier": "eleven"})

    def test_duplicate_category_rejected(self):
        data = {
            "clearing_account_code": "18011",
            "stock_categories": [
                {"id": 1, "description": "A", "account_code": "1"},
                {"id": 1, "description": "B", "account_code": "2"},
            ],
        }
        with pytest.raises(ValueError, match="duplicate stock category"):
            parse_reference_tables(data)

    def test_row_missing_account_code_rejected(self):
        data = {
            "clearing_account_code": "18011",
            "payment_methods": [{"code": "CAS", "description": "Cash"}],
        }
        with pytest.raises(ValueError, match="account_code"):
            parse_reference_tables(data)

    def test_section_must_be_list(self):
        with pytest.raises(ValueError, match="branches must be a list"):
            parse_reference_tables({"clearing_account_code": "1", "branches": {"a": 1}})
