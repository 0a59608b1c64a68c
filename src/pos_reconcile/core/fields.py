"""Field-name normalization for loosely-typed POS records.

Optomate payloads are not consistent about field casing, so every logical
field has an ordered tuple of accepted names. The first name present on
a record wins.
"""

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

# Invoice records
INVOICE_ITEMS = ("ITEMS", "Items", "items")
STOCK_TYPE_ID = ("STOCK_TYPE_ID", "StockTypeId", "stock_type_id")
TOTAL = ("TOTAL", "Total", "total")
GST_AMOUNT = ("GST_AMOUNT", "GstAmount", "gst_amount")

# Receipt records
RECEIPT_ITEMS = ("RECEIPT_ITEMS", "ReceiptItems", "receipt_items")
PAYMENT_TYPE_CODE = ("PAYMENT_TYPE_CODE", "PaymentTypeCode", "payment_type_code")
AMOUNT = ("AMOUNT", "Amount", "amount")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def resolve_field(record: Mapping[str, Any], aliases: tuple[str, ...]) -> Any | None:
    """Return the value of the first alias present on the record."""
    for alias in aliases:
        value = record.get(alias)
        if not _is_blank(value):
            return value
    return None


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a numeric value into a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (TypeError, ValueError, InvalidOperation):
        return None
    if not result.is_finite():
        return None
    return result


def read_amount(record: Mapping[str, Any], aliases: tuple[str, ...]) -> Decimal | None:
    """Read a signed amount.

    Returns:
        ZERO when no alias is present, None when a value is present but
        does not parse, otherwise the parsed Decimal.
    """
    value = resolve_field(record, aliases)
    if value is None:
        return ZERO
    return parse_decimal(value)


def read_category_id(record: Mapping[str, Any]) -> int | None:
    """Read a stock category id; zero and non-integral values are unresolvable."""
    value = resolve_field(record, STOCK_TYPE_ID)
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value or None
    number = parse_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number) or None


def read_payment_code(record: Mapping[str, Any]) -> str | None:
    value = resolve_field(record, PAYMENT_TYPE_CODE)
    if value is None:
        return None
    return str(value).strip()


def record_items(record: Any, aliases: tuple[str, ...]) -> list[Mapping[str, Any]]:
    """Return the nested line items of a record, dropping anything malformed."""
    if not isinstance(record, Mapping):
        return []
    items = resolve_field(record, aliases)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]
