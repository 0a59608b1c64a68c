"""Reference tables: branches, stock categories, payment methods.

The tables are immutable and loaded once from YAML. They are passed
explicitly into the aggregation and journal-building functions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

DEFAULT_REFERENCE_PATH = Path(__file__).resolve().parent / "reference_tables.yaml"


@dataclass(frozen=True)
class Branch:
    """A retail branch and the name used for journal tracking."""

    code: str
    name: str


@dataclass(frozen=True)
class StockCategory:
    """Stock category mapped to an income account."""

    id: int
    description: str
    account_code: str


@dataclass(frozen=True)
class PaymentMethod:
    """Payment method mapped to a clearing account."""

    code: str
    description: str
    account_code: str


@dataclass(frozen=True)
class ReferenceTables:
    """Lookup data needed to turn net amounts into journal lines."""

    clearing_account_code: str
    gst_multiplier: Decimal
    branches: tuple[Branch, ...] = ()
    stock_categories: dict[int, StockCategory] = field(default_factory=dict)
    payment_methods: dict[str, PaymentMethod] = field(default_factory=dict)

    def branch(self, code: str) -> Branch | None:
        for branch in self.branches:
            if branch.code == code:
                return branch
        return None

    def branch_name(self, code: str) -> str:
        """Return the display name for a branch, falling back to its code."""
        branch = self.branch(code)
        return branch.name if branch else code

    def stock_category(self, category_id: int) -> StockCategory | None:
        return self.stock_categories.get(category_id)

    def payment_method(self, code: str) -> PaymentMethod | None:
        return self.payment_methods.get(code)


def _require_str(source: str, section: str, idx: int, row: dict[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None or str(value).strip() == "":
        raise ValueError(f"{source}: {section}[{idx}] is missing {key!r}")
    return str(value)


def _require_rows(source: str, data: dict[str, Any], section: str) -> list[dict[str, Any]]:
    rows = data.get(section)
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ValueError(f"{source}: {section} must be a list")
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValueError(f"{source}: {section}[{idx}] must be a mapping")
    return rows


def parse_reference_tables(data: dict[str, Any], source: str = "<reference>") -> ReferenceTables:
    """Build ReferenceTables from already-parsed YAML content."""
    if not isinstance(data, dict):
        raise ValueError(f"{source}: reference data must be a mapping")

    clearing = data.get("clearing_account_code")
    if clearing is None or str(clearing).strip() == "":
        raise ValueError(f"{source}: clearing_account_code is required")

    raw_multiplier = data.get("gst_multiplier", 11)
    try:
        multiplier = Decimal(str(raw_multiplier))
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise ValueError(
            f"{source}: invalid gst_multiplier {raw_multiplier!r}"
        ) from exc
    if multiplier <= 0:
        raise ValueError(f"{source}: gst_multiplier must be positive")

    branches: list[Branch] = []
    for idx, row in enumerate(_require_rows(source, data, "branches")):
        branches.append(
            Branch(
                code=_require_str(source, "branches", idx, row, "code"),
                name=_require_str(source, "branches", idx, row, "name"),
            )
        )

    categories: dict[int, StockCategory] = {}
    for idx, row in enumerate(_require_rows(source, data, "stock_categories")):
        try:
            category_id = int(row.get("id"))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"{source}: stock_categories[{idx}] has invalid id {row.get('id')!r}"
            ) from exc
        if category_id in categories:
            raise ValueError(f"{source}: duplicate stock category id {category_id}")
        categories[category_id] = StockCategory(
            id=category_id,
            description=_require_str(source, "stock_categories", idx, row, "description"),
            account_code=_require_str(source, "stock_categories", idx, row, "account_code"),
        )

    methods: dict[str, PaymentMethod] = {}
    for idx, row in enumerate(_require_rows(source, data, "payment_methods")):
        code = _require_str(source, "payment_methods", idx, row, "code")
        if code in methods:
            raise ValueError(f"{source}: duplicate payment method code {code!r}")
        methods[code] = PaymentMethod(
            code=code,
            description=_require_str(source, "payment_methods", idx, row, "description"),
            account_code=_require_str(source, "payment_methods", idx, row, "account_code"),
        )

    return ReferenceTables(
        clearing_account_code=str(clearing),
        gst_multiplier=multiplier,
        branches=tuple(branches),
        stock_categories=categories,
        payment_methods=methods,
    )


@lru_cache
def load_reference_tables(path: str | Path | None = None) -> ReferenceTables:
    """Load reference tables from YAML.

    Args:
        path: Optional YAML file. Defaults to the packaged tables.

    Returns:
        Cached ReferenceTables instance.
    """
    source = Path(path) if path else DEFAULT_REFERENCE_PATH
    raw = source.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    return parse_reference_tables(data, source=source.name)
