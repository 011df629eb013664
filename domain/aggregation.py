from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from .transactions import Transaction, TransactionType
from .validation import end_of_day, start_of_day

NO_TYPE_FILTER = "all"


@dataclass(frozen=True)
class Totals:
    income: float = 0.0
    expense: float = 0.0

    @property
    def balance(self) -> float:
        return self.income - self.expense

    def __add__(self, other: "Totals") -> "Totals":
        return Totals(self.income + other.income, self.expense + other.expense)


@dataclass(frozen=True)
class MonthlySummary:
    period: str
    income: float
    expense: float
    bar_percent: int

    @property
    def total(self) -> float:
        return self.income + self.expense

    @property
    def label(self) -> str:
        year, month = self.period.split("-")
        return f"{month}/{year}"


@dataclass(frozen=True)
class TransactionFilter:
    type: TransactionType | str | None = None
    date_from: datetime | date | str | None = None
    date_to: datetime | date | str | None = None

    def __post_init__(self) -> None:
        if self.type is not None:
            object.__setattr__(self, "type", TransactionType.parse(self.type))
        if self.date_from is not None:
            object.__setattr__(self, "date_from", start_of_day(self.date_from))
        if self.date_to is not None:
            object.__setattr__(self, "date_to", end_of_day(self.date_to))

    @classmethod
    def from_strings(
        cls,
        type_: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> "TransactionFilter":
        normalized_type = (type_ or "").strip().lower()
        return cls(
            type=None if normalized_type in ("", NO_TYPE_FILTER) else normalized_type,
            date_from=(date_from or "").strip() or None,
            date_to=(date_to or "").strip() or None,
        )

    @property
    def is_empty(self) -> bool:
        return self.type is None and self.date_from is None and self.date_to is None

    def matches(self, transaction: Transaction) -> bool:
        if self.type is not None and transaction.type is not self.type:
            return False
        if self.date_from is not None and transaction.date < self.date_from:
            return False
        if self.date_to is not None and transaction.date > self.date_to:
            return False
        return True


def totals(transactions: Iterable[Transaction]) -> Totals:
    income = 0.0
    expense = 0.0
    for transaction in transactions:
        if transaction.is_income:
            income += transaction.amount
        else:
            expense += transaction.amount
    return Totals(income=income, expense=expense)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def monthly_breakdown(transactions: Iterable[Transaction]) -> list[MonthlySummary]:
    """Group by ``YYYY-MM``, most recent month first, with bar widths scaled to the busiest month."""
    aggregates: dict[str, tuple[float, float]] = {}
    for transaction in transactions:
        income_total, expense_total = aggregates.get(transaction.period_key, (0.0, 0.0))
        if transaction.is_income:
            income_total += transaction.amount
        else:
            expense_total += transaction.amount
        aggregates[transaction.period_key] = (income_total, expense_total)

    peak = max((income + expense for income, expense in aggregates.values()), default=0.0)
    rows: list[MonthlySummary] = []
    for period in sorted(aggregates, reverse=True):
        income_total, expense_total = aggregates[period]
        total = income_total + expense_total
        percent = _round_half_up(100 * total / peak) if peak else 0
        rows.append(MonthlySummary(period, income_total, expense_total, percent))
    return rows


def filter_transactions(
    transactions: Iterable[Transaction], spec: TransactionFilter | None = None
) -> list[Transaction]:
    if spec is None or spec.is_empty:
        return list(transactions)
    return [transaction for transaction in transactions if spec.matches(transaction)]


def sort_for_display(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda transaction: transaction.date, reverse=True)


def expenses_by_category(transactions: Iterable[Transaction]) -> dict[str, float]:
    result: dict[str, float] = {}
    for transaction in transactions:
        if transaction.is_income:
            continue
        category = transaction.category or "-"
        result[category] = result.get(category, 0.0) + transaction.amount
    return result
