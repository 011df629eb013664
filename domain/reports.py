from collections.abc import Iterable

from prettytable import PrettyTable

from .aggregation import (
    MonthlySummary,
    Totals,
    TransactionFilter,
    expenses_by_category,
    filter_transactions,
    monthly_breakdown,
    sort_for_display,
    totals,
)
from .transactions import Transaction


def format_amount(value: float) -> str:
    return f"{value:,.2f}"


class Report:
    def __init__(
        self,
        transactions: Iterable[Transaction],
        spec: TransactionFilter | None = None,
    ):
        self._transactions = list(transactions)
        self._spec = spec

    @property
    def spec(self) -> TransactionFilter | None:
        return self._spec

    def filter(self, spec: TransactionFilter | None) -> "Report":
        return Report(filter_transactions(self._transactions, spec), spec)

    def sorted_by_date(self) -> "Report":
        """Most recent first, the order every listing is rendered in."""
        return Report(sort_for_display(self._transactions), self._spec)

    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    def totals(self) -> Totals:
        return totals(self._transactions)

    def monthly_breakdown(self) -> list[MonthlySummary]:
        return monthly_breakdown(self._transactions)

    def expenses_by_category(self) -> dict[str, float]:
        return expenses_by_category(self._transactions)

    @property
    def title(self) -> str:
        if self._spec is None or self._spec.is_empty:
            return "Transactions"
        parts: list[str] = []
        if self._spec.type is not None:
            parts.append(self._spec.type.label)
        if self._spec.date_from is not None:
            parts.append(f"from {self._spec.date_from.date().isoformat()}")
        if self._spec.date_to is not None:
            parts.append(f"to {self._spec.date_to.date().isoformat()}")
        return f"Transactions ({' '.join(parts)})"

    def as_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Date", "Type", "Category", "Amount", "Note", "ID"]
        table.align["Amount"] = "r"

        ordered = sort_for_display(self._transactions)
        for index, transaction in enumerate(ordered, start=1):
            table.add_row(
                [
                    transaction.date.date().isoformat(),
                    transaction.type.label,
                    transaction.category or "-",
                    format_amount(transaction.amount),
                    transaction.note,
                    transaction.id,
                ],
                divider=index == len(ordered),
            )

        summary = self.totals()
        table.add_row(["INCOME", "", "", format_amount(summary.income), "", ""])
        table.add_row(["EXPENSE", "", "", format_amount(summary.expense), "", ""])
        table.add_row(["BALANCE", "", "", format_amount(summary.balance), "", ""])
        return str(table)

    def monthly_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Month", "In", "Out", "Total", "Bar"]
        for align_field in ("In", "Out", "Total"):
            table.align[align_field] = "r"
        table.align["Bar"] = "l"

        for row in self.monthly_breakdown():
            bar = "#" * (row.bar_percent // 5)
            table.add_row(
                [
                    row.label,
                    format_amount(row.income),
                    format_amount(row.expense),
                    format_amount(row.total),
                    f"{bar} {row.bar_percent}%",
                ]
            )
        return str(table)
