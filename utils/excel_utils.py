import logging
import os
from collections.abc import Sequence

from openpyxl import Workbook

from domain.aggregation import monthly_breakdown, sort_for_display, totals
from domain.transactions import Transaction
from utils.csv_utils import DATA_HEADERS

logger = logging.getLogger(__name__)

MONTHLY_HEADERS = ["Month", "Income", "Expense", "Total", "Bar %"]


def export_transactions_to_xlsx(transactions: Sequence[Transaction], filepath: str) -> None:
    """Spreadsheet export with the CSV columns plus a monthly summary sheet. Export-only."""
    wb = Workbook()
    ws = wb.active
    if ws is not None:
        ws.title = "Transactions"
        ws.append(DATA_HEADERS)
        for transaction in sort_for_display(transactions):
            ws.append(
                [
                    transaction.id,
                    transaction.date,
                    transaction.type.value,
                    float(transaction.amount),
                    transaction.category,
                    transaction.note,
                ]
            )
        summary = totals(transactions)
        ws.append([])
        ws.append(["", "", "income", float(summary.income), "", ""])
        ws.append(["", "", "expense", float(summary.expense), "", ""])
        ws.append(["", "", "balance", float(summary.balance), "", ""])

    monthly_ws = wb.create_sheet("Monthly")
    monthly_ws.append(MONTHLY_HEADERS)
    for row in monthly_breakdown(transactions):
        monthly_ws.append([row.period, row.income, row.expense, row.total, row.bar_percent])

    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    wb.save(filepath)
    wb.close()
    logger.info("XLSX export completed: rows=%s file=%s", len(transactions), filepath)
