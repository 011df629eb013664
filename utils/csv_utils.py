import logging
import os
from collections.abc import Sequence

from domain.transactions import Transaction

logger = logging.getLogger(__name__)

DATA_HEADERS = ["id", "date", "type", "amount", "category", "note"]


def quote_text(value: str | None) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def quote_if_needed(value: str) -> str:
    if any(char in value for char in (",", '"', "\n", "\r")):
        return quote_text(value)
    return value


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def _row(transaction: Transaction) -> list[str]:
    return [
        quote_if_needed(transaction.id),
        quote_if_needed(transaction.date.isoformat()),
        quote_if_needed(transaction.type.value),
        quote_if_needed(format_number(transaction.amount)),
        quote_text(transaction.category),
        quote_text(transaction.note),
    ]


def export_tabular(transactions: Sequence[Transaction]) -> str:
    """Export-only CSV: free-text columns always quoted, embedded quotes doubled."""
    lines = [",".join(DATA_HEADERS)]
    lines.extend(",".join(_row(transaction)) for transaction in transactions)
    return "\n".join(lines)


def export_records_to_csv(transactions: Sequence[Transaction], filepath: str) -> None:
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, "w", newline="", encoding="utf-8") as csvfile:
        csvfile.write(export_tabular(transactions))
    logger.info("CSV export completed: rows=%s file=%s", len(transactions), filepath)
