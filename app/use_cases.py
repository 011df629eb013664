import logging
import os
from typing import Any

from config import STRUCTURED_EXPORT_FILENAME, TABULAR_EXPORT_FILENAME, XLSX_EXPORT_FILENAME
from domain.aggregation import TransactionFilter
from domain.reports import Report
from domain.transactions import Transaction, TransactionType
from utils.backup_utils import ImportOutcome, import_structured

from .transaction_store import TransactionStore

logger = logging.getLogger(__name__)

EXPORT_FILENAMES = {
    "json": STRUCTURED_EXPORT_FILENAME,
    "csv": TABULAR_EXPORT_FILENAME,
    "xlsx": XLSX_EXPORT_FILENAME,
}


class CreateTransaction:
    def __init__(self, store: TransactionStore):
        self._store = store

    def execute(
        self,
        *,
        date: str,
        type: TransactionType | str,
        amount: float,
        category: str = "",
        note: str = "",
    ) -> tuple[Transaction, bool]:
        """Create and persist a transaction. Returns it with the save outcome."""
        transaction = Transaction(
            date=date, type=type, amount=amount, category=category, note=note
        )
        persisted = self._store.add(transaction)
        return transaction, persisted


class UpdateTransaction:
    def __init__(self, store: TransactionStore):
        self._store = store

    def execute(self, transaction_id: str, **patch: Any) -> bool:
        """Returns False if no transaction has ``transaction_id``."""
        return self._store.update(transaction_id, **patch)


class DeleteTransaction:
    def __init__(self, store: TransactionStore):
        self._store = store

    def execute(self, transaction_id: str) -> bool:
        return self._store.remove(transaction_id)


class DeleteAllTransactions:
    def __init__(self, store: TransactionStore):
        self._store = store

    def execute(self) -> bool:
        return self._store.clear()


class GenerateReport:
    def __init__(self, store: TransactionStore):
        self._store = store

    def execute(self, spec: TransactionFilter | None = None) -> Report:
        return Report(self._store.list()).filter(spec).sorted_by_date()


class ExportTransactions:
    def __init__(self, store: TransactionStore):
        self._store = store

    def execute(self, directory: str, fmt: str = "json") -> str:
        """Write the full collection to ``directory`` and return the file path."""
        fmt = (fmt or "json").lower()
        if fmt not in EXPORT_FILENAMES:
            raise ValueError(f"Unsupported export format: {fmt}")
        filepath = os.path.join(directory, EXPORT_FILENAMES[fmt])
        transactions = list(self._store.list())
        try:
            if fmt == "json":
                from utils.backup_utils import export_structured_to_file

                export_structured_to_file(transactions, filepath)
            elif fmt == "csv":
                from utils.csv_utils import export_records_to_csv

                export_records_to_csv(transactions, filepath)
            else:
                from utils.excel_utils import export_transactions_to_xlsx

                export_transactions_to_xlsx(transactions, filepath)
        except Exception:
            logger.exception("Failed to export transactions to %s (%s)", filepath, fmt)
            raise
        logger.info("Transactions exported format=%s count=%s file=%s", fmt, len(transactions), filepath)
        return filepath


class ImportStructuredBackup:
    def __init__(self, store: TransactionStore):
        self._store = store

    def execute(self, text: str) -> ImportOutcome:
        return import_structured(self._store, text)
