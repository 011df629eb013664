from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from domain.aggregation import (
    MonthlySummary,
    Totals,
    TransactionFilter,
    filter_transactions,
    monthly_breakdown,
    sort_for_display,
    totals,
)
from domain.errors import DataImportError, ImportErrorKind
from domain.reports import Report
from domain.transactions import Transaction, TransactionType
from utils.backup_utils import ImportOutcome, export_structured, read_text_file
from utils.csv_utils import export_tabular

from .transaction_store import TransactionStore
from .use_cases import (
    CreateTransaction,
    DeleteAllTransactions,
    DeleteTransaction,
    ExportTransactions,
    GenerateReport,
    ImportStructuredBackup,
    UpdateTransaction,
)

logger = logging.getLogger(__name__)

FORM_ERROR_MESSAGE = "Enter a valid date and amount (> 0)."


@dataclass
class SessionState:
    """UI state that is not part of the ledger itself."""

    editing_id: str | None = None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None


def parse_form_amount(raw: str | float | None) -> float:
    try:
        amount = float(str(raw).strip().replace(",", "."))
    except (TypeError, ValueError) as exc:
        raise ValueError(FORM_ERROR_MESSAGE) from exc
    if not amount > 0 or amount == float("inf"):
        raise ValueError(FORM_ERROR_MESSAGE)
    return amount


class FinanceController:
    """Functional surface handed to a presentation layer.

    ``session`` is only changed under ``_lock``; file imports complete on the
    executor thread.
    """

    def __init__(self, store: TransactionStore, session: SessionState | None = None) -> None:
        self._store = store
        self.session = session or SessionState()
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="import")

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "FinanceController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def store(self) -> TransactionStore:
        return self._store

    # Store

    def list(self) -> list[Transaction]:
        return sort_for_display(self._store.list())

    def add(self, transaction: Transaction) -> bool:
        return self._store.add(transaction)

    def update(self, transaction_id: str, **patch: Any) -> bool:
        return UpdateTransaction(self._store).execute(transaction_id, **patch)

    def remove(self, transaction_id: str) -> bool:
        with self._lock:
            if self.session.editing_id == transaction_id:
                self.session.editing_id = None
            return DeleteTransaction(self._store).execute(transaction_id)

    def replace_all(self, transactions: Iterable[Transaction]) -> bool:
        with self._lock:
            self.session.editing_id = None
            return self._store.replace_all(transactions)

    def clear_all(self) -> bool:
        with self._lock:
            self.session.editing_id = None
            return DeleteAllTransactions(self._store).execute()

    # Form flow

    def start_edit(self, transaction_id: str) -> Transaction | None:
        with self._lock:
            transaction = self._store.get(transaction_id)
            if transaction is None:
                logger.info("Edit requested for missing transaction id=%s", transaction_id)
                return None
            self.session.editing_id = transaction_id
            return transaction

    def cancel_edit(self) -> None:
        with self._lock:
            self.session.editing_id = None

    def submit_form(
        self,
        *,
        date: str,
        type: TransactionType | str,
        amount: str | float,
        category: str = "",
        note: str = "",
    ) -> tuple[Transaction | None, bool]:
        """Create a transaction, or update the one being edited.

        Returns the resulting record (``None`` if the edited record vanished)
        and whether the change was saved.
        """
        if not str(date or "").strip():
            raise ValueError(FORM_ERROR_MESSAGE)
        value = parse_form_amount(amount)
        with self._lock:
            editing_id = self.session.editing_id
            if editing_id is None:
                return CreateTransaction(self._store).execute(
                    date=date, type=type, amount=value, category=category, note=note
                )

            updated = self.update(
                editing_id, date=date, type=type, amount=value, category=category, note=note
            )
            self.session.editing_id = None
            if not updated:
                return None, False
            return self._store.get(editing_id), self._store.last_save_error is None

    # Aggregation

    def totals(self, spec: TransactionFilter | None = None) -> Totals:
        return totals(filter_transactions(self._store.list(), spec))

    def monthly_breakdown(self, spec: TransactionFilter | None = None) -> list[MonthlySummary]:
        return monthly_breakdown(filter_transactions(self._store.list(), spec))

    def filter(self, spec: TransactionFilter | None = None) -> list[Transaction]:
        return sort_for_display(filter_transactions(self._store.list(), spec))

    def report(self, spec: TransactionFilter | None = None) -> Report:
        return GenerateReport(self._store).execute(spec)

    # Serialization

    def export_structured(self) -> str:
        return export_structured(self._store.list())

    def export_tabular(self) -> str:
        return export_tabular(self._store.list())

    def export_to_directory(self, directory: str, fmt: str) -> str:
        return ExportTransactions(self._store).execute(directory, fmt)

    def import_structured(self, text: str) -> ImportOutcome:
        with self._lock:
            outcome = ImportStructuredBackup(self._store).execute(text)
            if outcome.ok:
                self.session.editing_id = None
            return outcome

    def import_structured_file(
        self,
        filepath: str,
        on_done: Callable[[ImportOutcome], None] | None = None,
    ) -> Future[ImportOutcome]:
        """Read ``filepath`` in the background, then import it in one step.

        The store keeps its pre-import state until the returned future resolves.
        """
        result: Future[ImportOutcome] = Future()
        read = self._executor.submit(read_text_file, filepath)

        def _complete(done: Future[str]) -> None:
            error = done.exception()
            if error is not None:
                logger.warning("Failed to read import file %s: %s", filepath, error)
                outcome = ImportOutcome(
                    error=DataImportError(ImportErrorKind.FILE_UNREADABLE, str(error))
                )
            else:
                try:
                    outcome = self.import_structured(done.result())
                except Exception as exc:
                    logger.exception("Import of %s failed unexpectedly", filepath)
                    result.set_exception(exc)
                    return
            if on_done is not None:
                try:
                    on_done(outcome)
                except Exception:
                    logger.exception("Import completion callback failed for %s", filepath)
            result.set_result(outcome)

        read.add_done_callback(_complete)
        return result
