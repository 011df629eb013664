from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from domain.errors import DomainError, DuplicateTransactionError, PersistenceWriteError
from domain.transactions import Transaction
from infrastructure.repositories import LoadResult, LoadStatus, TransactionRepository

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[DomainError], None]

CORRUPT_SLOT_MESSAGE = "Stored data was unreadable and has been set aside; starting empty."


def _log_error(error: DomainError) -> None:
    logger.warning("%s", error)


class TransactionStore:
    """Owns the canonical transaction collection and persists it after every mutation.

    Persistence is best-effort: a failed save is reported through ``on_error``
    and the boolean result, while the in-memory change is kept for the session.
    """

    def __init__(
        self,
        repository: TransactionRepository,
        transactions: Iterable[Transaction] = (),
        *,
        on_error: ErrorReporter | None = None,
    ) -> None:
        self._repository = repository
        self._on_error = on_error or _log_error
        self._lock = threading.RLock()
        self._last_save_error: PersistenceWriteError | None = None
        initial = list(transactions)
        self._ensure_unique(initial)
        self._transactions: list[Transaction] = initial

    @classmethod
    def open(
        cls,
        repository: TransactionRepository,
        *,
        on_error: ErrorReporter | None = None,
    ) -> "TransactionStore":
        result: LoadResult = repository.load()
        store = cls(repository, result.transactions, on_error=on_error)
        if result.status is LoadStatus.READ_FAILED and result.error is not None:
            store._report(result.error)
        elif result.status is LoadStatus.CORRUPT:
            store._report(DomainError(CORRUPT_SLOT_MESSAGE))
        return store

    @property
    def last_save_error(self) -> PersistenceWriteError | None:
        return self._last_save_error

    def __len__(self) -> int:
        with self._lock:
            return len(self._transactions)

    def __contains__(self, transaction_id: object) -> bool:
        return self.get(str(transaction_id)) is not None

    def list(self) -> tuple[Transaction, ...]:
        with self._lock:
            return tuple(self._transactions)

    def get(self, transaction_id: str) -> Transaction | None:
        with self._lock:
            return next((t for t in self._transactions if t.id == transaction_id), None)

    def add(self, transaction: Transaction) -> bool:
        with self._lock:
            if self._index_of(transaction.id) is not None:
                raise DuplicateTransactionError(transaction.id)
            self._transactions.append(transaction)
            logger.info(
                "Transaction added id=%s type=%s amount=%s",
                transaction.id,
                transaction.type.value,
                transaction.amount,
            )
            return self._persist()

    def update(self, transaction_id: str, **patch: Any) -> bool:
        """Merge ``patch`` over the stored record. Returns False if the id is unknown."""
        with self._lock:
            index = self._index_of(transaction_id)
            if index is None:
                logger.info("Update skipped, transaction not found id=%s", transaction_id)
                return False
            updated = self._transactions[index].with_patch(**patch)
            self._transactions[index] = updated
            logger.info("Transaction updated id=%s fields=%s", transaction_id, sorted(patch))
            self._persist()
            return True

    def remove(self, transaction_id: str) -> bool:
        with self._lock:
            remaining = [t for t in self._transactions if t.id != transaction_id]
            if len(remaining) != len(self._transactions):
                logger.info("Transaction removed id=%s", transaction_id)
            self._transactions = remaining
            return self._persist()

    def replace_all(self, transactions: Iterable[Transaction]) -> bool:
        replacement = list(transactions)
        self._ensure_unique(replacement)
        with self._lock:
            self._transactions = replacement
            logger.info("Transaction collection replaced count=%s", len(replacement))
            return self._persist()

    def clear(self) -> bool:
        return self.replace_all([])

    def _index_of(self, transaction_id: str) -> int | None:
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                return index
        return None

    @staticmethod
    def _ensure_unique(transactions: Iterable[Transaction]) -> None:
        seen: set[str] = set()
        for transaction in transactions:
            if transaction.id in seen:
                raise DuplicateTransactionError(transaction.id)
            seen.add(transaction.id)

    def _persist(self) -> bool:
        result = self._repository.save(self._transactions)
        self._last_save_error = result.error
        if result.error is not None:
            self._report(result.error)
        return result.ok

    def _report(self, error: DomainError) -> None:
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Error reporter failed while handling: %s", error)
