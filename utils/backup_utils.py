import json
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass

from domain.errors import DataImportError, ImportErrorKind
from domain.transactions import Transaction
from utils.import_core import parse_import_row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportOutcome:
    imported: int = 0
    error: DataImportError | None = None
    persisted: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.user_message
        if not self.persisted:
            return f"Imported {self.imported} transactions, but saving failed. Export a backup."
        return f"Import succeeded: {self.imported} transactions."


def export_structured(transactions: Sequence[Transaction]) -> str:
    return json.dumps(
        [transaction.to_dict() for transaction in transactions],
        ensure_ascii=False,
        indent=2,
    )


def parse_structured(text: str) -> list[Transaction]:
    """Parse exported JSON; raises ``DataImportError`` without touching any store."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise DataImportError(ImportErrorKind.MALFORMED_SYNTAX, str(exc)) from exc

    if not isinstance(data, list):
        raise DataImportError(
            ImportErrorKind.WRONG_SHAPE,
            f"root is {type(data).__name__}, expected array",
        )

    transactions: list[Transaction] = []
    seen: set[str] = set()
    for idx, item in enumerate(data, start=1):
        transaction, error = parse_import_row(item, row_label=f"transactions[{idx}]")
        if error is not None or transaction is None:
            raise DataImportError(ImportErrorKind.INVALID_RECORD, error or "")
        if transaction.id in seen:
            raise DataImportError(
                ImportErrorKind.INVALID_RECORD,
                f"transactions[{idx}]: duplicate id {transaction.id}",
            )
        seen.add(transaction.id)
        transactions.append(transaction)
    return transactions


def import_structured(store, text: str) -> ImportOutcome:
    """All-or-nothing import: the store is replaced only when every element is valid."""
    try:
        transactions = parse_structured(text)
    except DataImportError as exc:
        logger.warning("JSON import rejected: kind=%s detail=%s", exc.kind.value, exc.detail)
        return ImportOutcome(error=exc)

    persisted = store.replace_all(transactions)
    logger.info("JSON import completed: imported=%s persisted=%s", len(transactions), persisted)
    return ImportOutcome(imported=len(transactions), persisted=persisted)


def export_structured_to_file(transactions: Sequence[Transaction], filepath: str) -> None:
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as fp:
        fp.write(export_structured(transactions))


def read_text_file(filepath: str) -> str:
    with open(filepath, encoding="utf-8") as fp:
        return fp.read()
