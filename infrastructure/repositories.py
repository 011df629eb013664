import hashlib
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from config import SCHEMA_VERSION, STORAGE_KEY
from domain.errors import PersistenceReadError, PersistenceWriteError
from domain.transactions import Transaction
from storage.base import KeyValueStorage

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    LOADED = "loaded"
    ABSENT = "absent"
    CORRUPT = "corrupt"
    READ_FAILED = "read_failed"


@dataclass(frozen=True)
class LoadResult:
    transactions: list[Transaction] = field(default_factory=list)
    status: LoadStatus = LoadStatus.ABSENT
    error: PersistenceReadError | None = None
    backup_key: str | None = None


@dataclass(frozen=True)
class SaveResult:
    error: PersistenceWriteError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CorruptSlotError(ValueError):
    pass


class TransactionRepository:
    """Loads and saves the whole transaction collection in one storage slot."""

    def __init__(self, storage: KeyValueStorage, key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> LoadResult:
        try:
            raw = self._storage.get(self._key)
        except Exception as exc:
            logger.exception("Failed to read storage slot %s", self._key)
            return LoadResult(
                status=LoadStatus.READ_FAILED,
                error=PersistenceReadError(f"Failed to read stored transactions: {exc}"),
            )

        if raw is None or not raw.strip():
            logger.info("Storage slot %s is empty, starting with no transactions", self._key)
            return LoadResult(status=LoadStatus.ABSENT)

        try:
            transactions = self._decode(raw)
        except CorruptSlotError as exc:
            logger.warning("Storage slot %s is corrupt, using empty dataset: %s", self._key, exc)
            return LoadResult(status=LoadStatus.CORRUPT, backup_key=self._preserve(raw))

        logger.info("Loaded %s transactions from %s", len(transactions), self._key)
        return LoadResult(transactions=transactions, status=LoadStatus.LOADED)

    def save(self, transactions: Sequence[Transaction]) -> SaveResult:
        try:
            payload = json.dumps(
                {
                    "version": SCHEMA_VERSION,
                    "transactions": [transaction.to_dict() for transaction in transactions],
                },
                ensure_ascii=False,
            )
            self._storage.set(self._key, payload)
        except Exception as exc:
            logger.exception("Failed to write storage slot %s", self._key)
            return SaveResult(
                error=PersistenceWriteError(
                    f"Failed to save transactions, export a backup to keep your data: {exc}"
                )
            )
        return SaveResult()

    def _decode(self, raw: str) -> list[Transaction]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CorruptSlotError(f"invalid JSON ({exc})") from exc

        if isinstance(data, list):
            # Unversioned layout, rewritten as an envelope on the next save.
            logger.info("Migrating storage slot format: list -> versioned object")
            items = data
        elif isinstance(data, dict):
            version = data.get("version")
            if version != SCHEMA_VERSION:
                raise CorruptSlotError(f"unsupported schema version {version!r}")
            items = data.get("transactions")
            if not isinstance(items, list):
                raise CorruptSlotError("'transactions' must be an array")
        else:
            raise CorruptSlotError("root must be an object or array")

        transactions: list[Transaction] = []
        seen: set[str] = set()
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise CorruptSlotError(f"transactions[{index}]: invalid item type")
            try:
                transaction = Transaction.from_dict(item)
            except ValueError as exc:
                raise CorruptSlotError(f"transactions[{index}]: {exc}") from exc
            if transaction.id in seen:
                raise CorruptSlotError(f"transactions[{index}]: duplicate id {transaction.id}")
            seen.add(transaction.id)
            transactions.append(transaction)
        return transactions

    def _preserve(self, raw: str) -> str | None:
        """Copy ``raw`` to a slot named after its content; repeated loads reuse it."""
        digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]
        backup_key = f"{self._key}.corrupt-{digest}"
        try:
            if self._storage.get(backup_key) == raw:
                logger.info(
                    "Corrupt storage slot %s already preserved as %s", self._key, backup_key
                )
                return backup_key
            self._storage.set(backup_key, raw)
        except Exception:
            logger.exception("Failed to preserve corrupt storage slot %s", self._key)
            return None
        logger.warning("Corrupt storage slot %s preserved as %s", self._key, backup_key)
        return backup_key
