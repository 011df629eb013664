from __future__ import annotations

import logging
import os

from app.transaction_store import ErrorReporter, TransactionStore
from config import DATA_DIR, SQLITE_PATH, STORAGE_KEY, USE_SQLITE
from infrastructure.repositories import TransactionRepository
from storage import JsonFileStorage, KeyValueStorage, SQLiteStorage

logger = logging.getLogger(__name__)


def build_storage(
    *,
    use_sqlite: bool = USE_SQLITE,
    data_dir: str = DATA_DIR,
    sqlite_path: str = SQLITE_PATH,
) -> KeyValueStorage:
    if use_sqlite:
        logger.info("Storage selected: SQLite (%s)", sqlite_path)
        directory = os.path.dirname(sqlite_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return SQLiteStorage(sqlite_path)
    logger.info("Storage selected: JSON (%s)", data_dir)
    return JsonFileStorage(data_dir)


def open_storage(
    *,
    use_sqlite: bool = USE_SQLITE,
    data_dir: str = DATA_DIR,
    sqlite_path: str = SQLITE_PATH,
) -> KeyValueStorage:
    """Like ``build_storage``, but falls back to JSON files in ``data_dir`` on failure."""
    try:
        return build_storage(use_sqlite=use_sqlite, data_dir=data_dir, sqlite_path=sqlite_path)
    except Exception:
        logger.exception("Failed to open configured storage, falling back to JSON files")
        return JsonFileStorage(data_dir)


def bootstrap_store(
    storage: KeyValueStorage | None = None,
    *,
    key: str = STORAGE_KEY,
    on_error: ErrorReporter | None = None,
) -> TransactionStore:
    """Load the persisted collection once; failures fall back to an empty store."""
    if storage is None:
        storage = open_storage()
    repository = TransactionRepository(storage, key=key)
    store = TransactionStore.open(repository, on_error=on_error)
    logger.info("Store ready with %s transactions", len(store))
    return store
