from __future__ import annotations

import logging
import os
import re
import tempfile
import threading

from .base import KeyValueStorage

logger = logging.getLogger(__name__)


class JsonFileStorage(KeyValueStorage):
    """One ``<key>.json`` file per slot inside ``directory``."""

    _path_locks: dict[str, threading.RLock] = {}
    _path_locks_guard = threading.Lock()

    def __init__(self, directory: str = ".") -> None:
        self._directory = directory
        abs_path = os.path.abspath(directory)
        with self._path_locks_guard:
            if abs_path not in self._path_locks:
                self._path_locks[abs_path] = threading.RLock()
            self._lock = self._path_locks[abs_path]

    @property
    def directory(self) -> str:
        return self._directory

    def path_for(self, key: str) -> str:
        if not re.fullmatch(r"[A-Za-z0-9_.\-]+", key or ""):
            raise ValueError(f"Invalid storage key: {key!r}")
        return os.path.join(self._directory, f"{key}.json")

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        with self._lock:
            try:
                with open(path, encoding="utf-8") as f:
                    return f.read()
            except FileNotFoundError:
                return None

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        with self._lock:
            os.makedirs(self._directory or ".", exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{key}_", suffix=".json", dir=self._directory or "."
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_path, path)
            finally:
                try:
                    if os.path.exists(tmp_path):
                        os.remove(tmp_path)
                except OSError:
                    logger.exception("Failed to cleanup temporary file during save: %s", tmp_path)

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        with self._lock:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
