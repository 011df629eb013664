from .base import KeyValueStorage
from .json_storage import JsonFileStorage
from .sqlite_storage import SQLiteStorage

__all__ = ["KeyValueStorage", "JsonFileStorage", "SQLiteStorage"]
