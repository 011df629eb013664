import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent

DATA_DIR = os.getenv("FINANCE_DATA_DIR", str(PROJECT_ROOT / "data"))
USE_SQLITE = os.getenv("FINANCE_USE_SQLITE", "0").strip().lower() in ("1", "true", "yes")
SQLITE_PATH = str(Path(DATA_DIR) / "finance.db")

STORAGE_KEY = "finance_txns_v1"
SCHEMA_VERSION = 1

STRUCTURED_EXPORT_FILENAME = "finance_backup.json"
TABULAR_EXPORT_FILENAME = "finance_data.csv"
XLSX_EXPORT_FILENAME = "finance_data.xlsx"

LOG_LEVEL = os.getenv("FINANCE_LOG_LEVEL", "WARNING").upper()
