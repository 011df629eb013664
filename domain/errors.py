from enum import Enum


class DomainError(Exception):
    """Base class for ledger errors."""


class DuplicateTransactionError(DomainError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction id already exists: {transaction_id}")
        self.transaction_id = transaction_id


class PersistenceError(DomainError):
    pass


class PersistenceReadError(PersistenceError):
    """The storage medium itself failed while reading."""


class PersistenceWriteError(PersistenceError):
    """The storage medium rejected a write (quota, permissions, disk)."""


class ImportErrorKind(str, Enum):
    MALFORMED_SYNTAX = "malformed_syntax"
    WRONG_SHAPE = "wrong_shape"
    INVALID_RECORD = "invalid_record"
    FILE_UNREADABLE = "file_unreadable"


IMPORT_ERROR_MESSAGES = {
    ImportErrorKind.MALFORMED_SYNTAX: "Import failed: the file is not valid JSON.",
    ImportErrorKind.WRONG_SHAPE: "Invalid file format (expected an array of transactions).",
    ImportErrorKind.INVALID_RECORD: "Incomplete data or wrong format in one or more transactions.",
    ImportErrorKind.FILE_UNREADABLE: "Import failed: the file could not be read.",
}


class DataImportError(DomainError):
    def __init__(self, kind: ImportErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        message = IMPORT_ERROR_MESSAGES[kind]
        super().__init__(f"{message} ({detail})" if detail else message)

    @property
    def user_message(self) -> str:
        return IMPORT_ERROR_MESSAGES[self.kind]
