import json

import pytest

from app.transaction_store import TransactionStore
from domain.errors import DataImportError, ImportErrorKind
from domain.transactions import Transaction
from infrastructure.repositories import TransactionRepository
from storage import JsonFileStorage
from utils.backup_utils import (
    export_structured,
    export_structured_to_file,
    import_structured,
    parse_structured,
    read_text_file,
)


def _txns() -> list[Transaction]:
    return [
        Transaction(id="a", date="2024-01-05", type="income", amount=1000, category="Salary"),
        Transaction(
            id="b", date="2024-01-20T18:30:00", type="expense", amount=12.5, note='Café "corner"'
        ),
    ]


@pytest.fixture
def store(tmp_path) -> TransactionStore:
    existing = Transaction(id="keep", date="2023-12-01", type="expense", amount=5)
    return TransactionStore(TransactionRepository(JsonFileStorage(str(tmp_path))), [existing])


class TestExportStructured:
    def test_is_an_array_of_plain_records(self):
        data = json.loads(export_structured(_txns()))
        assert isinstance(data, list)
        assert data[0] == {
            "id": "a",
            "date": "2024-01-05T00:00:00",
            "type": "income",
            "amount": 1000.0,
            "category": "Salary",
            "note": "",
        }

    def test_keeps_non_ascii_text(self):
        assert "Café" in export_structured(_txns())

    def test_export_then_parse_is_lossless(self):
        assert parse_structured(export_structured(_txns())) == _txns()

    def test_empty_collection(self):
        assert json.loads(export_structured([])) == []

    def test_export_to_file(self, tmp_path):
        path = tmp_path / "out" / "finance_backup.json"
        export_structured_to_file(_txns(), str(path))
        assert parse_structured(read_text_file(str(path))) == _txns()


class TestParseStructured:
    @pytest.mark.parametrize("text", ["{not json", "", "[1, 2"])
    def test_malformed_syntax(self, text):
        with pytest.raises(DataImportError) as excinfo:
            parse_structured(text)
        assert excinfo.value.kind is ImportErrorKind.MALFORMED_SYNTAX

    @pytest.mark.parametrize("text", ["{}", '"text"', "42", "null"])
    def test_wrong_shape(self, text):
        with pytest.raises(DataImportError) as excinfo:
            parse_structured(text)
        assert excinfo.value.kind is ImportErrorKind.WRONG_SHAPE

    @pytest.mark.parametrize(
        "item",
        [
            {"id": "x"},
            {"id": "x", "date": "2024-01-01", "type": "income", "amount": "100"},
            {"id": "x", "date": "2024-01-01", "type": "income", "amount": True},
            {"id": "x", "date": "2024-01-01", "type": "transfer", "amount": 5},
            {"id": "x", "date": "not a date", "type": "income", "amount": 5},
            {"id": "", "date": "2024-01-01", "type": "income", "amount": 5},
            {"id": 7, "date": "2024-01-01", "type": "income", "amount": 5},
            {"id": "x", "date": "2024-01-01", "type": "income", "amount": -5},
            "not an object",
        ],
    )
    def test_invalid_record(self, item):
        with pytest.raises(DataImportError) as excinfo:
            parse_structured(json.dumps([item]))
        assert excinfo.value.kind is ImportErrorKind.INVALID_RECORD

    def test_duplicate_ids_are_invalid(self):
        item = {"id": "x", "date": "2024-01-01", "type": "income", "amount": 5}
        with pytest.raises(DataImportError) as excinfo:
            parse_structured(json.dumps([item, item]))
        assert excinfo.value.kind is ImportErrorKind.INVALID_RECORD

    def test_missing_optional_text_fields_default_to_empty(self):
        parsed = parse_structured(
            json.dumps([{"id": "x", "date": "2024-01-01", "type": "expense", "amount": 3}])
        )
        assert parsed[0].category == ""
        assert parsed[0].note == ""

    def test_empty_array_is_valid(self):
        assert parse_structured("[]") == []


class TestImportStructured:
    def test_success_replaces_collection(self, store):
        outcome = import_structured(store, export_structured(_txns()))
        assert outcome.ok
        assert outcome.imported == 2
        assert outcome.persisted
        assert list(store.list()) == _txns()
        assert outcome.message == "Import succeeded: 2 transactions."

    @pytest.mark.parametrize(
        "text, kind",
        [
            ("{oops", ImportErrorKind.MALFORMED_SYNTAX),
            ("{}", ImportErrorKind.WRONG_SHAPE),
            ('[{"id": "x"}]', ImportErrorKind.INVALID_RECORD),
        ],
    )
    def test_failure_leaves_store_untouched(self, store, text, kind):
        before = store.list()
        outcome = import_structured(store, text)
        assert not outcome.ok
        assert outcome.error.kind is kind
        assert outcome.imported == 0
        assert store.list() == before

    def test_one_bad_element_rejects_the_whole_file(self, store):
        good = _txns()[0].to_dict()
        bad = {"id": "z", "date": "2024-01-01", "type": "income"}
        before = store.list()
        outcome = import_structured(store, json.dumps([good, bad]))
        assert outcome.error.kind is ImportErrorKind.INVALID_RECORD
        assert store.list() == before

    def test_user_messages(self, store):
        assert (
            import_structured(store, "{}").message
            == "Invalid file format (expected an array of transactions)."
        )
        assert (
            import_structured(store, '[{"id": "x"}]').message
            == "Incomplete data or wrong format in one or more transactions."
        )
