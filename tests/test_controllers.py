import json
import re
import threading

import pytest

from app.controllers import FORM_ERROR_MESSAGE, FinanceController, parse_form_amount
from app.transaction_store import TransactionStore
from domain.aggregation import TransactionFilter
from domain.errors import ImportErrorKind
from domain.transactions import Transaction
from infrastructure.repositories import TransactionRepository
from storage import JsonFileStorage


@pytest.fixture
def controller(tmp_path):
    store = TransactionStore(TransactionRepository(JsonFileStorage(str(tmp_path / "data"))))
    with FinanceController(store) as ctrl:
        yield ctrl


def _seed(controller: FinanceController) -> None:
    controller.add(Transaction(id="a", date="2024-01-05", type="income", amount=1000))
    controller.add(Transaction(id="b", date="2024-01-20", type="expense", amount=400))
    controller.add(Transaction(id="c", date="2024-02-03", type="expense", amount=100))


class TestForm:
    def test_submit_creates_when_not_editing(self, controller):
        transaction, saved = controller.submit_form(
            date="2024-03-01", type="expense", amount="12,50", category="Food"
        )
        assert saved
        assert transaction.amount == 12.5
        assert controller.list() == [transaction]

    @pytest.mark.parametrize(
        "date, amount", [("", "10"), ("2024-01-01", "0"), ("2024-01-01", "abc")]
    )
    def test_submit_rejects_invalid_form(self, controller, date, amount):
        with pytest.raises(ValueError, match=re.escape(FORM_ERROR_MESSAGE)):
            controller.submit_form(date=date, type="expense", amount=amount)
        assert len(controller.store) == 0

    def test_submit_updates_edited_record(self, controller):
        _seed(controller)
        assert controller.start_edit("b") is not None
        assert controller.session.is_editing

        transaction, saved = controller.submit_form(
            date="2024-01-21", type="expense", amount="450", category="Rent", note="late"
        )

        assert saved
        assert transaction.id == "b"
        assert transaction.amount == 450.0
        assert len(controller.store) == 3
        assert not controller.session.is_editing

    def test_start_edit_unknown_id(self, controller):
        assert controller.start_edit("missing") is None
        assert not controller.session.is_editing

    def test_cancel_edit(self, controller):
        _seed(controller)
        controller.start_edit("a")
        controller.cancel_edit()
        transaction, _ = controller.submit_form(date="2024-05-01", type="income", amount=1)
        assert transaction.id != "a"
        assert len(controller.store) == 4

    def test_removing_edited_record_ends_edit(self, controller):
        _seed(controller)
        controller.start_edit("a")
        controller.remove("a")
        assert not controller.session.is_editing

    def test_parse_form_amount(self):
        assert parse_form_amount(" 7.5 ") == 7.5
        with pytest.raises(ValueError):
            parse_form_amount("-1")
        with pytest.raises(ValueError):
            parse_form_amount(None)


class TestQueries:
    def test_totals_and_breakdown(self, controller):
        _seed(controller)
        summary = controller.totals()
        assert (summary.income, summary.expense, summary.balance) == (1000, 500, 500)
        rows = controller.monthly_breakdown()
        assert [(r.period, r.bar_percent) for r in rows] == [("2024-02", 7), ("2024-01", 100)]

    def test_filter_is_sorted_newest_first(self, controller):
        _seed(controller)
        spec = TransactionFilter.from_strings("expense", "", "")
        assert [t.id for t in controller.filter(spec)] == ["c", "b"]
        assert controller.totals(spec).income == 0

    def test_list_is_sorted_newest_first(self, controller):
        _seed(controller)
        assert [t.id for t in controller.list()] == ["c", "b", "a"]


class TestImportExport:
    def test_structured_roundtrip(self, controller):
        _seed(controller)
        text = controller.export_structured()
        controller.clear_all()
        assert controller.import_structured(text).imported == 3
        assert {t.id for t in controller.store.list()} == {"a", "b", "c"}

    def test_tabular_export(self, controller):
        _seed(controller)
        assert controller.export_tabular().splitlines()[0] == "id,date,type,amount,category,note"

    def test_import_file_in_background(self, controller, tmp_path):
        path = tmp_path / "finance_backup.json"
        path.write_text(
            json.dumps([{"id": "x", "date": "2024-01-01", "type": "income", "amount": 5}]),
            encoding="utf-8",
        )
        received = []
        called = threading.Event()

        def on_done(outcome):
            received.append(outcome)
            called.set()

        outcome = controller.import_structured_file(str(path), on_done).result(timeout=5)

        assert outcome.ok
        assert called.wait(timeout=5)
        assert received == [outcome]
        assert [t.id for t in controller.store.list()] == ["x"]

    def test_import_missing_file(self, controller, tmp_path):
        _seed(controller)
        outcome = controller.import_structured_file(str(tmp_path / "nope.json")).result(timeout=5)
        assert outcome.error.kind is ImportErrorKind.FILE_UNREADABLE
        assert len(controller.store) == 3

    def test_invalid_file_keeps_collection(self, controller, tmp_path):
        _seed(controller)
        path = tmp_path / "bad.json"
        path.write_text("{}", encoding="utf-8")
        outcome = controller.import_structured_file(str(path)).result(timeout=5)
        assert outcome.error.kind is ImportErrorKind.WRONG_SHAPE
        assert len(controller.store) == 3

    def test_failing_callback_still_resolves(self, controller, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("[]", encoding="utf-8")

        def on_done(outcome):
            raise RuntimeError("widget destroyed")

        assert controller.import_structured_file(str(path), on_done).result(timeout=5).ok

    def test_background_import_ends_edit(self, controller, tmp_path):
        _seed(controller)
        controller.start_edit("a")
        path = tmp_path / "finance_backup.json"
        path.write_text(
            json.dumps([{"id": "x", "date": "2024-01-01", "type": "income", "amount": 5}]),
            encoding="utf-8",
        )

        assert controller.import_structured_file(str(path)).result(timeout=5).ok
        assert not controller.session.is_editing

    def test_failed_background_import_keeps_edit(self, controller, tmp_path):
        _seed(controller)
        controller.start_edit("a")
        path = tmp_path / "bad.json"
        path.write_text("[1", encoding="utf-8")

        outcome = controller.import_structured_file(str(path)).result(timeout=5)

        assert outcome.error.kind is ImportErrorKind.MALFORMED_SYNTAX
        assert controller.session.editing_id == "a"
