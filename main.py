import argparse
import logging
import os
import sys
from datetime import date

from app.controllers import FinanceController
from bootstrap import bootstrap_store, open_storage
from config import DATA_DIR, LOG_LEVEL
from domain.aggregation import NO_TYPE_FILTER, TransactionFilter
from domain.errors import DomainError
from domain.reports import format_amount

logger = logging.getLogger(__name__)

TYPE_CHOICES = ["income", "expense"]


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--type", dest="type_", default=NO_TYPE_FILTER, choices=[NO_TYPE_FILTER, *TYPE_CHOICES]
    )
    parser.add_argument("--from", dest="date_from", default="", help="YYYY-MM-DD, inclusive")
    parser.add_argument(
        "--to", dest="date_to", default="", help="YYYY-MM-DD, inclusive to end of day"
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Personal finance ledger.")
    parser.add_argument("--log-level", default=LOG_LEVEL)
    parser.add_argument("--data-dir", default=DATA_DIR, help="Directory holding the ledger storage")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Record a transaction")
    add.add_argument("--type", dest="type_", required=True, choices=TYPE_CHOICES)
    add.add_argument("--amount", required=True)
    add.add_argument("--date", default=date.today().isoformat())
    add.add_argument("--category", default="")
    add.add_argument("--note", default="")

    edit = sub.add_parser("edit", help="Change fields of an existing transaction")
    edit.add_argument("id")
    edit.add_argument("--type", dest="type_", choices=TYPE_CHOICES)
    edit.add_argument("--amount")
    edit.add_argument("--date")
    edit.add_argument("--category")
    edit.add_argument("--note")

    remove = sub.add_parser("remove", help="Delete a transaction")
    remove.add_argument("id")

    for name, help_text in (
        ("list", "List transactions, most recent first"),
        ("summary", "Show income, expense and balance"),
        ("monthly", "Show the monthly breakdown"),
    ):
        _add_filter_arguments(sub.add_parser(name, help=help_text))

    export = sub.add_parser("export", help="Export all transactions")
    export.add_argument("--format", dest="fmt", default="json", choices=["json", "csv", "xlsx"])
    export.add_argument("--dir", dest="directory", default=None, help="Defaults to --data-dir")

    import_ = sub.add_parser("import", help="Replace all transactions with a JSON backup")
    import_.add_argument("path")

    clear = sub.add_parser("clear", help="Delete all transactions")
    clear.add_argument("--yes", action="store_true", help="Confirm deleting everything")

    return parser.parse_args(argv)


def _report_error(error: DomainError) -> None:
    print(f"Warning: {error}", file=sys.stderr)


def _filter_from_args(args: argparse.Namespace) -> TransactionFilter:
    return TransactionFilter.from_strings(args.type_, args.date_from, args.date_to)


def run(args: argparse.Namespace, controller: FinanceController) -> int:
    command = args.command

    if command == "add":
        transaction, saved = controller.submit_form(
            date=args.date,
            type=args.type_,
            amount=args.amount,
            category=args.category,
            note=args.note,
        )
        print(f"Added {transaction.id}")
        return 0 if saved else 1

    if command == "edit":
        current = controller.start_edit(args.id)
        if current is None:
            print("Transaction not found.", file=sys.stderr)
            return 1
        transaction, saved = controller.submit_form(
            date=args.date or current.date.isoformat(),
            type=args.type_ or current.type,
            amount=args.amount if args.amount is not None else current.amount,
            category=current.category if args.category is None else args.category,
            note=current.note if args.note is None else args.note,
        )
        if transaction is None:
            print("Transaction not found.", file=sys.stderr)
            return 1
        print(f"Updated {transaction.id}")
        return 0 if saved else 1

    if command == "remove":
        return 0 if controller.remove(args.id) else 1

    if command == "list":
        report = controller.report(_filter_from_args(args))
        if not report.transactions():
            print("No transactions yet.")
            return 0
        print(report.title)
        print(report.as_table())
        return 0

    if command == "summary":
        summary = controller.totals(_filter_from_args(args))
        print(f"Income:  {format_amount(summary.income)}")
        print(f"Expense: {format_amount(summary.expense)}")
        print(f"Balance: {format_amount(summary.balance)}")
        return 0

    if command == "monthly":
        report = controller.report(_filter_from_args(args))
        if not report.transactions():
            print("No data for the summary yet.")
            return 0
        print(report.monthly_table())
        return 0

    if command == "export":
        path = controller.export_to_directory(args.directory or args.data_dir, args.fmt)
        print(f"Exported to {path}")
        return 0

    if command == "import":
        outcome = controller.import_structured_file(args.path).result()
        stream = sys.stdout if outcome.ok else sys.stderr
        print(outcome.message, file=stream)
        return 0 if outcome.ok and outcome.persisted else 1

    if command == "clear":
        if not args.yes:
            print("Refusing to delete all transactions without --yes.", file=sys.stderr)
            return 1
        return 0 if controller.clear_all() else 1

    raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=str(args.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    storage = open_storage(
        data_dir=args.data_dir, sqlite_path=os.path.join(args.data_dir, "finance.db")
    )
    store = bootstrap_store(storage, on_error=_report_error)
    with FinanceController(store) as controller:
        try:
            return run(args, controller)
        except (ValueError, DomainError, OSError) as exc:
            logger.debug("Command %s failed", args.command, exc_info=True)
            print(f"Error: {exc}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
