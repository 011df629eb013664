import math
from typing import Any

from domain.transactions import Transaction

REQUIRED_FIELDS = ("id", "date", "type")


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value)


def parse_import_row(
    row: Any,
    *,
    row_label: str,
) -> tuple[Transaction | None, str | None]:
    """Validate one imported element; returns ``(transaction, None)`` or ``(None, error)``."""
    if not isinstance(row, dict):
        return None, f"{row_label}: invalid item type"

    for field in REQUIRED_FIELDS:
        value = row.get(field)
        if value is None or str(value).strip() == "":
            return None, f"{row_label}: missing required field '{field}'"
    if not isinstance(row.get("id"), str):
        return None, f"{row_label}: id must be a string"

    if "amount" not in row:
        return None, f"{row_label}: missing required field 'amount'"
    if not is_number(row.get("amount")):
        return None, f"{row_label}: amount must be a number"

    for field in ("category", "note"):
        value = row.get(field)
        if value is not None and not isinstance(value, str):
            return None, f"{row_label}: {field} must be text"

    try:
        return Transaction.from_dict(row), None
    except ValueError as exc:
        return None, f"{row_label}: {exc}"
