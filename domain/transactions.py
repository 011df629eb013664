import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import date as dt_date
from datetime import datetime
from enum import Enum
from typing import Any

from .validation import parse_amount, parse_timestamp


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value: "TransactionType | str") -> "TransactionType":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unsupported transaction type: {value!r}")

    @property
    def label(self) -> str:
        return "Income" if self is TransactionType.INCOME else "Expense"


def new_transaction_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Transaction:
    date: datetime | dt_date | str
    type: TransactionType | str
    amount: float
    category: str = ""
    note: str = ""
    id: str = field(default_factory=new_transaction_id)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("id must be a non-empty string")
        object.__setattr__(self, "id", self.id.strip())
        object.__setattr__(self, "date", parse_timestamp(self.date))
        object.__setattr__(self, "type", TransactionType.parse(self.type))
        object.__setattr__(self, "amount", parse_amount(self.amount))
        object.__setattr__(self, "category", str(self.category or "").strip())
        object.__setattr__(self, "note", str(self.note or "").strip())

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def period_key(self) -> str:
        return f"{self.date.year:04d}-{self.date.month:02d}"

    def signed_amount(self) -> float:
        return self.amount if self.is_income else -self.amount

    def with_patch(self, **patch: Any) -> "Transaction":
        """Return a copy with ``patch`` applied; omitted fields are kept."""
        known = {item.name for item in fields(self)}
        unknown = sorted(set(patch) - known)
        if unknown:
            raise ValueError(f"Unknown transaction fields: {', '.join(unknown)}")
        if "id" in patch and str(patch["id"]).strip() != self.id:
            raise ValueError("Transaction id is immutable")
        patch.pop("id", None)
        return replace(self, **patch)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "amount": self.amount,
            "category": self.category,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Transaction":
        return cls(
            id=payload.get("id"),
            date=payload.get("date"),
            type=payload.get("type"),
            amount=payload.get("amount"),
            category=payload.get("category") or "",
            note=payload.get("note") or "",
        )
