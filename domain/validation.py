import calendar
import math
import re
from datetime import date, datetime, time, timezone


def parse_ymd(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = (value or "").strip()
    if not value:
        raise ValueError("Date value is empty")
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        raise ValueError("Invalid date format")
    year, month, day = map(int, value.split("-"))
    if not (1 <= month <= 12):
        raise ValueError("Invalid month")
    last_day = calendar.monthrange(year, month)[1]
    if not (1 <= day <= last_day):
        raise ValueError("Invalid day")
    return date(year, month, day)


def parse_timestamp(value: str | date | datetime) -> datetime:
    """Normalize a calendar date or ISO-8601 date-time to a naive UTC datetime.

    Plain dates become midnight of that day. Aware values are shifted to UTC
    before the offset is dropped, so ``2024-01-05T00:00:00.000Z`` and
    ``2024-01-05`` compare equal.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    else:
        raw = (value or "").strip() if isinstance(value, str) else ""
        if not raw:
            raise ValueError("Date value is empty")
        if re.fullmatch(r"\d{4}-\d{2}-\d{2}", raw):
            return datetime.combine(parse_ymd(raw), time.min)
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid date format: {value}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def start_of_day(value: str | date | datetime) -> datetime:
    if isinstance(value, datetime):
        return parse_timestamp(value)
    if isinstance(value, str) and not re.fullmatch(r"\s*\d{4}-\d{2}-\d{2}\s*", value):
        return parse_timestamp(value)
    return datetime.combine(parse_ymd(value), time.min)


def end_of_day(value: str | date | datetime) -> datetime:
    return datetime.combine(parse_timestamp(value).date(), time.max)


def parse_amount(value) -> float:
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            raise ValueError("Amount is required")
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("Amount must be a number") from exc
    if not math.isfinite(amount):
        raise ValueError("Amount must be a finite number")
    if amount <= 0:
        raise ValueError("Amount must be greater than zero")
    return amount
