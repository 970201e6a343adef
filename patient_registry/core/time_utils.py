import re
from datetime import date, datetime, timedelta, timezone
from typing import Union

IST_OFFSET_MINUTES = 330

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateInput = Union[str, date, datetime]


def as_utc(value: DateInput) -> datetime:
    """Resolve a date input to an aware UTC datetime.

    Date-only values (``"2024-01-01"`` or a ``date``) are UTC midnight.
    Naive date-times are read in the local timezone of the process.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if _DATE_ONLY.match(text):
            return datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported date value: {value!r}")

    try:
        if moment.tzinfo is None:
            moment = moment.astimezone()
        return moment.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"Date value out of range: {value!r}") from e


def to_offset_date_string(value: DateInput, offset_minutes: int = IST_OFFSET_MINUTES) -> str:
    """Return the ``YYYY-MM-DD`` calendar date of ``value`` at a fixed UTC offset."""
    moment = as_utc(value)
    try:
        shifted = moment + timedelta(minutes=offset_minutes)
    except OverflowError as e:
        raise ValueError(f"Date value out of range: {value!r}") from e
    return shifted.date().isoformat()
