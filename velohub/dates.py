import re
from datetime import date, datetime

_YEAR_FIRST = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DAY_FIRST = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")


class InvalidDateError(ValueError):
    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid date: {value!r}")


def today_iso() -> str:
    return date.today().isoformat()


def _strip_time(value: str) -> str:
    # "2026-02-12T03:00:00.000Z" -> "2026-02-12"; the offset never moves the day
    return value.strip().split("T")[0].split(" ")[0]


def normalize_date(value: str | date | None) -> str:
    """Return the canonical ``YYYY-MM-DD`` form of a date value.

    Missing values default to today's local date. Strings may carry a time
    part, ``/`` or ``.`` separators, and may be day-first (``12/02/2026``).
    Raises InvalidDateError for anything else.
    """
    if value is None:
        return today_iso()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise InvalidDateError(value)

    cleaned = _strip_time(value)
    if not cleaned:
        return today_iso()
    cleaned = cleaned.replace("/", "-").replace(".", "-")

    if m := _YEAR_FIRST.match(cleaned):
        year, month, day = m.groups()
    elif m := _DAY_FIRST.match(cleaned):
        day, month, year = m.groups()
    else:
        raise InvalidDateError(value)

    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        raise InvalidDateError(value) from None


def parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(normalize_date(value))
    except InvalidDateError:
        return None


def format_date_br(value: str | None, fallback: str = "") -> str:
    parsed = parse_iso_date(value)
    return parsed.strftime("%d/%m/%Y") if parsed else fallback
