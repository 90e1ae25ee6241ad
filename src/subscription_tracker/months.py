import re
from datetime import date

from subscription_tracker.errors import ValidationError

MONTH_PATTERN = re.compile(r"^(\d{2})-(\d{4})$")


def parse_month(text: str, field: str) -> date:
    """
    Parse a month written as ``MM-YYYY`` (for example ``03-2024``).

    :param text: Raw textual month.
    :param field: Name used in the error message.
    :return: The first day of that month.
    :raises ValidationError: if the text is not a valid month.
    """
    match = MONTH_PATTERN.match((text or "").strip())
    if not match:
        raise ValidationError(f"invalid {field}")
    month, year = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValidationError(f"invalid {field}")
    return date(year, month, 1)


def format_month(value: date) -> str:
    return f"{value.month:02d}-{value.year:04d}"


def months_inclusive(first: date, last: date) -> int:
    """Number of calendar months from ``first`` to ``last``, counting both."""
    return (last.year - first.year) * 12 + (last.month - first.month) + 1
