from datetime import date

import pytest

from subscription_tracker.errors import ValidationError
from subscription_tracker.months import format_month, months_inclusive, parse_month


def test_parse_month_pins_first_day():
    assert parse_month("03-2024", "start_date") == date(2024, 3, 1)


def test_parse_month_trims_whitespace():
    assert parse_month("  12-1999 ", "start") == date(1999, 12, 1)


@pytest.mark.parametrize("raw", ["3-2024", "13-2024", "00-2024", "2024-03", "03/2024", "", "march"])
def test_parse_month_rejects_malformed(raw):
    with pytest.raises(ValidationError) as excinfo:
        parse_month(raw, "end_date")
    assert str(excinfo.value) == "invalid end_date"


def test_format_month():
    assert format_month(date(2024, 7, 1)) == "07-2024"


def test_months_inclusive_counts_both_ends():
    assert months_inclusive(date(2024, 3, 1), date(2024, 3, 1)) == 1
    assert months_inclusive(date(2024, 3, 1), date(2024, 6, 1)) == 4
    assert months_inclusive(date(2023, 11, 1), date(2024, 2, 1)) == 4
