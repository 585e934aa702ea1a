from datetime import date, datetime

import pytest
import pytz

from utils.formatting import format_day_month_year, format_month_label, next_month_third, to_license_iso
from utils.phone import first_valid_mobile, normalize_mobile


@pytest.mark.parametrize("phone, expected", [
    ("0712345678", "254712345678"),
    ("712345678", "254712345678"),
    ("254712345678", "254712345678"),
    ("+254 712 345 678", "254712345678"),
    ("0110-123-456", "254110123456"),
    ("", None),
    ("   ", None),
    (None, None),
    ("12345", None),
])
def test_normalize_mobile(phone, expected):
    assert normalize_mobile(phone) == expected


def test_first_valid_mobile_falls_back_to_alternate():
    assert first_valid_mobile(None, "0722000111") == "254722000111"
    assert first_valid_mobile("123", "") is None
    assert first_valid_mobile("0733444555", "0722000111") == "254733444555"


def test_next_month_third_rolls_over_the_year():
    assert next_month_third(datetime(2026, 1, 31, 23, 59, tzinfo=pytz.utc)) == datetime(2026, 2, 3, tzinfo=pytz.utc)
    assert next_month_third(datetime(2026, 12, 5, tzinfo=pytz.utc)) == datetime(2027, 1, 3, tzinfo=pytz.utc)


def test_message_date_formats():
    assert format_day_month_year(date(2026, 2, 3)) == "3 Feb 2026"
    assert format_month_label(datetime(2026, 1, 15, tzinfo=pytz.utc)) == "January 2026"
    assert to_license_iso(datetime(2027, 1, 3, tzinfo=pytz.utc)) == "2027-01-03T00:00:00.000Z"
