from datetime import date, datetime
from decimal import Decimal

from propertyhub.utils.formatting import (
    days_between,
    format_amount,
    format_currency,
    format_date,
    format_date_long,
    format_relative_date,
    from_cents,
    status_badge,
    to_cents,
)
from propertyhub.models.enums import InvoiceStatus


def test_format_currency_uses_kwacha_symbol_and_grouping():
    assert format_currency(123456) == "K1,234.56"
    assert format_currency(0) == "K0.00"
    assert format_currency(None) == "K0.00"
    assert format_currency(-5050) == "-K50.50"


def test_format_amount_rounds_half_up():
    assert format_amount("1234.565") == "K1,234.57"
    assert format_amount(1234.5) == "K1,234.50"
    assert format_amount(10, symbol="ZMW ") == "ZMW 10.00"


def test_cents_conversion():
    assert to_cents("1234.56") == 123456
    assert to_cents("0.005") == 1
    assert from_cents(123456) == Decimal("1234.56")


def test_format_date_variants():
    assert format_date(date(2024, 1, 15)) == "15 Jan 2024"
    assert format_date_long(date(2024, 1, 15)) == "15 January 2024"
    assert format_date(None) == "N/A"


def test_naive_datetime_is_shown_in_lusaka_time():
    # 23:30 UTC is already the next day in Lusaka (UTC+2)
    assert format_date(datetime(2024, 1, 15, 23, 30)) == "16 Jan 2024"


def test_days_between_and_relative_dates():
    today = date(2024, 3, 10)
    assert days_between(today, date(2024, 3, 13)) == 3
    assert days_between(today, date(2024, 3, 7)) == -3
    assert format_relative_date(today, today) == "Today"
    assert format_relative_date(date(2024, 3, 11), today) == "Tomorrow"
    assert format_relative_date(date(2024, 3, 9), today) == "Yesterday"
    assert format_relative_date(date(2024, 3, 15), today) == "in 5 days"
    assert format_relative_date(date(2024, 3, 1), today) == "9 days ago"


def test_status_badge_known_and_unknown():
    assert status_badge("invoice", InvoiceStatus.OVERDUE) == {
        "value": "overdue",
        "label": "Overdue",
        "color": "red",
    }
    badge = status_badge("lease", "on_hold")
    assert badge["label"] == "On Hold"
    assert badge["color"] == "gray"
