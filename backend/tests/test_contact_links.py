from datetime import date, datetime
from urllib.parse import parse_qs, urlparse

import pytest

from propertyhub.services.contact_links import (
    LeaseContext,
    calendar_timestamp,
    format_zambian_phone,
    gmail_compose_link,
    inspection_event,
    lease_contact_links,
    lease_whatsapp_message,
    whatsapp_link,
)

TODAY = date(2024, 6, 10)


def make_context(**overrides) -> LeaseContext:
    values = dict(
        tenant_name="Tandiwe",
        landlord_name="Lorna",
        property_name="Kabulonga Flat 2",
        monthly_rent_cents=500_000,
        balance_due_cents=0,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        status="active",
        next_payment_due=None,
    )
    values.update(overrides)
    return LeaseContext(**values)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0971234567", "260971234567"),
        ("+260 97 123 4567", "260971234567"),
        ("971234567", "260971234567"),
        ("260971234567", "260971234567"),
        ("12345", None),
        ("", None),
        (None, None),
    ],
)
def test_format_zambian_phone(raw, expected):
    assert format_zambian_phone(raw) == expected


def test_whatsapp_link_encodes_message():
    link = whatsapp_link("0971234567", "Hello there & welcome")
    assert link == "https://wa.me/260971234567?text=Hello%20there%20%26%20welcome"
    assert whatsapp_link("bad", "hi") is None


def test_gmail_compose_link():
    link = gmail_compose_link("t@example.com", "Rent", "Dear T,\nThanks")
    query = parse_qs(urlparse(link).query)
    assert link.startswith("https://mail.google.com/mail/?view=cm&fs=1")
    assert query["to"] == ["t@example.com"]
    assert query["su"] == ["Rent"]
    assert query["body"] == ["Dear T,\nThanks"]
    assert gmail_compose_link(None, "Rent", "body") is None


def test_calendar_timestamp_is_utc():
    assert calendar_timestamp(datetime(2024, 6, 10, 9, 5, 0)) == "20240610T090500Z"


def test_reminder_message_when_rent_due_soon():
    message = lease_whatsapp_message(make_context(next_payment_due=date(2024, 6, 12)), TODAY)
    assert "friendly reminder" in message
    assert "due in 2 days" in message
    assert "K5,000.00" in message


def test_overdue_message_uses_balance():
    ctx = make_context(next_payment_due=date(2024, 6, 9), balance_due_cents=250_000)
    message = lease_whatsapp_message(ctx, TODAY)
    assert "was due 1 day ago" in message
    assert "K2,500.00" in message


def test_outstanding_balance_message():
    ctx = make_context(next_payment_due=date(2024, 6, 30), balance_due_cents=100_000)
    assert "outstanding balance" in lease_whatsapp_message(ctx, TODAY)


def test_greeting_when_nothing_is_owed():
    message = lease_whatsapp_message(make_context(), TODAY)
    assert message.startswith("Hello Tandiwe!")
    assert "Lease End: 31 Dec 2024" in message


def test_inspection_event_is_a_week_out_for_an_hour():
    link = inspection_event(make_context(), now=datetime(2024, 6, 10, 8, 0, 0))
    query = parse_qs(urlparse(link).query)
    assert query["dates"] == ["20240617T080000Z/20240617T090000Z"]
    assert query["text"] == ["Property Inspection - Kabulonga Flat 2"]


def test_lease_contact_links_without_phone():
    links = lease_contact_links(make_context(), None, "t@example.com", today=TODAY)
    assert links["whatsapp"] is None
    assert links["email"].startswith("https://mail.google.com/")
    assert links["inspection_calendar"].startswith("https://calendar.google.com/")
