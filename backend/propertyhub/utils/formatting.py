"""Display formatting for money, dates and status badges (en-ZM conventions)."""

from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union
from zoneinfo import ZoneInfo

from propertyhub.core.config import get_settings

Number = Union[int, float, Decimal, str]

TWO_PLACES = Decimal("0.01")
MISSING = "N/A"


def to_cents(amount: Number) -> int:
    """Convert a major-unit amount (e.g. ``"1234.565"``) to integer ngwee, rounding half up."""
    value = Decimal(str(amount)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return int(value * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer ngwee to a two-place Decimal."""
    return (Decimal(cents) / 100).quantize(TWO_PLACES)


def format_amount(amount: Optional[Number], symbol: Optional[str] = None) -> str:
    """Format a major-unit amount, e.g. ``format_amount(1234.5) -> "K1,234.50"``."""
    if amount is None or amount == "":
        amount = 0
    symbol = symbol if symbol is not None else get_settings().currency_symbol
    value = Decimal(str(amount)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_currency(cents: Optional[int], symbol: Optional[str] = None) -> str:
    """Format integer ngwee as currency, e.g. ``123456 -> "K1,234.56"``."""
    return format_amount(from_cents(cents or 0), symbol)


def _local(value: Union[date, datetime]) -> Union[date, datetime]:
    # Naive datetimes are stored in UTC
    if isinstance(value, datetime):
        tz = ZoneInfo(get_settings().timezone)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(tz)
    return value


def format_date(value: Optional[Union[date, datetime]]) -> str:
    """``15 Jan 2024``"""
    if value is None:
        return MISSING
    value = _local(value)
    return f"{value.day} {value.strftime('%b %Y')}"


def format_date_long(value: Optional[Union[date, datetime]]) -> str:
    """``15 January 2024``"""
    if value is None:
        return MISSING
    value = _local(value)
    return f"{value.day} {value.strftime('%B %Y')}"


def format_datetime(value: Optional[datetime]) -> str:
    """``15 Jan 2024, 14:30`` in the configured timezone."""
    if value is None:
        return MISSING
    local = _local(value)
    return f"{format_date(local)}, {local.strftime('%H:%M')}"


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    return (end - start).days


def format_relative_date(value: Optional[date], today: Optional[date] = None) -> str:
    """Human relative date: ``Today``, ``Tomorrow``, ``in 3 days``, ``2 days ago``."""
    if value is None:
        return MISSING
    today = today or date.today()
    delta = days_between(today, value)
    if delta == 0:
        return "Today"
    if delta == 1:
        return "Tomorrow"
    if delta == -1:
        return "Yesterday"
    if delta > 0:
        return f"in {delta} days"
    return f"{-delta} days ago"


# Status badges: status value -> (label, colour)
STATUS_BADGES: dict[str, dict[str, tuple[str, str]]] = {
    "lease": {
        "draft": ("Draft", "gray"),
        "pending_signature": ("Pending Signature", "yellow"),
        "signed": ("Signed", "blue"),
        "active": ("Active", "green"),
        "terminated": ("Terminated", "red"),
        "expired": ("Expired", "gray"),
    },
    "payment": {
        "pending": ("Pending", "yellow"),
        "completed": ("Completed", "blue"),
        "verified": ("Verified", "green"),
        "disputed": ("Disputed", "orange"),
        "failed": ("Failed", "red"),
        "cancelled": ("Cancelled", "gray"),
    },
    "invoice": {
        "draft": ("Draft", "gray"),
        "sent": ("Sent", "blue"),
        "viewed": ("Viewed", "purple"),
        "paid": ("Paid", "green"),
        "overdue": ("Overdue", "red"),
        "cancelled": ("Cancelled", "gray"),
    },
    "maintenance": {
        "Pending": ("Pending", "gray"),
        "In Progress": ("In Progress", "blue"),
        "Completed": ("Completed", "green"),
        "Cancelled": ("Cancelled", "red"),
    },
    "priority": {
        "High": ("High", "red"),
        "Medium": ("Medium", "orange"),
        "Low": ("Low", "blue"),
    },
    "approval": {
        "pending": ("Pending Approval", "yellow"),
        "approved": ("Approved", "green"),
        "rejected": ("Rejected", "red"),
    },
}


def status_badge(kind: str, value: object) -> dict[str, str]:
    """Label and colour for a status value. Unknown statuses fall back to a gray title-cased label."""
    raw = getattr(value, "value", value)
    raw = "" if raw is None else str(raw)
    label, color = STATUS_BADGES.get(kind, {}).get(
        raw, (raw.replace("_", " ").title() or "Unknown", "gray")
    )
    return {"value": raw, "label": label, "color": color}
