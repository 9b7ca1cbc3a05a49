"""Deep links for contacting tenants: WhatsApp, Gmail compose and Google Calendar."""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote

from propertyhub.utils.formatting import format_currency, format_date

WHATSAPP_BASE = "https://wa.me"
GMAIL_COMPOSE_BASE = "https://mail.google.com/mail/"
GOOGLE_CALENDAR_BASE = "https://calendar.google.com/calendar/render"

ZAMBIA_COUNTRY_CODE = "260"
REMINDER_WINDOW_DAYS = 3

# Same character set encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


def encode_component(value: str) -> str:
    return quote(value, safe=_URI_SAFE)


def format_zambian_phone(raw: Optional[str]) -> Optional[str]:
    """Normalize a Zambian phone number to ``260XXXXXXXXX``.

    Returns ``None`` when the number cannot be normalized.
    """
    if not raw:
        return None
    digits = re.sub(r"\D", "", raw)
    if digits.startswith("0"):
        digits = ZAMBIA_COUNTRY_CODE + digits[1:]
    elif not digits.startswith(ZAMBIA_COUNTRY_CODE) and len(digits) == 9:
        digits = ZAMBIA_COUNTRY_CODE + digits
    if len(digits) != 12 or not digits.startswith(ZAMBIA_COUNTRY_CODE):
        return None
    return digits


def whatsapp_link(phone: Optional[str], message: str) -> Optional[str]:
    """``https://wa.me/<phone>?text=<message>`` or ``None`` for an invalid number."""
    formatted = format_zambian_phone(phone)
    if not formatted:
        return None
    return f"{WHATSAPP_BASE}/{formatted}?text={encode_component(message)}"


def gmail_compose_link(to: Optional[str], subject: str, body: str) -> Optional[str]:
    if not to:
        return None
    return (
        f"{GMAIL_COMPOSE_BASE}?view=cm&fs=1"
        f"&to={encode_component(to)}"
        f"&su={encode_component(subject)}"
        f"&body={encode_component(body)}"
    )


def calendar_timestamp(value: datetime) -> str:
    """UTC ``YYYYMMDDTHHMMSSZ``."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y%m%dT%H%M%SZ")


def google_calendar_link(title: str, start: datetime, end: datetime, details: str = "") -> str:
    return (
        f"{GOOGLE_CALENDAR_BASE}?action=TEMPLATE"
        f"&text={encode_component(title)}"
        f"&dates={calendar_timestamp(start)}/{calendar_timestamp(end)}"
        f"&details={encode_component(details)}"
    )


@dataclass
class LeaseContext:
    """What the message builders need to know about a lease."""

    tenant_name: str
    landlord_name: str
    property_name: str
    monthly_rent_cents: int
    balance_due_cents: int
    start_date: date
    end_date: date
    status: str
    next_payment_due: Optional[date] = None


def lease_whatsapp_message(ctx: LeaseContext, today: Optional[date] = None) -> str:
    """Pick the message variant: upcoming reminder, overdue, outstanding balance or greeting."""
    today = today or date.today()
    days_until = (ctx.next_payment_due - today).days if ctx.next_payment_due else None

    if days_until is not None and 0 < days_until <= REMINDER_WINDOW_DAYS:
        plural = "s" if days_until > 1 else ""
        return (
            f"Hello {ctx.tenant_name}!\n\n"
            f"This is a friendly reminder that your rent payment for {ctx.property_name} "
            f"is due in {days_until} day{plural}.\n\n"
            f"Amount: {format_currency(ctx.monthly_rent_cents)}\n"
            f"Due Date: {format_date(ctx.next_payment_due)}\n\n"
            f"Please ensure payment is made on time to avoid any late fees.\n\n"
            f"Thank you!\n{ctx.landlord_name}"
        )
    if days_until is not None and days_until < 0:
        overdue = -days_until
        plural = "s" if overdue > 1 else ""
        return (
            f"Hello {ctx.tenant_name},\n\n"
            f"Your rent payment for {ctx.property_name} was due {overdue} day{plural} ago.\n\n"
            f"Amount Due: {format_currency(ctx.balance_due_cents or ctx.monthly_rent_cents)}\n"
            f"Original Due Date: {format_date(ctx.next_payment_due)}\n\n"
            f"Please contact me to arrange payment as soon as possible.\n\n"
            f"Thank you,\n{ctx.landlord_name}"
        )
    if ctx.balance_due_cents > 0:
        return (
            f"Hello {ctx.tenant_name},\n\n"
            f"You have an outstanding balance for your lease at {ctx.property_name}.\n\n"
            f"Outstanding Amount: {format_currency(ctx.balance_due_cents)}\n"
            f"Property: {ctx.property_name}\n\n"
            f"Please contact me to discuss payment arrangements.\n\n"
            f"Thank you,\n{ctx.landlord_name}"
        )
    return (
        f"Hello {ctx.tenant_name}!\n\n"
        f"I hope you're doing well at {ctx.property_name}.\n\n"
        f"Lease Details:\n"
        f"Property: {ctx.property_name}\n"
        f"Monthly Rent: {format_currency(ctx.monthly_rent_cents)}\n"
        f"Lease End: {format_date(ctx.end_date)}\n\n"
        f"Please don't hesitate to contact me if you have any questions or concerns.\n\n"
        f"Best regards,\n{ctx.landlord_name}"
    )


def lease_email(ctx: LeaseContext) -> tuple[str, str]:
    """Subject and body for a lease email."""
    subject = f"Regarding your lease at {ctx.property_name}"
    body = (
        f"Dear {ctx.tenant_name},\n\n"
        f"I hope this email finds you well.\n\n"
        f"I am writing to you regarding your lease at {ctx.property_name}.\n\n"
        f"Lease Details:\n"
        f"- Property: {ctx.property_name}\n"
        f"- Lease Period: {format_date(ctx.start_date)} - {format_date(ctx.end_date)}\n"
        f"- Monthly Rent: {format_currency(ctx.monthly_rent_cents)}\n"
        f"- Status: {ctx.status}\n\n"
        f"Please feel free to contact me if you have any questions or concerns.\n\n"
        f"Best regards,\n{ctx.landlord_name}"
    )
    return subject, body


def inspection_event(ctx: LeaseContext, now: Optional[datetime] = None) -> str:
    """Calendar link for a one-hour property inspection a week from now."""
    now = now or datetime.utcnow()
    start = now.replace(microsecond=0) + timedelta(days=7)
    end = start + timedelta(hours=1)
    return google_calendar_link(
        title=f"Property Inspection - {ctx.property_name}",
        start=start,
        end=end,
        details=f"Inspection scheduled for property: {ctx.property_name}\nTenant: {ctx.tenant_name}",
    )


def lease_contact_links(
    ctx: LeaseContext,
    tenant_phone: Optional[str],
    tenant_email: Optional[str],
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> dict[str, Optional[str]]:
    subject, body = lease_email(ctx)
    return {
        "whatsapp": whatsapp_link(tenant_phone, lease_whatsapp_message(ctx, today)),
        "email": gmail_compose_link(tenant_email, subject, body),
        "inspection_calendar": inspection_event(ctx, now),
    }


def tenant_contact_links(
    tenant_name: str,
    tenant_phone: Optional[str],
    tenant_email: Optional[str],
    sender_name: str,
) -> dict[str, Optional[str]]:
    greeting = f"Hello {tenant_name},\n\n"
    return {
        "whatsapp": whatsapp_link(tenant_phone, f"{greeting}Best regards,\n{sender_name}"),
        "email": gmail_compose_link(
            tenant_email,
            "Message from your property manager",
            f"Dear {tenant_name},\n\n\n\nBest regards,\n{sender_name}",
        ),
    }
