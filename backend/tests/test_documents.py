"""PDF generation and outbound email."""

from datetime import date

from propertyhub.core.config import Settings
from propertyhub.services.email import Attachment, EmailService, OutgoingEmail
from propertyhub.services.pdf_generator import PDFGenerator


def test_invoice_pdf():
    pdf = PDFGenerator().generate_invoice(
        {
            "invoice_number": "INV-202406-0001",
            "issue_date": date(2024, 6, 1),
            "due_date": date(2024, 6, 10),
            "status": "sent",
            "tenant_name": "Tandiwe Tembo",
            "tenant_email": "tenant@example.com",
            "property_name": "Kabulonga Flat 2",
            "property_address": "12 Kabulonga Road",
            "items": [
                {
                    "description": "Monthly Rent - June 2024",
                    "quantity": 1,
                    "unit_price_cents": 500_000,
                    "amount_cents": 500_000,
                }
            ],
            "subtotal_cents": 500_000,
            "tax_cents": 0,
            "total_cents": 500_000,
            "paid_cents": 0,
            "payment_terms": "Net 30",
        }
    )
    assert pdf.startswith(b"%PDF")


def test_receipt_and_lease_pdfs():
    generator = PDFGenerator()
    receipt = generator.generate_receipt(
        {
            "receipt_number": "PAY-20240610-0001",
            "payment_date": date(2024, 6, 10),
            "amount_cents": 750_000,
            "payment_method": "mobile_money",
            "payment_type": "rent",
            "status": "verified",
        }
    )
    lease = generator.generate_lease(
        {
            "landlord_name": "Lorna Banda",
            "tenant_name": "Tandiwe Tembo",
            "property_name": "Kabulonga Flat 2",
            "start_date": date(2024, 7, 1),
            "end_date": date(2025, 6, 30),
            "monthly_rent_cents": 500_000,
            "security_deposit_cents": 500_000,
            "utilities_included": ["Water"],
            "status": "pending_signature",
        }
    )
    assert receipt.startswith(b"%PDF")
    assert lease.startswith(b"%PDF")


async def test_email_is_logged_when_smtp_disabled():
    service = EmailService(Settings(smtp_enabled=False))
    sent = await service.send(OutgoingEmail(to="tenant@example.com", subject="Receipt", body="Thanks"))
    assert sent is False


def test_email_message_carries_attachment():
    service = EmailService(Settings(email_from="Portal <no-reply@example.com>"))
    msg = service.build_message(
        OutgoingEmail(
            to="tenant@example.com",
            subject="Invoice INV-1",
            body="Please find attached.",
            attachments=[Attachment(filename="INV-1.pdf", content=b"%PDF-1.4")],
        )
    )
    assert msg["From"] == "Portal <no-reply@example.com>"
    attachments = list(msg.iter_attachments())
    assert [part.get_filename() for part in attachments] == ["INV-1.pdf"]
    assert attachments[0].get_content_type() == "application/pdf"
