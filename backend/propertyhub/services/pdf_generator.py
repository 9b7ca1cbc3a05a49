"""
PDF Generator Service for PropertyHub.

Generates:
- Invoices
- Payment receipts
- Lease agreements
"""

import io
from datetime import datetime
from typing import Any, Dict, List

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
)

from propertyhub.core.config import get_settings
from propertyhub.utils.formatting import format_currency, format_date

BRAND_COLOR = colors.HexColor('#1a1a2e')
MUTED_COLOR = colors.HexColor('#666666')
RULE_COLOR = colors.HexColor('#e0e0e0')


class PDFGenerator:
    """Generates invoice, receipt and lease PDFs."""

    def __init__(self):
        self.settings = get_settings()
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Add custom paragraph styles."""
        self.styles.add(ParagraphStyle(
            name='DocTitle',
            parent=self.styles['Heading1'],
            fontSize=22,
            spaceAfter=6,
            alignment=TA_CENTER,
            textColor=BRAND_COLOR,
        ))
        self.styles.add(ParagraphStyle(
            name='Subtitle',
            parent=self.styles['Normal'],
            fontSize=11,
            spaceAfter=18,
            alignment=TA_CENTER,
            textColor=MUTED_COLOR,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=13,
            spaceBefore=16,
            spaceAfter=8,
            textColor=BRAND_COLOR,
        ))
        self.styles.add(ParagraphStyle(
            name='Clause',
            parent=self.styles['Normal'],
            fontSize=10,
            leading=14,
            spaceAfter=6,
        ))
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.HexColor('#888888'),
            alignment=TA_CENTER,
            spaceBefore=20,
        ))
        self.styles.add(ParagraphStyle(
            name='Amount',
            parent=self.styles['Normal'],
            fontSize=14,
            alignment=TA_RIGHT,
            fontName='Helvetica-Bold',
        ))

    def _document(self, buffer: io.BytesIO) -> SimpleDocTemplate:
        return SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=0.75*inch,
            leftMargin=0.75*inch,
            topMargin=0.75*inch,
            bottomMargin=0.75*inch,
        )

    def _section(self, story: List, title: str):
        story.append(Paragraph(title, self.styles['SectionHeader']))
        story.append(HRFlowable(width="100%", thickness=1, color=RULE_COLOR))

    def _field_table(self, rows: List[List[str]]) -> Table:
        table = Table(rows, colWidths=[2*inch, 4.5*inch])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TEXTCOLOR', (0, 0), (0, -1), MUTED_COLOR),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        return table

    def _footer(self, story: List):
        story.append(Paragraph(
            f"Generated by {self.settings.app_name} on {format_date(datetime.utcnow())}",
            self.styles['Footer'],
        ))

    def _text(self, value: Any) -> str:
        if value is None or value == "":
            return "N/A"
        return str(value)

    def generate_invoice(self, data: Dict[str, Any]) -> bytes:
        """
        Generate an invoice PDF.

        Args:
            data: invoice_number, issue_date, due_date, status, tenant_name,
                tenant_email, property_name, property_address, items
                (description, quantity, unit_price_cents, amount_cents),
                subtotal_cents, tax_cents, total_cents, paid_cents,
                payment_terms, notes

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = self._document(buffer)
        story = []

        story.append(Paragraph("INVOICE", self.styles['DocTitle']))
        story.append(Paragraph(data["invoice_number"], self.styles['Subtitle']))

        self._section(story, "BILL TO")
        story.append(self._field_table([
            ["Tenant:", self._text(data.get("tenant_name"))],
            ["Email:", self._text(data.get("tenant_email"))],
            ["Property:", self._text(data.get("property_name"))],
            ["Address:", self._text(data.get("property_address"))],
        ]))

        self._section(story, "DETAILS")
        story.append(self._field_table([
            ["Issue Date:", format_date(data.get("issue_date"))],
            ["Due Date:", format_date(data.get("due_date"))],
            ["Status:", self._text(data.get("status")).title()],
            ["Payment Terms:", self._text(data.get("payment_terms"))],
        ]))

        self._section(story, "ITEMS")
        rows = [["Description", "Qty", "Unit Price", "Amount"]]
        for item in data.get("items", []):
            rows.append([
                Paragraph(item["description"], self.styles['Normal']),
                str(item.get("quantity", 1)),
                format_currency(item["unit_price_cents"]),
                format_currency(item["amount_cents"]),
            ])
        items_table = Table(rows, colWidths=[3.2*inch, 0.7*inch, 1.3*inch, 1.3*inch])
        items_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('GRID', (0, 0), (-1, -1), 0.5, RULE_COLOR),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f9f9f9')]),
        ]))
        story.append(items_table)
        story.append(Spacer(1, 0.2*inch))

        outstanding = max(0, data.get("total_cents", 0) - data.get("paid_cents", 0))
        totals = Table([
            ["Subtotal:", format_currency(data.get("subtotal_cents", 0))],
            ["Tax:", format_currency(data.get("tax_cents", 0))],
            ["Total:", format_currency(data.get("total_cents", 0))],
            ["Paid:", format_currency(data.get("paid_cents", 0))],
            ["Balance Due:", format_currency(outstanding)],
        ], colWidths=[5.2*inch, 1.3*inch])
        totals.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, -1), (1, -1), 'Helvetica-Bold'),
            ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('LINEABOVE', (0, -1), (-1, -1), 1, BRAND_COLOR),
        ]))
        story.append(totals)

        if data.get("notes"):
            self._section(story, "NOTES")
            story.append(Paragraph(data["notes"], self.styles['Clause']))

        self._footer(story)
        doc.build(story)
        return buffer.getvalue()

    def generate_receipt(self, data: Dict[str, Any]) -> bytes:
        """
        Generate a payment receipt PDF.

        Args:
            data: receipt_number, payment_date, amount_cents, payment_method,
                payment_type, status, reference_number, tenant_name,
                property_name, description

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = self._document(buffer)
        story = []

        story.append(Paragraph("PAYMENT RECEIPT", self.styles['DocTitle']))
        story.append(Paragraph(data["receipt_number"], self.styles['Subtitle']))

        story.append(Paragraph(format_currency(data["amount_cents"]), self.styles['Amount']))
        story.append(Spacer(1, 0.2*inch))

        self._section(story, "PAYMENT")
        story.append(self._field_table([
            ["Date:", format_date(data.get("payment_date"))],
            ["Method:", self._text(data.get("payment_method")).replace("_", " ").title()],
            ["Type:", self._text(data.get("payment_type")).title()],
            ["Status:", self._text(data.get("status")).title()],
            ["Reference:", self._text(data.get("reference_number"))],
            ["Description:", self._text(data.get("description"))],
        ]))

        self._section(story, "RECEIVED FROM")
        story.append(self._field_table([
            ["Tenant:", self._text(data.get("tenant_name"))],
            ["Property:", self._text(data.get("property_name"))],
        ]))

        self._footer(story)
        doc.build(story)
        return buffer.getvalue()

    def generate_lease(self, data: Dict[str, Any]) -> bytes:
        """
        Generate a lease agreement PDF.

        Args:
            data: lease_id, landlord_name, tenant_name, tenant_email,
                property_name, property_address, start_date, end_date,
                monthly_rent_cents, security_deposit_cents, payment_due_day,
                status, pet_policy, smoking_policy, maintenance_responsibility,
                utilities_included, special_conditions, tenant_signed_at

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = self._document(buffer)
        story = []

        story.append(Paragraph("RESIDENTIAL LEASE AGREEMENT", self.styles['DocTitle']))
        story.append(Paragraph(self._text(data.get("property_name")), self.styles['Subtitle']))

        self._section(story, "PARTIES")
        story.append(self._field_table([
            ["Landlord:", self._text(data.get("landlord_name"))],
            ["Tenant:", self._text(data.get("tenant_name"))],
            ["Tenant Email:", self._text(data.get("tenant_email"))],
        ]))

        self._section(story, "PREMISES AND TERM")
        story.append(self._field_table([
            ["Property:", self._text(data.get("property_name"))],
            ["Address:", self._text(data.get("property_address"))],
            ["Start Date:", format_date(data.get("start_date"))],
            ["End Date:", format_date(data.get("end_date"))],
            ["Status:", self._text(data.get("status")).replace("_", " ").title()],
        ]))

        self._section(story, "RENT AND DEPOSIT")
        story.append(self._field_table([
            ["Monthly Rent:", format_currency(data.get("monthly_rent_cents", 0))],
            ["Security Deposit:", format_currency(data.get("security_deposit_cents", 0))],
            ["Due Day:", f"Day {data.get('payment_due_day', 1)} of each month"],
        ]))

        self._section(story, "TERMS")
        utilities = data.get("utilities_included") or []
        clauses = [
            f"Pets: {self._text(data.get('pet_policy'))}",
            f"Smoking: {self._text(data.get('smoking_policy'))}",
            f"Maintenance: {self._text(data.get('maintenance_responsibility'))}",
            f"Utilities included: {', '.join(utilities) if utilities else 'None'}",
        ]
        if data.get("special_conditions"):
            clauses.append(f"Special conditions: {data['special_conditions']}")
        for clause in clauses:
            story.append(Paragraph(clause, self.styles['Clause']))

        self._section(story, "SIGNATURES")
        signed_at = data.get("tenant_signed_at")
        story.append(self._field_table([
            ["Tenant Signed:", format_date(signed_at) if signed_at else "Not signed"],
        ]))

        self._footer(story)
        doc.build(story)
        return buffer.getvalue()
