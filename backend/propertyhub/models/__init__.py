"""SQLAlchemy models for PropertyHub."""

from propertyhub.models.user import User
from propertyhub.models.property import Property
from propertyhub.models.lease import Lease
from propertyhub.models.invoice import Invoice, InvoiceItem, InvoicePayment
from propertyhub.models.payment import Payment
from propertyhub.models.maintenance import MaintenanceRequest, MaintenanceNote
from propertyhub.models.notification import Notification
from propertyhub.models.audit import AuditLog

__all__ = [
    "User",
    "Property",
    "Lease",
    "Invoice",
    "InvoiceItem",
    "InvoicePayment",
    "Payment",
    "MaintenanceRequest",
    "MaintenanceNote",
    "Notification",
    "AuditLog",
]
