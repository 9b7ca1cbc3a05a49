"""Domain services for PropertyHub."""

from propertyhub.services.audit import AuditService
from propertyhub.services.email import EmailService, get_email_service
from propertyhub.services.errors import WorkflowError
from propertyhub.services.momo import MomoClient, MomoError, get_momo_client
from propertyhub.services.notifications import NotificationService
from propertyhub.services.pdf_generator import PDFGenerator

__all__ = [
    "AuditService",
    "EmailService",
    "get_email_service",
    "WorkflowError",
    "MomoClient",
    "MomoError",
    "get_momo_client",
    "NotificationService",
    "PDFGenerator",
]
