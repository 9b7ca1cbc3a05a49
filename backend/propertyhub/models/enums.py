"""Enumeration types for the PropertyHub domain model."""

from enum import Enum


class UserRole(str, Enum):
    """Role of a portal user."""
    LANDLORD = "landlord"
    MANAGER = "manager"
    ADMIN = "admin"
    TENANT = "tenant"


STAFF_ROLES = (UserRole.LANDLORD, UserRole.MANAGER, UserRole.ADMIN)
MANAGEMENT_ROLES = (UserRole.MANAGER, UserRole.ADMIN)


class PropertyType(str, Enum):
    """Type of property."""
    APARTMENT = "Apartment"
    HOUSE = "House"
    CONDO = "Condo"
    TOWNHOUSE = "Townhouse"
    COMMERCIAL = "Commercial"


class LeaseStatus(str, Enum):
    """Lifecycle status of a lease."""
    DRAFT = "draft"
    PENDING_SIGNATURE = "pending_signature"
    SIGNED = "signed"
    ACTIVE = "active"
    TERMINATED = "terminated"
    EXPIRED = "expired"


class ActivationMethod(str, Enum):
    """How a lease became active."""
    PAYMENT = "payment"
    MANUAL = "manual"


class PaymentMethod(str, Enum):
    """How a payment was made."""
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    CHEQUE = "cheque"
    MANUAL = "manual"


class PaymentType(str, Enum):
    """What a payment is for."""
    RENT = "rent"
    DEPOSIT = "deposit"
    UTILITIES = "utilities"
    MAINTENANCE = "maintenance"
    FEES = "fees"
    OTHER = "other"


class PaymentStatus(str, Enum):
    """Processing status of a payment."""
    PENDING = "pending"
    COMPLETED = "completed"
    VERIFIED = "verified"
    DISPUTED = "disputed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    """Approval state for payments and invoices."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice."""
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class MaintenancePriority(str, Enum):
    """Priority of a maintenance request."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class MaintenanceStatus(str, Enum):
    """Status of a maintenance request."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class MaintenanceCategory(str, Enum):
    """Category of maintenance work."""
    PLUMBING = "Plumbing"
    ELECTRICAL = "Electrical"
    HVAC = "HVAC"
    APPLIANCES = "Appliances"
    FLOORING = "Flooring"
    PAINTING = "Painting"
    ROOFING = "Roofing"
    WINDOWS_DOORS = "Windows/Doors"
    LANDSCAPING = "Landscaping"
    SECURITY = "Security"
    CLEANING = "Cleaning"
    OTHER = "Other"


class MaintenanceUrgency(str, Enum):
    """How quickly a maintenance request needs attention."""
    EMERGENCY = "Emergency"
    URGENT = "Urgent"
    NORMAL = "Normal"
    LOW = "Low"


class NotificationType(str, Enum):
    """Kind of in-app notification."""
    PAYMENT_SUBMITTED = "payment_submitted"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_DISPUTED = "payment_disputed"
    PAYMENT_DUE = "payment_due"
    PAYMENT_OVERDUE = "payment_overdue"
    INVOICE_CREATED = "invoice_created"
    INVOICE_SENT = "invoice_sent"
    INVOICE_OVERDUE = "invoice_overdue"
    LEASE_SENT = "lease_sent"
    LEASE_SIGNED = "lease_signed"
    LEASE_ACTIVATED = "lease_activated"
    LEASE_EXPIRING = "lease_expiring"
    MAINTENANCE_REQUEST = "maintenance_request"
    MAINTENANCE_UPDATE = "maintenance_update"
    GENERAL = "general"


class NotificationPriority(str, Enum):
    """Display priority of a notification."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AuditAction(str, Enum):
    """Actions recorded in the audit log."""
    LEASE_CREATED = "lease_created"
    LEASE_SENT = "lease_sent"
    LEASE_SIGNED = "lease_signed"
    LEASE_ACTIVATED = "lease_activated"
    LEASE_DEACTIVATED = "lease_deactivated"
    LEASE_TERMINATED = "lease_terminated"
    LEASE_EXPIRED = "lease_expired"
    PAYMENT_RECORDED = "payment_recorded"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_DISPUTED = "payment_disputed"
    PAYMENT_APPROVED = "payment_approved"
    PAYMENT_REJECTED = "payment_rejected"
    PAYMENT_CANCELLED = "payment_cancelled"
    INVOICE_CREATED = "invoice_created"
    INVOICE_UPDATED = "invoice_updated"
    INVOICE_SENT = "invoice_sent"
    INVOICE_APPROVED = "invoice_approved"
    INVOICE_REJECTED = "invoice_rejected"
    INVOICE_PAID = "invoice_paid"
    INVOICE_CANCELLED = "invoice_cancelled"
    MAINTENANCE_CREATED = "maintenance_created"
    MAINTENANCE_STATUS_CHANGED = "maintenance_status_changed"
    USER_CREATED = "user_created"
    USER_DEACTIVATED = "user_deactivated"
