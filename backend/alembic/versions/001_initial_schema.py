"""Initial PropertyHub schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

Users, properties, leases, payments, invoices, maintenance, notifications
and the audit log. Money as INTEGER NGWEE (BIGINT).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)

user_role = sa.Enum('LANDLORD', 'MANAGER', 'ADMIN', 'TENANT', name='userrole')
property_type = sa.Enum('APARTMENT', 'HOUSE', 'CONDO', 'TOWNHOUSE', 'COMMERCIAL', name='propertytype')
lease_status = sa.Enum(
    'DRAFT', 'PENDING_SIGNATURE', 'SIGNED', 'ACTIVE', 'TERMINATED', 'EXPIRED', name='leasestatus'
)
activation_method = sa.Enum('PAYMENT', 'MANUAL', name='activationmethod')
payment_method = sa.Enum(
    'CASH', 'BANK_TRANSFER', 'CARD', 'MOBILE_MONEY', 'CHEQUE', 'MANUAL', name='paymentmethod'
)
payment_type = sa.Enum('RENT', 'DEPOSIT', 'UTILITIES', 'MAINTENANCE', 'FEES', 'OTHER', name='paymenttype')
payment_status = sa.Enum(
    'PENDING', 'COMPLETED', 'VERIFIED', 'DISPUTED', 'FAILED', 'CANCELLED', name='paymentstatus'
)
approval_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='approvalstatus')
invoice_status = sa.Enum('DRAFT', 'SENT', 'VIEWED', 'PAID', 'OVERDUE', 'CANCELLED', name='invoicestatus')
maintenance_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', name='maintenancepriority')
maintenance_status = sa.Enum('PENDING', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', name='maintenancestatus')
maintenance_category = sa.Enum(
    'PLUMBING', 'ELECTRICAL', 'HVAC', 'APPLIANCES', 'FLOORING', 'PAINTING', 'ROOFING',
    'WINDOWS_DOORS', 'LANDSCAPING', 'SECURITY', 'CLEANING', 'OTHER',
    name='maintenancecategory',
)
maintenance_urgency = sa.Enum('EMERGENCY', 'URGENT', 'NORMAL', 'LOW', name='maintenanceurgency')
notification_type = sa.Enum(
    'PAYMENT_SUBMITTED', 'PAYMENT_VERIFIED', 'PAYMENT_DISPUTED', 'PAYMENT_DUE', 'PAYMENT_OVERDUE',
    'INVOICE_CREATED', 'INVOICE_SENT', 'INVOICE_OVERDUE',
    'LEASE_SENT', 'LEASE_SIGNED', 'LEASE_ACTIVATED', 'LEASE_EXPIRING',
    'MAINTENANCE_REQUEST', 'MAINTENANCE_UPDATE', 'GENERAL',
    name='notificationtype',
)
notification_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', name='notificationpriority')
audit_action = sa.Enum(
    'LEASE_CREATED', 'LEASE_SENT', 'LEASE_SIGNED', 'LEASE_ACTIVATED', 'LEASE_DEACTIVATED',
    'LEASE_TERMINATED', 'LEASE_EXPIRED',
    'PAYMENT_RECORDED', 'PAYMENT_VERIFIED', 'PAYMENT_DISPUTED', 'PAYMENT_APPROVED',
    'PAYMENT_REJECTED', 'PAYMENT_CANCELLED',
    'INVOICE_CREATED', 'INVOICE_UPDATED', 'INVOICE_SENT', 'INVOICE_APPROVED', 'INVOICE_REJECTED',
    'INVOICE_PAID', 'INVOICE_CANCELLED',
    'MAINTENANCE_CREATED', 'MAINTENANCE_STATUS_CHANGED',
    'USER_CREATED', 'USER_DEACTIVATED',
    name='auditaction',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # === USERS ===
    op.create_table(
        'users',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('firebase_uid', sa.String(128), unique=True, nullable=True, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('company', sa.String(255), nullable=True),
        sa.Column('role', user_role, nullable=False, index=True),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    # === PROPERTIES ===
    op.create_table(
        'properties',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('landlord_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(500), nullable=False),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('property_type', property_type, nullable=False),
        sa.Column('monthly_rent_cents', sa.BigInteger(), nullable=False),
        sa.Column('bedrooms', sa.Integer(), default=0),
        sa.Column('bathrooms', sa.Numeric(3, 1), default=0),
        sa.Column('is_available', sa.Boolean(), default=True, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )

    # === LEASES ===
    op.create_table(
        'leases',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('property_id', UUID, sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('landlord_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('status', lease_status, nullable=False, index=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('payment_due_day', sa.Integer(), default=1),
        sa.Column('monthly_rent_cents', sa.BigInteger(), nullable=False),
        sa.Column('security_deposit_cents', sa.BigInteger(), default=0),
        sa.Column('pet_policy', sa.String(255), nullable=True),
        sa.Column('smoking_policy', sa.String(255), nullable=True),
        sa.Column('maintenance_responsibility', sa.String(255), nullable=True),
        sa.Column('utilities_included', postgresql.JSONB(), nullable=True),
        sa.Column('special_conditions', sa.Text(), nullable=True),
        sa.Column('tenant_signed_at', sa.DateTime(), nullable=True),
        sa.Column('tenant_signature_data', sa.Text(), nullable=True),
        sa.Column('tenant_signature_ip', sa.String(45), nullable=True),
        sa.Column('landlord_signed_at', sa.DateTime(), nullable=True),
        sa.Column('sent_to_tenant_at', sa.DateTime(), nullable=True),
        sa.Column('first_payment_required_cents', sa.BigInteger(), default=0),
        sa.Column('first_payment_made', sa.Boolean(), default=False),
        sa.Column('first_payment_date', sa.Date(), nullable=True),
        sa.Column('total_paid_cents', sa.BigInteger(), default=0),
        sa.Column('balance_due_cents', sa.BigInteger(), default=0),
        sa.Column('next_payment_due', sa.Date(), nullable=True),
        sa.Column('last_payment_date', sa.Date(), nullable=True),
        sa.Column('activated_at', sa.DateTime(), nullable=True),
        sa.Column('activation_method', activation_method, nullable=True),
        sa.Column('activation_reason', sa.Text(), nullable=True),
        sa.Column('deactivated_at', sa.DateTime(), nullable=True),
        sa.Column('deactivation_reason', sa.Text(), nullable=True),
        sa.Column('terminated_at', sa.DateTime(), nullable=True),
        sa.Column('termination_reason', sa.Text(), nullable=True),
        sa.Column('status_history', postgresql.JSONB(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('end_date > start_date', name='ck_lease_dates'),
        sa.CheckConstraint('monthly_rent_cents > 0', name='ck_lease_rent_positive'),
        sa.CheckConstraint(
            'payment_due_day >= 1 AND payment_due_day <= 31',
            name='ck_lease_payment_due_day_range',
        ),
    )

    # === INVOICES ===
    op.create_table(
        'invoices',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('invoice_number', sa.String(32), unique=True, nullable=False, index=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('property_id', UUID, sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('lease_id', UUID, sa.ForeignKey('leases.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('created_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False, index=True),
        sa.Column('period_start', sa.Date(), nullable=True),
        sa.Column('period_end', sa.Date(), nullable=True),
        sa.Column('subtotal_cents', sa.BigInteger(), default=0),
        sa.Column('tax_cents', sa.BigInteger(), default=0),
        sa.Column('total_cents', sa.BigInteger(), default=0),
        sa.Column('paid_cents', sa.BigInteger(), default=0),
        sa.Column('status', invoice_status, nullable=False, index=True),
        sa.Column('approval_status', approval_status, nullable=False),
        sa.Column('approved_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('approval_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('payment_terms', sa.String(50), default='Net 30'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('last_reminder_at', sa.DateTime(), nullable=True),
        sa.Column('reminder_count', sa.Integer(), default=0),
        sa.Column('overdue_notified_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'invoice_items',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('invoice_id', UUID, sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('position', sa.Integer(), default=0),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 2), default=1),
        sa.Column('unit_price_cents', sa.BigInteger(), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
    )

    # === PAYMENTS ===
    op.create_table(
        'payments',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('receipt_number', sa.String(32), unique=True, nullable=False, index=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('property_id', UUID, sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('lease_id', UUID, sa.ForeignKey('leases.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('invoice_id', UUID, sa.ForeignKey('invoices.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('late_fee_cents', sa.BigInteger(), default=0),
        sa.Column('payment_date', sa.Date(), nullable=False, index=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('payment_method', payment_method, nullable=False),
        sa.Column('payment_type', payment_type, nullable=False),
        sa.Column('status', payment_status, nullable=False, index=True),
        # Type already created with the invoices table
        sa.Column('approval_status', postgresql.ENUM(name='approvalstatus', create_type=False), nullable=False),
        sa.Column('reference_number', sa.String(100), nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recorded_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('approval_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('verified_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('verification_notes', sa.Text(), nullable=True),
        sa.Column('schedule_applied', sa.Boolean(), default=False),
        sa.Column('cancelled_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('receipt_sent_at', sa.DateTime(), nullable=True),
        sa.Column('momo_reference_id', sa.String(64), unique=True, nullable=True, index=True),
        *_timestamps(),
        sa.CheckConstraint('amount_cents > 0', name='ck_payment_amount_positive'),
    )

    op.create_table(
        'invoice_payments',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('invoice_id', UUID, sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('payment_id', UUID, sa.ForeignKey('payments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('applied_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('invoice_id', 'payment_id', name='uq_invoice_payment'),
    )

    # === MAINTENANCE ===
    op.create_table(
        'maintenance_requests',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('property_id', UUID, sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('tenant_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('landlord_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('updated_by_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('description', sa.String(1000), nullable=False),
        sa.Column('priority', maintenance_priority, nullable=False, index=True),
        sa.Column('status', maintenance_status, nullable=False, index=True),
        sa.Column('category', maintenance_category, nullable=False),
        sa.Column('urgency', maintenance_urgency, nullable=False),
        sa.Column('is_emergency', sa.Boolean(), default=False, index=True),
        sa.Column('estimated_cost_cents', sa.BigInteger(), nullable=True),
        sa.Column('actual_cost_cents', sa.BigInteger(), nullable=True),
        sa.Column('assigned_to', sa.String(255), nullable=True),
        sa.Column('date_reported', sa.DateTime(), nullable=False),
        sa.Column('date_started', sa.DateTime(), nullable=True),
        sa.Column('date_completed', sa.DateTime(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('satisfaction_rating', sa.Integer(), nullable=True),
        sa.Column('satisfaction_feedback', sa.Text(), nullable=True),
        sa.Column('satisfaction_submitted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            '(satisfaction_rating IS NULL) OR (satisfaction_rating >= 1 AND satisfaction_rating <= 5)',
            name='ck_maintenance_rating_range',
        ),
    )

    op.create_table(
        'maintenance_notes',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('request_id', UUID, sa.ForeignKey('maintenance_requests.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('author_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('content', sa.String(500), nullable=False),
        sa.Column('is_internal', sa.Boolean(), default=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # === NOTIFICATIONS ===
    op.create_table(
        'notifications',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('recipient_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sender_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.String(1000), nullable=False),
        sa.Column('related_type', sa.String(50), nullable=True),
        sa.Column('related_id', UUID, nullable=True),
        sa.Column('action_required', sa.Boolean(), default=False),
        sa.Column('action_url', sa.String(500), nullable=True),
        sa.Column('priority', notification_priority, nullable=False),
        sa.Column('is_read', sa.Boolean(), default=False, index=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    # === AUDIT LOG ===
    op.create_table(
        'audit_log',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('action', audit_action, nullable=False, index=True),
        sa.Column('resource_type', sa.String(50), nullable=False),
        sa.Column('resource_id', UUID, nullable=False, index=True),
        sa.Column('details', postgresql.JSONB(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    for table in (
        'audit_log',
        'notifications',
        'maintenance_notes',
        'maintenance_requests',
        'invoice_payments',
        'payments',
        'invoice_items',
        'invoices',
        'leases',
        'properties',
        'users',
    ):
        op.drop_table(table)

    # Drop enums
    for name in (
        'auditaction', 'notificationpriority', 'notificationtype', 'maintenanceurgency',
        'maintenancecategory', 'maintenancestatus', 'maintenancepriority', 'invoicestatus',
        'approvalstatus', 'paymentstatus', 'paymenttype', 'paymentmethod', 'activationmethod',
        'leasestatus', 'propertytype', 'userrole',
    ):
        op.execute(f'DROP TYPE IF EXISTS {name}')
