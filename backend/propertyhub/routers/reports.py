"""Reports router - portfolio overview and rent roll for staff."""

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.access import scope_properties, scope_query, scope_tenants
from propertyhub.core.config import get_settings
from propertyhub.core.database import get_db
from propertyhub.core.security import require_staff
from propertyhub.models.enums import LeaseStatus, MaintenanceStatus
from propertyhub.models.lease import Lease
from propertyhub.models.maintenance import MaintenanceRequest
from propertyhub.models.payment import Payment
from propertyhub.models.property import Property
from propertyhub.models.user import User
from propertyhub.routers.dashboard import count_rows, settled_revenue
from propertyhub.schemas.report import (
    LeaseSummary,
    MaintenanceSummary,
    RentRollResponse,
    RentRollRow,
    ReportOverview,
    RevenuePoint,
    RevenueSummary,
)
from propertyhub.services import lease_workflow, payment_workflow

router = APIRouter(prefix="/reports", tags=["reports"])

PENDING_LEASE_STATUSES = (LeaseStatus.DRAFT, LeaseStatus.PENDING_SIGNATURE, LeaseStatus.SIGNED)
TREND_MONTHS = 12


def growth_percent(current: int, previous: int) -> float:
    """Month-over-month growth. With no prior revenue any revenue counts as 100%."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


async def revenue_trend(db: AsyncSession, user: User, today: date) -> list[RevenuePoint]:
    """Settled revenue per month for the last twelve months, oldest first."""
    first_month = lease_workflow.add_months(today.replace(day=1), -(TREND_MONTHS - 1))
    query = scope_query(
        select(Payment.payment_date, Payment.amount_cents).where(
            Payment.status.in_(payment_workflow.SETTLED_STATUSES),
            Payment.payment_date >= first_month,
            Payment.payment_date <= today,
        ),
        user,
        Payment.tenant_id,
        Payment.property_id,
    )
    buckets = {}
    for i in range(TREND_MONTHS):
        buckets[lease_workflow.add_months(first_month, i).strftime("%Y-%m")] = 0
    for payment_date, amount_cents in (await db.execute(query)).all():
        key = payment_date.strftime("%Y-%m")
        if key in buckets:
            buckets[key] += amount_cents

    return [
        RevenuePoint(month=date.fromisoformat(f"{key}-01").strftime("%b %Y"), revenue_cents=total)
        for key, total in buckets.items()
    ]


@router.get("/overview", response_model=ReportOverview)
async def get_overview(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Portfolio overview.

    Occupancy counts properties with an active lease. Revenue is settled
    (completed or verified) payments by payment date.
    """
    today = date.today()
    month_start = today.replace(day=1)
    next_month = lease_workflow.add_months(month_start, 1)
    last_month = lease_workflow.add_months(month_start, -1)
    year_start = date(today.year, 1, 1)
    expiring_cutoff = today + timedelta(days=get_settings().lease_expiring_days)

    properties = scope_properties(select(Property.id), current_user)
    total_properties = await count_rows(db, properties)
    occupied = await count_rows(
        db,
        properties.where(
            Property.id.in_(select(Lease.property_id).where(Lease.status == LeaseStatus.ACTIVE))
        ),
    )

    leases = scope_query(select(Lease), current_user, Lease.tenant_id, Lease.property_id).subquery()
    status_counts = {s.value: 0 for s in LeaseStatus}
    for row_status, count in (
        await db.execute(select(leases.c.status, func.count()).group_by(leases.c.status))
    ).all():
        status_counts[row_status.value] = count
    expiring = (
        await db.execute(
            select(func.count()).where(
                leases.c.status == LeaseStatus.ACTIVE,
                leases.c.end_date >= today,
                leases.c.end_date <= expiring_cutoff,
            )
        )
    ).scalar() or 0
    outstanding = (
        await db.execute(
            select(func.coalesce(func.sum(leases.c.balance_due_cents), 0)).where(
                leases.c.status == LeaseStatus.ACTIVE
            )
        )
    ).scalar() or 0

    this_month = await settled_revenue(db, current_user, month_start, next_month)
    previous_month = await settled_revenue(db, current_user, last_month, month_start)
    this_year = await settled_revenue(db, current_user, year_start, next_month)

    requests = scope_query(
        select(MaintenanceRequest),
        current_user,
        MaintenanceRequest.tenant_id,
        MaintenanceRequest.property_id,
    ).subquery()
    is_open = requests.c.status.in_((MaintenanceStatus.PENDING, MaintenanceStatus.IN_PROGRESS))
    maintenance = (
        await db.execute(
            select(
                func.count().label("total"),
                func.sum(case((is_open, 1), else_=0)).label("open"),
                func.sum(case((requests.c.status == MaintenanceStatus.COMPLETED, 1), else_=0)).label("completed"),
                func.sum(case((and_(is_open, requests.c.is_emergency.is_(True)), 1), else_=0)).label("emergency"),
                func.avg(requests.c.satisfaction_rating).label("average_rating"),
            )
        )
    ).one()

    return ReportOverview(
        total_properties=total_properties,
        occupied_properties=occupied,
        occupancy_rate=round(occupied / total_properties * 100, 1) if total_properties else 0.0,
        total_tenants=await count_rows(db, scope_tenants(select(User.id), current_user)),
        leases=LeaseSummary(
            total=sum(status_counts.values()),
            active=status_counts[LeaseStatus.ACTIVE.value],
            pending=sum(status_counts[s.value] for s in PENDING_LEASE_STATUSES),
            expiring_soon=expiring,
            status_counts=status_counts,
        ),
        revenue=RevenueSummary(
            this_month_cents=this_month,
            last_month_cents=previous_month,
            this_year_cents=this_year,
            growth_pct=growth_percent(this_month, previous_month),
        ),
        maintenance=MaintenanceSummary(
            total=maintenance.total or 0,
            open=maintenance.open or 0,
            completed=maintenance.completed or 0,
            emergency=maintenance.emergency or 0,
            average_rating=(
                round(float(maintenance.average_rating), 1)
                if maintenance.average_rating is not None else None
            ),
        ),
        revenue_trend=await revenue_trend(db, current_user, today),
        outstanding_balance_cents=int(outstanding),
    )


@router.get("/rent-roll", response_model=RentRollResponse)
async def get_rent_roll(
    property_id: Optional[UUID] = None,
    include_pending: bool = Query(False, description="Include leases not yet active"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Active leases with rent, payments to date and balance."""
    today = date.today()
    statuses = [LeaseStatus.ACTIVE]
    if include_pending:
        statuses.extend(PENDING_LEASE_STATUSES)

    query = scope_query(
        select(Lease, Property, User)
        .join(Property, Lease.property_id == Property.id)
        .join(User, Lease.tenant_id == User.id)
        .where(Lease.status.in_(statuses)),
        current_user,
        Lease.tenant_id,
        Lease.property_id,
    )
    if property_id:
        query = query.where(Lease.property_id == property_id)

    result = await db.execute(query.order_by(Property.name, Lease.end_date))
    rows = [
        RentRollRow(
            lease_id=lease.id,
            property_name=prop.name,
            tenant_name=tenant.name,
            status=lease.status.value,
            start_date=lease.start_date,
            end_date=lease.end_date,
            monthly_rent_cents=lease.monthly_rent_cents,
            total_paid_cents=lease.total_paid_cents or 0,
            balance_due_cents=lease.balance_due_cents or 0,
            next_payment_due=lease.next_payment_due,
            days_until_expiry=(lease.end_date - today).days,
        )
        for lease, prop, tenant in result.all()
    ]
    return RentRollResponse(
        rows=rows,
        total_monthly_rent_cents=sum(r.monthly_rent_cents for r in rows),
        total_balance_due_cents=sum(r.balance_due_cents for r in rows),
    )
