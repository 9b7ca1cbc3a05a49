"""API routers for PropertyHub."""

from propertyhub.routers.auth import router as auth_router
from propertyhub.routers.users import router as users_router
from propertyhub.routers.properties import router as properties_router
from propertyhub.routers.tenants import router as tenants_router
from propertyhub.routers.leases import router as leases_router
from propertyhub.routers.payments import router as payments_router
from propertyhub.routers.invoices import router as invoices_router
from propertyhub.routers.maintenance import router as maintenance_router
from propertyhub.routers.notifications import router as notifications_router
from propertyhub.routers.dashboard import router as dashboard_router
from propertyhub.routers.reports import router as reports_router

__all__ = [
    "auth_router",
    "users_router",
    "properties_router",
    "tenants_router",
    "leases_router",
    "payments_router",
    "invoices_router",
    "maintenance_router",
    "notifications_router",
    "dashboard_router",
    "reports_router",
]
