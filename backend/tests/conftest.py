"""Shared fixtures: a throwaway SQLite database, seeded users and an API client.

Firebase is never contacted. ``verify_firebase_token`` is overridden to read
the identity from ``X-Test-Uid`` / ``X-Test-Email`` headers
(``X-Test-Email-Verified: false`` for an unverified login).
"""

import os
import tempfile
from datetime import date, timedelta

_DB_DIR = tempfile.mkdtemp(prefix="propertyhub-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["DEBUG"] = "true"
os.environ["SMTP_ENABLED"] = "false"
os.environ["MOMO_ENABLED"] = "false"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000"

import pytest  # noqa: E402
from fastapi import HTTPException, Request, status  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

import propertyhub.models  # noqa: E402,F401
from propertyhub.core.database import Base, async_session_maker, engine  # noqa: E402
from propertyhub.core.rate_limit import limiter  # noqa: E402
from propertyhub.core.security import AuthenticatedUser, verify_firebase_token  # noqa: E402
from propertyhub.main import app  # noqa: E402
from propertyhub.models.enums import LeaseStatus, PropertyType, UserRole  # noqa: E402
from propertyhub.models.lease import Lease  # noqa: E402
from propertyhub.models.property import Property  # noqa: E402
from propertyhub.models.user import User  # noqa: E402


async def fake_verify_token(request: Request) -> AuthenticatedUser:
    uid = request.headers.get("X-Test-Uid")
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return AuthenticatedUser(
        uid=uid,
        email=request.headers.get("X-Test-Email"),
        email_verified=request.headers.get("X-Test-Email-Verified", "true") == "true",
    )


app.dependency_overrides[verify_firebase_token] = fake_verify_token


def auth_headers(user: User) -> dict[str, str]:
    return {"X-Test-Uid": user.firebase_uid, "X-Test-Email": user.email}


@pytest.fixture(autouse=True)
def fresh_rate_limits():
    limiter.reset()


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db():
    async with async_session_maker() as session:
        yield session


async def _make_user(db, role: UserRole, key: str, name: str, phone=None) -> User:
    user = User(
        firebase_uid=f"uid-{key}",
        email=f"{key}@example.com",
        name=name,
        phone=phone,
        role=role,
        is_active=True,
    )
    db.add(user)
    return user


@pytest.fixture
async def users(db):
    """One user per role plus a second landlord and tenant for scoping checks."""
    seeded = {
        "landlord": await _make_user(db, UserRole.LANDLORD, "landlord", "Lorna Banda"),
        "other_landlord": await _make_user(db, UserRole.LANDLORD, "other-landlord", "Oscar Phiri"),
        "manager": await _make_user(db, UserRole.MANAGER, "manager", "Mary Mwale"),
        "admin": await _make_user(db, UserRole.ADMIN, "admin", "Adam Zulu"),
        "tenant": await _make_user(db, UserRole.TENANT, "tenant", "Tandiwe Tembo", "0971234567"),
        "other_tenant": await _make_user(db, UserRole.TENANT, "other-tenant", "Chipo Mulenga"),
    }
    await db.commit()
    return seeded


@pytest.fixture
async def property_(db, users) -> Property:
    prop = Property(
        landlord_id=users["landlord"].id,
        name="Kabulonga Flat 2",
        address="12 Kabulonga Road",
        city="Lusaka",
        property_type=PropertyType.APARTMENT,
        monthly_rent_cents=500_000,
        bedrooms=2,
        is_available=True,
    )
    db.add(prop)
    await db.commit()
    return prop


@pytest.fixture
async def other_property(db, users) -> Property:
    prop = Property(
        landlord_id=users["other_landlord"].id,
        name="Roma Cottage",
        address="4 Roma Close",
        city="Lusaka",
        property_type=PropertyType.HOUSE,
        monthly_rent_cents=800_000,
        is_available=True,
    )
    db.add(prop)
    await db.commit()
    return prop


@pytest.fixture
async def active_lease(db, users, property_) -> Lease:
    today = date.today()
    lease = Lease(
        property_id=property_.id,
        tenant_id=users["tenant"].id,
        landlord_id=property_.landlord_id,
        status=LeaseStatus.ACTIVE,
        start_date=today - timedelta(days=30),
        end_date=today + timedelta(days=335),
        payment_due_day=1,
        monthly_rent_cents=500_000,
        security_deposit_cents=500_000,
        first_payment_required_cents=1_000_000,
        first_payment_made=True,
        total_paid_cents=1_000_000,
        balance_due_cents=0,
        next_payment_due=today + timedelta(days=10),
        status_history=[],
    )
    db.add(lease)
    await db.commit()
    return lease


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
