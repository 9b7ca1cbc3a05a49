from datetime import date, timedelta

import pytest

from conftest import auth_headers
from propertyhub.routers.reports import growth_percent


async def record_rent(client, users, lease, amount=500_000):
    response = await client.post(
        "/api/payments",
        json={
            "lease_id": str(lease.id),
            "amount_cents": amount,
            "payment_date": date.today().isoformat(),
            "payment_method": "bank_transfer",
            "status": "completed",
        },
        headers=auth_headers(users["landlord"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.parametrize(
    "current, previous, expected",
    [(500, 0, 100.0), (0, 0, 0.0), (150, 100, 50.0), (50, 100, -50.0), (1, 3, -66.7)],
)
def test_growth_percent(current, previous, expected):
    assert growth_percent(current, previous) == expected


async def test_landlord_dashboard(client, users, property_, other_property, active_lease):
    await record_rent(client, users, active_lease)

    stats = (await client.get("/api/dashboard/stats", headers=auth_headers(users["landlord"]))).json()
    assert stats["role"] == "landlord"
    assert stats["total_properties"] == 1
    assert stats["active_leases"] == 1
    assert stats["revenue_this_month_cents"] == 500_000
    assert stats["pending_payments"] == 0
    # Their own tenant plus tenants not yet on any lease
    assert stats["total_tenants"] == 2
    assert stats["balance_due_cents"] is None


async def test_tenant_dashboard(client, users, active_lease):
    stats = (await client.get("/api/dashboard/stats", headers=auth_headers(users["tenant"]))).json()
    assert stats["role"] == "tenant"
    assert stats["total_properties"] == 1
    assert stats["balance_due_cents"] == 0
    assert stats["next_payment_due"] == (date.today() + timedelta(days=10)).isoformat()


async def test_recent_payments(client, users, active_lease):
    payment = await record_rent(client, users, active_lease, amount=123_456)

    recent = (await client.get("/api/dashboard/recent-payments", headers=auth_headers(users["manager"]))).json()
    assert [p["receipt_number"] for p in recent] == [payment["receipt_number"]]
    assert recent[0]["amount_display"] == "K1,234.56"
    assert recent[0]["tenant_name"] == "Tandiwe Tembo"

    assert (
        await client.get("/api/dashboard/recent-payments", headers=auth_headers(users["other_landlord"]))
    ).json() == []


async def test_overview_report(client, users, property_, active_lease):
    await record_rent(client, users, active_lease)

    report = (await client.get("/api/reports/overview", headers=auth_headers(users["landlord"]))).json()
    assert report["total_properties"] == 1
    assert report["occupied_properties"] == 1
    assert report["occupancy_rate"] == 100.0
    assert report["leases"]["active"] == 1
    assert report["leases"]["status_counts"]["active"] == 1
    assert report["revenue"]["this_month_cents"] == 500_000
    assert report["revenue"]["this_year_cents"] >= 500_000
    assert report["maintenance"]["total"] == 0
    assert report["maintenance"]["average_rating"] is None

    trend = report["revenue_trend"]
    assert len(trend) == 12
    assert trend[-1] == {"month": date.today().strftime("%b %Y"), "revenue_cents": 500_000}


async def test_rent_roll(client, users, property_, active_lease):
    roll = (await client.get("/api/reports/rent-roll", headers=auth_headers(users["manager"]))).json()
    [row] = roll["rows"]
    assert row["tenant_name"] == "Tandiwe Tembo"
    assert row["monthly_rent_cents"] == 500_000
    assert roll["total_monthly_rent_cents"] == 500_000
    assert row["days_until_expiry"] == 335

    other = (await client.get("/api/reports/rent-roll", headers=auth_headers(users["other_landlord"]))).json()
    assert other["rows"] == []
