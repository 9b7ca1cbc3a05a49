from datetime import date, timedelta

from conftest import auth_headers


async def test_payment_update_rejects_null_amount(client, users, active_lease):
    landlord = auth_headers(users["landlord"])
    created = await client.post(
        "/api/payments",
        json={
            "lease_id": str(active_lease.id),
            "amount_cents": 500_000,
            "payment_date": date.today().isoformat(),
            "reference_number": "BT-0091",
        },
        headers=landlord,
    )
    payment_id = created.json()["id"]

    response = await client.patch(f"/api/payments/{payment_id}", json={"amount_cents": None}, headers=landlord)
    assert response.status_code == 422

    cleared = await client.patch(f"/api/payments/{payment_id}", json={"reference_number": None}, headers=landlord)
    assert cleared.status_code == 200
    assert cleared.json()["reference_number"] is None
    assert cleared.json()["amount_cents"] == 500_000


async def test_lease_update_rejects_null_dates(client, users, property_):
    landlord = auth_headers(users["landlord"])
    start = date.today()
    created = await client.post(
        "/api/leases",
        json={
            "property_id": str(property_.id),
            "tenant_id": str(users["tenant"].id),
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=365)).isoformat(),
            "monthly_rent_cents": 500_000,
            "notes": "Keys at the gate",
        },
        headers=landlord,
    )
    lease_id = created.json()["id"]

    response = await client.patch(f"/api/leases/{lease_id}", json={"start_date": None}, headers=landlord)
    assert response.status_code == 422
    assert "start_date cannot be null" in response.text

    cleared = await client.patch(f"/api/leases/{lease_id}", json={"notes": None}, headers=landlord)
    assert cleared.status_code == 200
    assert cleared.json()["notes"] is None


async def test_maintenance_update_rejects_null_title(client, users, property_, active_lease):
    landlord = auth_headers(users["landlord"])
    created = await client.post(
        "/api/maintenance",
        json={
            "property_id": str(property_.id),
            "title": "Leaking tap",
            "description": "Kitchen tap drips all night",
            "category": "Plumbing",
        },
        headers=auth_headers(users["tenant"]),
    )
    request_id = created.json()["id"]

    response = await client.patch(
        f"/api/maintenance/{request_id}", json={"title": None, "status": None}, headers=landlord
    )
    assert response.status_code == 422

    assigned = await client.patch(
        f"/api/maintenance/{request_id}", json={"assigned_to": "Banda Plumbing"}, headers=landlord
    )
    assert assigned.json()["assigned_to"] == "Banda Plumbing"
    unassigned = await client.patch(f"/api/maintenance/{request_id}", json={"assigned_to": None}, headers=landlord)
    assert unassigned.status_code == 200
    assert unassigned.json()["assigned_to"] is None


async def test_property_update_rejects_null_rent(client, users, property_):
    response = await client.patch(
        f"/api/properties/{property_.id}",
        json={"monthly_rent_cents": None},
        headers=auth_headers(users["landlord"]),
    )
    assert response.status_code == 422


async def test_profile_updates_reject_null_name(client, users):
    tenant = auth_headers(users["tenant"])
    assert (await client.patch("/api/users/me", json={"name": None}, headers=tenant)).status_code == 422

    cleared = await client.patch("/api/users/me", json={"phone": None}, headers=tenant)
    assert cleared.status_code == 200
    assert cleared.json()["phone"] is None

    staff_edit = await client.patch(
        f"/api/tenants/{users['other_tenant'].id}",
        json={"name": None},
        headers=auth_headers(users["landlord"]),
    )
    assert staff_edit.status_code == 422

    admin_edit = await client.patch(
        f"/api/users/{users['landlord'].id}",
        json={"is_active": None},
        headers=auth_headers(users["manager"]),
    )
    assert admin_edit.status_code == 422
