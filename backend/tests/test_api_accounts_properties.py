from datetime import date

from conftest import auth_headers


def property_payload(**extra):
    payload = {
        "name": "Woodlands Townhouse",
        "address": "7 Chindo Road",
        "city": "Lusaka",
        "property_type": "Townhouse",
        "monthly_rent_cents": 750_000,
        "bedrooms": 3,
    }
    payload.update(extra)
    return payload


async def test_landlord_creates_and_manages_own_property(client, users, other_property):
    landlord = auth_headers(users["landlord"])

    created = await client.post("/api/properties", json=property_payload(), headers=landlord)
    assert created.status_code == 201, created.text
    prop = created.json()
    assert prop["landlord_id"] == str(users["landlord"].id)
    assert prop["monthly_rent_display"] == "K7,500.00"

    updated = await client.patch(f"/api/properties/{prop['id']}", json={"is_available": False}, headers=landlord)
    assert updated.json()["is_available"] is False

    listed = (await client.get("/api/properties", headers=landlord)).json()
    assert [p["name"] for p in listed["properties"]] == ["Woodlands Townhouse"]

    hidden = await client.get(f"/api/properties/{other_property.id}", headers=landlord)
    assert hidden.status_code == 404


async def test_landlord_cannot_assign_property_to_another_landlord(client, users):
    response = await client.post(
        "/api/properties",
        json=property_payload(landlord_id=str(users["other_landlord"].id)),
        headers=auth_headers(users["landlord"]),
    )
    assert response.status_code == 403


async def test_manager_assigns_property_to_landlord(client, users):
    response = await client.post(
        "/api/properties",
        json=property_payload(landlord_id=str(users["other_landlord"].id)),
        headers=auth_headers(users["manager"]),
    )
    assert response.status_code == 201
    assert response.json()["landlord_id"] == str(users["other_landlord"].id)


async def test_tenant_cannot_create_property(client, users):
    response = await client.post("/api/properties", json=property_payload(), headers=auth_headers(users["tenant"]))
    assert response.status_code == 403


async def test_search_only_returns_available_matches(client, users, property_, other_property):
    manager = auth_headers(users["manager"])
    await client.patch(f"/api/properties/{other_property.id}", json={"is_available": False}, headers=manager)

    found = (await client.get("/api/properties/search", params={"q": "lusaka"}, headers=manager)).json()
    assert [p["name"] for p in found["properties"]] == ["Kabulonga Flat 2"]

    by_address = (await client.get("/api/properties/search", params={"q": "KABULONGA RO"}, headers=manager)).json()
    assert by_address["total"] == 1


async def test_property_with_active_lease_cannot_be_deleted(client, users, property_, active_lease):
    response = await client.delete(f"/api/properties/{property_.id}", headers=auth_headers(users["landlord"]))
    assert response.status_code == 400


async def test_tenant_sees_only_leased_property(client, users, property_, other_property, active_lease):
    listed = (await client.get("/api/properties", headers=auth_headers(users["tenant"]))).json()
    assert [p["id"] for p in listed["properties"]] == [str(property_.id)]


async def test_landlord_tenant_list_and_detail(client, users, active_lease):
    landlord = auth_headers(users["landlord"])

    listed = (await client.get("/api/tenants", headers=landlord)).json()
    by_name = {t["name"]: t for t in listed["tenants"]}
    assert by_name["Tandiwe Tembo"]["active_lease_count"] == 1
    assert by_name["Chipo Mulenga"]["active_lease_count"] == 0

    detail = (await client.get(f"/api/tenants/{users['tenant'].id}", headers=landlord)).json()
    assert detail["tenant"]["email"] == "tenant@example.com"
    assert [lease["property_name"] for lease in detail["leases"]] == ["Kabulonga Flat 2"]
    assert detail["payment_summary"]["balance_due_cents"] == 0
    assert detail["contact_links"]["whatsapp"].startswith("https://wa.me/260971234567")

    # Leasing a different landlord's property puts the tenant out of scope
    other = await client.get(f"/api/tenants/{users['tenant'].id}", headers=auth_headers(users["other_landlord"]))
    assert other.status_code == 404


async def test_invite_tenant(client, users):
    landlord = auth_headers(users["landlord"])
    invited = await client.post(
        "/api/tenants",
        json={"email": "Mutale@Example.com", "name": "Mutale Chanda", "phone": "0961112223"},
        headers=landlord,
    )
    assert invited.status_code == 201
    body = invited.json()
    assert body["email"] == "mutale@example.com"
    assert body["role"] == "tenant"
    assert body["is_registered"] is False

    duplicate = await client.post(
        "/api/tenants", json={"email": "mutale@example.com", "name": "Again"}, headers=landlord
    )
    assert duplicate.status_code == 409


async def test_user_administration(client, users):
    manager = auth_headers(users["manager"])

    assert (await client.get("/api/users", headers=auth_headers(users["landlord"]))).status_code == 403

    landlords = (await client.get("/api/users", params={"role": "landlord"}, headers=manager)).json()
    assert landlords["total"] == 2

    no_admins = await client.post(
        "/api/users", json={"email": "boss@example.com", "name": "Boss", "role": "admin"}, headers=manager
    )
    assert no_admins.status_code == 403

    promote = await client.patch(
        f"/api/users/{users['landlord'].id}", json={"role": "admin"}, headers=manager
    )
    assert promote.status_code == 403

    deactivated = await client.post(f"/api/users/{users['other_landlord'].id}/deactivate", headers=manager)
    assert deactivated.json()["is_active"] is False
    again = await client.post(f"/api/users/{users['other_landlord'].id}/deactivate", headers=manager)
    assert again.status_code == 400

    own = await client.post(f"/api/users/{users['manager'].id}/deactivate", headers=manager)
    assert own.status_code == 400


async def test_update_own_profile(client, users):
    response = await client.patch(
        "/api/users/me", json={"phone": "0977000111"}, headers=auth_headers(users["tenant"])
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "0977000111"


async def test_momo_initiate_when_disabled(client, users, active_lease):
    response = await client.post(
        "/api/payments/momo/initiate",
        json={
            "lease_id": str(active_lease.id),
            "amount_cents": 500_000,
            "phone_number": "0971234567",
        },
        headers=auth_headers(users["tenant"]),
    )
    assert response.status_code == 503

    staff = await client.post(
        "/api/payments/momo/initiate",
        json={"lease_id": str(active_lease.id), "amount_cents": 500_000, "phone_number": "0971234567"},
        headers=auth_headers(users["landlord"]),
    )
    assert staff.status_code == 403


async def test_expire_leases_is_manager_only(client, users, active_lease):
    assert (await client.post("/api/leases/expire", headers=auth_headers(users["landlord"]))).status_code == 403
    response = await client.post("/api/leases/expire", headers=auth_headers(users["manager"]))
    assert response.json() == {"expired": 0, "lease_ids": []}
    # Still within its term
    lease = (await client.get(f"/api/leases/{active_lease.id}", headers=auth_headers(users["manager"]))).json()
    assert lease["status"] == "active"
    assert date.fromisoformat(lease["end_date"]) > date.today()
