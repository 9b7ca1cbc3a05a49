from conftest import auth_headers


async def test_requests_without_identity_are_rejected(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401


async def test_me_for_unregistered_identity(client):
    response = await client.get(
        "/api/auth/me", headers={"X-Test-Uid": "uid-new", "X-Test-Email": "new@mail.co.zm"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["registered"] is False
    assert body["user"] is None


async def test_unregistered_identity_cannot_use_portal(client):
    response = await client.get(
        "/api/properties", headers={"X-Test-Uid": "uid-new", "X-Test-Email": "new@mail.co.zm"}
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Registration required"


async def test_register_claims_invited_tenant(client, users):
    landlord = auth_headers(users["landlord"])
    invited = await client.post(
        "/api/tenants",
        json={"email": "Mutale@Mail.co.zm", "name": "Mutale Chanda"},
        headers=landlord,
    )
    assert invited.status_code == 201
    assert invited.json()["email"] == "mutale@mail.co.zm"

    registered = await client.post(
        "/api/auth/register",
        json={"name": "Mutale C.", "role": "landlord"},
        headers={"X-Test-Uid": "uid-mutale", "X-Test-Email": "mutale@mail.co.zm"},
    )
    assert registered.status_code == 201
    body = registered.json()
    assert body["id"] == invited.json()["id"]
    # Role assigned by staff is kept
    assert body["role"] == "tenant"


async def test_unverified_email_cannot_claim_invited_account(client, users):
    invited = await client.post(
        "/api/users",
        json={"email": "newmanager@mail.co.zm", "name": "New Manager", "role": "manager"},
        headers=auth_headers(users["admin"]),
    )
    assert invited.status_code == 201

    login = {"X-Test-Uid": "uid-impostor", "X-Test-Email": "newmanager@mail.co.zm"}
    refused = await client.post(
        "/api/auth/register",
        json={"name": "Impostor"},
        headers={**login, "X-Test-Email-Verified": "false"},
    )
    assert refused.status_code == 403
    assert "Verify your email" in refused.json()["detail"]

    me = await client.get("/api/auth/me", headers={**login, "X-Test-Email-Verified": "false"})
    assert me.json()["registered"] is False

    claimed = await client.post("/api/auth/register", json={"name": "New Manager"}, headers=login)
    assert claimed.status_code == 201
    assert claimed.json()["role"] == "manager"


async def test_register_new_landlord_and_reject_manager_self_signup(client):
    headers = {"X-Test-Uid": "uid-lw", "X-Test-Email": "lw@mail.co.zm"}
    manager = await client.post("/api/auth/register", json={"name": "LW", "role": "manager"}, headers=headers)
    assert manager.status_code == 422

    landlord = await client.post("/api/auth/register", json={"name": "LW", "role": "landlord"}, headers=headers)
    assert landlord.status_code == 201
    assert landlord.json()["role"] == "landlord"

    again = await client.post("/api/auth/register", json={"name": "LW"}, headers=headers)
    assert again.status_code == 400


async def test_deactivated_user_is_blocked(client, users, db):
    users["landlord"].is_active = False
    db.add(users["landlord"])
    await db.commit()

    response = await client.get("/api/properties", headers=auth_headers(users["landlord"]))
    assert response.status_code == 403
    assert response.json()["detail"] == "Account is deactivated"


async def test_tenants_cannot_reach_staff_routes(client, users):
    tenant = auth_headers(users["tenant"])
    response = await client.post(
        "/api/properties",
        json={"name": "Mine", "address": "Somewhere", "monthly_rent_cents": 100},
        headers=tenant,
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"

    assert (await client.get("/api/reports/overview", headers=tenant)).status_code == 403


async def test_register_is_rate_limited(client, users):
    # Refused attempts count against the limit too
    for _ in range(5):
        response = await client.post("/api/auth/register", json={"name": "Again"}, headers=auth_headers(users["tenant"]))
        assert response.status_code == 400

    limited = await client.post("/api/auth/register", json={"name": "Again"}, headers=auth_headers(users["tenant"]))
    assert limited.status_code == 429
    assert limited.json()["detail"].startswith("Too many requests")

    # Other routes are unaffected
    assert (await client.get("/api/auth/me", headers=auth_headers(users["tenant"]))).status_code == 200
