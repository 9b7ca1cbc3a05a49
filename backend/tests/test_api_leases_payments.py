from datetime import date, timedelta

from conftest import auth_headers


async def create_lease(client, users, property_, start=None, deposit=500_000):
    start = start or date.today()
    response = await client.post(
        "/api/leases",
        json={
            "property_id": str(property_.id),
            "tenant_id": str(users["tenant"].id),
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=365)).isoformat(),
            "payment_due_day": 1,
            "monthly_rent_cents": 500_000,
            "security_deposit_cents": deposit,
            "utilities_included": ["Water"],
        },
        headers=auth_headers(users["landlord"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_lease_signature_payment_and_activation(client, users, property_):
    landlord = auth_headers(users["landlord"])
    tenant = auth_headers(users["tenant"])

    lease = await create_lease(client, users, property_)
    assert lease["status"] == "draft"
    assert lease["first_payment_required_cents"] == 1_000_000
    assert lease["balance_due_cents"] == 1_000_000
    assert lease["next_action"]["action"] == "send_to_tenant"

    sent = await client.post(f"/api/leases/{lease['id']}/send", headers=landlord)
    assert sent.json()["status"] == "pending_signature"

    signed = await client.post(
        f"/api/leases/{lease['id']}/sign", json={"signature_data": "T. Tembo"}, headers=tenant
    )
    assert signed.status_code == 200
    assert signed.json()["status"] == "signed"
    assert signed.json()["next_action"]["action"] == "make_payment"

    submitted = await client.post(
        "/api/payments",
        json={
            "lease_id": lease["id"],
            "amount_cents": 1_000_000,
            "payment_date": date.today().isoformat(),
            "payment_method": "mobile_money",
            "reference_number": "MP240610.1200.A1",
            # Tenants cannot self-certify a payment
            "status": "completed",
        },
        headers=tenant,
    )
    assert submitted.status_code == 201, submitted.text
    payment = submitted.json()
    assert payment["status"] == "pending"
    assert payment["approval_status"] == "pending"
    assert payment["receipt_number"].startswith("PAY-")

    # Balance only moves on verification
    unchanged = await client.get(f"/api/leases/{lease['id']}", headers=landlord)
    assert unchanged.json()["balance_due_cents"] == 1_000_000

    verified = await client.post(
        f"/api/payments/{payment['id']}/verify",
        json={"action": "verify", "notes": "Seen on MoMo statement"},
        headers=landlord,
    )
    assert verified.status_code == 200, verified.text
    body = verified.json()
    assert body["payment"]["status"] == "verified"
    assert body["activation"] == "activated"
    assert body["lease_status"] == "active"

    active = (await client.get(f"/api/leases/{lease['id']}", headers=tenant)).json()
    assert active["status"] == "active"
    assert active["balance_due_cents"] == 0
    assert active["total_paid_cents"] == 1_000_000
    assert active["activation_method"] == "payment"
    assert [entry["to"] for entry in active["status_history"]] == ["pending_signature", "signed", "active"]

    notifications = (await client.get("/api/notifications", headers=tenant)).json()
    types = {n["type"] for n in notifications["notifications"]}
    assert {"lease_sent", "payment_verified", "lease_activated"} <= types


async def test_duplicate_payment_is_rejected(client, users, active_lease):
    landlord = auth_headers(users["landlord"])
    payload = {
        "lease_id": str(active_lease.id),
        "amount_cents": 500_000,
        "payment_date": date.today().isoformat(),
        "payment_method": "cash",
        "status": "completed",
    }
    first = await client.post("/api/payments", json=payload, headers=landlord)
    assert first.status_code == 201
    assert first.json()["approval_status"] == "approved"

    second = await client.post("/api/payments", json=payload, headers=landlord)
    assert second.status_code == 409


async def test_payment_amount_limits(client, users, active_lease):
    response = await client.post(
        "/api/payments",
        json={
            "lease_id": str(active_lease.id),
            "amount_cents": 100_000_001,
            "payment_date": date.today().isoformat(),
        },
        headers=auth_headers(users["landlord"]),
    )
    assert response.status_code == 400
    assert "maximum" in response.json()["detail"]


async def test_verified_payment_cannot_be_cancelled(client, users, active_lease):
    landlord = auth_headers(users["landlord"])
    created = await client.post(
        "/api/payments",
        json={
            "lease_id": str(active_lease.id),
            "amount_cents": 500_000,
            "payment_date": date.today().isoformat(),
        },
        headers=landlord,
    )
    payment_id = created.json()["id"]
    await client.post(f"/api/payments/{payment_id}/verify", json={"action": "verify"}, headers=landlord)

    cancelled = await client.post(
        f"/api/payments/{payment_id}/cancel", json={"reason": "Mistake"}, headers=landlord
    )
    assert cancelled.status_code == 400
    assert "disputed" in cancelled.json()["detail"]

    disputed = await client.post(
        f"/api/payments/{payment_id}/verify",
        json={"action": "dispute", "notes": "Bounced"},
        headers=landlord,
    )
    assert disputed.status_code == 200
    assert disputed.json()["payment"]["status"] == "disputed"


async def test_leases_are_scoped_by_role(client, users, active_lease):
    path = f"/api/leases/{active_lease.id}"
    assert (await client.get(path, headers=auth_headers(users["landlord"]))).status_code == 200
    assert (await client.get(path, headers=auth_headers(users["manager"]))).status_code == 200
    assert (await client.get(path, headers=auth_headers(users["tenant"]))).status_code == 200
    assert (await client.get(path, headers=auth_headers(users["other_landlord"]))).status_code == 404
    assert (await client.get(path, headers=auth_headers(users["other_tenant"]))).status_code == 404

    listed = await client.get("/api/leases", headers=auth_headers(users["other_landlord"]))
    assert listed.json()["total"] == 0


async def test_landlord_cannot_lease_someone_elses_property(client, users, other_property):
    response = await client.post(
        "/api/leases",
        json={
            "property_id": str(other_property.id),
            "tenant_id": str(users["tenant"].id),
            "start_date": date.today().isoformat(),
            "end_date": (date.today() + timedelta(days=30)).isoformat(),
            "monthly_rent_cents": 800_000,
        },
        headers=auth_headers(users["landlord"]),
    )
    assert response.status_code == 404


async def test_lease_end_must_follow_start(client, users, property_):
    response = await client.post(
        "/api/leases",
        json={
            "property_id": str(property_.id),
            "tenant_id": str(users["tenant"].id),
            "start_date": "2024-06-10",
            "end_date": "2024-06-10",
            "monthly_rent_cents": 500_000,
        },
        headers=auth_headers(users["landlord"]),
    )
    assert response.status_code == 422


async def test_manual_activation_then_terminate(client, users, property_):
    landlord = auth_headers(users["landlord"])
    lease = await create_lease(client, users, property_, start=date.today() + timedelta(days=60))

    activated = await client.post(
        f"/api/leases/{lease['id']}/activate",
        json={"action": "activate", "reason": "Paid deposit in cash"},
        headers=landlord,
    )
    assert activated.status_code == 200
    assert activated.json()["lease"]["activation_method"] == "manual"

    again = await client.post(
        f"/api/leases/{lease['id']}/activate",
        json={"action": "activate", "reason": "twice"},
        headers=landlord,
    )
    assert again.status_code == 400

    terminated = await client.post(
        f"/api/leases/{lease['id']}/terminate", json={"reason": "Tenant withdrew"}, headers=landlord
    )
    assert terminated.json()["status"] == "terminated"


async def test_lease_contact_links_and_pdf(client, users, active_lease):
    landlord = auth_headers(users["landlord"])
    links = (await client.get(f"/api/leases/{active_lease.id}/contact-links", headers=landlord)).json()
    assert links["whatsapp"].startswith("https://wa.me/260971234567?text=")
    assert links["email"].startswith("https://mail.google.com/mail/?view=cm")

    pdf = await client.get(f"/api/leases/{active_lease.id}/pdf", headers=auth_headers(users["tenant"]))
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")
