from conftest import auth_headers
from propertyhub.models.enums import NotificationType
from propertyhub.services.notifications import NotificationService


async def seed_notifications(db, recipient, count=3):
    service = NotificationService(db)
    created = []
    for i in range(count):
        created.append(
            await service.create(
                recipient_id=recipient.id,
                type=NotificationType.GENERAL,
                title=f"Notice {i}",
                message="Water will be off on Saturday",
            )
        )
    await db.commit()
    return created


async def test_list_and_unread_count(client, users, db):
    await seed_notifications(db, users["tenant"])
    headers = auth_headers(users["tenant"])

    listed = (await client.get("/api/notifications", params={"limit": 2}, headers=headers)).json()
    assert listed["total"] == 3
    assert listed["unread_count"] == 3
    assert len(listed["notifications"]) == 2

    count = (await client.get("/api/notifications/unread-count", headers=headers)).json()
    assert count == {"unread_count": 3}


async def test_mark_read_unread_and_all(client, users, db):
    first, *_ = await seed_notifications(db, users["tenant"])
    headers = auth_headers(users["tenant"])

    read = await client.patch(f"/api/notifications/{first.id}", json={"is_read": True}, headers=headers)
    assert read.json()["is_read"] is True
    assert read.json()["read_at"] is not None

    unread = await client.patch(f"/api/notifications/{first.id}", json={"is_read": False}, headers=headers)
    assert unread.json()["is_read"] is False
    assert unread.json()["read_at"] is None

    marked = await client.post("/api/notifications/mark-all-read", headers=headers)
    assert marked.json()["message"] == "Marked 3 notification(s) as read"

    only_unread = (await client.get("/api/notifications", params={"unread_only": True}, headers=headers)).json()
    assert only_unread["total"] == 0


async def test_notifications_are_private(client, users, db):
    [notification] = await seed_notifications(db, users["tenant"], count=1)
    other = auth_headers(users["other_tenant"])

    assert (await client.get("/api/notifications", headers=other)).json()["total"] == 0
    assert (
        await client.patch(f"/api/notifications/{notification.id}", json={"is_read": True}, headers=other)
    ).status_code == 404
    assert (await client.delete(f"/api/notifications/{notification.id}", headers=other)).status_code == 404

    owner = auth_headers(users["tenant"])
    assert (await client.delete(f"/api/notifications/{notification.id}", headers=owner)).status_code == 204
    assert (await client.get("/api/notifications", headers=owner)).json()["total"] == 0
