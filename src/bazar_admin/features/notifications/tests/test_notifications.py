import pytest
from fastapi import status
from httpx import AsyncClient

from bazar_admin.features.articles.models import Article
from bazar_admin.features.audit.models import AdminLog
from bazar_admin.features.notifications.models import AdminNotification, EmailTemplate
from bazar_admin.features.notifications.service import (
    create_admin_notification, render_template, seed_default_templates, send_moderation_email
)


def test_render_template():
    rendered = render_template(
        "Hi {{first_name}}, {{article_title}} {{missing}} {{rejection_reason}}",
        {"first_name": "Ana", "article_title": "Lamp", "rejection_reason": None},
    )
    assert rendered == "Hi Ana, Lamp {{missing}} "


@pytest.mark.asyncio
async def test_seed_default_templates_is_idempotent():
    assert sorted(await seed_default_templates()) == ["article_approved", "article_rejected"]
    assert await seed_default_templates() == []
    assert await EmailTemplate.all().count() == 2


@pytest.mark.asyncio
async def test_send_moderation_email(make_article):
    await seed_default_templates()
    article = await make_article(title="Vintage radio")
    article = await Article.get(id=article.id).prefetch_related("user")

    email = await send_moderation_email(article, "rejected", "blurry photos")
    assert email is not None
    assert email.template == "article_rejected"
    assert email.to == "customerfixture@example.com"
    assert "Vintage radio" in email.subject
    assert "Hi Customer," in email.body
    assert "Reason: blurry photos" in email.body
    assert f"/article/{article.public_id}" in email.body


@pytest.mark.asyncio
async def test_send_moderation_email_skips_inactive_template(make_article):
    await seed_default_templates()
    await EmailTemplate.filter(name="article_approved").update(is_active=False)
    article = await Article.get(id=(await make_article()).id).prefetch_related("user")

    assert await send_moderation_email(article, "approved") is None


@pytest.mark.asyncio
async def test_list_notifications_orders_by_severity(support_client: AsyncClient):
    await create_admin_notification("system_alert", "Low one", "m", severity="low")
    await create_admin_notification("security_incident", "Critical one", "m", severity="critical")
    await create_admin_notification("user_report", "Medium old", "m")
    await create_admin_notification("user_report", "Medium new", "m")
    read = await create_admin_notification("content_flag", "High read", "m", severity="high")
    read.is_read = True
    await read.save()

    response = await support_client.get("/api/v1/admin/notifications/")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 5
    assert [n["title"] for n in data["notifications"]] == [
        "Critical one", "High read", "Medium new", "Medium old", "Low one"
    ]

    unread = await support_client.get("/api/v1/admin/notifications/", params={"unread_only": "true", "limit": 2})
    unread_data = unread.json()
    assert unread_data["total"] == 4
    assert unread_data["has_more"] is True
    assert [n["title"] for n in unread_data["notifications"]] == ["Critical one", "Medium new"]

    tail = await support_client.get("/api/v1/admin/notifications/", params={"offset": 3, "limit": 5})
    assert tail.json()["has_more"] is False
    assert [n["title"] for n in tail.json()["notifications"]] == ["Medium old", "Low one"]


@pytest.mark.asyncio
async def test_mark_notification_read(moderator_client: AsyncClient, support_client: AsyncClient):
    notification = await create_admin_notification("system_alert", "Disk almost full", "90% used", severity="high")

    forbidden = await support_client.post(f"/api/v1/admin/notifications/{notification.public_id}/read")
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    response = await moderator_client.post(f"/api/v1/admin/notifications/{notification.public_id}/read")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_read"] is True

    await notification.refresh_from_db()
    assert notification.is_read is True
    assert notification.read_at is not None
    log = await AdminLog.get(action="mark_notification_read")
    assert log.target_type == "admin_notifications"
    assert log.target_id == notification.public_id


@pytest.mark.asyncio
async def test_mark_missing_notification_read(moderator_client: AsyncClient):
    response = await moderator_client.post("/api/v1/admin/notifications/nope/read")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Notification not found"
    assert await AdminNotification.all().count() == 0


@pytest.mark.asyncio
async def test_create_security_alert(admin_client: AsyncClient):
    response = await admin_client.post(
        "/api/v1/admin/notifications/alerts",
        json={
            "type": "security_incident",
            "title": "Credential stuffing",
            "message": "Many failed logins from one network",
            "severity": "critical",
            "data": {"ip_range": "10.0.0.0/24"},
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["message"] == "Security alert created successfully"
    assert body["notification"]["type"] == "security_incident"
    assert body["notification"]["severity"] == "critical"
    assert body["notification"]["data"] == {"ip_range": "10.0.0.0/24"}

    notification = await AdminNotification.get(public_id=body["notification"]["public_id"])
    assert notification.is_read is False
    log = await AdminLog.get(action="create_security_alert")
    assert log.target_type == "admin_notifications"
    assert log.target_id == notification.public_id
    assert log.description == "Created critical security alert: Credential stuffing"


@pytest.mark.asyncio
async def test_create_security_alert_validation_and_role(admin_client: AsyncClient, moderator_client: AsyncClient):
    alert = {"type": "system_alert", "title": "Queue stalled", "message": "No jobs for 1h", "severity": "high"}

    forbidden = await moderator_client.post("/api/v1/admin/notifications/alerts", json=alert)
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    for field, value in (("type", "user_report"), ("severity", "urgent"), ("title", "")):
        invalid = await admin_client.post("/api/v1/admin/notifications/alerts", json={**alert, field: value})
        assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    assert await AdminNotification.all().count() == 0
