import pytest
from fastapi import status
from httpx import AsyncClient

from bazar_admin.features.audit.models import AdminLog
from bazar_admin.features.auth.models import User
from bazar_admin.features.auth.security import get_password_hash, verify_password
from bazar_admin.features.auth.service import admin_role_rank, has_admin_role


# test password hashing and verification
def test_password_hashing():
    password = "test_password"
    hashed = get_password_hash(password)
    assert verify_password(password, hashed) is True
    assert verify_password("wrong_password", hashed) is False
    assert hashed != password


def test_password_hash_consistency():
    password = "test_password"
    hashed1 = get_password_hash(password)
    hashed2 = get_password_hash(password)
    assert hashed1 != hashed2, "Hashing the same password should yield different hash"


def test_password_hash_special_characters():
    password = "!@#$%^&*()_+"
    hashed = get_password_hash(password)
    assert verify_password(password, hashed) is True
    assert verify_password("wrong_password", hashed) is False


def test_admin_role_rank_order():
    assert admin_role_rank("support") < admin_role_rank("moderator") < admin_role_rank("admin")
    assert admin_role_rank("admin") < admin_role_rank("super_admin")
    assert admin_role_rank(None) == -1
    assert admin_role_rank("janitor") == -1


def test_has_admin_role():
    moderator = User(username="m", role="admin", admin_role="moderator")
    assert has_admin_role(moderator, "support") is True
    assert has_admin_role(moderator, "moderator") is True
    assert has_admin_role(moderator, "admin") is False

    # A customer never passes, whatever admin_role it carries
    customer = User(username="c", role="customer", admin_role="super_admin")
    assert has_admin_role(customer, "support") is False

    no_role = User(username="n", role="admin", admin_role=None)
    assert has_admin_role(no_role, "support") is False


@pytest.mark.asyncio
async def test_login_with_bad_password(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/token", data={"username": "adminfixture", "password": "nope-nope-nope"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Incorrect username or password"

    failed = await AdminLog.get(action="failed_login").prefetch_related("admin")
    assert failed.admin.username == "adminfixture"
    assert failed.target_type == "users"
    assert failed.target_id == failed.admin.public_id
    assert failed.ip_address == "127.0.0.1"


@pytest.mark.asyncio
async def test_failed_login_not_recorded_for_customers_or_unknown_users(client: AsyncClient):
    for username in ("customerfixture", "nobody-here"):
        response = await client.post(
            "/api/v1/auth/token", data={"username": username, "password": "nope-nope-nope"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert await AdminLog.filter(action="failed_login").count() == 0


@pytest.mark.asyncio
async def test_login_refused_for_suspended_user(client: AsyncClient, seller: User):
    seller.status = "suspended"
    await seller.save()

    response = await client.post(
        "/api/v1/auth/token", data={"username": "customerfixture", "password": "fixturepassword123"}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Account suspended"


@pytest.mark.asyncio
async def test_suspended_admin_token_rejected(admin_client: AsyncClient, admin_user: User):
    admin_user.status = "suspended"
    await admin_user.save()

    response = await admin_client.get("/api/v1/admin/articles/")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_register_and_read_me(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"username": "newseller", "email": "newseller@example.com", "password": "longenoughpw"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["role"] == "customer"
    assert data["status"] == "active"
    assert data["is_active"] is True
    assert data["admin_role"] is None

    token_response = await client.post(
        "/api/v1/auth/token", data={"username": "newseller", "password": "longenoughpw"}
    )
    token = token_response.json()["access_token"]
    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["public_id"] == data["public_id"]


@pytest.mark.asyncio
async def test_register_duplicate_username(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"username": "adminfixture", "email": "other@example.com", "password": "longenoughpw"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Username already registered"


@pytest.mark.asyncio
async def test_admin_endpoints_require_authentication(client: AsyncClient):
    response = await client.get("/api/v1/admin/reports/")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_customer_cannot_reach_admin_endpoints(customer_client: AsyncClient):
    response = await customer_client.get("/api/v1/admin/articles/statistics")
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "The user doesn't have enough privileges"


@pytest.mark.asyncio
async def test_support_admin_cannot_moderate(support_client: AsyncClient, make_article):
    article = await make_article()
    response = await support_client.post(
        f"/api/v1/admin/articles/{article.public_id}/moderate", json={"action": "approve"}
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Admin role 'moderator' or higher required"


@pytest.mark.asyncio
async def test_moderator_cannot_read_audit_log(moderator_client: AsyncClient):
    response = await moderator_client.get("/api/v1/admin/logs/")
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Admin role 'admin' or higher required"
