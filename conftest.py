"""
Root conftest for the pytest test suite.

Every test runs against a fresh in-memory SQLite database created by the
autouse `initialize_test_db` fixture, seeded with one customer, one
reporting customer and three admins (support, moderator, admin).

HTTP tests use an httpx AsyncClient over the ASGI app. The transport does
not run the application lifespan, so the production database is never
touched.

Key Fixtures:
- `anyio_backend`: Specifies the asyncio backend.
- `initialize_test_db`: (autouse) Creates a fresh DB schema and seed users for each test.
- `client`: Non-authenticated client.
- `customer_client`, `support_client`, `moderator_client`, `admin_client`:
  clients authenticated as the corresponding seed user.
- `seller`, `reporter`, `moderator_user`, `admin_user`: the seed users.
- `category`, `make_article`, `make_report`: marketplace data builders.
"""

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from bazar_admin.core.config import MODEL_MODULES
from bazar_admin.features.auth.models import User
from bazar_admin.features.auth.security import get_password_hash
from bazar_admin.features.articles.models import Article, Category
from bazar_admin.features.reports.models import UserReport
from bazar_admin.main import app

FIXTURE_PASSWORD = "fixturepassword123"
FIXTURE_PASSWORD_HASH = get_password_hash(FIXTURE_PASSWORD)

# username, role, admin_role
FIXTURE_USERS = [
    ("customerfixture", "customer", None),
    ("reporterfixture", "customer", None),
    ("supportfixture", "admin", "support"),
    ("moderatorfixture", "admin", "moderator"),
    ("adminfixture", "admin", "admin"),
]


async def add_fixture_users():
    for username, role, admin_role in FIXTURE_USERS:
        await User.create(
            username=username,
            email=f"{username}@example.com",
            first_name=username.replace("fixture", "").capitalize(),
            hashed_password=FIXTURE_PASSWORD_HASH,
            role=role,
            admin_role=admin_role,
        )


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest_asyncio.fixture(scope="function", autouse=True)
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """Creates a fresh in-memory database and seed users for each test."""
    test_db_config = {
        "connections": {"default": "sqlite://:memory:"},
        "apps": {
            "models": {
                "models": MODEL_MODULES,
                "default_connection": "default",
            }
        },
        "use_tz": False,
        "timezone": "UTC",
    }
    await Tortoise.init(config=test_db_config)
    await Tortoise.generate_schemas()
    await add_fixture_users()

    yield

    await Tortoise.close_connections()


async def _authenticated_client(username: Optional[str]) -> AsyncClient:
    ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    if username:
        response = await ac.post(
            "/api/v1/auth/token",
            data={"username": username, "password": FIXTURE_PASSWORD},
        )
        if response.status_code != 200:
            await ac.aclose()
            raise Exception(f"Authentication failed for {username}: {response.text}")
        ac.headers["Authorization"] = f"Bearer {response.json()['access_token']}"
    return ac


@pytest_asyncio.fixture(scope="function")
async def client() -> AsyncGenerator[AsyncClient, None]:
    ac = await _authenticated_client(None)
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def customer_client() -> AsyncGenerator[AsyncClient, None]:
    ac = await _authenticated_client("customerfixture")
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def support_client() -> AsyncGenerator[AsyncClient, None]:
    ac = await _authenticated_client("supportfixture")
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def moderator_client() -> AsyncGenerator[AsyncClient, None]:
    ac = await _authenticated_client("moderatorfixture")
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def admin_client() -> AsyncGenerator[AsyncClient, None]:
    ac = await _authenticated_client("adminfixture")
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def seller() -> User:
    return await User.get(username="customerfixture")


@pytest_asyncio.fixture(scope="function")
async def reporter() -> User:
    return await User.get(username="reporterfixture")


@pytest_asyncio.fixture(scope="function")
async def moderator_user() -> User:
    return await User.get(username="moderatorfixture")


@pytest_asyncio.fixture(scope="function")
async def admin_user() -> User:
    return await User.get(username="adminfixture")


@pytest_asyncio.fixture(scope="function")
async def category() -> Category:
    return await Category.create(name="Electronics", slug="electronics")


@pytest.fixture(scope="function")
def make_article(seller: User, category: Category):
    """Returns a builder for articles owned by `seller` in `category`."""
    async def _make_article(**overrides) -> Article:
        data = {
            "user": seller,
            "category": category,
            "title": "Used film camera",
            "description": "Works fine, minor scratches",
            "price": 100.0,
            "status": "draft",
        }
        data.update(overrides)
        return await Article.create(**data)

    return _make_article


@pytest.fixture(scope="function")
def make_report(reporter: User):
    """Returns a builder for reports filed by `reporter`."""
    async def _make_report(**overrides) -> UserReport:
        data = {
            "reporter": reporter,
            "report_type": "spam",
            "description": "Looks like spam",
            "status": "pending",
        }
        data.update(overrides)
        return await UserReport.create(**data)

    return _make_report
