"""Test fixtures: an app on a throwaway SQLite database and an in-process client."""

import pytest
from httpx import ASGITransport, AsyncClient

from educrm.config import Settings
from educrm.container import Container
from educrm.main import create_app
from educrm.models import Role
from tests.helpers import bearer, create_course, create_group, login, seed_user

ADMIN_EMAIL = "admin@x.io"
ADMIN_PASSWORD = "correct-horse"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path}/educrm-test.db",
        app_env="staging",
        password_hash_cost=10,
        transaction_retry_base_delay=0.001,
    )


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    await application.state.container.database.init_models()
    yield application
    await application.state.container.close()


@pytest.fixture
def container(app) -> Container:
    return app.state.container


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def admin_headers(client, container) -> dict[str, str]:
    await seed_user(container, ADMIN_EMAIL, ADMIN_PASSWORD, Role.ADMIN, first_name="Grace")
    data = await login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    return bearer(data["token"])


@pytest.fixture
async def course(client, admin_headers) -> dict:
    return await create_course(client, admin_headers)


@pytest.fixture
async def group(client, admin_headers, course) -> dict:
    return await create_group(client, admin_headers, course["id"], capacity=2)
