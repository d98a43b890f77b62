import os
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

os.environ["ENV_STATE"] = "test"

from formapi.database import database  # noqa: E402
from formapi.main import app  # noqa: E402
from formapi.security import create_user  # noqa: E402

SAMPLE_FORM = {
    "form": {"title": "Favourites", "description": "A short survey"},
    "questions": [
        {"text": "Name", "type": "text", "required": True},
        {"text": "Color", "type": "dropdown", "options": ["Red", "Blue"]},
    ],
}


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
async def db() -> AsyncGenerator:
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture()
async def async_client(db) -> AsyncGenerator:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def register(async_client: AsyncClient, username: str, password: str = "secret123") -> dict:
    response = await async_client.post(
        "/api/register", json={"username": username, "password": password}
    )
    body = response.json()
    return {
        "id": body["user"]["id"],
        "username": username,
        "password": password,
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest.fixture()
async def registered_user(async_client: AsyncClient) -> dict:
    return await register(async_client, "alice")


@pytest.fixture()
async def other_user(async_client: AsyncClient) -> dict:
    return await register(async_client, "mallory")


@pytest.fixture()
async def created_form(async_client: AsyncClient, registered_user: dict) -> dict:
    response = await async_client.post(
        "/api/forms", json=SAMPLE_FORM, headers=registered_user["headers"]
    )
    return response.json()


@pytest.fixture()
async def owner(db):
    return await create_user("owner", "secret123", "Owner")


@pytest.fixture()
async def stranger(db):
    return await create_user("stranger", "secret123")
