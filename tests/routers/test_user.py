import asyncio

import pytest
from httpx import AsyncClient

from formapi.routers import user as user_router

pytestmark = pytest.mark.anyio


async def test_register_user(async_client: AsyncClient):
    response = await async_client.post(
        "/api/register", json={"username": "alice", "password": "secret123", "name": "Alice"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["username"] == "alice"
    assert body["user"]["name"] == "Alice"
    assert "createdAt" in body["user"]
    assert "password" not in body["user"]


async def test_register_user_already_exists(async_client: AsyncClient, registered_user: dict):
    response = await async_client.post(
        "/api/register", json={"username": "alice", "password": "another123"}
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Username already exists"}


async def test_concurrent_registrations_of_one_username(async_client: AsyncClient):
    payload = {"username": "racer", "password": "secret123"}
    responses = await asyncio.gather(
        *(async_client.post("/api/register", json=payload) for _ in range(5))
    )

    statuses = sorted(response.status_code for response in responses)
    assert statuses == [201, 400, 400, 400, 400]
    for response in responses:
        if response.status_code == 400:
            assert response.json() == {"message": "Username already exists"}


async def test_register_insert_losing_race_returns_conflict(
    async_client: AsyncClient, registered_user: dict, monkeypatch
):
    async def no_user(username):
        return None

    # the pre-insert lookup misses; the unique index must still answer 400
    monkeypatch.setattr(user_router, "get_user", no_user)
    response = await async_client.post(
        "/api/register", json={"username": "alice", "password": "another123"}
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Username already exists"}


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "al", "password": "secret123"},
        {"username": "alice", "password": "123"},
        {"username": "alice"},
    ],
)
async def test_register_invalid_payload(async_client: AsyncClient, payload: dict):
    response = await async_client.post("/api/register", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid request data"
    assert body["errors"]


async def test_login_user(async_client: AsyncClient, registered_user: dict):
    response = await async_client.post(
        "/api/login",
        json={"username": registered_user["username"], "password": registered_user["password"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token"]
    assert body["user"]["id"] == registered_user["id"]


async def test_login_wrong_password(async_client: AsyncClient, registered_user: dict):
    response = await async_client.post(
        "/api/login", json={"username": registered_user["username"], "password": "wrong-one"}
    )

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid username or password"}


async def test_login_unknown_user(async_client: AsyncClient):
    response = await async_client.post(
        "/api/login", json={"username": "nobody", "password": "secret123"}
    )

    assert response.status_code == 401


async def test_get_current_user(async_client: AsyncClient, registered_user: dict):
    response = await async_client.get("/api/user", headers=registered_user["headers"])

    assert response.status_code == 200
    assert response.json()["username"] == "alice"


async def test_get_current_user_without_token(async_client: AsyncClient):
    response = await async_client.get("/api/user")

    assert response.status_code == 401
    assert response.json() == {"message": "Not authenticated"}
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.parametrize(
    "authorization",
    ["Bearer not-a-token", "Basic YWxpY2U6c2VjcmV0", "Bearer"],
)
async def test_get_current_user_bad_token(async_client: AsyncClient, authorization: str):
    response = await async_client.get("/api/user", headers={"Authorization": authorization})

    assert response.status_code == 401
    assert response.json() == {"message": "Not authenticated"}


async def test_logout(async_client: AsyncClient):
    response = await async_client.post("/api/logout")

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}


async def test_health(async_client: AsyncClient):
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
