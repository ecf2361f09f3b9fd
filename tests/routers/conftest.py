from typing import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from formapi.database import database
from formapi.main import app
from formapi.storage import get_storage


@pytest.fixture()
def client() -> Generator:
    yield TestClient(app)


@pytest.fixture(autouse=True)
async def db() -> AsyncGenerator:
    await database.connect()
    yield
    await database.disconnect()


@pytest.fixture()
async def async_client(client) -> AsyncGenerator:
    async with AsyncClient(transport=ASGITransport(app=app), base_url=client.base_url) as ac:
        yield ac


@pytest.fixture()
def storage_override(fake_storage) -> Generator:
    app.dependency_overrides[get_storage] = lambda: fake_storage
    yield fake_storage
    app.dependency_overrides.pop(get_storage, None)


async def signup(async_client: AsyncClient, name: str, email: str, password: str) -> dict:
    user = {"name": name, "email": email, "password": password}
    response = await async_client.post("/user/signup", json=user)
    user["id"] = response.json()["data"]["_id"]
    return user


async def login(async_client: AsyncClient, email: str, password: str) -> str:
    response = await async_client.post(
        "/user/login", json={"userData": {"email": email, "password": password}}
    )
    return response.json()["access_token"]


@pytest.fixture()
async def registered_user(async_client: AsyncClient) -> dict:
    return await signup(async_client, "Test User", "test@example.net", "1234")


@pytest.fixture()
async def other_user(async_client: AsyncClient) -> dict:
    return await signup(async_client, "Other User", "other@example.net", "5678")


@pytest.fixture()
async def logged_in_token(async_client: AsyncClient, registered_user: dict) -> str:
    return await login(async_client, registered_user["email"], registered_user["password"])


@pytest.fixture()
async def other_token(async_client: AsyncClient, other_user: dict) -> str:
    return await login(async_client, other_user["email"], other_user["password"])


async def create_form(async_client: AsyncClient, creator_id: int, fields: list, title="Sample Form") -> dict:
    response = await async_client.post(
        "/user/add_form",
        json={"creatorId": creator_id, "title": title, "fields": fields},
    )
    return response.json()["data"]


@pytest.fixture()
async def created_form(async_client: AsyncClient, registered_user: dict, sample_fields: list) -> dict:
    return await create_form(async_client, registered_user["id"], sample_fields)
