"""Shared request helpers for API tests."""

from typing import Any

from httpx import AsyncClient, Response

PASSWORD = "Secret123!"


async def register(
    client: AsyncClient,
    email: str = "alice@example.com",
    password: str = PASSWORD,
    full_name: str = "Alice",
    company_name: str | None = "Alice Co",
    **extra: Any,
) -> Response:
    body: dict[str, Any] = {"email": email, "password": password, "fullName": full_name}
    if company_name is not None:
        body["companyName"] = company_name
    body.update(extra)
    return await client.post("/api/v1/auth/register", json=body)


async def login(
    client: AsyncClient, email: str = "alice@example.com", password: str = PASSWORD
) -> Response:
    return await client.post("/api/v1/auth/login", json={"email": email, "password": password})


async def register_and_token(client: AsyncClient, **kwargs: Any) -> str:
    response = await register(client, **kwargs)
    assert response.status_code == 201, response.text
    return response.json()["data"]["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
