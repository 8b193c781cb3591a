"""GoTrue (Supabase Auth) identity provider over its HTTP admin API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.application.dtos.identity import ProviderResult
from app.shared.enums import ProviderErrorKind

logger = logging.getLogger(__name__)

_DUPLICATE_CODES = frozenset({"email_exists", "user_already_exists"})


def _error_code(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        code = body.get("error_code") or body.get("code") or body.get("error")
        return str(code) if code is not None else None
    return None


def _classify(response: httpx.Response) -> ProviderErrorKind:
    """Map an error response to a ProviderErrorKind by status and error_code."""
    status = response.status_code
    code = _error_code(response)
    if code in _DUPLICATE_CODES or status == 409:
        return ProviderErrorKind.DUPLICATE
    if status == 404 or code == "user_not_found":
        return ProviderErrorKind.NOT_FOUND
    if code == "email_not_confirmed":
        return ProviderErrorKind.EMAIL_NOT_CONFIRMED
    if code == "invalid_credentials" or code == "invalid_grant" or status in (400, 401):
        return ProviderErrorKind.INVALID_CREDENTIALS
    if status == 422:
        return ProviderErrorKind.DUPLICATE
    if status >= 500 or status == 429:
        return ProviderErrorKind.UNAVAILABLE
    return ProviderErrorKind.UNKNOWN


class GoTrueIdentityProvider:
    """IIdentityProvider backed by a GoTrue server (service-role key)."""

    def __init__(
        self,
        base_url: str,
        service_role_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.service_role_key = service_role_key
        self._client = http_client
        self.timeout = timeout

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
        }

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> httpx.Response | ProviderResult[Any]:
        url = f"{self.base_url}/auth/v1{path}"
        try:
            if self._client is not None:
                return await self._client.request(
                    method, url, headers=self._headers, timeout=self.timeout, **kwargs
                )
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("GoTrue %s %s failed: %s", method, path, e)
            return ProviderResult.failure(ProviderErrorKind.UNAVAILABLE, str(e))

    async def create_identity(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> ProviderResult[str]:
        response = await self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": False,
                "user_metadata": metadata,
            },
        )
        if isinstance(response, ProviderResult):
            return response
        if response.is_success:
            return ProviderResult.success(response.json()["id"])
        return ProviderResult.failure(_classify(response), f"status {response.status_code}")

    async def verify_password(self, email: str, password: str) -> ProviderResult[str]:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if isinstance(response, ProviderResult):
            return response
        if response.is_success:
            return ProviderResult.success(response.json()["user"]["id"])
        kind = _classify(response)
        if kind == ProviderErrorKind.DUPLICATE:
            kind = ProviderErrorKind.INVALID_CREDENTIALS
        return ProviderResult.failure(kind, f"status {response.status_code}")

    async def update_password(
        self, identity_id: str, new_password: str
    ) -> ProviderResult[None]:
        response = await self._request(
            "PUT", f"/admin/users/{identity_id}", json={"password": new_password}
        )
        if isinstance(response, ProviderResult):
            return response
        if response.is_success:
            return ProviderResult.success()
        return ProviderResult.failure(_classify(response), f"status {response.status_code}")

    async def delete_identity(self, identity_id: str) -> ProviderResult[None]:
        response = await self._request("DELETE", f"/admin/users/{identity_id}")
        if isinstance(response, ProviderResult):
            return response
        if response.is_success:
            return ProviderResult.success()
        return ProviderResult.failure(_classify(response), f"status {response.status_code}")

    async def send_verification_email(self, email: str) -> ProviderResult[None]:
        response = await self._request(
            "POST", "/resend", json={"type": "signup", "email": email}
        )
        if isinstance(response, ProviderResult):
            return response
        if response.is_success:
            return ProviderResult.success()
        return ProviderResult.failure(_classify(response), f"status {response.status_code}")
