"""DTOs for identity use cases (no dependency on ORM)."""

from dataclasses import dataclass, field
from typing import Any

from app.shared.enums import ProviderErrorKind


@dataclass(frozen=True)
class RequestMetadata:
    """Client metadata captured at the HTTP boundary for security events."""

    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class NewProfile:
    """Values for creating the local profile row mirrored from the identity provider."""

    id: str
    email: str
    full_name: str
    role: str = "member"


@dataclass(frozen=True)
class ProfileUpdate:
    """Partial profile update; None means unchanged."""

    full_name: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class ProviderResult[T]:
    """Typed outcome of an identity provider call.

    Exactly one of value (on success) or error (on failure) is meaningful.
    Callers switch over error; messages are for logs only.
    """

    ok: bool
    value: T | None = None
    error: ProviderErrorKind | None = None
    message: str | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "ProviderResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(
        cls, error: ProviderErrorKind, message: str | None = None
    ) -> "ProviderResult[T]":
        return cls(ok=False, error=error, message=message)


@dataclass(frozen=True)
class ProviderIdentity:
    """Identity as known by the external provider."""

    id: str
    email: str
    email_confirmed: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
