"""Auth API schemas (registration, login, sessions, profile, password flows)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import EmailStr, Field, field_validator

from app.application.dtos.auth import SessionResult
from app.application.dtos.company import MembershipResult
from app.application.dtos.security import SecurityEventResult
from app.domain.entities.identity import IdentityEntity
from app.schemas.common import CamelModel
from app.shared.utils.sanitization import clean_display_text


class RegisterRequest(CamelModel):
    """Request body for registration. companyName is ignored with an invitation token."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=200)
    company_name: str | None = Field(default=None, max_length=200)
    invitation_token: str | None = Field(default=None, max_length=512)

    @field_validator("full_name", "company_name")
    @classmethod
    def strip_markup(cls, value: str | None) -> str | None:
        return clean_display_text(value)


class LoginRequest(CamelModel):
    """Request body for password login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResendVerificationRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    """Request body for redeeming a password reset token."""

    token: str = Field(..., min_length=1, max_length=512)
    new_password: str = Field(..., min_length=1, max_length=128)


class ChangePasswordRequest(CamelModel):
    """Request body for an authenticated password change."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class SwitchCompanyRequest(CamelModel):
    company_id: str = Field(..., min_length=1, max_length=64)


class UpdateProfileRequest(CamelModel):
    """Partial profile update; omitted fields are unchanged."""

    full_name: str | None = Field(default=None, max_length=200)
    avatar_url: str | None = Field(default=None, max_length=2048)

    @field_validator("full_name")
    @classmethod
    def strip_markup(cls, value: str | None) -> str | None:
        return clean_display_text(value)


class UserResponse(CamelModel):
    """Public profile of an identity. Secrets and lockout counters are never exposed."""

    id: str
    email: str
    full_name: str
    role: str
    avatar_url: str | None = None
    is_two_factor_enabled: bool = Field(default=False, alias="is2FAEnabled")
    last_login: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, identity: IdentityEntity) -> UserResponse:
        return cls(
            id=identity.id,
            email=identity.email,
            full_name=identity.full_name,
            role=identity.role,
            avatar_url=identity.avatar_url,
            is_two_factor_enabled=identity.is_two_factor_enabled,
            last_login=identity.last_login,
            created_at=identity.created_at,
        )


class CompanyResponse(CamelModel):
    """A company the caller belongs to, with the caller's membership in it."""

    id: str
    name: str
    slug: str
    role: str
    status: str
    joined_at: datetime

    @classmethod
    def from_membership(cls, membership: MembershipResult) -> CompanyResponse:
        return cls(
            id=membership.company_id,
            name=membership.company_name,
            slug=membership.company_slug,
            role=membership.role.value,
            status=membership.status.value,
            joined_at=membership.joined_at,
        )


def _companies(session: SessionResult) -> list[CompanyResponse]:
    return [CompanyResponse.from_membership(m) for m in session.companies]


def _current(membership: MembershipResult | None) -> CompanyResponse | None:
    return CompanyResponse.from_membership(membership) if membership else None


class SessionResponse(CamelModel):
    """Token payload returned by register, login and 2FA verify."""

    token: str
    user: UserResponse
    companies: list[CompanyResponse]
    current_company: CompanyResponse | None = None

    @classmethod
    def from_session(cls, session: SessionResult) -> SessionResponse:
        return cls(
            token=session.token,
            user=UserResponse.from_entity(session.identity),
            companies=_companies(session),
            current_company=_current(session.current_company),
        )


class TwoFactorChallengeResponse(CamelModel):
    """Login step-up signal: credentials were valid but a second factor is required."""

    require_2fa: bool = Field(default=True, alias="require2fa")
    email: str


class SwitchCompanyResponse(CamelModel):
    token: str
    companies: list[CompanyResponse]
    current_company: CompanyResponse | None = None
    user_role: str

    @classmethod
    def from_session(cls, session: SessionResult) -> SwitchCompanyResponse:
        return cls(
            token=session.token,
            companies=_companies(session),
            current_company=_current(session.current_company),
            user_role=session.role,
        )


class MeResponse(CamelModel):
    """Current identity with its memberships and the token's selected company."""

    user: UserResponse
    companies: list[CompanyResponse]
    current_company: CompanyResponse | None = None


class SecurityEventResponse(CamelModel):
    id: str
    event_type: str
    success: bool
    ip_address: str | None = None
    user_agent: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_result(cls, event: SecurityEventResult) -> SecurityEventResponse:
        return cls(
            id=event.id,
            event_type=event.event_type,
            success=event.success,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            details=event.details,
            created_at=event.created_at,
        )
