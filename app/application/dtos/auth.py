"""DTOs for authentication flows: sessions, 2FA challenge, registration."""

from dataclasses import dataclass
from datetime import datetime

from app.application.dtos.company import MembershipResult
from app.domain.entities.identity import IdentityEntity


@dataclass(frozen=True)
class RegisterCommand:
    """Input for registration. company_name is ignored when invitation_token is set."""

    email: str
    password: str
    full_name: str
    company_name: str | None = None
    invitation_token: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Claims carried by a session token (company_id is the selected company, if any)."""

    sub: str
    email: str
    role: str
    company_id: str | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class SessionResult:
    """A minted session: bearer token plus the identity's membership list.

    current_company is the membership the token is scoped to, or None when
    the identity has no active membership.
    """

    token: str
    identity: IdentityEntity
    role: str
    companies: list[MembershipResult]
    current_company: MembershipResult | None


@dataclass(frozen=True)
class TwoFactorChallenge:
    """Step-up required: credentials were valid but a second factor is needed. No token."""

    email: str


@dataclass(frozen=True)
class TwoFactorSetupResult:
    """Freshly provisioned TOTP secret and its enrollment URI."""

    secret: str
    otpauth_url: str


@dataclass(frozen=True)
class CurrentIdentity:
    """Authenticated caller resolved from a bearer token."""

    identity: IdentityEntity
    claims: TokenClaims
