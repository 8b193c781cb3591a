"""DTOs for company, membership and invitation use cases (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.enums import InvitationStatus, MembershipRole, MembershipStatus


@dataclass(frozen=True)
class CompanyResult:
    """Company read-model (public fields)."""

    id: str
    name: str
    slug: str


@dataclass(frozen=True)
class MembershipResult:
    """One company membership of an identity, joined with the company's public fields.

    Lists of these are ordered by joined_at ascending, then company id.
    """

    company_id: str
    company_name: str
    company_slug: str
    role: MembershipRole
    status: MembershipStatus
    joined_at: datetime


@dataclass(frozen=True)
class InvitationResult:
    """Company invitation read-model. The raw token is never stored, only its hash."""

    id: str
    company_id: str
    email: str
    role: MembershipRole
    status: InvitationStatus
    expires_at: datetime
    invited_by: str | None = None
