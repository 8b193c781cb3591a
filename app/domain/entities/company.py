"""Company and membership domain entities."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.enums import MembershipRole, MembershipStatus
from app.domain.exceptions import ValidationException


@dataclass
class CompanyEntity:
    """A company (tenant): isolation boundary for business data."""

    id: str
    name: str
    slug: str
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationException("Company name is required", field="name")


@dataclass
class MembershipEntity:
    """Role-bearing link between an identity and a company.

    Only ACTIVE memberships may be embedded as the current company in a token.
    """

    id: str
    identity_id: str
    company_id: str
    role: MembershipRole
    status: MembershipStatus
    joined_at: datetime

    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE
