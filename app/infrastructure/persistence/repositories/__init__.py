"""SQLAlchemy repositories implementing the application ports."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.company_repo import (
    CompanyRepository,
    InvitationRepository,
    MembershipRepository,
)
from app.infrastructure.persistence.repositories.identity_repo import IdentityRepository
from app.infrastructure.persistence.repositories.security_repo import (
    PasswordResetTokenRepository,
    RecoveryCodeRepository,
    SecurityEventRepository,
)

__all__ = [
    "BaseRepository",
    "CompanyRepository",
    "IdentityRepository",
    "InvitationRepository",
    "MembershipRepository",
    "PasswordResetTokenRepository",
    "RecoveryCodeRepository",
    "SecurityEventRepository",
]
