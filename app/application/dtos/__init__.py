"""Application DTOs (no ORM dependency)."""

from app.application.dtos.auth import (
    CurrentIdentity,
    RegisterCommand,
    SessionResult,
    TokenClaims,
    TwoFactorChallenge,
    TwoFactorSetupResult,
)
from app.application.dtos.company import (
    CompanyResult,
    InvitationResult,
    MembershipResult,
)
from app.application.dtos.identity import (
    NewProfile,
    ProfileUpdate,
    ProviderIdentity,
    ProviderResult,
    RequestMetadata,
)
from app.application.dtos.notification import EmailMessage
from app.application.dtos.security import (
    PasswordResetTokenRecord,
    RecoveryCodeRecord,
    SecurityEventCreate,
    SecurityEventResult,
)

__all__ = [
    "CompanyResult",
    "CurrentIdentity",
    "EmailMessage",
    "InvitationResult",
    "MembershipResult",
    "NewProfile",
    "PasswordResetTokenRecord",
    "ProfileUpdate",
    "ProviderIdentity",
    "ProviderResult",
    "RecoveryCodeRecord",
    "RegisterCommand",
    "RequestMetadata",
    "SecurityEventCreate",
    "SecurityEventResult",
    "SessionResult",
    "TokenClaims",
    "TwoFactorChallenge",
    "TwoFactorSetupResult",
]
