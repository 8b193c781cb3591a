"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.company import (
    Company,
    CompanyInvitation,
    CompanyMembership,
)
from app.infrastructure.persistence.models.identity import Identity
from app.infrastructure.persistence.models.identity_credential import IdentityCredential
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    TimestampMixin,
)
from app.infrastructure.persistence.models.security import (
    PasswordResetToken,
    RecoveryCode,
    SecurityEvent,
)
from app.infrastructure.persistence.models.subscription import Subscription

__all__ = [
    "Company",
    "CompanyInvitation",
    "CompanyMembership",
    "CreatedAtMixin",
    "CuidMixin",
    "Identity",
    "IdentityCredential",
    "PasswordResetToken",
    "RecoveryCode",
    "SecurityEvent",
    "Subscription",
    "TimestampMixin",
]
