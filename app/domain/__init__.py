"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import CompanyEntity, IdentityEntity, MembershipEntity
from app.domain.enums import (
    InvitationStatus,
    MembershipRole,
    MembershipStatus,
    TwoFactorState,
)
from app.domain.exceptions import (
    AccountLockedException,
    ConflictException,
    ForbiddenException,
    InternalException,
    InvalidCodeException,
    InvalidCredentialsException,
    InvalidTokenException,
    KeystoneException,
    ProvisioningTimeoutException,
    ResourceNotFoundException,
    StoreUnavailableException,
    TwoFactorStateException,
    ValidationException,
)
from app.domain.value_objects import (
    CompanySlug,
    EmailAddress,
    PasswordPolicy,
    RecoveryCode,
)

__all__ = [
    # Entities
    "CompanyEntity",
    "IdentityEntity",
    "MembershipEntity",
    # Enums
    "InvitationStatus",
    "MembershipRole",
    "MembershipStatus",
    "TwoFactorState",
    # Exceptions
    "AccountLockedException",
    "ConflictException",
    "ForbiddenException",
    "InternalException",
    "InvalidCodeException",
    "InvalidCredentialsException",
    "InvalidTokenException",
    "KeystoneException",
    "ProvisioningTimeoutException",
    "ResourceNotFoundException",
    "StoreUnavailableException",
    "TwoFactorStateException",
    "ValidationException",
    # Value objects
    "CompanySlug",
    "EmailAddress",
    "PasswordPolicy",
    "RecoveryCode",
]
