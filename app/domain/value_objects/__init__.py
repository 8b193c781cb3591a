"""Domain value objects and shared value types."""

from app.domain.value_objects.core import (
    MAX_NAME_LENGTH,
    CompanySlug,
    EmailAddress,
    PasswordPolicy,
    RecoveryCode,
    slugify,
)

__all__ = [
    "MAX_NAME_LENGTH",
    "CompanySlug",
    "EmailAddress",
    "PasswordPolicy",
    "RecoveryCode",
    "slugify",
]
