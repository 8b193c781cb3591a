"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from app.domain.entities.company import CompanyEntity, MembershipEntity
from app.domain.entities.identity import IdentityEntity

__all__ = [
    "CompanyEntity",
    "IdentityEntity",
    "MembershipEntity",
]
