"""Domain enumerations for the identity and company-access subsystem.

Enums represent fixed sets of domain values (membership roles and
statuses, invitation lifecycle).
"""

from enum import Enum


class MembershipRole(str, Enum):
    """Role an identity holds inside one company.

    The registering identity always receives ADMIN for the company it creates.
    """

    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid role values as strings.

        Returns:
            List of enum value strings (e.g. for validation or serialization).
        """
        return [role.value for role in cls]


class MembershipStatus(str, Enum):
    """Membership lifecycle status.

    Only ACTIVE memberships can be selected as the current company of a token.
    """

    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]


class InvitationStatus(str, Enum):
    """Company invitation lifecycle: pending until accepted or expired."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]


class TwoFactorState(str, Enum):
    """Derived two-factor state of an identity.

    DISABLED -> PROVISIONING (secret generated, unconfirmed) -> ENABLED -> DISABLED.
    """

    DISABLED = "disabled"
    PROVISIONING = "provisioning"
    ENABLED = "enabled"
