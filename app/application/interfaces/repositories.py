"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs or domain entities only; no infrastructure imports.

Every write is durable when the call returns; callers compose multi-step
operations with explicit compensation rather than a shared transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from app.domain.enums import MembershipRole, MembershipStatus

if TYPE_CHECKING:
    from app.application.dtos.company import (
        CompanyResult,
        InvitationResult,
        MembershipResult,
    )
    from app.application.dtos.identity import NewProfile, ProfileUpdate
    from app.application.dtos.security import (
        PasswordResetTokenRecord,
        RecoveryCodeRecord,
        SecurityEventCreate,
        SecurityEventResult,
    )
    from app.domain.entities.company import MembershipEntity
    from app.domain.entities.identity import IdentityEntity


# Identity (profile) repository interface
class IIdentityRepository(Protocol):
    """Protocol for the local identity profile store (DIP)."""

    async def get_by_id(self, identity_id: str) -> IdentityEntity | None:
        """Return identity by id (same id as the identity provider)."""

    async def get_by_email(self, email: str) -> IdentityEntity | None:
        """Return identity by normalized email."""

    async def create_profile(self, profile: NewProfile) -> IdentityEntity:
        """Insert the profile row.

        Raises ConflictException if a row with this id or email exists and
        StoreUnavailableException on transient store failures.
        """

    async def upsert_profile(self, profile: NewProfile) -> IdentityEntity:
        """Privileged direct write: insert or overwrite the profile row for profile.id."""

    async def delete(self, identity_id: str) -> None:
        """Delete the profile row (registration compensation only). No-op if missing."""

    async def update_profile(
        self, identity_id: str, update: ProfileUpdate
    ) -> IdentityEntity | None:
        """Apply non-None fields of update; return the updated identity or None."""

    async def increment_failed_attempts(self, identity_id: str, at: datetime) -> int:
        """Atomically add one to failed_login_attempts and stamp last_failed_login.

        Returns the counter value after the increment.
        """

    async def lock(self, identity_id: str, until: datetime) -> None:
        """Set locked_until."""

    async def reset_failed_attempts(self, identity_id: str) -> None:
        """Clear failed_login_attempts, locked_until and last_failed_login."""

    async def record_login(self, identity_id: str, at: datetime) -> None:
        """Stamp last_login."""

    async def set_two_factor_secret(
        self, identity_id: str, secret: str, created_at: datetime
    ) -> None:
        """Store a provisioned (unconfirmed) TOTP secret."""

    async def enable_two_factor(self, identity_id: str, confirmed_at: datetime) -> None:
        """Flip the 2FA flag on and stamp the confirmation time."""

    async def disable_two_factor(self, identity_id: str) -> None:
        """Clear the 2FA flag, secret and both timestamps."""

    async def set_password_hash(self, identity_id: str, password_hash: str) -> None:
        """Store the local password hash mirror."""


# Company repository interface
class ICompanyRepository(Protocol):
    """Protocol for company store (DIP)."""

    async def create(self, name: str, slug: str) -> CompanyResult:
        """Insert a company. Raises ConflictException when the slug is taken."""

    async def get_by_id(self, company_id: str) -> CompanyResult | None:
        """Return company by id."""

    async def slug_exists(self, slug: str) -> bool:
        """Return True if a company already uses slug."""

    async def delete(self, company_id: str) -> None:
        """Delete company (compensation only). No-op if missing."""


# Membership repository interface
class IMembershipRepository(Protocol):
    """Protocol for identity/company memberships (DIP)."""

    async def create(
        self,
        identity_id: str,
        company_id: str,
        role: MembershipRole,
        status: MembershipStatus = MembershipStatus.ACTIVE,
    ) -> MembershipEntity:
        """Insert a membership. Raises ConflictException if the pair already exists."""

    async def delete(self, membership_id: str) -> None:
        """Delete membership by id. No-op if missing."""

    async def list_for_identity(self, identity_id: str) -> list[MembershipResult]:
        """Return active memberships ordered by joined_at ascending, then company id."""

    async def get_active(
        self, identity_id: str, company_id: str
    ) -> MembershipResult | None:
        """Return the membership for the pair only if it is active."""


# Invitation repository interface
class IInvitationRepository(Protocol):
    """Protocol for company invitations (DIP)."""

    async def create(
        self,
        company_id: str,
        email: str,
        role: MembershipRole,
        token_hash: str,
        expires_at: datetime,
        invited_by: str | None = None,
    ) -> InvitationResult:
        """Insert a pending invitation."""

    async def get_by_token_hash(self, token_hash: str) -> InvitationResult | None:
        """Return invitation by token digest (any status)."""

    async def mark_accepted(self, invitation_id: str, at: datetime) -> bool:
        """Conditionally move pending -> accepted. Returns False if it was not pending."""

    async def mark_expired(self, invitation_id: str) -> None:
        """Move a pending invitation to expired."""

    async def reopen(self, invitation_id: str) -> None:
        """Move accepted -> pending (registration compensation only)."""


# Recovery code repository interface
class IRecoveryCodeRepository(Protocol):
    """Protocol for 2FA recovery codes (salted hashes only) (DIP)."""

    async def replace_all(self, identity_id: str, code_hashes: list[str]) -> None:
        """Atomically delete every existing code for identity and insert code_hashes."""

    async def list_unused(self, identity_id: str) -> list[RecoveryCodeRecord]:
        """Return codes with used_at IS NULL."""

    async def mark_used(self, code_id: str, at: datetime) -> bool:
        """Conditionally stamp used_at. Returns False if the code was already used."""

    async def delete_all(self, identity_id: str) -> None:
        """Delete every code for identity."""


# Password reset token repository interface
class IPasswordResetTokenRepository(Protocol):
    """Protocol for single-use password reset tokens (hash only) (DIP)."""

    async def create(
        self, identity_id: str, token_hash: str, expires_at: datetime
    ) -> PasswordResetTokenRecord:
        """Insert a reset token."""

    async def get_by_hash(self, token_hash: str) -> PasswordResetTokenRecord | None:
        """Return token by digest (any state)."""

    async def mark_used(self, token_id: str, at: datetime) -> bool:
        """Conditionally stamp used_at. Returns False if it was already used."""


# Security event repository interface
class ISecurityEventRepository(Protocol):
    """Protocol for the append-only security event log (DIP)."""

    async def append(self, event: SecurityEventCreate) -> None:
        """Persist one event. Rows are never updated or deleted."""

    async def list_for_identity(
        self, identity_id: str, limit: int = 50
    ) -> list[SecurityEventResult]:
        """Return the identity's most recent events, newest first."""
