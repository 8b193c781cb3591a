"""In-memory fakes of every application port, plus a controllable clock.

Fakes hand out copies so services cannot mutate stored state by accident,
and expose simple switches (fail_* attributes) for failure injection.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Any

from app.application.dtos.company import (
    CompanyResult,
    InvitationResult,
    MembershipResult,
)
from app.application.dtos.identity import NewProfile, ProfileUpdate, ProviderResult
from app.application.dtos.notification import EmailMessage
from app.application.dtos.security import (
    PasswordResetTokenRecord,
    RecoveryCodeRecord,
    SecurityEventCreate,
    SecurityEventResult,
)
from app.domain.entities.company import MembershipEntity
from app.domain.entities.identity import IdentityEntity
from app.domain.enums import InvitationStatus, MembershipRole, MembershipStatus
from app.domain.exceptions import ConflictException, StoreUnavailableException
from app.shared.enums import ProviderErrorKind

_ids = itertools.count(1)


def next_id(prefix: str) -> str:
    return f"{prefix}{next(_ids):06d}"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeIdentityRepository:
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.rows: dict[str, IdentityEntity] = {}
        self.password_hashes: dict[str, str] = {}
        self.create_failures = 0
        self.fail_upsert = False

    async def get_by_id(self, identity_id: str) -> IdentityEntity | None:
        row = self.rows.get(identity_id)
        return replace(row) if row else None

    async def get_by_email(self, email: str) -> IdentityEntity | None:
        for row in self.rows.values():
            if row.email == email:
                return replace(row)
        return None

    async def create_profile(self, profile: NewProfile) -> IdentityEntity:
        if self.create_failures:
            self.create_failures -= 1
            raise StoreUnavailableException("identity create")
        if profile.id in self.rows or await self.get_by_email(profile.email):
            raise ConflictException("An account with this email already exists")
        return await self.upsert_profile(profile, _direct=False)

    async def upsert_profile(self, profile: NewProfile, _direct: bool = True) -> IdentityEntity:
        if _direct and self.fail_upsert:
            raise StoreUnavailableException("identity upsert")
        self.rows[profile.id] = IdentityEntity(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=profile.role,
            created_at=self.clock(),
        )
        return replace(self.rows[profile.id])

    async def delete(self, identity_id: str) -> None:
        self.rows.pop(identity_id, None)

    async def update_profile(
        self, identity_id: str, update: ProfileUpdate
    ) -> IdentityEntity | None:
        row = self.rows.get(identity_id)
        if row is None:
            return None
        if update.full_name is not None:
            row.full_name = update.full_name
        if update.avatar_url is not None:
            row.avatar_url = update.avatar_url
        return replace(row)

    async def increment_failed_attempts(self, identity_id: str, at: datetime) -> int:
        row = self.rows[identity_id]
        row.failed_login_attempts += 1
        row.last_failed_login = at
        return row.failed_login_attempts

    async def lock(self, identity_id: str, until: datetime) -> None:
        self.rows[identity_id].locked_until = until

    async def reset_failed_attempts(self, identity_id: str) -> None:
        row = self.rows[identity_id]
        row.failed_login_attempts = 0
        row.locked_until = None
        row.last_failed_login = None

    async def record_login(self, identity_id: str, at: datetime) -> None:
        self.rows[identity_id].last_login = at

    async def set_two_factor_secret(
        self, identity_id: str, secret: str, created_at: datetime
    ) -> None:
        row = self.rows[identity_id]
        row.two_factor_secret = secret
        row.two_factor_secret_created_at = created_at

    async def enable_two_factor(self, identity_id: str, confirmed_at: datetime) -> None:
        row = self.rows[identity_id]
        row.is_two_factor_enabled = True
        row.two_factor_confirmed_at = confirmed_at

    async def disable_two_factor(self, identity_id: str) -> None:
        row = self.rows[identity_id]
        row.is_two_factor_enabled = False
        row.two_factor_secret = None
        row.two_factor_secret_created_at = None
        row.two_factor_confirmed_at = None

    async def set_password_hash(self, identity_id: str, password_hash: str) -> None:
        self.password_hashes[identity_id] = password_hash


class FakeCompanyRepository:
    def __init__(self) -> None:
        self.rows: dict[str, CompanyResult] = {}
        self.taken_slugs: set[str] = set()
        self.fail_create = False

    async def create(self, name: str, slug: str) -> CompanyResult:
        if self.fail_create:
            raise StoreUnavailableException("company create")
        if slug in self.taken_slugs or any(c.slug == slug for c in self.rows.values()):
            raise ConflictException("Company slug already exists")
        company = CompanyResult(id=next_id("co"), name=name, slug=slug)
        self.rows[company.id] = company
        return company

    async def get_by_id(self, company_id: str) -> CompanyResult | None:
        return self.rows.get(company_id)

    async def slug_exists(self, slug: str) -> bool:
        return slug in self.taken_slugs or any(c.slug == slug for c in self.rows.values())

    async def delete(self, company_id: str) -> None:
        self.rows.pop(company_id, None)


class FakeMembershipRepository:
    def __init__(self, companies: FakeCompanyRepository, clock: FakeClock) -> None:
        self.companies = companies
        self.clock = clock
        self.rows: dict[str, MembershipEntity] = {}
        self.fail_create = False

    async def create(
        self,
        identity_id: str,
        company_id: str,
        role: MembershipRole,
        status: MembershipStatus = MembershipStatus.ACTIVE,
    ) -> MembershipEntity:
        if self.fail_create:
            raise StoreUnavailableException("membership create")
        if any(
            m.identity_id == identity_id and m.company_id == company_id
            for m in self.rows.values()
        ):
            raise ConflictException("Membership already exists")
        membership = MembershipEntity(
            id=next_id("mb"),
            identity_id=identity_id,
            company_id=company_id,
            role=role,
            status=status,
            joined_at=self.clock(),
        )
        self.rows[membership.id] = membership
        return replace(membership)

    async def delete(self, membership_id: str) -> None:
        self.rows.pop(membership_id, None)

    def _result(self, membership: MembershipEntity) -> MembershipResult:
        company = self.companies.rows[membership.company_id]
        return MembershipResult(
            company_id=company.id,
            company_name=company.name,
            company_slug=company.slug,
            role=membership.role,
            status=membership.status,
            joined_at=membership.joined_at,
        )

    async def list_for_identity(self, identity_id: str) -> list[MembershipResult]:
        active = [
            m
            for m in self.rows.values()
            if m.identity_id == identity_id and m.is_active()
        ]
        active.sort(key=lambda m: (m.joined_at, m.company_id))
        return [self._result(m) for m in active]

    async def get_active(
        self, identity_id: str, company_id: str
    ) -> MembershipResult | None:
        for m in self.rows.values():
            if m.identity_id == identity_id and m.company_id == company_id and m.is_active():
                return self._result(m)
        return None

    def for_identity(self, identity_id: str) -> list[MembershipEntity]:
        return [m for m in self.rows.values() if m.identity_id == identity_id]


class FakeInvitationRepository:
    def __init__(self) -> None:
        self.rows: dict[str, InvitationResult] = {}
        self.hashes: dict[str, str] = {}

    async def create(
        self,
        company_id: str,
        email: str,
        role: MembershipRole,
        token_hash: str,
        expires_at: datetime,
        invited_by: str | None = None,
    ) -> InvitationResult:
        invitation = InvitationResult(
            id=next_id("inv"),
            company_id=company_id,
            email=email,
            role=role,
            status=InvitationStatus.PENDING,
            expires_at=expires_at,
            invited_by=invited_by,
        )
        self.rows[invitation.id] = invitation
        self.hashes[token_hash] = invitation.id
        return invitation

    async def get_by_token_hash(self, token_hash: str) -> InvitationResult | None:
        invitation_id = self.hashes.get(token_hash)
        return self.rows.get(invitation_id) if invitation_id else None

    def _set_status(self, invitation_id: str, status: InvitationStatus) -> None:
        self.rows[invitation_id] = replace(self.rows[invitation_id], status=status)

    async def mark_accepted(self, invitation_id: str, at: datetime) -> bool:
        if self.rows[invitation_id].status != InvitationStatus.PENDING:
            return False
        self._set_status(invitation_id, InvitationStatus.ACCEPTED)
        return True

    async def mark_expired(self, invitation_id: str) -> None:
        if self.rows[invitation_id].status == InvitationStatus.PENDING:
            self._set_status(invitation_id, InvitationStatus.EXPIRED)

    async def reopen(self, invitation_id: str) -> None:
        if self.rows[invitation_id].status == InvitationStatus.ACCEPTED:
            self._set_status(invitation_id, InvitationStatus.PENDING)


class FakeRecoveryCodeRepository:
    def __init__(self) -> None:
        self.rows: dict[str, RecoveryCodeRecord] = {}

    async def replace_all(self, identity_id: str, code_hashes: list[str]) -> None:
        await self.delete_all(identity_id)
        for code_hash in code_hashes:
            record = RecoveryCodeRecord(
                id=next_id("rc"), identity_id=identity_id, code_hash=code_hash
            )
            self.rows[record.id] = record

    async def list_unused(self, identity_id: str) -> list[RecoveryCodeRecord]:
        return [
            r for r in self.rows.values() if r.identity_id == identity_id and r.used_at is None
        ]

    async def mark_used(self, code_id: str, at: datetime) -> bool:
        record = self.rows.get(code_id)
        if record is None or record.used_at is not None:
            return False
        self.rows[code_id] = replace(record, used_at=at)
        return True

    async def delete_all(self, identity_id: str) -> None:
        for code_id in [k for k, r in self.rows.items() if r.identity_id == identity_id]:
            del self.rows[code_id]


class FakePasswordResetTokenRepository:
    def __init__(self) -> None:
        self.rows: dict[str, PasswordResetTokenRecord] = {}
        self.hashes: dict[str, str] = {}

    async def create(
        self, identity_id: str, token_hash: str, expires_at: datetime
    ) -> PasswordResetTokenRecord:
        record = PasswordResetTokenRecord(
            id=next_id("prt"), identity_id=identity_id, expires_at=expires_at
        )
        self.rows[record.id] = record
        self.hashes[token_hash] = record.id
        return record

    async def get_by_hash(self, token_hash: str) -> PasswordResetTokenRecord | None:
        token_id = self.hashes.get(token_hash)
        return self.rows.get(token_id) if token_id else None

    async def mark_used(self, token_id: str, at: datetime) -> bool:
        record = self.rows.get(token_id)
        if record is None or record.used_at is not None:
            return False
        self.rows[token_id] = replace(record, used_at=at)
        return True


class FakeSecurityEventRepository:
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.events: list[SecurityEventResult] = []
        self.fail_append = False

    async def append(self, event: SecurityEventCreate) -> None:
        if self.fail_append:
            raise StoreUnavailableException("security event append")
        self.events.append(
            SecurityEventResult(
                id=next_id("se"),
                event_type=event.event_type.value,
                success=event.success,
                identity_id=event.identity_id,
                ip_address=event.ip_address,
                user_agent=event.user_agent,
                details=dict(event.details),
                created_at=self.clock(),
            )
        )

    async def list_for_identity(
        self, identity_id: str, limit: int = 50
    ) -> list[SecurityEventResult]:
        mine = [e for e in self.events if e.identity_id == identity_id]
        return list(reversed(mine))[:limit]

    def types(self) -> list[str]:
        return [e.event_type for e in self.events]


@dataclass
class _Account:
    id: str
    email: str
    password: str
    metadata: dict[str, Any] = field(default_factory=dict)


class FakeIdentityProvider:
    """Identity provider keeping plaintext passwords in memory."""

    def __init__(self) -> None:
        self.accounts: dict[str, _Account] = {}
        self.deleted: list[str] = []
        self.verification_emails: list[str] = []
        self.unconfirmed: set[str] = set()
        self.unavailable = False
        self.fail_update = False
        self.fail_verification = False

    async def create_identity(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> ProviderResult[str]:
        if self.unavailable:
            return ProviderResult.failure(ProviderErrorKind.UNAVAILABLE, "down")
        if any(a.email == email for a in self.accounts.values()):
            return ProviderResult.failure(ProviderErrorKind.DUPLICATE)
        account = _Account(id=next_id("idp"), email=email, password=password, metadata=metadata)
        self.accounts[account.id] = account
        return ProviderResult.success(account.id)

    async def verify_password(self, email: str, password: str) -> ProviderResult[str]:
        if self.unavailable:
            return ProviderResult.failure(ProviderErrorKind.UNAVAILABLE, "down")
        for account in self.accounts.values():
            if account.email == email:
                if account.password != password:
                    return ProviderResult.failure(ProviderErrorKind.INVALID_CREDENTIALS)
                if email in self.unconfirmed:
                    return ProviderResult.failure(ProviderErrorKind.EMAIL_NOT_CONFIRMED)
                return ProviderResult.success(account.id)
        return ProviderResult.failure(ProviderErrorKind.NOT_FOUND)

    async def update_password(
        self, identity_id: str, new_password: str
    ) -> ProviderResult[None]:
        if self.fail_update:
            return ProviderResult.failure(ProviderErrorKind.UNAVAILABLE, "down")
        account = self.accounts.get(identity_id)
        if account is None:
            return ProviderResult.failure(ProviderErrorKind.NOT_FOUND)
        account.password = new_password
        return ProviderResult.success()

    async def delete_identity(self, identity_id: str) -> ProviderResult[None]:
        if self.accounts.pop(identity_id, None) is None:
            return ProviderResult.failure(ProviderErrorKind.NOT_FOUND)
        self.deleted.append(identity_id)
        return ProviderResult.success()

    async def send_verification_email(self, email: str) -> ProviderResult[None]:
        if self.fail_verification:
            return ProviderResult.failure(ProviderErrorKind.UNAVAILABLE, "down")
        self.verification_emails.append(email)
        return ProviderResult.success()


class RecordingEmailDispatcher:
    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self.fail = False

    async def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append(message)

    def tags(self) -> list[str]:
        return [m.tag for m in self.sent]


class FakeSubscriptionProvisioner:
    def __init__(self) -> None:
        self.provisioned: list[str] = []
        self.fail = False

    async def provision_default(self, company_id: str) -> None:
        if self.fail:
            raise StoreUnavailableException("subscription create")
        self.provisioned.append(company_id)


class PlainPasswordHasher:
    """IPasswordHasher without bcrypt cost, for unit tests."""

    async def hash(self, password: str) -> str:
        return f"plain${password}"

    async def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == f"plain${password}"
