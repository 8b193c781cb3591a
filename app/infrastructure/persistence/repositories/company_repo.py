"""Company, membership and invitation repositories. Interface methods return DTOs/entities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.company import CompanyResult, InvitationResult, MembershipResult
from app.domain.entities.company import MembershipEntity
from app.domain.enums import InvitationStatus, MembershipRole, MembershipStatus
from app.infrastructure.persistence.models.company import (
    Company,
    CompanyInvitation,
    CompanyMembership,
)
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc, utc_now


def _company_to_result(row: Company) -> CompanyResult:
    return CompanyResult(id=row.id, name=row.name, slug=row.slug)


def _membership_to_entity(row: CompanyMembership) -> MembershipEntity:
    return MembershipEntity(
        id=row.id,
        identity_id=row.identity_id,
        company_id=row.company_id,
        role=MembershipRole(row.role),
        status=MembershipStatus(row.status),
        joined_at=ensure_utc(row.joined_at) or row.joined_at,
    )


def _membership_to_result(row: CompanyMembership, company: Company) -> MembershipResult:
    return MembershipResult(
        company_id=company.id,
        company_name=company.name,
        company_slug=company.slug,
        role=MembershipRole(row.role),
        status=MembershipStatus(row.status),
        joined_at=ensure_utc(row.joined_at) or row.joined_at,
    )


def _invitation_to_result(row: CompanyInvitation) -> InvitationResult:
    return InvitationResult(
        id=row.id,
        company_id=row.company_id,
        email=row.email,
        role=MembershipRole(row.role),
        status=InvitationStatus(row.status),
        expires_at=ensure_utc(row.expires_at) or row.expires_at,
        invited_by=row.invited_by,
    )


class CompanyRepository(BaseRepository[Company]):
    """Company store. The unique slug index is the final arbiter of slug collisions."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Company)

    async def create(self, name: str, slug: str) -> CompanyResult:
        row = await self.add(
            Company(name=name, slug=slug), conflict_message="Company slug already exists"
        )
        return _company_to_result(row)

    async def get_by_id(self, company_id: str) -> CompanyResult | None:
        row = await self.get_row(company_id)
        return _company_to_result(row) if row else None

    async def slug_exists(self, slug: str) -> bool:
        async with self.guard("select company slug"):
            result = await self.db.execute(select(exists().where(Company.slug == slug)))
            return bool(result.scalar())

    async def delete(self, company_id: str) -> None:
        await self.delete_by_id(company_id)


class MembershipRepository(BaseRepository[CompanyMembership]):
    """Identity/company links."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, CompanyMembership)

    async def create(
        self,
        identity_id: str,
        company_id: str,
        role: MembershipRole,
        status: MembershipStatus = MembershipStatus.ACTIVE,
    ) -> MembershipEntity:
        row = await self.add(
            CompanyMembership(
                identity_id=identity_id,
                company_id=company_id,
                role=role.value,
                status=status.value,
                joined_at=utc_now(),
            ),
            conflict_message="Already a member of this company",
        )
        return _membership_to_entity(row)

    async def delete(self, membership_id: str) -> None:
        await self.delete_by_id(membership_id)

    async def list_for_identity(self, identity_id: str) -> list[MembershipResult]:
        async with self.guard("list memberships"):
            result = await self.db.execute(
                select(CompanyMembership, Company)
                .join(Company, Company.id == CompanyMembership.company_id)
                .where(
                    CompanyMembership.identity_id == identity_id,
                    CompanyMembership.status == MembershipStatus.ACTIVE.value,
                )
                .order_by(CompanyMembership.joined_at.asc(), Company.id.asc())
            )
            rows = result.all()
        return [_membership_to_result(m, c) for m, c in rows]

    async def get_active(
        self, identity_id: str, company_id: str
    ) -> MembershipResult | None:
        async with self.guard("select membership"):
            result = await self.db.execute(
                select(CompanyMembership, Company)
                .join(Company, Company.id == CompanyMembership.company_id)
                .where(
                    CompanyMembership.identity_id == identity_id,
                    CompanyMembership.company_id == company_id,
                    CompanyMembership.status == MembershipStatus.ACTIVE.value,
                )
            )
            row = result.first()
        return _membership_to_result(row[0], row[1]) if row else None


class InvitationRepository(BaseRepository[CompanyInvitation]):
    """Company invitations. Status changes are conditional single-statement updates."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, CompanyInvitation)

    async def create(
        self,
        company_id: str,
        email: str,
        role: MembershipRole,
        token_hash: str,
        expires_at: datetime,
        invited_by: str | None = None,
    ) -> InvitationResult:
        row = await self.add(
            CompanyInvitation(
                company_id=company_id,
                email=email.strip().lower(),
                role=role.value,
                token_hash=token_hash,
                expires_at=expires_at,
                invited_by=invited_by,
                status=InvitationStatus.PENDING.value,
            )
        )
        return _invitation_to_result(row)

    async def get_by_token_hash(self, token_hash: str) -> InvitationResult | None:
        async with self.guard("select invitation"):
            result = await self.db.execute(
                select(CompanyInvitation).where(CompanyInvitation.token_hash == token_hash)
            )
            row = result.scalar_one_or_none()
        return _invitation_to_result(row) if row else None

    async def mark_accepted(self, invitation_id: str, at: datetime) -> bool:
        return await self._transition(
            invitation_id, InvitationStatus.PENDING, InvitationStatus.ACCEPTED, accepted_at=at
        )

    async def mark_expired(self, invitation_id: str) -> None:
        await self._transition(invitation_id, InvitationStatus.PENDING, InvitationStatus.EXPIRED)

    async def reopen(self, invitation_id: str) -> None:
        await self._transition(
            invitation_id, InvitationStatus.ACCEPTED, InvitationStatus.PENDING, accepted_at=None
        )

    async def _transition(
        self,
        invitation_id: str,
        from_status: InvitationStatus,
        to_status: InvitationStatus,
        **values: object,
    ) -> bool:
        async with self.guard(f"invitation {to_status.value}"):
            result = await self.db.execute(
                update(CompanyInvitation)
                .where(
                    CompanyInvitation.id == invitation_id,
                    CompanyInvitation.status == from_status.value,
                )
                .values(status=to_status.value, **values)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        return result.rowcount == 1
