"""Identity profile repository. Interface methods return domain entities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.identity import NewProfile, ProfileUpdate
from app.domain.entities.identity import IdentityEntity
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.models.identity import Identity
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc


def _identity_to_entity(row: Identity) -> IdentityEntity:
    """Map ORM Identity to the domain entity (no password hash)."""
    return IdentityEntity(
        id=row.id,
        email=row.email,
        full_name=row.full_name,
        role=row.role,
        avatar_url=row.avatar_url,
        is_active=row.is_active,
        is_two_factor_enabled=row.is_two_factor_enabled,
        two_factor_secret=row.two_factor_secret,
        two_factor_secret_created_at=ensure_utc(row.two_factor_secret_created_at),
        two_factor_confirmed_at=ensure_utc(row.two_factor_confirmed_at),
        failed_login_attempts=row.failed_login_attempts,
        locked_until=ensure_utc(row.locked_until),
        last_failed_login=ensure_utc(row.last_failed_login),
        last_login=ensure_utc(row.last_login),
        created_at=ensure_utc(row.created_at),
    )


class IdentityRepository(BaseRepository[Identity]):
    """Profile store. Lockout counters are updated with single atomic statements."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Identity)

    async def get_by_id(self, identity_id: str) -> IdentityEntity | None:
        row = await self.get_row(identity_id)
        return _identity_to_entity(row) if row else None

    async def get_by_email(self, email: str) -> IdentityEntity | None:
        async with self.guard("select identity by email"):
            result = await self.db.execute(
                select(Identity).where(Identity.email == email.strip().lower())
            )
            row = result.scalar_one_or_none()
        return _identity_to_entity(row) if row else None

    async def create_profile(self, profile: NewProfile) -> IdentityEntity:
        row = Identity(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=profile.role,
        )
        row = await self.add(row, conflict_message="Profile already exists")
        return _identity_to_entity(row)

    async def upsert_profile(self, profile: NewProfile) -> IdentityEntity:
        async with self.guard("upsert identity", "Profile already exists"):
            row = await self.db.merge(
                Identity(
                    id=profile.id,
                    email=profile.email,
                    full_name=profile.full_name,
                    role=profile.role,
                )
            )
            await self.db.commit()
            await self.db.refresh(row)
        return _identity_to_entity(row)

    async def delete(self, identity_id: str) -> None:
        await self.delete_by_id(identity_id)

    async def update_profile(
        self, identity_id: str, update_: ProfileUpdate
    ) -> IdentityEntity | None:
        row = await self.get_row(identity_id)
        if row is None:
            return None
        if update_.full_name is not None:
            row.full_name = update_.full_name
        if update_.avatar_url is not None:
            row.avatar_url = update_.avatar_url
        async with self.guard("update identity"):
            await self.db.commit()
            await self.db.refresh(row)
        return _identity_to_entity(row)

    async def increment_failed_attempts(self, identity_id: str, at: datetime) -> int:
        async with self.guard("increment failed attempts"):
            result = await self.db.execute(
                update(Identity)
                .where(Identity.id == identity_id)
                .values(
                    failed_login_attempts=Identity.failed_login_attempts + 1,
                    last_failed_login=at,
                )
                .returning(Identity.failed_login_attempts)
            )
            attempts = result.scalar_one_or_none()
            await self.db.commit()
        if attempts is None:
            raise ResourceNotFoundException("Identity", identity_id)
        return int(attempts)

    async def lock(self, identity_id: str, until: datetime) -> None:
        await self._set(identity_id, "lock identity", locked_until=until)

    async def reset_failed_attempts(self, identity_id: str) -> None:
        await self._set(
            identity_id,
            "reset failed attempts",
            failed_login_attempts=0,
            locked_until=None,
            last_failed_login=None,
        )

    async def record_login(self, identity_id: str, at: datetime) -> None:
        await self._set(identity_id, "record login", last_login=at)

    async def set_two_factor_secret(
        self, identity_id: str, secret: str, created_at: datetime
    ) -> None:
        await self._set(
            identity_id,
            "set 2fa secret",
            two_factor_secret=secret,
            two_factor_secret_created_at=created_at,
            two_factor_confirmed_at=None,
        )

    async def enable_two_factor(self, identity_id: str, confirmed_at: datetime) -> None:
        await self._set(
            identity_id,
            "enable 2fa",
            is_two_factor_enabled=True,
            two_factor_confirmed_at=confirmed_at,
        )

    async def disable_two_factor(self, identity_id: str) -> None:
        await self._set(
            identity_id,
            "disable 2fa",
            is_two_factor_enabled=False,
            two_factor_secret=None,
            two_factor_secret_created_at=None,
            two_factor_confirmed_at=None,
        )

    async def set_password_hash(self, identity_id: str, password_hash: str) -> None:
        await self._set(identity_id, "set password hash", password_hash=password_hash)

    async def _set(self, identity_id: str, operation: str, **values: object) -> None:
        async with self.guard(operation):
            await self.db.execute(
                update(Identity).where(Identity.id == identity_id).values(**values)
            )
            await self.db.commit()
