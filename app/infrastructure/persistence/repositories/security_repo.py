"""Recovery code, password reset token and security event repositories."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.security import (
    PasswordResetTokenRecord,
    RecoveryCodeRecord,
    SecurityEventCreate,
    SecurityEventResult,
)
from app.infrastructure.persistence.models.security import (
    PasswordResetToken,
    RecoveryCode,
    SecurityEvent,
)
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc, utc_now


class RecoveryCodeRepository(BaseRepository[RecoveryCode]):
    """Salted recovery code hashes. Redemption is a conditional update (used_at IS NULL)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, RecoveryCode)

    async def replace_all(self, identity_id: str, code_hashes: list[str]) -> None:
        async with self.guard("replace recovery codes"):
            await self.db.execute(
                delete(RecoveryCode).where(RecoveryCode.identity_id == identity_id)
            )
            self.db.add_all(
                RecoveryCode(identity_id=identity_id, code_hash=h) for h in code_hashes
            )
            await self.db.commit()

    async def list_unused(self, identity_id: str) -> list[RecoveryCodeRecord]:
        async with self.guard("list recovery codes"):
            result = await self.db.execute(
                select(RecoveryCode).where(
                    RecoveryCode.identity_id == identity_id,
                    RecoveryCode.used_at.is_(None),
                )
            )
            rows = result.scalars().all()
        return [
            RecoveryCodeRecord(id=r.id, identity_id=r.identity_id, code_hash=r.code_hash)
            for r in rows
        ]

    async def mark_used(self, code_id: str, at: datetime) -> bool:
        async with self.guard("mark recovery code used"):
            result = await self.db.execute(
                update(RecoveryCode)
                .where(RecoveryCode.id == code_id, RecoveryCode.used_at.is_(None))
                .values(used_at=at)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        return result.rowcount == 1

    async def delete_all(self, identity_id: str) -> None:
        async with self.guard("delete recovery codes"):
            await self.db.execute(
                delete(RecoveryCode).where(RecoveryCode.identity_id == identity_id)
            )
            await self.db.commit()


class PasswordResetTokenRepository(BaseRepository[PasswordResetToken]):
    """Single-use reset tokens stored by SHA-256 digest."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, PasswordResetToken)

    @staticmethod
    def _to_record(row: PasswordResetToken) -> PasswordResetTokenRecord:
        return PasswordResetTokenRecord(
            id=row.id,
            identity_id=row.identity_id,
            expires_at=ensure_utc(row.expires_at) or row.expires_at,
            used_at=ensure_utc(row.used_at),
        )

    async def create(
        self, identity_id: str, token_hash: str, expires_at: datetime
    ) -> PasswordResetTokenRecord:
        row = await self.add(
            PasswordResetToken(
                identity_id=identity_id, token_hash=token_hash, expires_at=expires_at
            )
        )
        return self._to_record(row)

    async def get_by_hash(self, token_hash: str) -> PasswordResetTokenRecord | None:
        async with self.guard("select reset token"):
            result = await self.db.execute(
                select(PasswordResetToken).where(PasswordResetToken.token_hash == token_hash)
            )
            row = result.scalar_one_or_none()
        return self._to_record(row) if row else None

    async def mark_used(self, token_id: str, at: datetime) -> bool:
        async with self.guard("mark reset token used"):
            result = await self.db.execute(
                update(PasswordResetToken)
                .where(PasswordResetToken.id == token_id, PasswordResetToken.used_at.is_(None))
                .values(used_at=at)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        return result.rowcount == 1


class SecurityEventRepository(BaseRepository[SecurityEvent]):
    """Append-only security event log. No update or delete paths."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, SecurityEvent)

    async def append(self, event: SecurityEventCreate) -> None:
        async with self.guard("append security event"):
            self.db.add(
                SecurityEvent(
                    identity_id=event.identity_id,
                    event_type=event.event_type.value,
                    success=event.success,
                    ip_address=event.ip_address,
                    user_agent=event.user_agent,
                    details=event.details or None,
                    created_at=utc_now(),
                )
            )
            await self.db.commit()

    async def list_for_identity(
        self, identity_id: str, limit: int = 50
    ) -> list[SecurityEventResult]:
        async with self.guard("list security events"):
            result = await self.db.execute(
                select(SecurityEvent)
                .where(SecurityEvent.identity_id == identity_id)
                .order_by(SecurityEvent.created_at.desc())
                .limit(limit)
            )
            rows = result.scalars().all()
        return [
            SecurityEventResult(
                id=r.id,
                event_type=r.event_type,
                success=r.success,
                identity_id=r.identity_id,
                ip_address=r.ip_address,
                user_agent=r.user_agent,
                details=r.details or {},
                created_at=ensure_utc(r.created_at) or r.created_at,
            )
            for r in rows
        ]
