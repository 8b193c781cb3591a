"""Local identity provider: credentials in the identity_credential table (bcrypt)."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.identity import ProviderResult
from app.application.interfaces.services import IPasswordHasher
from app.infrastructure.persistence.models.identity_credential import IdentityCredential
from app.infrastructure.persistence.repositories.base import rollback_quietly
from app.shared.enums import ProviderErrorKind

logger = logging.getLogger(__name__)


def _store_failure(error: SQLAlchemyError) -> ProviderErrorKind:
    if isinstance(error, OperationalError):
        return ProviderErrorKind.UNAVAILABLE
    return ProviderErrorKind.UNKNOWN

# Dummy hash for constant-time comparison when the email is unknown (timing-attack mitigation).
# Computed lazily per hasher cost on first use.
_dummy_hash_cache: dict[int, str] = {}


class LocalIdentityProvider:
    """IIdentityProvider storing credentials next to the profile table.

    Expected failures are returned as ProviderResult errors, never raised.
    """

    def __init__(self, db: AsyncSession, hasher: IPasswordHasher) -> None:
        self.db = db
        self.hasher = hasher

    async def _dummy_hash(self) -> str:
        key = getattr(self.hasher, "rounds", 0)
        if key not in _dummy_hash_cache:
            _dummy_hash_cache[key] = await self.hasher.hash("not-a-real-password")
        return _dummy_hash_cache[key]

    async def create_identity(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> ProviderResult[str]:
        row = IdentityCredential(
            email=email.strip().lower(),
            password_hash=await self.hasher.hash(password),
            user_metadata=metadata or None,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError:
            await rollback_quietly(self.db, "insert identity credential")
            return ProviderResult.failure(ProviderErrorKind.DUPLICATE, "email already registered")
        except SQLAlchemyError as e:
            await rollback_quietly(self.db, "identity credential write")
            return ProviderResult.failure(_store_failure(e), str(e))
        return ProviderResult.success(row.id)

    async def verify_password(self, email: str, password: str) -> ProviderResult[str]:
        try:
            result = await self.db.execute(
                select(IdentityCredential).where(
                    IdentityCredential.email == email.strip().lower()
                )
            )
        except SQLAlchemyError as e:
            await rollback_quietly(self.db, "select identity credential")
            return ProviderResult.failure(_store_failure(e), str(e))
        row = result.scalar_one_or_none()
        if row is None:
            await self.hasher.verify(password, await self._dummy_hash())
            return ProviderResult.failure(ProviderErrorKind.NOT_FOUND)
        if not await self.hasher.verify(password, row.password_hash):
            return ProviderResult.failure(ProviderErrorKind.INVALID_CREDENTIALS)
        return ProviderResult.success(row.id)

    async def update_password(
        self, identity_id: str, new_password: str
    ) -> ProviderResult[None]:
        password_hash = await self.hasher.hash(new_password)
        try:
            result = await self.db.execute(
                update(IdentityCredential)
                .where(IdentityCredential.id == identity_id)
                .values(password_hash=password_hash)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await rollback_quietly(self.db, "identity credential write")
            return ProviderResult.failure(_store_failure(e), str(e))
        if result.rowcount == 0:
            return ProviderResult.failure(ProviderErrorKind.NOT_FOUND)
        return ProviderResult.success()

    async def delete_identity(self, identity_id: str) -> ProviderResult[None]:
        try:
            result = await self.db.execute(
                delete(IdentityCredential).where(IdentityCredential.id == identity_id)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await rollback_quietly(self.db, "identity credential write")
            return ProviderResult.failure(_store_failure(e), str(e))
        if result.rowcount == 0:
            return ProviderResult.failure(ProviderErrorKind.NOT_FOUND)
        return ProviderResult.success()

    async def send_verification_email(self, email: str) -> ProviderResult[None]:
        # local credentials have no confirmation step
        logger.debug("Verification email requested; local provider has nothing to send")
        return ProviderResult.success()
