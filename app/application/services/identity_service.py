"""Account self-service: current identity, profile update, resend verification, logout."""

from __future__ import annotations

import logging

from app.application.dtos.company import MembershipResult
from app.application.dtos.identity import ProfileUpdate, RequestMetadata
from app.application.dtos.security import SecurityEventResult
from app.application.interfaces.repositories import IIdentityRepository
from app.application.interfaces.services import IIdentityProvider
from app.application.services.company_registry import CompanyRegistry
from app.application.services.notification_service import redact_email
from app.application.services.security_event_log import SecurityEventLog
from app.domain.entities.identity import IdentityEntity
from app.domain.exceptions import ResourceNotFoundException, ValidationException
from app.shared.enums import SecurityEventType

logger = logging.getLogger(__name__)


class IdentityService:
    """Reads and updates the caller's own account."""

    def __init__(
        self,
        identities: IIdentityRepository,
        provider: IIdentityProvider,
        registry: CompanyRegistry,
        events: SecurityEventLog,
    ) -> None:
        self.identities = identities
        self.provider = provider
        self.registry = registry
        self.events = events

    async def companies(self, identity: IdentityEntity) -> list[MembershipResult]:
        return await self.registry.list_memberships(identity.id)

    async def update_profile(
        self, identity: IdentityEntity, update: ProfileUpdate
    ) -> IdentityEntity:
        if update.full_name is not None and len(update.full_name.strip()) < 2:
            raise ValidationException(
                "Full name must be at least 2 characters", field="fullName"
            )
        cleaned = ProfileUpdate(
            full_name=update.full_name.strip() if update.full_name is not None else None,
            avatar_url=update.avatar_url,
        )
        updated = await self.identities.update_profile(identity.id, cleaned)
        if updated is None:
            raise ResourceNotFoundException("Identity", identity.id)
        return updated

    async def resend_verification(self, email: str) -> None:
        """Ask the provider to resend its confirmation email. Silent for unknown emails."""
        email = email.strip().lower()
        identity = await self.identities.get_by_email(email)
        if identity is None:
            return
        result = await self.provider.send_verification_email(email)
        if not result.ok:
            logger.warning(
                "Verification email for %s failed: %s", redact_email(email), result.error
            )

    async def logout(
        self, identity: IdentityEntity, metadata: RequestMetadata | None = None
    ) -> None:
        """Tokens are stateless; logout is recorded for the audit trail only."""
        await self.events.record(
            SecurityEventType.LOGOUT,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
        )

    async def security_events(
        self, identity: IdentityEntity, limit: int = 50
    ) -> list[SecurityEventResult]:
        return await self.events.recent(identity.id, limit=limit)
